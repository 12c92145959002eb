# Project structure
# ├─ main.py
# ├─ dzi_assemble/
# │  ├─ __init__.py
# │  ├─ config.py
# │  ├─ logger.py
# │  ├─ errors.py
# │  ├─ manifest.py
# │  ├─ tiles.py
# │  ├─ composer.py
# │  └─ pipeline.py
#
# Requirements: Pillow, numpy, python-dotenv

# ==============================
# dzi_assemble/__init__.py
# ==============================

from .config import AssembleConfig
from .errors import AssembleError, FilesystemError, MalformedManifestError, TileLoadError
from .manifest import Layer, PyramidManifest, load_manifest, parse_manifest
from .tiles import TileSource
from .composer import compose_layer
from .pipeline import RunSummary, layer_target_size, process_manifest, run

__all__ = [
    "AssembleConfig",
    "AssembleError",
    "FilesystemError",
    "MalformedManifestError",
    "TileLoadError",
    "Layer",
    "PyramidManifest",
    "load_manifest",
    "parse_manifest",
    "TileSource",
    "compose_layer",
    "RunSummary",
    "layer_target_size",
    "process_manifest",
    "run",
]
