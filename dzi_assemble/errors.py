# ==============================
# dzi_assemble/errors.py
# ==============================
from pathlib import Path
from typing import Optional, Union


class AssembleError(Exception):
    """Base class for every failure raised while assembling layers."""


class MalformedManifestError(AssembleError, ValueError):
    """Manifest text does not follow the line-oriented .dzi layout."""


class TileLoadError(AssembleError):
    """A referenced tile image is missing, unreadable or not decodable."""

    def __init__(self, name: str, path: Optional[Union[str, Path]] = None, reason: str = ""):
        self.name = name
        self.path = Path(path) if path is not None else None
        self.reason = reason
        message = f"Cannot load tile '{name}'"
        if path is not None:
            message += f": {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class FilesystemError(AssembleError, OSError):
    """Directory listing, creation, removal or write failure."""
