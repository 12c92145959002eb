# ==============================
# dzi_assemble/pipeline.py
# ==============================
import logging
import math
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from .composer import canvas_size, compose_layer, layer_file_name
from .config import AssembleConfig
from .errors import AssembleError, FilesystemError
from .manifest import PyramidManifest, load_manifest
from .tiles import TileSource

logger = logging.getLogger(__name__)

STATUS_WRITTEN = "written"
STATUS_SKIPPED = "skipped"
STATUS_EMPTY = "empty"
STATUS_PLANNED = "planned"


@dataclass
class LayerResult:
    index: int
    status: str
    target: Tuple[int, int]
    path: Optional[Path] = None


@dataclass
class ManifestResult:
    group: str
    source: Path
    layers: List[LayerResult] = field(default_factory=list)
    error: Optional[AssembleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def written(self) -> List[Path]:
        return [r.path for r in self.layers if r.status == STATUS_WRITTEN and r.path is not None]


@dataclass
class RunSummary:
    output_dir: Path
    manifests: List[ManifestResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(m.ok for m in self.manifests)

    @property
    def failures(self) -> List[ManifestResult]:
        return [m for m in self.manifests if not m.ok]

    @property
    def files_written(self) -> int:
        return sum(len(m.written) for m in self.manifests)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def layer_target_size(width: int, height: int, layer_index: int) -> Tuple[int, int]:
    """Target size for a layer: index 1 is full size, 0 is doubled, each further index halves."""
    scale = 0.5 ** (layer_index - 1)
    return _round_half_up(width * scale), _round_half_up(height * scale)


def should_compose(layer_index: int, enable_lower_layers: bool) -> bool:
    return layer_index <= 1 or enable_lower_layers


def find_manifests(event_dir: Union[str, Path], extension: str = ".dzi") -> List[Path]:
    event_dir = Path(event_dir)
    try:
        entries = list(event_dir.iterdir())
    except OSError as e:
        raise FilesystemError(f"Cannot list {event_dir}: {e}") from e
    return sorted(p for p in entries if p.is_file() and p.suffix == extension)


def group_name(manifest_path: Union[str, Path]) -> str:
    return Path(manifest_path).stem


def prepare_output_dir(output_dir: Union[str, Path], protected: Sequence[Union[str, Path]] = (),
                       clean: bool = True) -> Path:
    """Reset the output directory for a fresh run.

    Refuses to delete any `protected` directory (the event and tile
    directories) or a directory containing one of them.
    """
    output_dir = Path(output_dir)
    out_abs = output_dir.resolve()
    for keep in protected:
        keep_abs = Path(keep).resolve()
        if out_abs == keep_abs or out_abs in keep_abs.parents:
            raise FilesystemError(f"Output directory {output_dir} would remove input directory {keep}")
    if output_dir.exists() and not output_dir.is_dir():
        raise FilesystemError(f"Output path {output_dir} exists and is not a directory")

    if clean and output_dir.exists():
        logger.info(f"Removing previous output: {output_dir}")
        try:
            shutil.rmtree(output_dir)
        except OSError as e:
            raise FilesystemError(f"Cannot remove {output_dir}: {e}") from e
    return output_dir


def plan_manifest(manifest: PyramidManifest, group: str, source: Path, tiles: TileSource,
                  config: AssembleConfig) -> ManifestResult:
    """Dry run: report what would be written without touching the output directory."""
    result = ManifestResult(group=group, source=source)
    for i, layer in enumerate(manifest.layers):
        target = layer_target_size(manifest.width, manifest.height, i)
        if not should_compose(i, config.enable_lower_layers):
            result.layers.append(LayerResult(i, STATUS_SKIPPED, target))
            continue
        if layer.is_empty:
            result.layers.append(LayerResult(i, STATUS_EMPTY, target))
            continue
        canvas_w, canvas_h = canvas_size(layer, tiles.size_of(layer.tiles[0][0]))
        out_file = config.output_path / group / layer_file_name(i)
        logger.info(
            f"[dry-run] {out_file}: {len(layer.tile_names())} tiles, canvas {canvas_w}x{canvas_h}, "
            f"output {min(target[0], canvas_w)}x{min(target[1], canvas_h)}"
        )
        result.layers.append(LayerResult(i, STATUS_PLANNED, target, out_file))
    return result


def process_manifest(manifest_path: Union[str, Path], config: AssembleConfig,
                     tiles: Optional[TileSource] = None) -> ManifestResult:
    """Parse one manifest and compose its layers in ascending order. Errors propagate."""
    manifest_path = Path(manifest_path)
    group = group_name(manifest_path)
    if tiles is None:
        tiles = TileSource(config.tex_path, config.tile_extension)

    logger.info(f"Handling {group} ...")
    manifest = load_manifest(manifest_path, strict=config.strict_grid)
    logger.debug(f"{group}: {manifest.width}x{manifest.height}, {len(manifest.layers)} layers")

    if config.dry_run:
        return plan_manifest(manifest, group, manifest_path, tiles, config)

    result = ManifestResult(group=group, source=manifest_path)
    for i, layer in enumerate(manifest.layers):
        target = layer_target_size(manifest.width, manifest.height, i)
        if not should_compose(i, config.enable_lower_layers):
            logger.info(f"Skip layer_{i} due to config")
            result.layers.append(LayerResult(i, STATUS_SKIPPED, target))
            continue

        out_file = compose_layer(layer, tiles, group, i, config.output_path, target[0], target[1])
        status = STATUS_WRITTEN if out_file is not None else STATUS_EMPTY
        result.layers.append(LayerResult(i, status, target, out_file))
    return result


def run(config: Optional[AssembleConfig] = None) -> RunSummary:
    """Assemble every manifest in config.event_dir.

    With fail_fast (default) the first error aborts the run. Otherwise each
    manifest is isolated: its error is kept on its ManifestResult and the
    remaining manifests are still processed.
    """
    config = config or AssembleConfig()
    event_dir = config.event_path
    if not event_dir.is_dir():
        raise FilesystemError(f"Event directory not found: {event_dir}")
    if not config.tex_path.is_dir():
        raise FilesystemError(f"Tile directory not found: {config.tex_path}")

    if not config.dry_run:
        prepare_output_dir(config.output_path, (event_dir, config.tex_path), clean=config.clean_output)

    manifests = find_manifests(event_dir, config.manifest_extension)
    logger.info(f"Found {len(manifests)} manifest(s) in {event_dir}")

    tiles = TileSource(config.tex_path, config.tile_extension)
    summary = RunSummary(output_dir=config.output_path)
    for path in manifests:
        try:
            result = process_manifest(path, config, tiles)
        except AssembleError as e:
            if config.fail_fast:
                raise
            logger.error(f"{group_name(path)}: {e}")
            result = ManifestResult(group=group_name(path), source=path, error=e)
        summary.manifests.append(result)

    return summary
