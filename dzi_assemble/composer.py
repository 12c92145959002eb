# ==============================
# dzi_assemble/composer.py
# ==============================
import logging
import os
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image

from .errors import FilesystemError
from .manifest import Layer
from .tiles import TileSource

logger = logging.getLogger(__name__)


def ensure_dir(path: Union[str, Path]) -> None:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Cannot create directory {path}: {e}") from e


def layer_file_name(layer_index: int) -> str:
    return f"layer_{layer_index}.png"


def paste_tile(canvas: np.ndarray, tile: Image.Image, left: int, top: int) -> None:
    """Overwrite the canvas with `tile` at (left, top). Parts past the canvas edge are dropped."""
    h, w = canvas.shape[:2]
    if left >= w or top >= h:
        return
    pixels = np.asarray(tile.convert("RGBA"), dtype=np.uint8)
    th = min(pixels.shape[0], h - top)
    tw = min(pixels.shape[1], w - left)
    canvas[top:top + th, left:left + tw] = pixels[:th, :tw]


def build_canvas(layer: Layer, tiles: TileSource) -> np.ndarray:
    """Stitch a layer into an RGBA array of shape (rows * th, cols * tw, 4).

    Tile size comes from the anchor tile at (0, 0). Row 0 is authoritative
    for the number of columns: short rows leave their missing cells
    transparent and long rows are cut at that width.
    """
    anchor = tiles.load(layer.tiles[0][0])
    tile_w, tile_h = anchor.size

    rows = layer.height_in_tiles
    cols = layer.width_in_tiles
    canvas = np.zeros((rows * tile_h, cols * tile_w, 4), dtype=np.uint8)

    for row, col, name in layer.cells():
        tile = anchor if (row, col) == (0, 0) else tiles.load(name)
        paste_tile(canvas, tile, col * tile_w, row * tile_h)
    return canvas


def crop_canvas(canvas: np.ndarray, target_width: int, target_height: int) -> np.ndarray:
    """Top-left crop; a target larger than the canvas is clipped, never padded."""
    h, w = canvas.shape[:2]
    return canvas[:min(target_height, h), :min(target_width, w)]


def compose_layer(
    layer: Layer,
    tiles: TileSource,
    group: str,
    layer_index: int,
    output_root: Union[str, Path],
    target_width: int,
    target_height: int,
) -> Optional[Path]:
    """Compose one layer and save it as <output_root>/<group>/layer_<index>.png.

    Returns the written path, or None when the layer has no tiles.
    """
    if layer.is_empty:
        logger.debug(f"{group}: layer_{layer_index} has no tiles, nothing to compose")
        return None

    canvas = build_canvas(layer, tiles)
    crop = crop_canvas(canvas, target_width, target_height)
    if crop.size == 0:
        logger.warning(f"{group}: layer_{layer_index} crops to {target_width}x{target_height}, nothing to write")
        return None

    out_dir = Path(output_root) / group
    ensure_dir(out_dir)
    out_file = out_dir / layer_file_name(layer_index)
    try:
        Image.fromarray(np.ascontiguousarray(crop)).save(out_file, format="PNG")
    except (OSError, ValueError) as e:
        raise FilesystemError(f"Cannot write {out_file}: {e}") from e

    logger.info(f"Compose successfully: {out_file} ({crop.shape[1]}x{crop.shape[0]})")
    return out_file


def canvas_size(layer: Layer, tile_size: Tuple[int, int]) -> Tuple[int, int]:
    """(width, height) of the uncropped canvas for a given tile size."""
    tile_w, tile_h = tile_size
    return layer.width_in_tiles * tile_w, layer.height_in_tiles * tile_h
