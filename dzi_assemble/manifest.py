# ==============================
# dzi_assemble/manifest.py
# ==============================
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Tuple, Union

from .errors import FilesystemError, MalformedManifestError

TileRow = Tuple[str, ...]

_UINT = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class Layer:
    """One pyramid level. `tiles` is row-major; "" marks a cell with no tile.

    `cols`/`rows` are the values declared in the layer header. Composition
    only trusts the grid itself: row 0 defines the width in tiles.
    """
    tiles: Tuple[TileRow, ...]
    rows: int
    cols: int

    @property
    def is_empty(self) -> bool:
        return not self.tiles or not self.tiles[0]

    @property
    def height_in_tiles(self) -> int:
        return len(self.tiles)

    @property
    def width_in_tiles(self) -> int:
        return len(self.tiles[0]) if self.tiles else 0

    @property
    def is_rectangular(self) -> bool:
        width = self.width_in_tiles
        return all(len(row) == width for row in self.tiles)

    def tile_at(self, row: int, col: int) -> str:
        """Tile id at (row, col); cells past the end of a short row are empty."""
        cells = self.tiles[row]
        return cells[col] if col < len(cells) else ""

    def cells(self) -> Iterator[Tuple[int, int, str]]:
        """Yield (row, col, name) for every non-empty cell inside row 0's width."""
        width = self.width_in_tiles
        for r in range(self.height_in_tiles):
            for c in range(width):
                name = self.tile_at(r, c)
                if name:
                    yield r, c, name

    def tile_names(self) -> List[str]:
        return list(dict.fromkeys(name for _, _, name in self.cells()))


@dataclass(frozen=True)
class PyramidManifest:
    width: int
    height: int
    layers: Tuple[Layer, ...] = field(default_factory=tuple)


def _parse_pair(line: str, what: str, lineno: int) -> Tuple[int, int]:
    parts = [p.strip() for p in line.split(",")]
    if len(parts) != 2:
        raise MalformedManifestError(f"line {lineno}: {what} must be two comma-separated integers, got {line!r}")
    if not all(_UINT.fullmatch(p) for p in parts):
        raise MalformedManifestError(f"line {lineno}: {what} must be two non-negative integers, got {line!r}")
    return int(parts[0]), int(parts[1])


def _split_lines(text: str) -> List[str]:
    """Split on "\\n" only, dropping a trailing "\\r"; a final newline does not start a line."""
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _check_strict(layer: Layer, index: int) -> None:
    if layer.is_empty:
        return
    if not layer.is_rectangular:
        lengths = sorted({len(row) for row in layer.tiles})
        raise MalformedManifestError(f"layer {index}: ragged tile grid (row lengths {lengths})")
    if layer.width_in_tiles != layer.cols:
        raise MalformedManifestError(
            f"layer {index}: header declares {layer.cols} columns but rows have {layer.width_in_tiles}"
        )


def parse_manifest(text: str, strict: bool = False) -> PyramidManifest:
    """Parse .dzi manifest text.

    Layout::

        <format line, ignored>
        <width>,<height>
        <cols>,<rows>          layer header, columns first
        <tile>,<tile>,...      `rows` lines
        ...                    further layers until end of input

    With `strict`, ragged grids and a row 0 that disagrees with the declared
    column count are rejected instead of being composed by the row 0 rule.
    """
    lines = _split_lines(text)
    if len(lines) < 2:
        raise MalformedManifestError("manifest needs a format line and a size line")

    width, height = _parse_pair(lines[1], "size line", 2)

    layers: List[Layer] = []
    i = 2
    while i < len(lines):
        header_no = i + 1
        cols, rows = _parse_pair(lines[i], f"layer {len(layers)} header", header_no)
        i += 1

        tiles: List[TileRow] = []
        for r in range(rows):
            if i >= len(lines):
                raise MalformedManifestError(
                    f"layer {len(layers)} (line {header_no}) declares {rows} rows but input ends after {r}"
                )
            line = lines[i]
            if not line.strip():
                raise MalformedManifestError(f"line {i + 1}: blank line where layer {len(layers)} row {r} was expected")
            tiles.append(tuple(cell.strip() for cell in line.split(",")))
            i += 1

        layer = Layer(tiles=tuple(tiles), rows=rows, cols=cols)
        if strict:
            _check_strict(layer, len(layers))
        layers.append(layer)

    return PyramidManifest(width=width, height=height, layers=tuple(layers))


def load_manifest(path: Union[str, Path], strict: bool = False) -> PyramidManifest:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedManifestError(f"{path.name}: not UTF-8 text ({e})") from e
    except OSError as e:
        raise FilesystemError(f"Cannot read manifest {path}: {e}") from e
    try:
        return parse_manifest(text, strict=strict)
    except MalformedManifestError as e:
        raise MalformedManifestError(f"{path.name}: {e}") from e
