import numpy as np
import pytest
from PIL import Image

from dzi_assemble import TileLoadError, TileSource, compose_layer, parse_manifest
from dzi_assemble.composer import build_canvas, canvas_size, crop_canvas, paste_tile

from conftest import BLUE, RED


def _layer(rows_text: str, cols: int, rows: int):
    return parse_manifest(f"fmt\n100,100\n{cols},{rows}\n{rows_text}\n").layers[0]


def test_canvas_size_is_grid_times_tile(tex_dir, make_tile):
    make_tile("a", size=(30, 20))
    layer = _layer("a,a,a\na,a,a", 3, 2)
    canvas = build_canvas(layer, TileSource(tex_dir))
    assert canvas.shape == (40, 90, 4)
    assert canvas_size(layer, (30, 20)) == (90, 40)


def test_empty_cells_stay_transparent(tex_dir, make_tile):
    make_tile("r", size=(10, 10), color=RED)
    layer = _layer("r,\n,r", 2, 2)
    canvas = build_canvas(layer, TileSource(tex_dir))
    assert (canvas[0:10, 10:20] == 0).all()
    assert (canvas[10:20, 0:10] == 0).all()
    assert (canvas[0:10, 0:10] == RED).all()
    assert (canvas[10:20, 10:20] == RED).all()


def test_tiles_overwrite_without_blending(tex_dir, make_tile):
    make_tile("half", size=(4, 4), color=(0, 255, 0, 128))
    canvas = np.full((4, 4, 4), 255, dtype=np.uint8)
    paste_tile(canvas, Image.open(tex_dir / "half.png"), 0, 0)
    assert tuple(canvas[0, 0]) == (0, 255, 0, 128)


def test_first_row_defines_width(tex_dir, make_tile):
    make_tile("r", size=(10, 10), color=RED)
    make_tile("b", size=(10, 10), color=BLUE)
    # row 1 is short, row 2 has one cell too many
    layer = _layer("r,r\nb\nb,b,b", 2, 3)
    canvas = build_canvas(layer, TileSource(tex_dir))
    assert canvas.shape == (30, 20, 4)
    assert (canvas[10:20, 0:10] == BLUE).all()
    assert (canvas[10:20, 10:20] == 0).all()
    assert (canvas[20:30, :] == BLUE).all()


def test_crop_never_pads():
    canvas = np.zeros((50, 100, 4), dtype=np.uint8)
    assert crop_canvas(canvas, 100, 100).shape == (50, 100, 4)
    assert crop_canvas(canvas, 60, 30).shape == (30, 60, 4)
    assert crop_canvas(canvas, 500, 500).shape == (50, 100, 4)


def test_compose_layer_writes_cropped_png(tmp_path, tex_dir, make_tile):
    make_tile("tile1", color=RED)
    make_tile("tile2", color=RED)
    layer = _layer("tile1,tile2", 2, 1)
    out = compose_layer(layer, TileSource(tex_dir), "A", 1, tmp_path / "dist", 100, 100)
    assert out == tmp_path / "dist" / "A" / "layer_1.png"
    with Image.open(out) as img:
        assert img.size == (100, 50)
        assert img.mode == "RGBA"
        assert img.getpixel((0, 0)) == RED
        assert img.getpixel((99, 49)) == RED


def test_compose_layer_crops_from_top_left(tmp_path, tex_dir, make_tile):
    make_tile("r", size=(10, 10), color=RED)
    make_tile("b", size=(10, 10), color=BLUE)
    layer = _layer("r,b\nb,b", 2, 2)
    out = compose_layer(layer, TileSource(tex_dir), "g", 2, tmp_path, 15, 5)
    with Image.open(out) as img:
        assert img.size == (15, 5)
        assert img.getpixel((0, 0)) == RED
        assert img.getpixel((14, 4)) == BLUE


def test_empty_layer_is_noop(tmp_path, tex_dir):
    layer = parse_manifest("fmt\n10,10\n0,0\n").layers[0]
    assert compose_layer(layer, TileSource(tex_dir), "g", 0, tmp_path / "out", 10, 10) is None
    assert not (tmp_path / "out").exists()


def test_missing_anchor_tile_fails(tmp_path, tex_dir):
    layer = _layer("nope", 1, 1)
    with pytest.raises(TileLoadError, match="nope"):
        compose_layer(layer, TileSource(tex_dir), "g", 1, tmp_path, 10, 10)


def test_empty_anchor_cell_fails(tmp_path, tex_dir, make_tile):
    make_tile("a")
    layer = _layer(",a", 2, 1)
    with pytest.raises(TileLoadError):
        compose_layer(layer, TileSource(tex_dir), "g", 1, tmp_path, 10, 10)


def test_missing_inner_tile_fails(tmp_path, tex_dir, make_tile):
    make_tile("a")
    layer = _layer("a,gone", 2, 1)
    with pytest.raises(TileLoadError) as exc:
        compose_layer(layer, TileSource(tex_dir), "g", 1, tmp_path, 100, 100)
    assert exc.value.name == "gone"
    assert not (tmp_path / "g" / "layer_1.png").exists()


def test_undecodable_tile_fails(tex_dir):
    (tex_dir / "junk.png").write_bytes(b"not a png")
    with pytest.raises(TileLoadError, match="not a decodable image"):
        TileSource(tex_dir).load("junk")


def test_tile_source_converts_to_rgba(tex_dir):
    Image.new("RGB", (3, 2), (1, 2, 3)).save(tex_dir / "rgb.png")
    tile = TileSource(tex_dir).load("rgb")
    assert tile.mode == "RGBA"
    assert tile.getpixel((0, 0)) == (1, 2, 3, 255)
    assert TileSource(tex_dir, "png").path_for("rgb") == tex_dir / "rgb.png"


def test_oversized_tile_fails_as_tile_error(tex_dir, make_tile, monkeypatch):
    make_tile("big", size=(100, 100))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    with pytest.raises(TileLoadError, match="big"):
        TileSource(tex_dir).load("big")
