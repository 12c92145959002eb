from pathlib import Path

import pytest
from PIL import Image

from dzi_assemble import AssembleConfig

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


@pytest.fixture
def event_dir(tmp_path: Path) -> Path:
    d = tmp_path / "event"
    (d / "tex").mkdir(parents=True)
    return d


@pytest.fixture
def tex_dir(event_dir: Path) -> Path:
    return event_dir / "tex"


@pytest.fixture
def make_tile(tex_dir: Path):
    def _make(name: str, size=(50, 50), color=RED) -> Path:
        path = tex_dir / f"{name}.png"
        Image.new("RGBA", size, color).save(path)
        return path
    return _make


@pytest.fixture
def write_manifest(event_dir: Path):
    def _write(group: str, *lines: str) -> Path:
        path = event_dir / f"{group}.dzi"
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture
def config(event_dir: Path) -> AssembleConfig:
    return AssembleConfig(
        event_dir=str(event_dir),
        tex_dir="tex",
        output_dir="dist",
        enable_lower_layers=True,
        manifest_extension=".dzi",
        tile_extension=".png",
        strict_grid=False,
        fail_fast=True,
        clean_output=True,
        dry_run=False,
        log_level="INFO",
        log_file=None,
    )
