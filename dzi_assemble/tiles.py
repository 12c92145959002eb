# ==============================
# dzi_assemble/tiles.py
# ==============================
from pathlib import Path
from typing import Tuple, Union

from PIL import Image, UnidentifiedImageError

from .errors import TileLoadError


class TileSource:
    """Tile images stored as `<tex_dir>/<name><extension>`."""

    def __init__(self, tex_dir: Union[str, Path], extension: str = ".png"):
        self.tex_dir = Path(tex_dir)
        self.extension = extension if extension.startswith(".") else "." + extension

    def path_for(self, name: str) -> Path:
        return self.tex_dir / f"{name}{self.extension}"

    def load(self, name: str) -> Image.Image:
        """Load a tile as a fully decoded RGBA image."""
        if not name:
            raise TileLoadError(name, reason="empty tile name")
        path = self.path_for(name)
        try:
            with Image.open(path) as img:
                img.load()
                return img.convert("RGBA")
        except FileNotFoundError:
            raise TileLoadError(name, path, "file not found") from None
        except UnidentifiedImageError as e:
            raise TileLoadError(name, path, "not a decodable image") from e
        except Image.DecompressionBombError as e:
            raise TileLoadError(name, path, str(e)) from e
        except OSError as e:
            raise TileLoadError(name, path, str(e)) from e

    def size_of(self, name: str) -> Tuple[int, int]:
        return self.load(name).size
