# ==============================
# dzi_assemble/config.py
# ==============================
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# .env in the project root wins over the current directory
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path)
else:
    load_dotenv()


def _get_env_bool(key: str, default: bool) -> bool:
    """Get boolean value from environment variable"""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes", "on")


@dataclass
class AssembleConfig:
    # Directory holding the .dzi manifests
    event_dir: str = os.getenv("DZI_EVENT_DIR", "event")
    # Tile and output directories, relative to event_dir unless absolute
    tex_dir: str = os.getenv("DZI_TEX_DIR", "tex")
    output_dir: str = os.getenv("DZI_OUTPUT_DIR", "dist")

    # layer_1 is original size, layer_2 is half, layer_3 a quarter ...
    enable_lower_layers: bool = _get_env_bool("DZI_ENABLE_LOWER_LAYERS", True)

    manifest_extension: str = os.getenv("DZI_MANIFEST_EXT", ".dzi")
    tile_extension: str = os.getenv("DZI_TILE_EXT", ".png")

    strict_grid: bool = _get_env_bool("DZI_STRICT_GRID", False)
    fail_fast: bool = _get_env_bool("DZI_FAIL_FAST", True)
    clean_output: bool = _get_env_bool("DZI_CLEAN_OUTPUT", True)
    dry_run: bool = False

    log_level: str = os.getenv("DZI_LOG_LEVEL", "INFO")
    log_file: Optional[str] = os.getenv("DZI_LOG_FILE")

    @property
    def event_path(self) -> Path:
        return Path(self.event_dir)

    @property
    def tex_path(self) -> Path:
        return self.event_path / self.tex_dir

    @property
    def output_path(self) -> Path:
        return self.event_path / self.output_dir
