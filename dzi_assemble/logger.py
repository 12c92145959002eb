"""
Logging configuration for dzi_assemble
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

CONSOLE_FORMAT = "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"
FILE_FORMAT = "[%(asctime)s] [%(name)s] [%(levelname)s] [%(filename)s:%(lineno)d] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def _has_file_handler(logger: logging.Logger, path: Path) -> bool:
    target = str(path.resolve())
    return any(
        isinstance(h, logging.FileHandler) and h.baseFilename == target
        for h in logger.handlers
    )


def setup_logger(name: str, log_file: Optional[Union[str, Path]] = None,
                 level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Setup logger with a stdout handler and an optional file handler

    Calling it again for the same name does not stack handlers. The latest
    call sets the level of the logger and of every handler it owns, and a
    log file not yet attached is added.

    Args:
        name: Logger name (usually the package name)
        log_file: Optional log file path; parent directories are created
        level: Logging level, as an int or a name such as "debug"

    Returns:
        Configured logger
    """
    level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(console_handler)

    if log_file:
        file_path = Path(log_file)
        if not _has_file_handler(logger, file_path):
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(file_path, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            logger.addHandler(file_handler)

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger
