"""Utility helpers for frame-commander."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def configure_logging(level: str = "WARNING") -> None:
    """Route loguru output to stderr at ``level``."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {name}:{line} - {message}",
    )
