"""Utility functions for frame-commander."""

from frame_commander.utils.helpers import configure_logging, ensure_dir

__all__ = ["configure_logging", "ensure_dir"]
