"""Configuration module for frame-commander."""

from frame_commander.config.loader import get_config_path, load_config, save_config
from frame_commander.config.schema import Config

__all__ = ["Config", "get_config_path", "load_config", "save_config"]
