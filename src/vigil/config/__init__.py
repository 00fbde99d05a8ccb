"""Configuration management."""

from vigil.config.loader import CONFIG_FILENAMES, find_config_file, load_config
from vigil.config.settings import Settings

__all__ = ["CONFIG_FILENAMES", "Settings", "find_config_file", "load_config"]
