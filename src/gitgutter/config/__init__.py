"""Configuration loading, schema, and defaults."""

from gitgutter.config.loader import ConfigError, load_config
from gitgutter.config.schema import OUTPUT_FORMATS, GitGutterConfig

__all__ = [
    "ConfigError",
    "GitGutterConfig",
    "OUTPUT_FORMATS",
    "load_config",
]
