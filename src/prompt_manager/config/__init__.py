"""
Configuration package for prompt-manager.

- app.py: RenderOptions, StorageSettings, LoggingSettings and AppConfig,
  plus YAML load/save helpers
"""

from prompt_manager.config.app import (
    DEFAULT_ENV_PATTERN,
    DEFAULT_KEYWORD_PATTERN,
    AppConfig,
    LoggingSettings,
    RenderOptions,
    StorageSettings,
    load_config,
    save_config,
)

__all__ = [
    "DEFAULT_ENV_PATTERN",
    "DEFAULT_KEYWORD_PATTERN",
    "AppConfig",
    "LoggingSettings",
    "RenderOptions",
    "StorageSettings",
    "load_config",
    "save_config",
]
