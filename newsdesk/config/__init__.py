"""Configuration management for newsdesk."""

from .loader import DEFAULT_CONFIG_PATH, Config, load_config, save_config
from .models import (
    ConfigModel,
    IngestionConfig,
    LoggingConfig,
    PostgresConfig,
    ProviderConfig,
    ResolverConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "DEFAULT_CONFIG_PATH",
    "IngestionConfig",
    "LoggingConfig",
    "PostgresConfig",
    "ProviderConfig",
    "ResolverConfig",
    "load_config",
    "save_config",
]
