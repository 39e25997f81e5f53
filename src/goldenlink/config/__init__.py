"""Application configuration helpers."""

from __future__ import annotations

from .env import env_float, env_or_default, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .mdm import MdmConfig, get_mdm_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "MdmConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "env_float",
    "env_or_default",
    "get_database_config",
    "get_mdm_config",
    "get_storage_config",
    "require_env_vars",
]
