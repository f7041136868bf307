"""Application configuration helpers."""

from __future__ import annotations

from .env import env_float, optional_env_var, require_env_vars
from .errors import (
    ConfigurationError,
    InvalidConfigurationValueError,
    MissingConfigurationError,
)
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .remote import RemoteConfig, build_resilience_config, get_remote_config
from .storage import (
    CacheDatabaseConfig,
    StorageConfig,
    get_cache_database_config,
    get_storage_config,
)
from .sync import ConflictPolicy, SyncConfig, get_sync_config

__all__ = [
    "CacheDatabaseConfig",
    "ConfigurationError",
    "ConflictPolicy",
    "InvalidConfigurationValueError",
    "MissingConfigurationError",
    "RateLimit",
    "RemoteConfig",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "build_resilience_config",
    "configure_logging",
    "env_float",
    "get_cache_database_config",
    "get_remote_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env_var",
    "require_env_vars",
]
