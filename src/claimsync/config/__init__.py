"""Application configuration helpers."""

from __future__ import annotations

from .env import float_env_var, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .marketplace import MarketplaceConfig, get_marketplace_config
from .security import SecurityConfig, get_security_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_http_cache_path,
    get_storage_config,
)
from .sync import HeuristicThresholds, SyncConfig, get_sync_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "HeuristicThresholds",
    "MarketplaceConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SecurityConfig",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "float_env_var",
    "get_database_config",
    "get_database_uri",
    "get_http_cache_path",
    "get_marketplace_config",
    "get_security_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env_var",
    "require_env_vars",
]
