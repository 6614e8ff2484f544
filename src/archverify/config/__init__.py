"""Application configuration helpers."""

from __future__ import annotations

from .archive import ArchiveConfig, get_archive_config
from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import LedgerConfig, get_data_dir, get_ledger_config

__all__ = [
    "ArchiveConfig",
    "ConfigurationError",
    "LedgerConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "get_archive_config",
    "get_data_dir",
    "get_ledger_config",
    "optional_env_var",
    "require_env_vars",
]
