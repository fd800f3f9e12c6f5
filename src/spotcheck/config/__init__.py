"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var
from .errors import ConfigurationError
from .ledger import LedgerConfig, get_ledger_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "LedgerConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_ledger_config",
    "get_storage_config",
    "optional_env_var",
]
