"""Configuration management: profiles, sync settings, and TOML loading.

Usage:
    >>> from schema_sync.config import load_db_config, DatabaseProfile, SyncOptions
"""

from schema_sync.config.loader import load_db_config
from schema_sync.config.models import DatabaseConfig, DatabaseProfile
from schema_sync.schema.policy import SyncOptions

__all__ = ["load_db_config", "DatabaseConfig", "DatabaseProfile", "SyncOptions"]
