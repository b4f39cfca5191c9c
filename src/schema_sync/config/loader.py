"""TOML configuration loader.

Reads ``db.toml`` (profiles plus the ``[sync]`` section) into
``DatabaseConfig``.
"""

import tomllib
from pathlib import Path

from schema_sync.config.models import DatabaseConfig, DatabaseProfile
from schema_sync.schema.policy import SyncOptions


def load_db_config(config_path: Path | None = None) -> DatabaseConfig:
    """Load database configuration from TOML file.

    Args:
        config_path: Path to db.toml (default: ``db.toml`` in the current
            working directory).

    Returns:
        DatabaseConfig with all profiles and sync settings.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If a profile or the sync section is invalid.

    Example:
        >>> config = load_db_config(Path("db.toml"))
        >>> config.sync.lockdown
        False
    """
    if config_path is None:
        config_path = Path.cwd() / "db.toml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"Database config not found: {config_path}\n"
            f"Create db.toml with at least one [profiles.<name>] section."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = DatabaseProfile(**profile_data)

    return DatabaseConfig(
        profiles=profiles,
        sync=SyncOptions(**data.get("sync", {})),
    )
