"""Database client factory and profile resolution.

Profiles live in ``db.toml``; the active profile comes from the
``{env_prefix}DB_PROFILE`` environment variable or, failing that, the
``.db-profile`` lock file written by the CLI.

Usage:
    from schema_sync.factory import get_adapter

    adapter = await get_adapter()                       # active profile
    adapter = await get_adapter(profile_name="local")   # explicit profile
    adapter = await get_adapter(database_url="mysql://u:p@host/app")
"""

import os
from pathlib import Path
from urllib.parse import quote

from schema_sync.adapters.mysql import AsyncMySQLAdapter
from schema_sync.config.loader import load_db_config
from schema_sync.config.models import DatabaseProfile
from schema_sync.errors import SchemaSyncError

# Lock file name; the path is resolved against the working directory on each call
_PROFILE_LOCK_NAME = ".db-profile"


class ProfileNotFoundError(SchemaSyncError):
    """Raised when no database profile is configured."""

    pass


# ============================================================================
# Profile Lock File Operations
# ============================================================================


def profile_lock_path() -> Path:
    """Path of the lock file in the current working directory."""
    return Path.cwd() / _PROFILE_LOCK_NAME


def read_profile_lock() -> str | None:
    """Read profile name from lock file.

    Returns:
        Profile name if lock file exists, None otherwise
    """
    lock_file = profile_lock_path()
    if lock_file.exists():
        return lock_file.read_text().strip() or None
    return None


def write_profile_lock(profile_name: str) -> None:
    """Write profile name to lock file."""
    profile_lock_path().write_text(profile_name)


def clear_profile_lock() -> None:
    """Remove profile lock file."""
    profile_lock_path().unlink(missing_ok=True)


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from env var or lock file.

    Priority:
    1. ``{env_prefix}DB_PROFILE`` env var
    2. .db-profile file
    3. Raise ProfileNotFoundError

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_profile = os.environ.get(f"{env_prefix}DB_PROFILE")
    if env_profile:
        return env_profile

    lock_profile = read_profile_lock()
    if lock_profile:
        return lock_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Set {env_prefix}DB_PROFILE=<name> or run: schema-sync use <name>"
    )


def get_active_profile(env_prefix: str = "") -> tuple[str, DatabaseProfile]:
    """Get active profile name and configuration.

    Returns:
        Tuple of (profile_name, DatabaseProfile)

    Raises:
        ProfileNotFoundError: If no profile configured or it is not in db.toml
    """
    profile_name = get_active_profile_name(env_prefix=env_prefix)
    config = load_db_config()

    if profile_name not in config.profiles:
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in db.toml.\n"
            f"Available profiles: {', '.join(config.profiles.keys())}"
        )

    return profile_name, config.profiles[profile_name]


# ============================================================================
# Adapter Factory
# ============================================================================


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Example:
        >>> resolve_url(DatabaseProfile(url="mysql://u:[YOUR-PASSWORD]@h/db", db_password="p@ss"))
        'mysql://u:p%40ss@h/db'
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


async def get_adapter(
    profile_name: str | None = None,
    env_prefix: str = "",
    database_url: str | None = None,
) -> AsyncMySQLAdapter:
    """Create a new adapter (no caching).

    Args:
        profile_name: Profile from db.toml.  Defaults to the active profile.
        env_prefix: Prefix for the ``DB_PROFILE`` environment variable.
        database_url: Direct URL; skips profile resolution entirely.

    Raises:
        ProfileNotFoundError: If no profile can be resolved.
    """
    if database_url is not None:
        return AsyncMySQLAdapter(database_url=database_url)

    if profile_name is None:
        profile_name, profile = get_active_profile(env_prefix=env_prefix)
    else:
        config = load_db_config()
        if profile_name not in config.profiles:
            available = ", ".join(config.profiles.keys())
            raise ProfileNotFoundError(
                f"Profile '{profile_name}' not found. Available: {available}"
            )
        profile = config.profiles[profile_name]

    return AsyncMySQLAdapter(database_url=resolve_url(profile))
