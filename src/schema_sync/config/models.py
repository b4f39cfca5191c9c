"""Pydantic models for database configuration."""

from pydantic import BaseModel, Field

from schema_sync.schema.policy import SyncOptions


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution


class DatabaseConfig(BaseModel):
    """Complete configuration from db.toml."""

    profiles: dict[str, DatabaseProfile]
    sync: SyncOptions = Field(default_factory=SyncOptions)
