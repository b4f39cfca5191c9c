"""schema-sync: keep a MySQL schema in sync with declared record types.

Record types are dataclasses registered with ``@entity``.  A
synchronization pass introspects each table, diffs it against the
declared shape, and applies and/or audits the differences according to
the lockdown/log-only policy.

Usage:
    from schema_sync import entity, column, synchronize_schema, SyncOptions
    from schema_sync import get_adapter, EntityRepository
"""

__version__ = "0.1.0"

# Adapters
from schema_sync.adapters.base import DatabaseClient
from schema_sync.adapters.mysql import AsyncMySQLAdapter

# Config
from schema_sync.config.loader import load_db_config
from schema_sync.config.models import DatabaseConfig, DatabaseProfile

# Errors
from schema_sync.errors import (
    AuditWriteError,
    ConnectivityError,
    MappingError,
    PrivilegeError,
    SchemaSyncError,
)

# Factory
from schema_sync.factory import ProfileNotFoundError, get_adapter, resolve_url

# Mapping
from schema_sync.mapping import (
    BigInt,
    ColumnDescriptor,
    EntityDescriptor,
    column,
    entity,
    get_descriptor,
    map_sql_type,
    on_retrieve,
    on_store,
)

# Repository
from schema_sync.repository import EntityRepository, Page

# Schema
from schema_sync.schema import (
    ChangePolicy,
    SyncOptions,
    SyncResult,
    diff_schema,
    plan_schema,
    synchronize_schema,
)

__all__ = [
    # Adapters
    "DatabaseClient",
    "AsyncMySQLAdapter",
    # Config
    "load_db_config",
    "DatabaseConfig",
    "DatabaseProfile",
    # Errors
    "SchemaSyncError",
    "MappingError",
    "ConnectivityError",
    "PrivilegeError",
    "AuditWriteError",
    # Factory
    "get_adapter",
    "resolve_url",
    "ProfileNotFoundError",
    # Mapping
    "BigInt",
    "map_sql_type",
    "entity",
    "column",
    "on_store",
    "on_retrieve",
    "ColumnDescriptor",
    "EntityDescriptor",
    "get_descriptor",
    # Repository
    "EntityRepository",
    "Page",
    # Schema
    "ChangePolicy",
    "SyncOptions",
    "SyncResult",
    "diff_schema",
    "plan_schema",
    "synchronize_schema",
]
