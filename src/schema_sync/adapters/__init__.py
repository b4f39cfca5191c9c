"""Database adapters package.

Provides the ``DatabaseClient`` Protocol and the async MySQL adapter.

Usage:
    from schema_sync.adapters import DatabaseClient, AsyncMySQLAdapter
"""

from schema_sync.adapters.base import DatabaseClient
from schema_sync.adapters.mysql import AsyncMySQLAdapter

__all__ = [
    "DatabaseClient",
    "AsyncMySQLAdapter",
]
