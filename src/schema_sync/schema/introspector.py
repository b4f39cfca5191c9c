"""MySQL schema introspection via INFORMATION_SCHEMA.

This module queries the live database for the columns of one table:
- Column names and full column types (``COLUMN_TYPE``, e.g. ``int(11)``,
  ``varchar(255)``, ``tinyint(1)``)
- Base-table names in the current database

Queries are scoped to ``DATABASE()``.  Nothing is cached -- every call
reflects the schema as it is right now.
"""

from schema_sync.adapters.base import DatabaseClient
from schema_sync.schema.models import SchemaSnapshot


class SchemaIntrospector:
    """Introspects MySQL table schemas through a ``DatabaseClient``.

    Usage:
        introspector = SchemaIntrospector(client)

        snapshot = await introspector.snapshot("people")
        if snapshot.is_empty:
            print("table missing")

        tables = await introspector.list_tables()
    """

    COLUMNS_QUERY = """
        SELECT TABLE_NAME, COLUMN_NAME, COLUMN_TYPE
        FROM INFORMATION_SCHEMA.COLUMNS
        WHERE TABLE_SCHEMA = DATABASE()
          AND TABLE_NAME = :table_name
        ORDER BY ORDINAL_POSITION
    """

    TABLES_QUERY = """
        SELECT TABLE_NAME
        FROM INFORMATION_SCHEMA.TABLES
        WHERE TABLE_SCHEMA = DATABASE()
          AND TABLE_TYPE = 'BASE TABLE'
        ORDER BY TABLE_NAME
    """

    def __init__(self, client: DatabaseClient):
        """Initialize with the client used for catalog queries.

        Args:
            client: Any ``DatabaseClient`` (its ``fetch()`` is all we use).
        """
        self._client = client

    async def snapshot(self, table: str) -> SchemaSnapshot:
        """Get the stored columns of *table*.

        Args:
            table: Exact table name.

        Returns:
            ``SchemaSnapshot`` mapping column name to column type.  Empty
            when the table does not exist.
        """
        rows = await self._client.fetch(self.COLUMNS_QUERY, {"table_name": table})

        columns: dict[str, str] = {}
        for row in rows:
            # Catalog collation may be case-insensitive; table names must match exactly.
            if self._first_value(row, "TABLE_NAME") != table:
                continue
            name, column_type = self._row_values(row)
            columns[name] = column_type

        return SchemaSnapshot(table=table, columns=columns)

    async def list_tables(self) -> list[str]:
        """Get all base-table names in the current database."""
        rows = await self._client.fetch(self.TABLES_QUERY)
        return [self._first_value(row, "TABLE_NAME") for row in rows]

    def _row_values(self, row: dict) -> tuple[str, str]:
        """Extract (column name, column type) from a catalog row.

        MySQL 8 returns upper-case labels, some drivers lower-case them.
        """
        name = self._first_value(row, "COLUMN_NAME")
        column_type = self._first_value(row, "COLUMN_TYPE")
        if isinstance(column_type, bytes):
            column_type = column_type.decode()
        return name, column_type

    def _first_value(self, row: dict, key: str):
        if key in row:
            return row[key]
        return row[key.lower()]
