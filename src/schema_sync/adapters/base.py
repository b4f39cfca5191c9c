"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol that the synchronizer, introspector,
audit log and repository depend on.  All methods are ``async def``.

The schema engine only needs two capabilities: ``fetch()`` ("run SQL, get
rows") and ``execute()`` ("run SQL").  The CRUD methods back the
``EntityRepository``.

Usage:
    from schema_sync.adapters.base import DatabaseClient

    async def do_work(client: DatabaseClient) -> None:
        rows = await client.fetch("SELECT COUNT(*) AS n FROM people")
        await client.execute("ALTER TABLE `people` ADD COLUMN `Age` INT")
        await client.close()
"""

from typing import Any, Protocol


class DatabaseClient(Protocol):
    """Database client interface that all adapters must implement.

    All methods are async -- callers must ``await`` every operation.
    """

    async def select(
        self,
        table: str,
        columns: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        """Select rows from table.

        Args:
            table: Table name.
            columns: Comma-separated column names (e.g., ``"Id, FirstName"``).
            filters: Optional dict of field=value filters (all must match via AND).
            order_by: Optional column name to sort by.

        Returns:
            List of dicts, one per row.  Empty list if no matches.
        """
        ...

    async def insert(self, table: str, data: dict) -> None:
        """Insert one row into table.

        Args:
            table: Table name.
            data: Dict of column=value pairs to insert.
        """
        ...

    async def update(self, table: str, data: dict, filters: dict[str, Any]) -> int:
        """Update rows in table.

        Args:
            table: Table name.
            data: Dict of column=value pairs to update.
            filters: Dict of column=value filters (all must match via AND).

        Returns:
            Number of rows matched.
        """
        ...

    async def delete(self, table: str, filters: dict[str, Any]) -> None:
        """Delete rows from table.

        Args:
            table: Table name.
            filters: Dict of column=value filters (all must match via AND).
        """
        ...

    async def fetch(self, sql: str, params: dict | None = None) -> list[dict]:
        """Run a query and return all rows as dicts.

        Args:
            sql: SQL query with ``:name`` placeholders.
            params: Optional dict of named parameters.

        Returns:
            List of dicts keyed by column label.

        Example:
            rows = await client.fetch(
                "SELECT COLUMN_NAME FROM INFORMATION_SCHEMA.COLUMNS "
                "WHERE TABLE_NAME = :table_name",
                {"table_name": "people"},
            )
        """
        ...

    async def execute(self, sql: str, params: dict | None = None) -> None:
        """Execute a single SQL statement (DDL or DML) and commit it.

        Args:
            sql: Raw SQL statement to execute.
            params: Optional dict of named parameters for the SQL statement.

        Example:
            await client.execute(
                "ALTER TABLE `people` MODIFY COLUMN `Age` INT"
            )
        """
        ...

    async def close(self) -> None:
        """Close database connection and clean up resources."""
        ...
