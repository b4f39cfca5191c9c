"""DDL rendering and execution.

Turns ``Change`` objects into MySQL statements and runs them one at a time
through ``DatabaseClient.execute()``.  There is no wrapping transaction:
each statement commits on its own and a failure leaves earlier statements
applied.

Generated statements:

    CREATE TABLE IF NOT EXISTS `t` (`Id` CHAR(36) PRIMARY KEY, `Name` VARCHAR(255))
    ALTER TABLE `t` ADD COLUMN `c` INT
    ALTER TABLE `t` MODIFY COLUMN `c` INT

Identifiers are re-checked against the allow-list before quoting; type
strings are interpolated as declared.
"""

import logging

from sqlalchemy.exc import DBAPIError

from schema_sync.adapters.base import DatabaseClient
from schema_sync.errors import ConnectivityError, PrivilegeError
from schema_sync.mapping.descriptor import EntityDescriptor, validate_identifier
from schema_sync.schema.models import AddColumn, Change, CreateTable, ModifyColumn

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Back-quote a validated identifier."""
    return f"`{validate_identifier(name, 'Identifier')}`"


def render_create_table(descriptor: EntityDescriptor) -> str:
    """Render ``CREATE TABLE IF NOT EXISTS`` for a descriptor.

    Example:
        >>> render_create_table(descriptor)
        'CREATE TABLE IF NOT EXISTS `people` (`Id` CHAR(36) PRIMARY KEY, `Age` INT)'
    """
    column_defs = []
    for col in descriptor.columns:
        marker = " PRIMARY KEY" if col.is_primary_key else ""
        column_defs.append(f"{quote_identifier(col.name)} {col.sql_type}{marker}")

    return (
        f"CREATE TABLE IF NOT EXISTS {quote_identifier(descriptor.table)} "
        f"({', '.join(column_defs)})"
    )


def render_add_column(table: str, column: str, sql_type: str) -> str:
    """Render ``ALTER TABLE ... ADD COLUMN``."""
    return (
        f"ALTER TABLE {quote_identifier(table)} "
        f"ADD COLUMN {quote_identifier(column)} {sql_type}"
    )


def render_modify_column(table: str, column: str, sql_type: str) -> str:
    """Render ``ALTER TABLE ... MODIFY COLUMN``."""
    return (
        f"ALTER TABLE {quote_identifier(table)} "
        f"MODIFY COLUMN {quote_identifier(column)} {sql_type}"
    )


def render_change(change: Change, descriptor: EntityDescriptor) -> str:
    """Render the statement for any change.

    Args:
        change: The change to render.
        descriptor: Descriptor of the change's table (needed for
            ``CreateTable``).
    """
    if isinstance(change, CreateTable):
        return render_create_table(descriptor)
    if isinstance(change, AddColumn):
        return render_add_column(change.table, change.column, change.sql_type)
    if isinstance(change, ModifyColumn):
        return render_modify_column(change.table, change.column, change.new_type)
    raise TypeError(f"Unknown change type: {type(change).__name__}")


class DDLExecutor:
    """Executes rendered DDL against the database.

    Usage:
        executor = DDLExecutor(client)
        await executor.apply(change, descriptor)
    """

    def __init__(self, client: DatabaseClient):
        self._client = client

    async def apply(self, change: Change, descriptor: EntityDescriptor) -> str:
        """Render and execute one change.

        Returns:
            The executed statement.

        Raises:
            ConnectivityError: If the connection failed.
            PrivilegeError: If the database rejected the statement.
        """
        sql = render_change(change, descriptor)
        logger.debug("DDL for %s: %s", change.table, sql)

        try:
            await self._client.execute(sql)
        except ConnectivityError:
            raise
        except DBAPIError as e:
            if e.connection_invalidated:
                raise ConnectivityError(
                    f"Connection lost while altering {change.table}: {e.orig}"
                ) from e
            raise PrivilegeError(
                f"Database rejected DDL on {change.table}: {e.orig}",
                table=change.table,
                statement=sql,
            ) from e

        logger.info("Applied %s", change.describe())
        return sql
