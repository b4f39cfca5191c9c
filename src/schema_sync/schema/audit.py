"""Append-only audit trail of detected schema changes.

Every logged ``AddColumn`` / ``ModifyColumn`` becomes one row in
``schema_change_log``, whether or not the change was applied.  Rows are
never updated or deleted, and the same drift detected on every pass is
recorded on every pass: the table is a drift history, not a current-state
view.
"""

import logging
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy.exc import DBAPIError

from schema_sync.adapters.base import DatabaseClient
from schema_sync.errors import AuditWriteError, ConnectivityError
from schema_sync.schema.models import (
    AddColumn,
    Change,
    ChangeKind,
    ChangeRecord,
    ModifyColumn,
)

logger = logging.getLogger(__name__)

AUDIT_TABLE = "schema_change_log"

AUDIT_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS `{AUDIT_TABLE}` (
    `Id` CHAR(36) PRIMARY KEY,
    `TableName` VARCHAR(255) NOT NULL,
    `ColumnName` VARCHAR(255),
    `ChangeType` ENUM('AddColumn', 'ModifyColumn') NOT NULL,
    `OldType` VARCHAR(255),
    `NewType` VARCHAR(255),
    `Timestamp` DATETIME DEFAULT CURRENT_TIMESTAMP
)"""

INSERT_SQL = f"""
INSERT INTO `{AUDIT_TABLE}`
    (`Id`, `TableName`, `ColumnName`, `ChangeType`, `OldType`, `NewType`, `Timestamp`)
VALUES
    (:id, :table_name, :column_name, :change_type, :old_type, :new_type, :timestamp)"""


class ChangeAuditLog:
    """Writes and reads ``schema_change_log`` rows.

    Usage:
        audit = ChangeAuditLog(client)
        await audit.ensure_table()
        record = await audit.record(change)
        recent = await audit.history(table="people", limit=20)
    """

    def __init__(self, client: DatabaseClient):
        self._client = client

    async def ensure_table(self) -> None:
        """Create the audit table if it does not exist.

        Raises:
            ConnectivityError: If the connection failed.
            AuditWriteError: If the database rejected the statement.
        """
        try:
            await self._client.execute(AUDIT_TABLE_SQL)
        except ConnectivityError:
            raise
        except DBAPIError as e:
            raise AuditWriteError(
                f"Failed to create {AUDIT_TABLE}: {e.orig}", table=AUDIT_TABLE
            ) from e

    async def record(self, change: Change) -> ChangeRecord:
        """Append one record for *change*.

        Args:
            change: An ``AddColumn`` or ``ModifyColumn``.

        Returns:
            The record as written.

        Raises:
            TypeError: If *change* is a ``CreateTable`` (never audited).
            ConnectivityError: If the connection failed.
            AuditWriteError: If the insert was rejected.
        """
        if isinstance(change, AddColumn):
            old_type, new_type = None, change.sql_type
        elif isinstance(change, ModifyColumn):
            old_type, new_type = change.old_type, change.new_type
        else:
            raise TypeError(f"{type(change).__name__} changes are not audited")

        record = ChangeRecord(
            id=str(uuid4()),
            table=change.table,
            column=change.column,
            kind=change.kind,
            old_type=old_type,
            new_type=new_type,
            timestamp=datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0),
        )

        try:
            await self._client.execute(
                INSERT_SQL,
                {
                    "id": record.id,
                    "table_name": record.table,
                    "column_name": record.column,
                    "change_type": record.kind.value,
                    "old_type": record.old_type,
                    "new_type": record.new_type,
                    "timestamp": record.timestamp,
                },
            )
        except ConnectivityError:
            raise
        except DBAPIError as e:
            raise AuditWriteError(
                f"Failed to record {change.describe()}: {e.orig}",
                table=change.table,
                column=change.column,
            ) from e

        logger.info("Recorded %s", change.describe())
        return record

    async def history(self, table: str | None = None, limit: int = 50) -> list[ChangeRecord]:
        """Read audit records, newest first.

        Args:
            table: Only records for this table (all tables if ``None``).
            limit: Maximum number of records.
        """
        where = "WHERE `TableName` = :table_name " if table else ""
        rows = await self._client.fetch(
            f"SELECT `Id`, `TableName`, `ColumnName`, `ChangeType`, `OldType`, "
            f"`NewType`, `Timestamp` FROM `{AUDIT_TABLE}` {where}"
            f"ORDER BY `Timestamp` DESC LIMIT :limit",
            {"table_name": table, "limit": limit} if table else {"limit": limit},
        )
        return [
            ChangeRecord(
                id=row["Id"],
                table=row["TableName"],
                column=row["ColumnName"],
                kind=ChangeKind(row["ChangeType"]),
                old_type=row["OldType"],
                new_type=row["NewType"],
                timestamp=row["Timestamp"],
            )
            for row in rows
        ]
