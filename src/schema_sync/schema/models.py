"""Pydantic models for schema synchronization.

This module contains schema-domain models:
- Introspection model: SchemaSnapshot
- Change models: CreateTable, AddColumn, ModifyColumn (the ``Change`` union)
- Audit model: ChangeRecord
- Pass result: SyncResult

Descriptor models (ColumnDescriptor, EntityDescriptor) live in
schema_sync.mapping.descriptor.
"""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Schema Introspection Models
# ============================================================================


class SchemaSnapshot(BaseModel):
    """Observed columns of one table as currently stored in the database.

    Column lookups are case-insensitive.  An empty snapshot means the table
    does not exist.

    Example:
        >>> snap = SchemaSnapshot(table="people", columns={"Age": "int"})
        >>> snap.get("AGE")
        'int'
        >>> "age" in snap
        True
    """

    model_config = ConfigDict(frozen=True)

    table: str
    columns: dict[str, str] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True if no columns were observed (table missing)."""
        return not self.columns

    def get(self, column: str) -> str | None:
        """Observed SQL type for *column*, or ``None`` if absent."""
        lowered = column.lower()
        for name, sql_type in self.columns.items():
            if name.lower() == lowered:
                return sql_type
        return None

    def __contains__(self, column: object) -> bool:
        return isinstance(column, str) and self.get(column) is not None


# ============================================================================
# Change Models
# ============================================================================


class ChangeKind(str, Enum):
    """Kinds of structural change the engine can detect."""

    CREATE_TABLE = "CreateTable"
    ADD_COLUMN = "AddColumn"
    MODIFY_COLUMN = "ModifyColumn"


class CreateTable(BaseModel):
    """The table is missing and must be created from its descriptor."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[ChangeKind.CREATE_TABLE] = ChangeKind.CREATE_TABLE
    table: str

    def describe(self) -> str:
        return f"CREATE TABLE {self.table}"


class AddColumn(BaseModel):
    """A declared column is missing from an existing table."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[ChangeKind.ADD_COLUMN] = ChangeKind.ADD_COLUMN
    table: str
    column: str
    sql_type: str

    def describe(self) -> str:
        return f"ADD COLUMN {self.table}.{self.column} {self.sql_type}"


class ModifyColumn(BaseModel):
    """A column exists but its stored type differs from the declared type."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[ChangeKind.MODIFY_COLUMN] = ChangeKind.MODIFY_COLUMN
    table: str
    column: str
    old_type: str
    new_type: str

    def describe(self) -> str:
        return (
            f"MODIFY COLUMN {self.table}.{self.column} "
            f"{self.old_type} -> {self.new_type}"
        )


Change = CreateTable | AddColumn | ModifyColumn


# ============================================================================
# Audit Model
# ============================================================================


class ChangeRecord(BaseModel):
    """One row of the append-only schema change log."""

    model_config = ConfigDict(frozen=True)

    id: str
    table: str
    column: str | None = None
    kind: ChangeKind
    old_type: str | None = None
    new_type: str | None = None
    timestamp: datetime


# ============================================================================
# Pass Result
# ============================================================================


class AuditFailure(BaseModel):
    """A change whose audit record could not be written."""

    change: Change
    error: str


class SyncResult(BaseModel):
    """Result of one synchronization (or planning) pass.

    Example:
        >>> result = SyncResult()
        >>> result.format_report()
        'Schema in sync'
    """

    tables: list[str] = Field(default_factory=list)
    changes: list[Change] = Field(default_factory=list)
    applied: list[Change] = Field(default_factory=list)
    audited: list[ChangeRecord] = Field(default_factory=list)
    audit_failures: list[AuditFailure] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    @property
    def pending(self) -> list[Change]:
        """Detected changes that were not applied."""
        return [c for c in self.changes if c not in self.applied]

    def format_report(self) -> str:
        """Format the pass as a human-readable report."""
        if not self.changes:
            return "Schema in sync"

        lines = [f"Detected {len(self.changes)} change(s):"]
        for change in self.changes:
            status = "applied" if change in self.applied else "not applied"
            lines.append(f"  - {change.describe()} [{status}]")

        if self.audited:
            lines.append(f"\n  Audit records written: {len(self.audited)}")
        if self.audit_failures:
            lines.append(f"  Audit write failures: {len(self.audit_failures)}")
            for failure in self.audit_failures:
                lines.append(f"    - {failure.change.describe()}: {failure.error}")

        return "\n".join(lines)
