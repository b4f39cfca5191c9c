"""Exception hierarchy for schema synchronization.

All errors raised by this package derive from ``SchemaSyncError`` so callers
can catch the whole family in one place (the CLI does exactly that).

- ``MappingError``: bad declared metadata (multiple primary keys, empty or
  invalid table/column names).  Raised while building a descriptor.
- ``ConnectivityError``: the database cannot be reached.
- ``PrivilegeError``: the database rejected a DDL statement.
- ``AuditWriteError``: a change record could not be appended.
"""


class SchemaSyncError(Exception):
    """Base class for all schema-sync errors."""

    pass


class MappingError(SchemaSyncError):
    """Raised when a record type's declared metadata cannot be mapped."""

    pass


class ConnectivityError(SchemaSyncError):
    """Raised when the database connection fails or is lost."""

    pass


class PrivilegeError(SchemaSyncError):
    """Raised when the database rejects a DDL statement.

    Attributes:
        table: Table the statement targeted.
        statement: The SQL that was rejected.
    """

    def __init__(self, message: str, table: str, statement: str) -> None:
        super().__init__(message)
        self.table = table
        self.statement = statement


class AuditWriteError(SchemaSyncError):
    """Raised when a change record cannot be written to the audit table."""

    def __init__(self, message: str, table: str, column: str | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.column = column
