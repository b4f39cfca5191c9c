"""Shared fixtures: an in-memory stand-in for a MySQL database.

``FakeDatabase`` implements the parts of ``DatabaseClient`` the schema
engine uses (``fetch`` for catalog queries, ``execute`` for DDL and audit
inserts).  It keeps a tiny catalog so that applied DDL is visible to the
next introspection, which lets tests run full passes twice.
"""

import re

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from schema_sync.mapping.descriptor import clear_descriptor_cache
from schema_sync.schema.audit import AUDIT_TABLE

CREATE_RE = re.compile(
    r"CREATE TABLE IF NOT EXISTS `(\w+)`\s*\((.*)\)\s*$", re.IGNORECASE | re.DOTALL
)
ADD_RE = re.compile(r"ALTER TABLE `(\w+)` ADD COLUMN `(\w+)` (.+)$", re.IGNORECASE)
MODIFY_RE = re.compile(r"ALTER TABLE `(\w+)` MODIFY COLUMN `(\w+)` (.+)$", re.IGNORECASE)


def _split_top_level(body: str) -> list[str]:
    """Split a column list on commas that are not inside parentheses."""
    parts, depth, current = [], 0, []
    for ch in body:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    if "".join(current).strip():
        parts.append("".join(current).strip())
    return parts


def _column_type(definition: str) -> str:
    for keyword in (" PRIMARY KEY", " NOT NULL", " DEFAULT"):
        index = definition.upper().find(keyword)
        if index != -1:
            definition = definition[:index]
    return definition.strip()


class FakeDatabase:
    """In-memory catalog that understands the statements schema-sync emits.

    Attributes:
        tables: table name -> {column name: stored column type}
        statements: every SQL string passed to ``execute``
        audit_rows: parameter dicts of audit inserts
        fail_on: substring; an ``execute`` whose SQL contains it raises
            ``OperationalError`` (simulates a privilege failure)

    Audit inserts fail with ``ProgrammingError`` until the audit table has
    been created, as they do on a real server.
    """

    def __init__(self, tables: dict[str, dict[str, str]] | None = None):
        self.tables: dict[str, dict[str, str]] = tables or {}
        self.statements: list[str] = []
        self.audit_rows: list[dict] = []
        self.fail_on: str | None = None
        self.closed = False

    async def fetch(self, sql: str, params: dict | None = None) -> list[dict]:
        params = params or {}
        if "INFORMATION_SCHEMA.COLUMNS" in sql:
            name = params["table_name"]
            return [
                {"TABLE_NAME": name, "COLUMN_NAME": col, "COLUMN_TYPE": col_type}
                for col, col_type in self.tables.get(name, {}).items()
            ]
        if "INFORMATION_SCHEMA.TABLES" in sql:
            return [{"TABLE_NAME": name} for name in sorted(self.tables)]
        if "schema_change_log" in sql:
            rows = [
                r for r in self.audit_rows
                if params.get("table_name") is None or r["table_name"] == params["table_name"]
            ]
            rows = sorted(rows, key=lambda r: r["timestamp"], reverse=True)[: params["limit"]]
            return [
                {
                    "Id": r["id"],
                    "TableName": r["table_name"],
                    "ColumnName": r["column_name"],
                    "ChangeType": r["change_type"],
                    "OldType": r["old_type"],
                    "NewType": r["new_type"],
                    "Timestamp": r["timestamp"],
                }
                for r in rows
            ]
        raise AssertionError(f"Unexpected query: {sql}")

    async def execute(self, sql: str, params: dict | None = None) -> None:
        self.statements.append(sql)
        if self.fail_on and self.fail_on in sql:
            raise OperationalError(sql, params, Exception("command denied to user"))

        statement = sql.strip()
        if match := CREATE_RE.match(statement):
            table, body = match.groups()
            if table not in self.tables:
                self.tables[table] = {}
                for definition in _split_top_level(body):
                    col_name, _, rest = definition.partition(" ")
                    self.tables[table][col_name.strip("`")] = _column_type(rest).lower()
        elif match := ADD_RE.match(statement):
            table, col, col_type = match.groups()
            self.tables[table][col] = col_type.lower()
        elif match := MODIFY_RE.match(statement):
            table, col, col_type = match.groups()
            self.tables[table][col] = col_type.lower()
        elif f"INSERT INTO `{AUDIT_TABLE}`" in statement:
            if AUDIT_TABLE not in self.tables:
                raise ProgrammingError(
                    sql, params, Exception(1146, f"Table '{AUDIT_TABLE}' doesn't exist")
                )
            self.audit_rows.append(dict(params or {}))
        else:
            raise AssertionError(f"Unexpected statement: {sql}")

    async def close(self) -> None:
        self.closed = True

    @property
    def ddl(self) -> list[str]:
        """Executed statements other than audit inserts."""
        return [s for s in self.statements if "INSERT INTO" not in s]


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture(autouse=True)
def _fresh_descriptors():
    clear_descriptor_cache()
    yield
    clear_descriptor_cache()
