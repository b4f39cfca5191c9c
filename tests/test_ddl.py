"""Tests for DDL rendering and execution."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import DBAPIError, OperationalError

from schema_sync.errors import ConnectivityError, MappingError, PrivilegeError
from schema_sync.mapping.descriptor import ColumnDescriptor, EntityDescriptor
from schema_sync.schema.ddl import (
    DDLExecutor,
    quote_identifier,
    render_add_column,
    render_change,
    render_create_table,
    render_modify_column,
)
from schema_sync.schema.models import AddColumn, CreateTable, ModifyColumn

PEOPLE = EntityDescriptor(
    table="people",
    columns=(
        ColumnDescriptor(name="Id", field_name="Id", sql_type="CHAR(36)", is_primary_key=True),
        ColumnDescriptor(name="FirstName", field_name="FirstName", sql_type="VARCHAR(255)"),
        ColumnDescriptor(name="Age", field_name="Age", sql_type="INT"),
    ),
)


class TestRendering:
    """Verify generated statements."""

    def test_create_table(self) -> None:
        """Columns in declaration order, key marked inline."""
        assert render_create_table(PEOPLE) == (
            "CREATE TABLE IF NOT EXISTS `people` "
            "(`Id` CHAR(36) PRIMARY KEY, `FirstName` VARCHAR(255), `Age` INT)"
        )

    def test_create_table_without_primary_key(self) -> None:
        descriptor = EntityDescriptor(
            table="events",
            columns=(ColumnDescriptor(name="Message", field_name="Message", sql_type="TEXT"),),
        )
        assert render_create_table(descriptor) == (
            "CREATE TABLE IF NOT EXISTS `events` (`Message` TEXT)"
        )

    def test_add_column(self) -> None:
        assert render_add_column("people", "Age", "INT") == (
            "ALTER TABLE `people` ADD COLUMN `Age` INT"
        )

    def test_modify_column(self) -> None:
        assert render_modify_column("people", "Age", "INT") == (
            "ALTER TABLE `people` MODIFY COLUMN `Age` INT"
        )

    def test_render_change_uses_new_type(self) -> None:
        """MODIFY COLUMN takes the declared type, not the observed one."""
        change = ModifyColumn(table="people", column="Age", old_type="VARCHAR(255)", new_type="INT")
        assert render_change(change, PEOPLE).endswith("MODIFY COLUMN `Age` INT")

    def test_render_change_create(self) -> None:
        """CreateTable renders the full table from the descriptor."""
        assert render_change(CreateTable(table="people"), PEOPLE).startswith(
            "CREATE TABLE IF NOT EXISTS `people`"
        )

    def test_quote_rejects_bad_identifier(self) -> None:
        """A backtick cannot be escaped out of a quoted name."""
        with pytest.raises(MappingError):
            quote_identifier("a`b")

    def test_add_column_rejects_bad_identifier(self) -> None:
        with pytest.raises(MappingError):
            render_add_column("people", "Age; DROP TABLE people", "INT")


class TestExecutor:
    """Verify execution and error translation."""

    @pytest.mark.asyncio
    async def test_apply_executes_statement(self) -> None:
        """The rendered statement is executed and returned."""
        client = AsyncMock()
        sql = await DDLExecutor(client).apply(
            AddColumn(table="people", column="Age", sql_type="INT"), PEOPLE
        )
        client.execute.assert_awaited_once_with(sql)
        assert sql == "ALTER TABLE `people` ADD COLUMN `Age` INT"

    @pytest.mark.asyncio
    async def test_rejected_statement_raises_privilege_error(self) -> None:
        """A refused ALTER carries the table and the statement."""
        client = AsyncMock()
        client.execute.side_effect = OperationalError(
            "ALTER", {}, Exception("ALTER command denied to user")
        )

        with pytest.raises(PrivilegeError) as exc_info:
            await DDLExecutor(client).apply(
                ModifyColumn(table="people", column="Age", old_type="TEXT", new_type="INT"),
                PEOPLE,
            )

        assert exc_info.value.table == "people"
        assert exc_info.value.statement == "ALTER TABLE `people` MODIFY COLUMN `Age` INT"

    @pytest.mark.asyncio
    async def test_invalidated_connection_raises_connectivity_error(self) -> None:
        """A dropped connection is not reported as a privilege problem."""
        client = AsyncMock()
        client.execute.side_effect = DBAPIError(
            "ALTER", {}, Exception("gone away"), connection_invalidated=True
        )

        with pytest.raises(ConnectivityError):
            await DDLExecutor(client).apply(CreateTable(table="people"), PEOPLE)

    @pytest.mark.asyncio
    async def test_connectivity_error_passes_through(self) -> None:
        """Adapter connectivity errors are not rewrapped."""
        client = AsyncMock()
        client.execute.side_effect = ConnectivityError("down")

        with pytest.raises(ConnectivityError, match="down"):
            await DDLExecutor(client).apply(CreateTable(table="people"), PEOPLE)
