"""Tests for schema comparison (pure logic, no database)."""

from schema_sync.mapping.descriptor import ColumnDescriptor, EntityDescriptor
from schema_sync.schema.comparator import diff_schema, types_match
from schema_sync.schema.models import (
    AddColumn,
    ChangeKind,
    CreateTable,
    ModifyColumn,
    SchemaSnapshot,
)


def _people() -> EntityDescriptor:
    return EntityDescriptor(
        table="people",
        columns=(
            ColumnDescriptor(name="Id", field_name="Id", sql_type="CHAR(36)", is_primary_key=True),
            ColumnDescriptor(name="FirstName", field_name="FirstName", sql_type="VARCHAR(255)"),
            ColumnDescriptor(name="Age", field_name="Age", sql_type="INT"),
        ),
    )


class TestTypesMatch:
    """Verify literal, case-insensitive type comparison."""

    def test_case_insensitive(self) -> None:
        """Case differences are not drift."""
        assert types_match("int", "INT")
        assert types_match("varchar(255)", "VARCHAR(255)")

    def test_display_width_is_drift(self) -> None:
        """Types are compared literally, so INT(11) differs from INT."""
        assert not types_match("INT(11)", "INT")

    def test_different_types(self) -> None:
        assert not types_match("VARCHAR(255)", "INT")


class TestDiffSchema:
    """Verify change detection and ordering."""

    def test_missing_table_yields_single_create(self) -> None:
        """A missing table is one CreateTable, with no column changes."""
        changes = diff_schema(_people(), SchemaSnapshot(table="people"))
        assert changes == [CreateTable(table="people")]

    def test_in_sync(self) -> None:
        """Matching columns produce no changes."""
        snapshot = SchemaSnapshot(
            table="people",
            columns={"Id": "char(36)", "FirstName": "varchar(255)", "Age": "int"},
        )
        assert diff_schema(_people(), snapshot) == []

    def test_missing_column(self) -> None:
        """A declared column absent from the table is an AddColumn."""
        snapshot = SchemaSnapshot(table="people", columns={"Id": "char(36)", "Age": "int"})
        changes = diff_schema(_people(), snapshot)
        assert changes == [
            AddColumn(table="people", column="FirstName", sql_type="VARCHAR(255)")
        ]

    def test_type_change_carries_both_types(self) -> None:
        """ModifyColumn records the observed and declared types."""
        snapshot = SchemaSnapshot(
            table="people",
            columns={"Id": "char(36)", "FirstName": "varchar(255)", "Age": "VARCHAR(255)"},
        )
        changes = diff_schema(_people(), snapshot)
        assert changes == [
            ModifyColumn(table="people", column="Age", old_type="VARCHAR(255)", new_type="INT")
        ]

    def test_display_width_reported(self) -> None:
        snapshot = SchemaSnapshot(
            table="people",
            columns={"Id": "char(36)", "FirstName": "varchar(255)", "Age": "INT(11)"},
        )
        (change,) = diff_schema(_people(), snapshot)
        assert change.kind == ChangeKind.MODIFY_COLUMN
        assert change.old_type == "INT(11)"

    def test_column_name_lookup_case_insensitive(self) -> None:
        """Column names match regardless of case."""
        snapshot = SchemaSnapshot(
            table="people",
            columns={"id": "char(36)", "firstname": "varchar(255)", "AGE": "int"},
        )
        assert diff_schema(_people(), snapshot) == []

    def test_extra_database_columns_ignored(self) -> None:
        """Columns with no declared field are never dropped or reported."""
        snapshot = SchemaSnapshot(
            table="people",
            columns={
                "Id": "char(36)",
                "FirstName": "varchar(255)",
                "Age": "int",
                "Legacy": "text",
            },
        )
        assert diff_schema(_people(), snapshot) == []

    def test_changes_follow_descriptor_order(self) -> None:
        """Changes come out in declaration order."""
        snapshot = SchemaSnapshot(table="people", columns={"Id": "char(36)", "Age": "bigint"})
        changes = diff_schema(_people(), snapshot)
        assert [(c.kind, c.column) for c in changes] == [
            (ChangeKind.ADD_COLUMN, "FirstName"),
            (ChangeKind.MODIFY_COLUMN, "Age"),
        ]

    def test_deterministic(self) -> None:
        snapshot = SchemaSnapshot(table="people", columns={"Id": "text"})
        assert diff_schema(_people(), snapshot) == diff_schema(_people(), snapshot)


class TestSnapshot:
    """SchemaSnapshot lookups."""

    def test_empty(self) -> None:
        assert SchemaSnapshot(table="t").is_empty

    def test_get_and_contains(self) -> None:
        """Lookups ignore column-name case."""
        snapshot = SchemaSnapshot(table="t", columns={"Age": "int"})
        assert snapshot.get("age") == "int"
        assert "AGE" in snapshot
        assert snapshot.get("missing") is None
        assert "missing" not in snapshot
