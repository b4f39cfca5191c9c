"""Tests for entity registration and descriptor building."""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import pytest
from pydantic import ValidationError

from schema_sync.errors import MappingError
from schema_sync.mapping.descriptor import (
    build_descriptor,
    get_descriptor,
    validate_identifier,
)
from schema_sync.mapping.entity import (
    column,
    entity,
    is_registered,
    on_retrieve,
    on_store,
    registered_entities,
    unregister,
)


@entity()
@dataclass
class Person:
    Id: Optional[UUID] = column(primary_key=True, default=None)
    FirstName: str = ""
    Age: int = 0


@entity(table="accounts")
@dataclass
class Account:
    Id: Optional[UUID] = column(primary_key=True, default=None)
    owner: str = column(name="OwnerName", default="")
    balance: float = column(sql_type="DECIMAL(12,4)", default=0.0)
    session: Optional[dict] = column(ignore=True, default=None)

    @on_store
    def normalize(self) -> None:
        self.owner = self.owner.strip()

    @on_retrieve
    def loaded(self) -> None:
        pass


@entity(table="audit_events")
@dataclass
class Event:
    Message: str = ""


class TestTableAndColumns:
    """Verify names, order and types come from declared metadata."""

    def test_table_defaults_to_class_name(self) -> None:
        """Without ``table=`` the class name is used as is."""
        assert build_descriptor(Person).table == "Person"

    def test_table_override(self) -> None:
        assert build_descriptor(Account).table == "accounts"

    def test_columns_in_declaration_order(self) -> None:
        """Columns follow field order; types come from annotations."""
        descriptor = build_descriptor(Person)
        assert [c.name for c in descriptor.columns] == ["Id", "FirstName", "Age"]
        assert [c.sql_type for c in descriptor.columns] == ["CHAR(36)", "VARCHAR(255)", "INT"]

    def test_column_name_override(self) -> None:
        """``column(name=...)`` renames the column, not the field."""
        descriptor = build_descriptor(Account)
        col = descriptor.column("OwnerName")
        assert col.field_name == "owner"

    def test_sql_type_override(self) -> None:
        assert build_descriptor(Account).column("balance").sql_type == "DECIMAL(12,4)"

    def test_ignored_field_excluded(self) -> None:
        """Ignored fields are listed separately and never mapped."""
        descriptor = build_descriptor(Account)
        assert "session" not in [c.field_name for c in descriptor.columns]
        assert descriptor.ignored_fields == ("session",)

    def test_primary_key(self) -> None:
        descriptor = build_descriptor(Person)
        assert descriptor.primary_key is not None
        assert descriptor.primary_key.name == "Id"

    def test_no_primary_key_allowed(self) -> None:
        """A record type without a key still maps."""
        assert build_descriptor(Event).primary_key is None

    def test_column_lookup_case_insensitive(self) -> None:
        assert build_descriptor(Person).column("firstname").name == "FirstName"

    def test_unknown_column_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            build_descriptor(Person).column("Missing")

    def test_leading_digit_column_name(self) -> None:
        """Names such as ``2fa_code`` are valid MySQL identifiers."""

        @dataclass
        class Login:
            two_factor: str = column(name="2fa_code", default="")

        descriptor = build_descriptor(Login)
        assert descriptor.column("2fa_code").field_name == "two_factor"


class TestMappingErrors:
    """Verify bad metadata raises MappingError."""

    def test_multiple_primary_keys(self) -> None:
        """Composite keys are rejected."""

        @dataclass
        class TwoKeys:
            A: int = column(primary_key=True, default=0)
            B: int = column(primary_key=True, default=0)

        with pytest.raises(MappingError, match="composite keys"):
            build_descriptor(TwoKeys)

    def test_empty_table_name(self) -> None:
        @entity(table="")
        @dataclass
        class Nameless:
            A: int = 0

        try:
            with pytest.raises(MappingError, match="empty"):
                build_descriptor(Nameless)
        finally:
            unregister(Nameless)

    def test_invalid_table_name(self) -> None:
        """Names that could smuggle SQL into DDL are rejected."""

        @entity(table="people; DROP TABLE x")
        @dataclass
        class Hostile:
            A: int = 0

        try:
            with pytest.raises(MappingError, match="not a valid identifier"):
                build_descriptor(Hostile)
        finally:
            unregister(Hostile)

    def test_invalid_column_name(self) -> None:
        @dataclass
        class BadColumn:
            a: int = column(name="a-b", default=0)

        with pytest.raises(MappingError, match="Column name 'a-b'"):
            build_descriptor(BadColumn)

    def test_duplicate_column_name(self) -> None:
        """Two fields mapping to the same column, ignoring case."""

        @dataclass
        class Duplicate:
            a: int = column(name="X", default=0)
            b: int = column(name="x", default=0)

        with pytest.raises(MappingError, match="mapped twice"):
            build_descriptor(Duplicate)

    def test_not_a_dataclass(self) -> None:
        class Plain:
            pass

        with pytest.raises(MappingError, match="not a dataclass"):
            build_descriptor(Plain)

    @pytest.mark.parametrize("name", ["_ok_1", "1abc", "2fa_code", "Table9"])
    def test_valid_identifiers(self, name: str) -> None:
        assert validate_identifier(name, "Column") == name

    @pytest.mark.parametrize("name", ["a-b", "a b", "a`b", "naïve"])
    def test_invalid_identifiers(self, name: str) -> None:
        with pytest.raises(MappingError, match="not a valid identifier"):
            validate_identifier(name, "Column")


class TestImmutabilityAndCache:
    """Descriptors are frozen and cached per type."""

    def test_descriptor_is_frozen(self) -> None:
        descriptor = build_descriptor(Person)
        with pytest.raises(ValidationError):
            descriptor.table = "other"

    def test_column_is_frozen(self) -> None:
        col = build_descriptor(Person).columns[0]
        with pytest.raises(ValidationError):
            col.sql_type = "TEXT"

    def test_get_descriptor_caches(self) -> None:
        """The same descriptor object is returned for a type."""
        assert get_descriptor(Person) is get_descriptor(Person)

    def test_build_descriptor_does_not_cache(self) -> None:
        assert build_descriptor(Person) is not build_descriptor(Person)


class TestHooks:
    """Lifecycle hooks are recorded on the descriptor by method name."""

    def test_store_hooks(self) -> None:
        assert build_descriptor(Account).store_hooks == ("normalize",)

    def test_retrieve_hooks(self) -> None:
        assert build_descriptor(Account).retrieve_hooks == ("loaded",)

    def test_no_hooks(self) -> None:
        """Types without hooks get empty tuples."""
        descriptor = build_descriptor(Person)
        assert descriptor.store_hooks == ()
        assert descriptor.retrieve_hooks == ()


class TestRegistry:
    """Verify @entity registration and module filtering."""

    def test_registered(self) -> None:
        assert is_registered(Person)
        assert is_registered(Account)

    def test_registration_order_within_module(self) -> None:
        """Entities come back in the order they were decorated."""
        found = registered_entities([__name__])
        assert found == [Person, Account, Event]

    def test_unknown_module_filter_excludes(self) -> None:
        """A module with no entities contributes nothing."""
        found = registered_entities(["json"])
        assert found == []
