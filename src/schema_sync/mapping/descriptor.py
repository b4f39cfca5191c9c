"""Entity descriptors: the declared shape of one table.

A descriptor is built once per record type from its dataclass fields and
``column()`` metadata, then cached for the lifetime of the process.  The
diff engine, DDL renderer and repository only ever look at descriptors,
never at the class itself.
"""

import dataclasses
import re
import typing
from typing import Any

from pydantic import BaseModel, ConfigDict

from schema_sync.errors import MappingError
from schema_sync.mapping.entity import (
    COLUMN_METADATA_KEY,
    RETRIEVE_HOOK_ATTR,
    STORE_HOOK_ATTR,
    table_override,
)
from schema_sync.mapping.types import map_sql_type

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

_CACHE: dict[type, "EntityDescriptor"] = {}


# ============================================================================
# Descriptor Models
# ============================================================================


class ColumnDescriptor(BaseModel):
    """One mapped column.

    Example:
        >>> col = ColumnDescriptor(name="Age", field_name="Age", sql_type="INT")
        >>> col.is_primary_key
        False
    """

    model_config = ConfigDict(frozen=True)

    name: str
    field_name: str
    sql_type: str
    is_primary_key: bool = False


class EntityDescriptor(BaseModel):
    """Declared shape of one table.

    ``columns`` holds only mapped (non-ignored) fields, in declaration
    order.  ``ignored_fields`` lists the dataclass fields excluded from
    mapping.
    """

    model_config = ConfigDict(frozen=True)

    table: str
    columns: tuple[ColumnDescriptor, ...]
    ignored_fields: tuple[str, ...] = ()
    store_hooks: tuple[str, ...] = ()
    retrieve_hooks: tuple[str, ...] = ()

    @property
    def primary_key(self) -> ColumnDescriptor | None:
        """The primary-key column, if one was declared."""
        for col in self.columns:
            if col.is_primary_key:
                return col
        return None

    def column(self, name: str) -> ColumnDescriptor:
        """Look up a column by column name (case-insensitive).

        Raises:
            KeyError: If no such column is mapped.
        """
        lowered = name.lower()
        for col in self.columns:
            if col.name.lower() == lowered:
                return col
        raise KeyError(f"Column '{name}' is not mapped on table '{self.table}'")


# ============================================================================
# Building
# ============================================================================


def validate_identifier(name: str, kind: str) -> str:
    """Check *name* against the identifier allow-list.

    Only letters, digits and underscores are allowed, since names are
    interpolated into DDL.

    Raises:
        MappingError: If the name is empty or contains other characters.
    """
    if not name:
        raise MappingError(f"{kind} name is empty")
    if not IDENTIFIER_PATTERN.match(name):
        raise MappingError(
            f"{kind} name '{name}' is not a valid identifier "
            f"(letters, digits and underscore only)"
        )
    return name


def _collect_hooks(cls: type, marker: str) -> tuple[str, ...]:
    # Walk the MRO base-first so inherited hooks run before overrides added by subclasses.
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        for attr_name, attr in vars(klass).items():
            if callable(attr) and getattr(attr, marker, False) and attr_name not in names:
                names.append(attr_name)
    return tuple(names)


def build_descriptor(cls: type) -> EntityDescriptor:
    """Build the descriptor for a dataclass record type.

    Args:
        cls: A dataclass, usually registered with ``@entity``.

    Returns:
        A new ``EntityDescriptor`` (uncached; see ``get_descriptor``).

    Raises:
        MappingError: If *cls* is not a dataclass, more than one field is
            marked primary key, the table name resolves empty, or any
            table/column name fails identifier validation.
    """
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise MappingError(f"{cls!r} is not a dataclass record type")

    override = table_override(cls)
    table = override if override is not None else cls.__name__
    validate_identifier(table, "Table")

    try:
        hints: dict[str, Any] = typing.get_type_hints(cls)
    except NameError as e:
        raise MappingError(f"Cannot resolve annotations of {cls.__name__}: {e}") from e

    columns: list[ColumnDescriptor] = []
    ignored: list[str] = []
    for f in dataclasses.fields(cls):
        options = f.metadata.get(COLUMN_METADATA_KEY, {})
        if options.get("ignore"):
            ignored.append(f.name)
            continue

        name = options.get("name") or f.name
        validate_identifier(name, "Column")
        columns.append(
            ColumnDescriptor(
                name=name,
                field_name=f.name,
                sql_type=map_sql_type(hints.get(f.name, f.type), options.get("sql_type")),
                is_primary_key=bool(options.get("primary_key")),
            )
        )

    keys = [col.name for col in columns if col.is_primary_key]
    if len(keys) > 1:
        raise MappingError(
            f"{cls.__name__} declares {len(keys)} primary keys ({', '.join(keys)}); "
            f"composite keys are not supported"
        )

    seen: set[str] = set()
    for col in columns:
        if col.name.lower() in seen:
            raise MappingError(f"Column '{col.name}' is mapped twice on table '{table}'")
        seen.add(col.name.lower())

    return EntityDescriptor(
        table=table,
        columns=tuple(columns),
        ignored_fields=tuple(ignored),
        store_hooks=_collect_hooks(cls, STORE_HOOK_ATTR),
        retrieve_hooks=_collect_hooks(cls, RETRIEVE_HOOK_ATTR),
    )


def get_descriptor(cls: type) -> EntityDescriptor:
    """Return the cached descriptor for *cls*, building it on first use."""
    descriptor = _CACHE.get(cls)
    if descriptor is None:
        descriptor = build_descriptor(cls)
        _CACHE[cls] = descriptor
    return descriptor


def clear_descriptor_cache() -> None:
    """Drop every cached descriptor (used by tests)."""
    _CACHE.clear()
