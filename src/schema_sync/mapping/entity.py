"""Declarative registration of record types.

Record types are ordinary dataclasses.  ``@entity`` registers the class
(and an optional table-name override); ``column()`` attaches per-field
mapping metadata; ``@on_store`` / ``@on_retrieve`` mark lifecycle hooks
that the repository runs around writes and reads.

Usage:
    from dataclasses import dataclass
    from uuid import UUID

    from schema_sync.mapping.entity import column, entity, on_store

    @entity(table="people")
    @dataclass
    class Person:
        Id: UUID | None = column(primary_key=True, default=None)
        FirstName: str = ""
        Age: int = 0
        Scratch: dict | None = column(ignore=True, default=None)

        @on_store
        def strip_name(self) -> None:
            self.FirstName = self.FirstName.strip()
"""

import dataclasses
import sys
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

COLUMN_METADATA_KEY = "schema_sync"
STORE_HOOK_ATTR = "__schema_sync_on_store__"
RETRIEVE_HOOK_ATTR = "__schema_sync_on_retrieve__"

T = TypeVar("T", bound=type)

# Registration order is preserved; synchronization follows it.
_REGISTRY: dict[type, str | None] = {}


def entity(table: str | None = None) -> Callable[[T], T]:
    """Class decorator registering a record type for schema synchronization.

    Args:
        table: Table name override.  Defaults to the class name.
    """

    def decorator(cls: T) -> T:
        _REGISTRY[cls] = table
        return cls

    return decorator


def column(
    name: str | None = None,
    sql_type: str | None = None,
    primary_key: bool = False,
    ignore: bool = False,
    **field_kwargs: Any,
) -> Any:
    """Declare a mapped dataclass field.

    Args:
        name: Column name override.  Defaults to the field name.
        sql_type: Explicit SQL type; bypasses the type mapping.
        primary_key: Mark this field as the table's primary key.
        ignore: Exclude the field from all mapping (DDL and CRUD).
        **field_kwargs: Forwarded to ``dataclasses.field`` (``default``,
            ``default_factory``, ...).
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[COLUMN_METADATA_KEY] = {
        "name": name,
        "sql_type": sql_type,
        "primary_key": primary_key,
        "ignore": ignore,
    }
    return dataclasses.field(metadata=metadata, **field_kwargs)


def on_store(method: Callable) -> Callable:
    """Mark a method to run before the record is inserted or updated."""
    setattr(method, STORE_HOOK_ATTR, True)
    return method


def on_retrieve(method: Callable) -> Callable:
    """Mark a method to run after the record is loaded from the database."""
    setattr(method, RETRIEVE_HOOK_ATTR, True)
    return method


def table_override(cls: type) -> str | None:
    """Return the ``@entity`` table override for *cls* (``None`` if absent)."""
    return _REGISTRY.get(cls)


def is_registered(cls: type) -> bool:
    return cls in _REGISTRY


def registered_entities(modules: Iterable[str] | None = None) -> list[type]:
    """List registered record types in registration order.

    Args:
        modules: Optional module names.  When given, only entities defined
            in one of these modules (or their submodules) are returned, and
            each module is imported first so its ``@entity`` decorators run.

    Returns:
        Registered classes.
    """
    if not modules:
        return list(_REGISTRY)

    prefixes = list(modules)
    for module_name in prefixes:
        if module_name not in sys.modules:
            __import__(module_name)

    return [
        cls
        for cls in _REGISTRY
        if any(
            cls.__module__ == prefix or cls.__module__.startswith(prefix + ".")
            for prefix in prefixes
        )
    ]


def unregister(cls: type) -> None:
    """Remove *cls* from the registry (used by tests)."""
    _REGISTRY.pop(cls, None)
