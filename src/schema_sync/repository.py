"""Descriptor-driven CRUD over registered record types.

Thin glue between dataclass records and the ``DatabaseClient`` CRUD
methods.  Column names come from the entity's descriptor, so ignored
fields are never written and renamed columns round-trip correctly.
Lifecycle hooks declared with ``@on_store`` run before every insert and
update; ``@on_retrieve`` hooks run on every loaded record.

Usage:
    from schema_sync.repository import EntityRepository

    people = EntityRepository(client, Person)
    person = Person(FirstName="Ada", Age=36)
    await people.insert(person)            # assigns person.Id
    loaded = await people.get_by_id(person.Id)
    page = await people.paginate(page=2, page_size=20, order_by="FirstName")
"""

import dataclasses
import typing
from typing import Any, Generic, TypeVar
from uuid import UUID, uuid4

from schema_sync.adapters.base import DatabaseClient
from schema_sync.errors import MappingError
from schema_sync.mapping.descriptor import ColumnDescriptor, get_descriptor
from schema_sync.mapping.types import unwrap_optional

T = TypeVar("T")

_EMPTY_UUID = UUID(int=0)


@dataclasses.dataclass
class Page(Generic[T]):
    """One page of records plus the total number of matching rows."""

    records: list[T]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        """Number of pages needed for ``total`` records."""
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size


class EntityRepository(Generic[T]):
    """CRUD access for one record type.

    Args:
        client: Database client.
        cls: A dataclass registered with ``@entity``.

    Raises:
        MappingError: If the type's metadata is invalid.
    """

    def __init__(self, client: DatabaseClient, cls: type[T]):
        self._client = client
        self._cls = cls
        self._descriptor = get_descriptor(cls)
        hints = typing.get_type_hints(cls)
        self._uuid_fields = {
            col.field_name
            for col in self._descriptor.columns
            if unwrap_optional(hints.get(col.field_name)) is UUID
        }
        self._column_list = ", ".join(f"`{col.name}`" for col in self._descriptor.columns)

    @property
    def table(self) -> str:
        return self._descriptor.table

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, entity: T) -> T:
        """Insert *entity*, assigning a new UUID to an empty UUID key."""
        self._ensure_id(entity)
        self._run_hooks(entity, self._descriptor.store_hooks)
        await self._client.insert(self.table, self._to_row(entity))
        return entity

    async def update(self, entity: T) -> T:
        """Update the row matching *entity*'s primary key.

        Raises:
            MappingError: If the type has no primary key.
            ValueError: If no row matches.
        """
        pk = self._require_primary_key()
        self._run_hooks(entity, self._descriptor.store_hooks)

        row = self._to_row(entity)
        key_value = row.pop(pk.name)
        matched = await self._client.update(self.table, row, {pk.name: key_value})
        if not matched:
            raise ValueError(f"No {self.table} row with {pk.name}={key_value}")
        return entity

    async def insert_or_update(self, entity: T) -> T:
        """Update if a row with the same key exists, insert otherwise."""
        pk = self._require_primary_key()
        key_value = getattr(entity, pk.field_name)
        if key_value not in (None, _EMPTY_UUID) and await self.get_by_id(key_value) is not None:
            return await self.update(entity)
        return await self.insert(entity)

    async def delete(self, key: Any) -> None:
        """Delete the row with primary key *key*."""
        pk = self._require_primary_key()
        await self._client.delete(self.table, {pk.name: key})

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(self, key: Any) -> T | None:
        """Load the record with primary key *key*, or ``None``."""
        pk = self._require_primary_key()
        rows = await self._client.select(self.table, self._column_list, {pk.name: key})
        return self._from_row(rows[0]) if rows else None

    async def get_all(self, order_by: str | None = None) -> list[T]:
        """Load every record of this type."""
        if order_by is not None:
            order_by = self._descriptor.column(order_by).name
        rows = await self._client.select(self.table, self._column_list, order_by=order_by)
        return [self._from_row(row) for row in rows]

    async def where(self, filters: dict[str, Any]) -> list[T]:
        """Load records whose columns equal every value in *filters*."""
        rows = await self._client.select(
            self.table, self._column_list, self._column_filters(filters)
        )
        return [self._from_row(row) for row in rows]

    async def find(self, column: str, value: Any) -> T | None:
        """Load the first record where *column* equals *value*."""
        records = await self.where({column: value})
        return records[0] if records else None

    async def paginate(
        self,
        page: int = 1,
        page_size: int = 10,
        order_by: str | None = None,
        filters: dict[str, Any] | None = None,
    ) -> Page[T]:
        """Load one page of records and the total matching count.

        Args:
            page: 1-based page number.
            page_size: Records per page.
            order_by: Column to sort by (defaults to the primary key).
            filters: Optional column=value equality filters.
        """
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be >= 1")

        params: dict[str, Any] = {}
        where_parts: list[str] = []
        for i, (name, value) in enumerate(self._column_filters(filters or {}).items()):
            where_parts.append(f"`{name}` = :p_{i}")
            params[f"p_{i}"] = str(value) if isinstance(value, UUID) else value
        where_clause = f" WHERE {' AND '.join(where_parts)}" if where_parts else ""

        if order_by is not None:
            order_column = self._descriptor.column(order_by).name
        elif self._descriptor.primary_key is not None:
            order_column = self._descriptor.primary_key.name
        else:
            order_column = self._descriptor.columns[0].name

        rows = await self._client.fetch(
            f"SELECT {self._column_list} FROM `{self.table}`{where_clause} "
            f"ORDER BY `{order_column}` LIMIT :limit OFFSET :offset",
            {**params, "limit": page_size, "offset": (page - 1) * page_size},
        )
        count_rows = await self._client.fetch(
            f"SELECT COUNT(*) AS total FROM `{self.table}`{where_clause}", params
        )

        return Page(
            records=[self._from_row(row) for row in rows],
            total=int(count_rows[0]["total"]) if count_rows else 0,
            page=page,
            page_size=page_size,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_primary_key(self) -> ColumnDescriptor:
        pk = self._descriptor.primary_key
        if pk is None:
            raise MappingError(f"Table '{self.table}' has no primary key column")
        return pk

    def _ensure_id(self, entity: T) -> None:
        pk = self._descriptor.primary_key
        if pk is None or pk.field_name not in self._uuid_fields:
            return
        if getattr(entity, pk.field_name) in (None, _EMPTY_UUID):
            setattr(entity, pk.field_name, uuid4())

    def _run_hooks(self, entity: T, hooks: tuple[str, ...]) -> None:
        for name in hooks:
            getattr(entity, name)()

    def _column_filters(self, filters: dict[str, Any]) -> dict[str, Any]:
        """Map filter keys (column or field names) to column names."""
        by_field = {col.field_name: col for col in self._descriptor.columns}
        resolved: dict[str, Any] = {}
        for key, value in filters.items():
            col = by_field.get(key) or self._descriptor.column(key)
            resolved[col.name] = value
        return resolved

    def _to_row(self, entity: T) -> dict[str, Any]:
        return {
            col.name: getattr(entity, col.field_name) for col in self._descriptor.columns
        }

    def _from_row(self, row: dict[str, Any]) -> T:
        lowered = {key.lower(): value for key, value in row.items()}
        values: dict[str, Any] = {}
        for col in self._descriptor.columns:
            value = lowered.get(col.name.lower())
            if col.field_name in self._uuid_fields and isinstance(value, str):
                value = UUID(value)
            values[col.field_name] = value

        entity = self._cls(**values)
        self._run_hooks(entity, self._descriptor.retrieve_hooks)
        return entity
