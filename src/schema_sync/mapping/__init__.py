"""Record-type mapping: type mapping, entity registration, descriptors.

Usage:
    from schema_sync.mapping import entity, column, get_descriptor
"""

from schema_sync.mapping.descriptor import (
    ColumnDescriptor,
    EntityDescriptor,
    build_descriptor,
    clear_descriptor_cache,
    get_descriptor,
)
from schema_sync.mapping.entity import (
    column,
    entity,
    on_retrieve,
    on_store,
    registered_entities,
)
from schema_sync.mapping.types import BigInt, map_sql_type

__all__ = [
    "BigInt",
    "map_sql_type",
    "entity",
    "column",
    "on_store",
    "on_retrieve",
    "registered_entities",
    "ColumnDescriptor",
    "EntityDescriptor",
    "build_descriptor",
    "get_descriptor",
    "clear_descriptor_cache",
]
