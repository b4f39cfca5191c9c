"""Schema comparison: declared descriptor vs. observed snapshot.

Pure logic -- no I/O, no database connections.

Usage:
    from schema_sync.mapping.descriptor import get_descriptor
    from schema_sync.schema.comparator import diff_schema
    from schema_sync.schema.introspector import SchemaIntrospector

    snapshot = await SchemaIntrospector(client).snapshot("people")
    changes = diff_schema(get_descriptor(Person), snapshot)
"""

from schema_sync.mapping.descriptor import EntityDescriptor
from schema_sync.schema.models import (
    AddColumn,
    Change,
    CreateTable,
    ModifyColumn,
    SchemaSnapshot,
)


def types_match(observed: str, expected: str) -> bool:
    """Compare SQL type strings case-insensitively, otherwise exactly.

    No normalization is applied, so engine formatting variants are drift:

        >>> types_match("int", "INT")
        True
        >>> types_match("INT(11)", "INT")
        False
    """
    return observed.lower() == expected.lower()


def diff_schema(
    descriptor: EntityDescriptor,
    snapshot: SchemaSnapshot,
) -> list[Change]:
    """Compute the changes needed to bring *snapshot* in line with *descriptor*.

    - Empty snapshot (table missing): a single ``CreateTable`` and nothing
      else.
    - Otherwise one pass over the descriptor's columns, in order:
      missing column -> ``AddColumn``; type differs -> ``ModifyColumn``
      carrying the observed and declared types; equal -> nothing.
    - Columns present only in the database are ignored.

    Args:
        descriptor: Declared table shape.
        snapshot: Observed table shape.

    Returns:
        Ordered list of changes.  Identical inputs always give identical
        output.

    Examples:
        >>> changes = diff_schema(descriptor, SchemaSnapshot(table="people"))
        >>> [c.kind.value for c in changes]
        ['CreateTable']
    """
    if snapshot.is_empty:
        return [CreateTable(table=descriptor.table)]

    changes: list[Change] = []
    for col in descriptor.columns:
        observed = snapshot.get(col.name)
        if observed is None:
            changes.append(
                AddColumn(table=descriptor.table, column=col.name, sql_type=col.sql_type)
            )
        elif not types_match(observed, col.sql_type):
            changes.append(
                ModifyColumn(
                    table=descriptor.table,
                    column=col.name,
                    old_type=observed,
                    new_type=col.sql_type,
                )
            )

    return changes
