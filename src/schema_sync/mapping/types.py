"""Python type to MySQL column type mapping.

Pure logic -- no I/O.  An explicit override always wins; otherwise the
declared annotation is unwrapped from ``Optional`` and looked up in an
exact-match table.  Anything unmapped becomes ``TEXT``.

Usage:
    from schema_sync.mapping.types import BigInt, map_sql_type

    map_sql_type(int)                      # 'INT'
    map_sql_type(BigInt)                   # 'BIGINT'
    map_sql_type(str | None)               # 'VARCHAR(255)'
    map_sql_type(str, override="CHAR(2)")  # 'CHAR(2)'
"""

import logging
import types
import typing
from datetime import datetime
from decimal import Decimal
from typing import Any, NewType
from uuid import UUID

logger = logging.getLogger(__name__)

BigInt = NewType("BigInt", int)
"""Annotation marker for 64-bit integer columns (``BIGINT``)."""

FALLBACK_SQL_TYPE = "TEXT"

# Exact matches only: bool is looked up as bool, never as int.
SQL_TYPES: dict[Any, str] = {
    UUID: "CHAR(36)",
    str: "VARCHAR(255)",
    int: "INT",
    BigInt: "BIGINT",
    bool: "TINYINT(1)",
    datetime: "DATETIME",
    float: "DOUBLE",
    Decimal: "DECIMAL(18,2)",
}


def unwrap_optional(python_type: Any) -> Any:
    """Return ``X`` for ``Optional[X]`` / ``X | None``, else the type unchanged.

    Unions of more than one non-None member are returned unchanged (and
    therefore map to the fallback type).
    """
    origin = typing.get_origin(python_type)
    if origin is typing.Union or origin is types.UnionType:
        members = [arg for arg in typing.get_args(python_type) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return python_type


def map_sql_type(python_type: Any, override: str | None = None) -> str:
    """Map a declared Python type to its SQL column type.

    Args:
        python_type: The field's annotation.
        override: Explicit SQL type from the field declaration.  Takes
            absolute precedence when non-empty.

    Returns:
        The SQL type string used for DDL and drift comparison.
    """
    if override:
        return override

    resolved = unwrap_optional(python_type)
    try:
        return SQL_TYPES[resolved]
    except (KeyError, TypeError):
        # TypeError: unhashable annotations such as some generic aliases
        logger.warning(
            "No SQL mapping for type %r; falling back to %s",
            resolved,
            FALLBACK_SQL_TYPE,
        )
        return FALLBACK_SQL_TYPE
