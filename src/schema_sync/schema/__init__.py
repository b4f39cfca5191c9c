"""Schema introspection, drift detection, and synchronization.

Provides live table introspection (``SchemaIntrospector``), the pure diff
(``diff_schema``), the apply/audit policy (``ChangePolicy``), DDL
execution (``DDLExecutor``), the append-only audit trail
(``ChangeAuditLog``), and the pass orchestration (``synchronize_schema``,
``plan_schema``).

Usage:
    from schema_sync.schema import synchronize_schema, SyncOptions
    from schema_sync.schema import diff_schema, SchemaIntrospector
"""

from schema_sync.schema.audit import AUDIT_TABLE, ChangeAuditLog
from schema_sync.schema.comparator import diff_schema, types_match
from schema_sync.schema.ddl import (
    DDLExecutor,
    render_add_column,
    render_change,
    render_create_table,
    render_modify_column,
)
from schema_sync.schema.introspector import SchemaIntrospector
from schema_sync.schema.models import (
    AddColumn,
    AuditFailure,
    Change,
    ChangeKind,
    ChangeRecord,
    CreateTable,
    ModifyColumn,
    SchemaSnapshot,
    SyncResult,
)
from schema_sync.schema.policy import ChangePolicy, SyncOptions
from schema_sync.schema.sync import Synchronizer, plan_schema, synchronize_schema

__all__ = [
    "SchemaIntrospector",
    "SchemaSnapshot",
    "diff_schema",
    "types_match",
    "Change",
    "ChangeKind",
    "CreateTable",
    "AddColumn",
    "ModifyColumn",
    "ChangePolicy",
    "SyncOptions",
    "DDLExecutor",
    "render_create_table",
    "render_add_column",
    "render_modify_column",
    "render_change",
    "AUDIT_TABLE",
    "ChangeAuditLog",
    "ChangeRecord",
    "AuditFailure",
    "SyncResult",
    "Synchronizer",
    "synchronize_schema",
    "plan_schema",
]
