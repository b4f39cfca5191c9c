"""Schema synchronization between declared record types and the live database.

One pass processes every selected entity in turn:

1. build (or fetch the cached) descriptor
2. introspect the table's current columns
3. diff descriptor against snapshot
4. for each change, in order: write the audit record if the policy says so,
   then execute the DDL if the policy says so

The audit table is created (if missing) before the first audit write of a
pass, and once more after all entities regardless of policy.

The pass is sequential and takes no locks.  Callers must not run two
passes over the same connection at once.

Usage:
    from schema_sync.schema.sync import synchronize_schema, plan_schema
    from schema_sync.schema.policy import SyncOptions

    # See what would change
    result = await plan_schema(client)
    print(result.format_report())

    # Review-only rollout: log drift, touch nothing
    result = await synchronize_schema(
        client, SyncOptions(lockdown=True, log_only=True)
    )

    # Apply and keep a drift history
    result = await synchronize_schema(client, SyncOptions(log_only=True))
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from schema_sync.adapters.base import DatabaseClient
from schema_sync.errors import AuditWriteError
from schema_sync.mapping.descriptor import EntityDescriptor, get_descriptor
from schema_sync.mapping.entity import registered_entities
from schema_sync.schema.audit import ChangeAuditLog
from schema_sync.schema.comparator import diff_schema
from schema_sync.schema.ddl import DDLExecutor
from schema_sync.schema.introspector import SchemaIntrospector
from schema_sync.schema.models import AuditFailure, Change, SyncResult
from schema_sync.schema.policy import ChangePolicy, SyncOptions

logger = logging.getLogger(__name__)


def resolve_entities(
    entities: Iterable[type] | None = None,
    modules: Iterable[str] | None = None,
) -> list[type]:
    """Pick the record types for a pass.

    Explicit *entities* win; otherwise every registered entity, optionally
    restricted to *modules*.
    """
    if entities is not None:
        return list(entities)
    return registered_entities(modules)


class Synchronizer:
    """Orchestrates one synchronization pass over a single client.

    Args:
        client: Database client used for introspection, DDL and audit.
        policy: Apply/audit policy.  Defaults to ``ChangePolicy()``
            (apply everything, audit column changes).
    """

    def __init__(self, client: DatabaseClient, policy: ChangePolicy | None = None):
        self._policy = policy or ChangePolicy()
        self._introspector = SchemaIntrospector(client)
        self._executor = DDLExecutor(client)
        self._audit = ChangeAuditLog(client)
        self._audit_ready = False

    @property
    def policy(self) -> ChangePolicy:
        return self._policy

    async def run(self, entities: Iterable[type]) -> SyncResult:
        """Synchronize every entity, then ensure the audit table exists.

        Raises:
            MappingError: Bad metadata on an entity; nothing further runs.
            ConnectivityError: The database became unreachable.
            PrivilegeError: A DDL statement was rejected.  Changes already
                applied (on this and earlier tables) stay applied.
            AuditWriteError: The closing audit-table check was rejected.
        """
        result = SyncResult()
        self._audit_ready = False

        for cls in entities:
            descriptor = get_descriptor(cls)
            await self.sync_table(descriptor, result)

        await self._audit.ensure_table()

        logger.info(
            "Schema sync finished: %d table(s), %d change(s), %d applied, %d audited",
            len(result.tables),
            len(result.changes),
            len(result.applied),
            len(result.audited),
        )
        return result

    async def sync_table(self, descriptor: EntityDescriptor, result: SyncResult) -> None:
        """Diff and reconcile one table, recording outcomes into *result*."""
        snapshot = await self._introspector.snapshot(descriptor.table)
        changes = diff_schema(descriptor, snapshot)

        result.tables.append(descriptor.table)
        result.changes.extend(changes)

        if not changes:
            logger.debug("Table %s is in sync", descriptor.table)
            return

        logger.info("Table %s: %d change(s) detected", descriptor.table, len(changes))

        for change in changes:
            await self._handle_change(change, descriptor, result)

    async def _handle_change(
        self,
        change: Change,
        descriptor: EntityDescriptor,
        result: SyncResult,
    ) -> None:
        if self._policy.should_audit(change):
            try:
                if not self._audit_ready:
                    await self._audit.ensure_table()
                    self._audit_ready = True
                result.audited.append(await self._audit.record(change))
            except AuditWriteError as e:
                logger.error("Audit write failed for %s: %s", change.describe(), e)
                result.audit_failures.append(AuditFailure(change=change, error=str(e)))

        if self._policy.should_apply(change):
            await self._executor.apply(change, descriptor)
            result.applied.append(change)
        else:
            logger.warning("Lockdown: not applying %s", change.describe())


async def synchronize_schema(
    client: DatabaseClient,
    options: SyncOptions | None = None,
    entities: Iterable[type] | None = None,
) -> SyncResult:
    """Synchronize the live schema with the declared record types.

    Args:
        client: Database client.  Not safe to share with a concurrent pass.
        options: Lockdown/log-only switches and module filter.  Defaults to
            ``SyncOptions()`` (``lockdown=False``, ``log_only=True``).
        entities: Explicit record types.  Defaults to every registered
            entity, filtered by ``options.modules`` when set.

    Returns:
        ``SyncResult`` describing detected, applied and audited changes.

    Raises:
        MappingError, ConnectivityError, PrivilegeError: see
            ``Synchronizer.run``.
    """
    options = options or SyncOptions()
    selected = resolve_entities(entities, options.modules)
    return await Synchronizer(client, options.to_policy()).run(selected)


async def plan_schema(
    client: DatabaseClient,
    entities: Iterable[type] | None = None,
    modules: Iterable[str] | None = None,
) -> SyncResult:
    """Detect changes without applying or auditing anything.

    Args:
        client: Database client (only catalog queries are issued).
        entities: Explicit record types (default: registered entities).
        modules: Module filter used when *entities* is not given.

    Returns:
        ``SyncResult`` with ``changes`` filled and nothing applied.
    """
    introspector = SchemaIntrospector(client)
    result = SyncResult()

    for cls in resolve_entities(entities, modules):
        descriptor = get_descriptor(cls)
        snapshot = await introspector.snapshot(descriptor.table)
        result.tables.append(descriptor.table)
        result.changes.extend(diff_schema(descriptor, snapshot))

    return result
