"""Change policy: decide, per change, whether to apply DDL and/or audit it.

Two independent switches define four modes:

| lockdown | log_only | apply DDL | write audit record |
|----------|----------|-----------|--------------------|
| False    | False    | yes       | no                 |
| False    | True     | yes       | yes                |
| True     | True     | no        | yes                |
| True     | False    | no        | no                 |

``CreateTable`` is applied only when not in lockdown and is never audited,
whatever ``log_only`` says.  The audit table's ``ChangeType`` column only
admits ``AddColumn`` and ``ModifyColumn``.
"""

from pydantic import BaseModel, ConfigDict, Field

from schema_sync.schema.models import Change, CreateTable


class ChangePolicy(BaseModel):
    """Per-change apply/audit decision.

    Example:
        >>> policy = ChangePolicy(lockdown=True, log_only=True)
        >>> policy.should_apply(CreateTable(table="people"))
        False
    """

    model_config = ConfigDict(frozen=True)

    lockdown: bool = False
    log_only: bool = True

    def should_apply(self, change: Change) -> bool:
        """True if the change's DDL should be executed."""
        return not self.lockdown

    def should_audit(self, change: Change) -> bool:
        """True if the change should be appended to the audit log."""
        if isinstance(change, CreateTable):
            return False
        return self.log_only


class SyncOptions(BaseModel):
    """Settings for one synchronization pass (the ``[sync]`` config section).

    Example:
        >>> options = SyncOptions(lockdown=True)
        >>> options.to_policy().lockdown
        True
    """

    lockdown: bool = False
    log_only: bool = True
    modules: list[str] = Field(default_factory=list)  # Empty = every registered entity

    def to_policy(self) -> ChangePolicy:
        """Build the ``ChangePolicy`` for these settings."""
        return ChangePolicy(lockdown=self.lockdown, log_only=self.log_only)
