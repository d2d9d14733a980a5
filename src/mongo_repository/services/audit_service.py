"""
# Audit Information Provider

Supplies the "shell" of an audit record (operation label, actor, timestamp) before the audited
repository fills in the collection and the before/after images.

The default provider reads the acting user from a context variable, so web handlers or task
runners bind the actor once per request:

```python
token = set_current_actor("alice")
try:
    await repository.update_with_audit(order)
finally:
    reset_current_actor(token)
```
"""

from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Protocol, Type, runtime_checkable

from mongo_repository.models.audit import AuditRecord

DEFAULT_ACTOR = "system"

_current_actor: ContextVar[str] = ContextVar("current_actor", default=DEFAULT_ACTOR)


def set_current_actor(actor: str):
    return _current_actor.set(actor)


def reset_current_actor(token) -> None:
    _current_actor.reset(token)


def get_current_actor() -> str:
    return _current_actor.get()


@runtime_checkable
class AuditInformationProvider(Protocol):
    def audit_shell_for(self, operation_label: str, audit_type: Type[AuditRecord] = AuditRecord) -> AuditRecord: ...


class DefaultAuditService:
    """Builds audit shells stamped with the context's actor and the current UTC time."""

    def audit_shell_for(self, operation_label: str, audit_type: Type[AuditRecord] = AuditRecord) -> AuditRecord:
        return audit_type(
            operation=operation_label,
            operated_by=get_current_actor(),
            operated_at=datetime.now(timezone.utc),
        )
