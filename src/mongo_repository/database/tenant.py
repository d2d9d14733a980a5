"""
Tenant resolution.

A tenant resolver supplies a prefix and a suffix composed around an entity's base database name,
giving each tenant its own database. Without a resolver no tenant scoping is applied.
"""

from contextvars import ContextVar
from typing import Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class TenantResolver(Protocol):
    def prefix(self) -> str: ...

    def suffix(self) -> str: ...


class StaticTenantResolver:
    """Fixed prefix/suffix, e.g. one tenant per deployment."""

    def __init__(self, prefix: str = "", suffix: str = ""):
        self._prefix = prefix or ""
        self._suffix = suffix or ""

    def prefix(self) -> str:
        return self._prefix

    def suffix(self) -> str:
        return self._suffix


_current_tenant: ContextVar[Optional[Tuple[str, str]]] = ContextVar("current_tenant", default=None)


def set_current_tenant(prefix: str = "", suffix: str = ""):
    """Bind the tenant of the current task; returns the token for `reset_current_tenant`."""
    return _current_tenant.set((prefix or "", suffix or ""))


def reset_current_tenant(token) -> None:
    _current_tenant.reset(token)


class ContextTenantResolver:
    """
    Reads the tenant bound to the current context (request, task) with `set_current_tenant`.

    Repositories resolve their namespace at construction, so a repository must be built inside
    the tenant's context.
    """

    def prefix(self) -> str:
        tenant = _current_tenant.get()
        return tenant[0] if tenant else ""

    def suffix(self) -> str:
        tenant = _current_tenant.get()
        return tenant[1] if tenant else ""
