"""Tenant bound to the running request or command.

`tenant_scope` opens a scope (the middleware opens one per request) and
`bind_tenant` sets the tenant inside it once the credential is verified.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Iterator, Optional

if TYPE_CHECKING:
    from accounts.models import Tenant


_current_tenant: ContextVar[Optional["Tenant"]] = ContextVar("current_tenant", default=None)


def get_current_tenant() -> Optional["Tenant"]:
    return _current_tenant.get()


def bind_tenant(tenant: Optional["Tenant"]) -> None:
    _current_tenant.set(tenant)


@contextmanager
def tenant_scope(tenant: Optional["Tenant"] = None) -> Iterator[Optional["Tenant"]]:
    token = _current_tenant.set(tenant)
    try:
        yield tenant
    finally:
        _current_tenant.reset(token)
