"""Request-scoped tenant context.

The active organization is held in a ``ContextVar``. asyncio copies the
current context into every task it creates, so each request handler sees only
its own binding even when many requests share the event loop.
"""

from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import ParamSpec, TypeVar
from uuid import UUID

from peoplehub.core.exceptions import TenantContextError

P = ParamSpec("P")
R = TypeVar("R")


@dataclass(frozen=True)
class TenantContext:
    """The organization a request is acting on behalf of."""

    organization_id: UUID
    organization_slug: str
    organization_name: str


_current_tenant: ContextVar[TenantContext | None] = ContextVar("current_tenant", default=None)


@contextmanager
def tenant_scope(context: TenantContext) -> Iterator[TenantContext]:
    """Bind ``context`` for the duration of the block.

    The previous binding is restored on exit, including when the block raises,
    so nested scopes behave like a stack.
    """
    token = _current_tenant.set(context)
    try:
        yield context
    finally:
        _current_tenant.reset(token)


def run(context: TenantContext, fn: Callable[P, R], *args: P.args, **kwargs: P.kwargs) -> R:
    """Call ``fn`` with ``context`` bound."""
    with tenant_scope(context):
        return fn(*args, **kwargs)


async def run_async(
    context: TenantContext,
    fn: Callable[P, Awaitable[R]],
    *args: P.args,
    **kwargs: P.kwargs,
) -> R:
    """Await ``fn`` with ``context`` bound."""
    with tenant_scope(context):
        return await fn(*args, **kwargs)


def current() -> TenantContext:
    """Return the bound tenant context.

    Raises:
        TenantContextError: If no tenant context is bound.
    """
    context = _current_tenant.get()
    if context is None:
        raise TenantContextError()
    return context


def current_or_none() -> TenantContext | None:
    """Return the bound tenant context, or None outside a tenant scope."""
    return _current_tenant.get()


def has_context() -> bool:
    """Check whether a tenant context is bound."""
    return _current_tenant.get() is not None
