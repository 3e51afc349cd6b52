"""Tenant context propagation."""

from peoplehub.core.tenancy.context import (
    TenantContext,
    current,
    current_or_none,
    has_context,
    run,
    run_async,
    tenant_scope,
)

__all__ = [
    "TenantContext",
    "current",
    "current_or_none",
    "has_context",
    "run",
    "run_async",
    "tenant_scope",
]
