"""Session authentication and tenant binding dependencies."""

from collections.abc import AsyncIterator
from typing import Annotated

import structlog
from fastapi import Depends

from peoplehub.core.auth.session import SessionStore
from peoplehub.core.auth.types import SessionData
from peoplehub.core.exceptions import AuthorizationError
from peoplehub.core.tenancy import tenant_scope
from peoplehub.entrypoints.api.deps import get_organization_service, get_session_store
from peoplehub.services.organization import OrganizationService

logger = structlog.get_logger()


async def require_session(
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> SessionData:
    """Return the caller's session or reject the request with 401."""
    session = store.read()
    if session is None:
        raise AuthorizationError()
    structlog.contextvars.bind_contextvars(user_id=str(session.user_id))
    return session


async def optional_session(
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> SessionData | None:
    """Return the caller's session, or None when not signed in."""
    return store.read()


async def require_tenant_session(
    session: Annotated[SessionData, Depends(require_session)],
    organizations: Annotated[OrganizationService, Depends(get_organization_service)],
) -> AsyncIterator[SessionData]:
    """Authenticate and bind the session's organization as the tenant context.

    The binding lasts for the rest of the request and is restored afterwards.
    """
    tenant = await organizations.resolve_tenant(session)
    with tenant_scope(tenant):
        structlog.contextvars.bind_contextvars(org_id=str(tenant.organization_id))
        yield session
