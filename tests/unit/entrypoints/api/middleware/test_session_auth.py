"""Tests for the session and tenant dependencies."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from peoplehub.core.auth.session import SESSION_COOKIE, SessionStore
from peoplehub.core.auth.types import SessionData
from peoplehub.core.exceptions import AuthorizationError
from peoplehub.core.tenancy import TenantContext, current, current_or_none
from peoplehub.entrypoints.api.middleware.session_auth import (
    optional_session,
    require_session,
    require_tenant_session,
)
from peoplehub.services.organization import OrganizationService
from tests.fixtures.api import session_cookie
from tests.fixtures.mocks import TEST_SECRET, InMemoryCookieStore


def _store(session: SessionData | None = None) -> SessionStore:
    initial = {SESSION_COOKIE: session_cookie(session)} if session else {}
    return SessionStore(InMemoryCookieStore(initial), TEST_SECRET)


class TestRequireSession:
    """Tests for require_session and optional_session."""

    async def test_valid_session(self, employee_session: SessionData) -> None:
        """The session claims are returned."""
        session = await require_session(_store(employee_session))

        assert session.user_id == employee_session.user_id
        assert session.role == employee_session.role

    async def test_missing_session(self) -> None:
        """No cookie is 401."""
        with pytest.raises(AuthorizationError):
            await require_session(_store())

    async def test_optional_session(self, employee_session: SessionData) -> None:
        """Anonymous callers get None instead of an error."""
        assert await optional_session(_store()) is None
        assert await optional_session(_store(employee_session)) is not None


class TestRequireTenantSession:
    """Tests for require_tenant_session."""

    async def test_binds_tenant_for_the_request(
        self, employee_session: SessionData, tenant: TenantContext
    ) -> None:
        """The organization is bound while the request runs and released afterwards."""
        organizations = MagicMock(spec=OrganizationService)
        organizations.resolve_tenant = AsyncMock(return_value=tenant)

        dependency = require_tenant_session(employee_session, organizations)
        session = await dependency.__anext__()

        assert session is employee_session
        assert current() == tenant

        await dependency.aclose()
        assert current_or_none() is None

    async def test_missing_organization(self, employee_session: SessionData) -> None:
        """Nothing is bound when the organization cannot be resolved."""
        organizations = MagicMock(spec=OrganizationService)
        organizations.resolve_tenant = AsyncMock(side_effect=AuthorizationError())

        dependency = require_tenant_session(employee_session, organizations)
        with pytest.raises(AuthorizationError):
            await dependency.__anext__()

        assert current_or_none() is None
