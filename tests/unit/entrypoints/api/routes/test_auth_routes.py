"""Tests for the password login, session and pending OAuth routes."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from peoplehub.core.auth.oauth_pending import PENDING_OAUTH_COOKIE
from peoplehub.core.auth.service import AuthResult, AuthService
from peoplehub.core.auth.session import SESSION_COOKIE
from peoplehub.core.auth.types import Organization, PendingOAuthData, SessionData, User
from peoplehub.core.exceptions import (
    AccountLockedError,
    AuthorizationError,
    ConflictError,
    OAuthSessionMismatchError,
)
from peoplehub.entrypoints.api.deps import get_auth_service
from tests.fixtures.api import cookie_cleared, pending_cookie, session_cookie


@pytest.fixture
def auth_service(api_app: FastAPI) -> AsyncMock:
    """Replace the auth service with a mock."""
    service = AsyncMock(spec=AuthService)
    api_app.dependency_overrides[get_auth_service] = lambda: service
    return service


@pytest.fixture
def auth_result(sample_user: User, sample_organization: Organization) -> AuthResult:
    """Return a successful sign-in."""
    return AuthResult(user=sample_user, organization=sample_organization)


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_success_sets_session(
        self, client: TestClient, auth_service: AsyncMock, auth_result: AuthResult
    ) -> None:
        """A successful login returns the user and sets the session cookie."""
        auth_service.login.return_value = auth_result

        response = client.post(
            "/api/auth/login",
            json={"email": "jane@acme.io", "password": "correct horse"},
            headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1", "User-Agent": "pytest"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["user"]["email"] == "jane@acme.io"
        assert body["organization"]["slug"] == "acme"
        assert SESSION_COOKIE in response.cookies
        auth_service.login.assert_awaited_once_with(
            email="jane@acme.io",
            password="correct horse",
            ip_address="203.0.113.9",
            user_agent="pytest",
        )

    def test_invalid_credentials(self, client: TestClient, auth_service: AsyncMock) -> None:
        """Failures are 401 with the generic message."""
        auth_service.login.side_effect = AuthorizationError("Invalid email or password")

        response = client.post(
            "/api/auth/login", json={"email": "jane@acme.io", "password": "wrong"}
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid email or password"}
        assert SESSION_COOKIE not in response.cookies

    def test_locked(self, client: TestClient, auth_service: AsyncMock) -> None:
        """Lockouts are 429."""
        auth_service.login.side_effect = AccountLockedError(
            "Account temporarily locked. Please try again in 15 minute(s)."
        )

        response = client.post(
            "/api/auth/login", json={"email": "jane@acme.io", "password": "whatever"}
        )

        assert response.status_code == 429
        assert "15 minute(s)" in response.json()["detail"]

    def test_malformed_body(self, client: TestClient, auth_service: AsyncMock) -> None:
        """Bodies without a valid email never reach the service."""
        response = client.post("/api/auth/login", json={"email": "nope", "password": "x"})

        assert response.status_code == 400
        assert set(response.json()["fields"]) == {"email"}
        auth_service.login.assert_not_awaited()


class TestSession:
    """Tests for /api/auth/me and /api/auth/logout."""

    def test_me_requires_session(self, client: TestClient, auth_service: AsyncMock) -> None:
        """No cookie, no user."""
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        auth_service.get_session_user.assert_not_awaited()

    def test_me(
        self,
        client: TestClient,
        auth_service: AsyncMock,
        auth_result: AuthResult,
        employee_session: SessionData,
    ) -> None:
        """The current user and organization are returned."""
        auth_service.get_session_user.return_value = auth_result
        client.cookies.set(SESSION_COOKIE, session_cookie(employee_session))

        response = client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json()["user"]["id"] == str(auth_result.user.id)
        called_with = auth_service.get_session_user.await_args.args[0]
        assert called_with.user_id == employee_session.user_id

    def test_me_clears_stale_session(
        self,
        client: TestClient,
        auth_service: AsyncMock,
        employee_session: SessionData,
    ) -> None:
        """A session for a removed account is rejected and cleared."""
        auth_service.get_session_user.side_effect = AuthorizationError()
        client.cookies.set(SESSION_COOKIE, session_cookie(employee_session))

        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert cookie_cleared(response.headers, SESSION_COOKIE)

    def test_tampered_cookie_is_cleared(
        self, client: TestClient, auth_service: AsyncMock, employee_session: SessionData
    ) -> None:
        """A cookie with a bad signature is rejected and deleted."""
        token = session_cookie(employee_session)
        client.cookies.set(SESSION_COOKIE, token[:-2] + ("AA" if token[-2:] != "AA" else "BB"))

        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert cookie_cleared(response.headers, SESSION_COOKIE)

    def test_logout(self, client: TestClient, employee_session: SessionData) -> None:
        """Logout clears the cookie and always succeeds."""
        client.cookies.set(SESSION_COOKIE, session_cookie(employee_session))

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert cookie_cleared(response.headers, SESSION_COOKIE)

    def test_logout_without_session(self, client: TestClient) -> None:
        """Logging out twice is fine."""
        assert client.post("/api/auth/logout").status_code == 200


class TestPendingOAuth:
    """Tests for the pending OAuth routes."""

    def test_none_pending(self, client: TestClient) -> None:
        """404 without a pending cookie."""
        assert client.get("/api/auth/pending-oauth").status_code == 404

    def test_pending_hides_tokens(
        self, client: TestClient, sample_pending: PendingOAuthData
    ) -> None:
        """Only the public identity fields are returned."""
        client.cookies.set(PENDING_OAUTH_COOKIE, pending_cookie(sample_pending))

        response = client.get("/api/auth/pending-oauth")

        assert response.status_code == 200
        body = response.json()
        assert body["email"] == "new.hire@acme.io"
        assert body["provider_id"] == "google-123"
        assert "access_token" not in body
        assert "refresh_token" not in body

    def test_unreadable_pending_is_cleared(self, client: TestClient) -> None:
        """Garbage cookies are 400 and deleted."""
        client.cookies.set(PENDING_OAUTH_COOKIE, "not-a-real-cookie")

        response = client.get("/api/auth/pending-oauth")

        assert response.status_code == 400
        assert cookie_cleared(response.headers, PENDING_OAUTH_COOKIE)

    def test_clear_pending(self, client: TestClient, sample_pending: PendingOAuthData) -> None:
        """DELETE removes the cookie."""
        client.cookies.set(PENDING_OAUTH_COOKIE, pending_cookie(sample_pending))

        response = client.delete("/api/auth/pending-oauth")

        assert response.status_code == 200
        assert cookie_cleared(response.headers, PENDING_OAUTH_COOKIE)

    def test_complete_registration_requires_pending(
        self, client: TestClient, auth_service: AsyncMock
    ) -> None:
        """Registration without a pending identity is 401."""
        response = client.post(
            "/api/auth/complete-oauth-registration", json={"organization_name": "Acme"}
        )

        assert response.status_code == 401
        auth_service.complete_oauth_registration.assert_not_awaited()

    def test_complete_registration(
        self,
        client: TestClient,
        auth_service: AsyncMock,
        auth_result: AuthResult,
        sample_pending: PendingOAuthData,
    ) -> None:
        """The organization is created, the session set and the pending cookie dropped."""
        auth_service.complete_oauth_registration.return_value = auth_result
        client.cookies.set(PENDING_OAUTH_COOKIE, pending_cookie(sample_pending))

        response = client.post(
            "/api/auth/complete-oauth-registration", json={"organization_name": "Acme"}
        )

        assert response.status_code == 200
        pending, name = auth_service.complete_oauth_registration.await_args.args
        assert pending.access_token == "ya29.access"
        assert name == "Acme"
        assert SESSION_COOKIE in response.cookies
        assert cookie_cleared(response.headers, PENDING_OAUTH_COOKIE)

    def test_complete_registration_conflict(
        self,
        client: TestClient,
        auth_service: AsyncMock,
        sample_pending: PendingOAuthData,
    ) -> None:
        """Taken names are 409 and the pending cookie survives."""
        auth_service.complete_oauth_registration.side_effect = ConflictError("taken")
        client.cookies.set(PENDING_OAUTH_COOKIE, pending_cookie(sample_pending))

        response = client.post(
            "/api/auth/complete-oauth-registration", json={"organization_name": "Acme"}
        )

        assert response.status_code == 409
        assert not cookie_cleared(response.headers, PENDING_OAUTH_COOKIE)

    def test_join_mismatch(
        self,
        client: TestClient,
        auth_service: AsyncMock,
        sample_pending: PendingOAuthData,
    ) -> None:
        """An identity that differs from the cookie is 401."""
        auth_service.join_via_oauth.side_effect = OAuthSessionMismatchError()
        client.cookies.set(PENDING_OAUTH_COOKIE, pending_cookie(sample_pending))

        response = client.post(
            "/api/auth/join-via-oauth",
            json={
                "email": "someone.else@acme.io",
                "name": "New Hire",
                "organization_slug": "acme",
                "provider": "google",
                "provider_id": "google-123",
            },
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Session mismatch. Please try signing in again."

    def test_join(
        self,
        client: TestClient,
        auth_service: AsyncMock,
        auth_result: AuthResult,
        sample_pending: PendingOAuthData,
    ) -> None:
        """Joining passes the submitted identity and starts a session."""
        auth_service.join_via_oauth.return_value = auth_result
        client.cookies.set(PENDING_OAUTH_COOKIE, pending_cookie(sample_pending))

        response = client.post(
            "/api/auth/join-via-oauth",
            json={
                "email": "new.hire@acme.io",
                "name": "New Hire",
                "organization_slug": "acme",
                "provider": "google",
                "provider_id": "google-123",
            },
        )

        assert response.status_code == 200
        kwargs = auth_service.join_via_oauth.await_args.kwargs
        assert kwargs["organization_slug"] == "acme"
        assert kwargs["provider_id"] == "google-123"
        assert SESSION_COOKIE in response.cookies

    def test_join_missing_fields(
        self,
        client: TestClient,
        auth_service: AsyncMock,
        sample_pending: PendingOAuthData,
    ) -> None:
        """Incomplete join forms are 400 with the missing fields named."""
        client.cookies.set(PENDING_OAUTH_COOKIE, pending_cookie(sample_pending))

        response = client.post("/api/auth/join-via-oauth", json={"email": "new.hire@acme.io"})

        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Invalid request"
        assert set(body["fields"]) == {"name", "organization_slug", "provider", "provider_id"}
        auth_service.join_via_oauth.assert_not_awaited()
