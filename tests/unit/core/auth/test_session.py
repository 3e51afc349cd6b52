"""Unit tests for the cookie-backed session store."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
import pytest

from peoplehub.core.auth.session import (
    SESSION_COOKIE,
    SESSION_MAX_AGE_SECONDS,
    SessionStore,
)
from peoplehub.core.auth.types import Role
from peoplehub.core.exceptions import ConfigurationError
from tests.fixtures.mocks import TEST_SECRET, InMemoryCookieStore


def _claims(**overrides: object) -> dict[str, object]:
    now = datetime.now(UTC)
    claims: dict[str, object] = {
        "sub": str(uuid.uuid4()),
        "email": "jane@acme.io",
        "role": "MANAGER",
        "org_id": str(uuid.uuid4()),
        "org_slug": "acme",
        "type": "session",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=1)).timestamp()),
    }
    claims.update(overrides)
    return claims


class TestSessionStore:
    """Tests for SessionStore."""

    @pytest.fixture
    def store(self, cookies: InMemoryCookieStore) -> SessionStore:
        """Return a session store over the test cookie jar."""
        return SessionStore(cookies, TEST_SECRET)

    @pytest.mark.parametrize("secret", [None, "", "x" * 31])
    def test_rejects_short_secret(self, cookies: InMemoryCookieStore, secret: str | None) -> None:
        """Secrets under 32 characters are a configuration error."""
        with pytest.raises(ConfigurationError):
            SessionStore(cookies, secret)

    def test_create_then_read(self, store: SessionStore, cookies: InMemoryCookieStore) -> None:
        """A created session reads back with the same claims."""
        user_id, org_id = uuid.uuid4(), uuid.uuid4()

        created = store.create(user_id, "jane@acme.io", Role.MANAGER, org_id, "acme")
        session = store.read()

        assert session == created
        assert session is not None
        assert session.user_id == user_id
        assert session.organization_id == org_id
        assert session.role == Role.MANAGER
        assert cookies.attributes[SESSION_COOKIE] == {
            "max_age": SESSION_MAX_AGE_SECONDS,
            "httponly": True,
            "samesite": "lax",
        }

    def test_create_replaces_existing(self, store: SessionStore) -> None:
        """Creating a session again overwrites the previous one."""
        store.create(uuid.uuid4(), "a@acme.io", Role.EMPLOYEE, uuid.uuid4(), "acme")
        second = store.create(uuid.uuid4(), "b@acme.io", Role.MANAGER, uuid.uuid4(), "globex")

        assert store.read() == second

    def test_read_without_cookie(self, store: SessionStore) -> None:
        """No cookie means no session."""
        assert store.read() is None

    def test_destroy(self, store: SessionStore, cookies: InMemoryCookieStore) -> None:
        """Destroy clears the cookie."""
        store.create(uuid.uuid4(), "a@acme.io", Role.EMPLOYEE, uuid.uuid4(), "acme")

        store.destroy()

        assert store.read() is None
        assert SESSION_COOKIE in cookies.deleted

    def test_destroy_without_session(self, store: SessionStore) -> None:
        """Destroy is safe when there is no session."""
        store.destroy()

    def test_wrong_signature_is_rejected_and_deleted(self, cookies: InMemoryCookieStore) -> None:
        """A token signed with another secret is absent and removed."""
        cookies.values[SESSION_COOKIE] = jwt.encode(_claims(), "o" * 40, algorithm="HS256")

        assert SessionStore(cookies, TEST_SECRET).read() is None
        assert SESSION_COOKIE in cookies.deleted

    def test_expired_token_is_rejected(self, cookies: InMemoryCookieStore) -> None:
        """Expired sessions are absent."""
        expired = _claims(exp=int((datetime.now(UTC) - timedelta(seconds=5)).timestamp()))
        cookies.values[SESSION_COOKIE] = jwt.encode(expired, TEST_SECRET, algorithm="HS256")

        assert SessionStore(cookies, TEST_SECRET).read() is None

    @pytest.mark.parametrize("missing", ["sub", "email", "role", "org_id", "org_slug"])
    def test_missing_claim_is_rejected(self, cookies: InMemoryCookieStore, missing: str) -> None:
        """Every claim is required."""
        claims = _claims()
        del claims[missing]
        cookies.values[SESSION_COOKIE] = jwt.encode(claims, TEST_SECRET, algorithm="HS256")

        assert SessionStore(cookies, TEST_SECRET).read() is None
        assert SESSION_COOKIE in cookies.deleted

    def test_wrong_token_type_is_rejected(self, cookies: InMemoryCookieStore) -> None:
        """Tokens of another type signed with the same secret are not sessions."""
        cookies.values[SESSION_COOKIE] = jwt.encode(
            _claims(type="access"), TEST_SECRET, algorithm="HS256"
        )

        assert SessionStore(cookies, TEST_SECRET).read() is None

    def test_unknown_role_is_rejected(self, cookies: InMemoryCookieStore) -> None:
        """A role outside the enum invalidates the session."""
        cookies.values[SESSION_COOKIE] = jwt.encode(
            _claims(role="ADMIN"), TEST_SECRET, algorithm="HS256"
        )

        assert SessionStore(cookies, TEST_SECRET).read() is None

    def test_garbage_cookie(self, cookies: InMemoryCookieStore) -> None:
        """A non-JWT cookie is absent."""
        cookies.values[SESSION_COOKIE] = "not-a-jwt"

        assert SessionStore(cookies, TEST_SECRET).read() is None
