"""Cookie-backed session store.

There is no server-side session table: the signed cookie is the session, so
integrity rests entirely on the signing secret. Rotating ``SESSION_SECRET``
invalidates every session at once.
"""

from datetime import datetime, timedelta, timezone
from typing import Literal, Protocol, runtime_checkable
from uuid import UUID

import jwt
import structlog
from pydantic import ValidationError as PydanticValidationError

from peoplehub.core.auth.types import Role, SessionData
from peoplehub.core.exceptions import ConfigurationError

logger = structlog.get_logger()

SESSION_COOKIE = "session"
SESSION_MAX_AGE_SECONDS = 60 * 60 * 24 * 7
MIN_SECRET_LENGTH = 32
ALGORITHM = "HS256"
TOKEN_TYPE = "session"

REQUIRED_CLAIMS = ("sub", "email", "role", "org_id", "org_slug")


@runtime_checkable
class CookieStore(Protocol):
    """Minimal cookie jar the auth core reads and writes through."""

    def get(self, name: str) -> str | None:
        """Return the cookie value, or None if absent."""
        ...

    def set(
        self,
        name: str,
        value: str,
        *,
        max_age: int,
        httponly: bool = True,
        samesite: Literal["lax", "strict", "none"] = "lax",
    ) -> None:
        """Set a cookie."""
        ...

    def delete(self, name: str) -> None:
        """Delete a cookie. Must not fail if it does not exist."""
        ...


class SessionStore:
    """Create, read and destroy the session cookie."""

    def __init__(self, cookies: CookieStore, secret: str | None) -> None:
        """Initialize the store.

        Args:
            cookies: Cookie jar for the current request/response.
            secret: Signing secret, at least 32 characters.

        Raises:
            ConfigurationError: If the secret is missing or too short.
        """
        if not secret or len(secret) < MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"SESSION_SECRET must be at least {MIN_SECRET_LENGTH} characters long"
            )
        self._cookies = cookies
        self._secret = secret

    def create(
        self,
        user_id: UUID,
        email: str,
        role: Role,
        organization_id: UUID,
        organization_slug: str,
    ) -> SessionData:
        """Write a new session, replacing any existing one."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "role": Role(role).value,
            "org_id": str(organization_id),
            "org_slug": organization_slug,
            "type": TOKEN_TYPE,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=SESSION_MAX_AGE_SECONDS)).timestamp()),
        }
        token = jwt.encode(payload, self._secret, algorithm=ALGORITHM)
        self._cookies.set(
            SESSION_COOKIE,
            token,
            max_age=SESSION_MAX_AGE_SECONDS,
            httponly=True,
            samesite="lax",
        )
        logger.debug("session_created", user_id=str(user_id), org_id=str(organization_id))
        return SessionData(
            user_id=user_id,
            email=email,
            role=Role(role),
            organization_id=organization_id,
            organization_slug=organization_slug,
        )

    def read(self) -> SessionData | None:
        """Return the current session, or None if absent or not fully valid.

        A cookie that fails verification is deleted so the browser does not
        keep resending it.
        """
        token = self._cookies.get(SESSION_COOKIE)
        if not token:
            return None

        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jwt.InvalidTokenError as e:
            logger.info("session_rejected", reason=type(e).__name__)
            self._cookies.delete(SESSION_COOKIE)
            return None

        if payload.get("type") != TOKEN_TYPE or any(not payload.get(c) for c in REQUIRED_CLAIMS):
            logger.info("session_rejected", reason="missing_claims")
            self._cookies.delete(SESSION_COOKIE)
            return None

        try:
            return SessionData(
                user_id=payload["sub"],
                email=payload["email"],
                role=payload["role"],
                organization_id=payload["org_id"],
                organization_slug=payload["org_slug"],
            )
        except PydanticValidationError:
            logger.info("session_rejected", reason="malformed_claims")
            self._cookies.delete(SESSION_COOKIE)
            return None

    def destroy(self) -> None:
        """Clear the session cookie."""
        self._cookies.delete(SESSION_COOKIE)
