"""Dependency injection and application lifespan management."""

from __future__ import annotations

import os
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import TYPE_CHECKING, Annotated

import structlog
from fastapi import Depends, Request, Response

from peoplehub.adapters.auth.login_attempts import PostgresLoginAttemptRepository
from peoplehub.adapters.auth.postgres import PostgresAuthRepository
from peoplehub.adapters.db.app_db import AppDatabase
from peoplehub.adapters.db.tenant_scoped import TenantScopedDatabase
from peoplehub.adapters.oauth import OAuthProviderClient, github_config, google_config
from peoplehub.core.auth.encryption import EncryptionCodec
from peoplehub.core.auth.lockout import AccountLockoutService, LockoutConfig
from peoplehub.core.auth.oauth_pending import PendingOAuthStore
from peoplehub.core.auth.service import AuthService
from peoplehub.core.auth.session import MIN_SECRET_LENGTH, SessionStore
from peoplehub.core.exceptions import ConfigurationError
from peoplehub.entrypoints.api.cookies import HttpCookieStore
from peoplehub.services.absence import AbsenceService
from peoplehub.services.feedback import FeedbackService
from peoplehub.services.invitation import InvitationService
from peoplehub.services.notification import NotificationService
from peoplehub.services.organization import OrganizationService
from peoplehub.services.user import UserService

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()

_HEX_KEY = re.compile(r"^[0-9a-fA-F]{64}$")


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.database_url = os.getenv("DATABASE_URL", "")
        self.session_secret = os.getenv("SESSION_SECRET", "")
        self.encryption_key = os.getenv("ENCRYPTION_KEY", "")
        self.app_url = os.getenv("APP_URL", "http://localhost:3000").rstrip("/")
        self.app_env = os.getenv("APP_ENV", "development")

        self.google_client_id = os.getenv("GOOGLE_CLIENT_ID", "")
        self.google_client_secret = os.getenv("GOOGLE_CLIENT_SECRET", "")
        self.github_client_id = os.getenv("GITHUB_CLIENT_ID", "")
        self.github_client_secret = os.getenv("GITHUB_CLIENT_SECRET", "")

        self.login_attempt_retention_hours = int(os.getenv("LOGIN_ATTEMPT_RETENTION_HOURS", "24"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_json = os.getenv("LOG_JSON", "true").lower() in {"1", "true", "yes", "on"}

    @property
    def is_production(self) -> bool:
        """Whether cookies must be marked ``secure``."""
        return self.app_env == "production"

    def validate(self) -> None:
        """Check required settings.

        Raises:
            ConfigurationError: Listing every problem found.
        """
        problems = []
        if not self.database_url.startswith(("postgres://", "postgresql://")):
            problems.append("DATABASE_URL must be a postgres:// or postgresql:// URL")
        if len(self.session_secret) < MIN_SECRET_LENGTH:
            problems.append(f"SESSION_SECRET must be at least {MIN_SECRET_LENGTH} characters long")
        if not _HEX_KEY.match(self.encryption_key):
            problems.append(
                "ENCRYPTION_KEY must be a 64-character hex string (generate with: openssl rand -hex 32)"
            )
        if not self.app_url.startswith(("http://", "https://")):
            problems.append("APP_URL must be an http(s) URL")
        if self.is_production and not self.app_url.startswith("https://"):
            problems.append("APP_URL must use https in production")
        if problems:
            raise ConfigurationError("; ".join(problems))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    Refuses to start on invalid configuration, then opens the database pool.
    """
    settings: Settings = app.state.settings
    settings.validate()

    app_db = AppDatabase(settings.database_url)
    await app_db.connect()
    app.state.app_db = app_db
    logger.info("application_started", app_env=settings.app_env)

    yield

    await app_db.close()


# Infrastructure

def get_settings(request: Request) -> Settings:
    """Get settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


def get_app_db(request: Request) -> AppDatabase:
    """Get the application database from app state."""
    app_db: AppDatabase = request.app.state.app_db
    return app_db


def get_codec(settings: Annotated[Settings, Depends(get_settings)]) -> EncryptionCodec:
    """Encryption codec for the pending OAuth cookie."""
    return EncryptionCodec.from_hex(settings.encryption_key)


def get_oauth_client(request: Request) -> OAuthProviderClient:
    """OAuth provider client, built once per app."""
    client: OAuthProviderClient | None = getattr(request.app.state, "oauth_client", None)
    if client is None:
        settings = get_settings(request)
        client = OAuthProviderClient(
            [
                google_config(settings.google_client_id, settings.google_client_secret),
                github_config(settings.github_client_id, settings.github_client_secret),
            ]
        )
        request.app.state.oauth_client = client
    return client


def get_client_ip(request: Request) -> str | None:
    """Get client IP, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# Cookies and cookie-backed stores

def get_cookies(
    request: Request,
    response: Response,
    settings: Annotated[Settings, Depends(get_settings)],
) -> HttpCookieStore:
    """Cookie jar for the current request/response."""
    return HttpCookieStore(request, response, secure=settings.is_production)


def get_session_store(
    cookies: Annotated[HttpCookieStore, Depends(get_cookies)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> SessionStore:
    """Session cookie store."""
    return SessionStore(cookies, settings.session_secret)


def get_pending_store(
    cookies: Annotated[HttpCookieStore, Depends(get_cookies)],
    codec: Annotated[EncryptionCodec, Depends(get_codec)],
) -> PendingOAuthStore:
    """Pending OAuth cookie store."""
    return PendingOAuthStore(cookies, codec)


# Services

def get_lockout_service(
    app_db: Annotated[AppDatabase, Depends(get_app_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AccountLockoutService:
    """Login attempt tracker."""
    return AccountLockoutService(
        PostgresLoginAttemptRepository(app_db),
        LockoutConfig(retention=timedelta(hours=settings.login_attempt_retention_hours)),
    )


def get_auth_service(
    app_db: Annotated[AppDatabase, Depends(get_app_db)],
    lockout: Annotated[AccountLockoutService, Depends(get_lockout_service)],
) -> AuthService:
    """Auth service."""
    return AuthService(PostgresAuthRepository(app_db), lockout)


def get_organization_service(
    app_db: Annotated[AppDatabase, Depends(get_app_db)],
) -> OrganizationService:
    """Organization service."""
    return OrganizationService(app_db)


def get_tenant_db(app_db: Annotated[AppDatabase, Depends(get_app_db)]) -> TenantScopedDatabase:
    """Tenant-scoped repositories."""
    return TenantScopedDatabase(app_db)


def get_notification_service(
    tenant_db: Annotated[TenantScopedDatabase, Depends(get_tenant_db)],
) -> NotificationService:
    """Notification service."""
    return NotificationService(tenant_db)


def get_feedback_service(
    tenant_db: Annotated[TenantScopedDatabase, Depends(get_tenant_db)],
    notifications: Annotated[NotificationService, Depends(get_notification_service)],
) -> FeedbackService:
    """Feedback service."""
    return FeedbackService(tenant_db, notifications)


def get_absence_service(
    tenant_db: Annotated[TenantScopedDatabase, Depends(get_tenant_db)],
    notifications: Annotated[NotificationService, Depends(get_notification_service)],
) -> AbsenceService:
    """Absence service."""
    return AbsenceService(tenant_db, notifications)


def get_user_service(
    tenant_db: Annotated[TenantScopedDatabase, Depends(get_tenant_db)],
    codec: Annotated[EncryptionCodec, Depends(get_codec)],
) -> UserService:
    """Member profile service."""
    return UserService(tenant_db, codec)


def get_invitation_service(
    tenant_db: Annotated[TenantScopedDatabase, Depends(get_tenant_db)],
    app_db: Annotated[AppDatabase, Depends(get_app_db)],
) -> InvitationService:
    """Invitation service."""
    return InvitationService(tenant_db, app_db)
