"""PostgreSQL implementation of AuthRepository."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import asyncpg

from peoplehub.adapters.db.app_db import AppDatabase
from peoplehub.core.auth.types import (
    OAuthAccount,
    OAuthTokens,
    Organization,
    PendingOAuthData,
    Role,
    User,
)
from peoplehub.core.exceptions import ConflictError

# Provider tokens are assumed to live an hour when a refresh token is issued
TOKEN_LIFETIME = timedelta(hours=1)

PROVIDER_SCOPES = {
    "google": "openid email profile",
    "github": "read:user user:email",
}

_INSERT_USER = """
    INSERT INTO users
        (organization_id, email, name, role, avatar,
         email_verified, email_verified_at, status)
    VALUES ($1, $2, $3, $4, $5, true, NOW(), 'ACTIVE')
    RETURNING *
"""

_INSERT_OAUTH_ACCOUNT = """
    INSERT INTO oauth_accounts
        (user_id, provider, provider_account_id, access_token,
         refresh_token, id_token, token_expires_at, scope)
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
    RETURNING *
"""


def _token_expiry(refresh_token: str | None) -> datetime | None:
    return datetime.now(UTC) + TOKEN_LIFETIME if refresh_token else None


class PostgresAuthRepository:
    """PostgreSQL implementation of auth repository."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_user(self, row: dict[str, Any]) -> User:
        """Convert database row to User model."""
        return User(
            id=row["id"],
            organization_id=row["organization_id"],
            email=row["email"],
            name=row["name"],
            role=row.get("role", Role.EMPLOYEE),
            password_hash=row.get("password_hash"),
            avatar=row.get("avatar"),
            email_verified=row.get("email_verified", False),
            status=row.get("status", "ACTIVE"),
            created_at=row["created_at"],
            deleted_at=row.get("deleted_at"),
        )

    def _row_to_org(self, row: dict[str, Any]) -> Organization:
        """Convert database row to Organization model."""
        return Organization(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            domain=row.get("domain"),
            created_at=row["created_at"],
        )

    def _row_to_oauth_account(self, row: dict[str, Any]) -> OAuthAccount:
        """Convert database row to OAuthAccount model."""
        return OAuthAccount(
            id=row["id"],
            user_id=row["user_id"],
            provider=row["provider"],
            provider_account_id=row["provider_account_id"],
        )

    def _oauth_args(self, user_id: UUID, pending: PendingOAuthData) -> tuple[Any, ...]:
        return (
            user_id,
            pending.provider,
            pending.provider_id,
            pending.access_token,
            pending.refresh_token,
            pending.id_token,
            _token_expiry(pending.refresh_token),
            PROVIDER_SCOPES.get(pending.provider),
        )

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get a live user by ID."""
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE id = $1 AND deleted_at IS NULL",
            user_id,
        )
        return self._row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        """Get the first live user with this email, in any organization."""
        row = await self._db.fetch_one(
            """SELECT * FROM users
               WHERE lower(email) = lower($1) AND deleted_at IS NULL
               ORDER BY created_at
               LIMIT 1""",
            email,
        )
        return self._row_to_user(row) if row else None

    async def get_user_in_organization(self, organization_id: UUID, email: str) -> User | None:
        """Get a live user by email within one organization."""
        row = await self._db.fetch_one(
            """SELECT * FROM users
               WHERE organization_id = $1 AND lower(email) = lower($2)
                 AND deleted_at IS NULL""",
            organization_id,
            email,
        )
        return self._row_to_user(row) if row else None

    async def record_login(self, user_id: UUID) -> None:
        """Stamp ``last_login_at``."""
        await self._db.execute(
            "UPDATE users SET last_login_at = NOW(), updated_at = NOW() WHERE id = $1",
            user_id,
        )

    async def record_oauth_login(self, user_id: UUID, picture: str | None) -> None:
        """Stamp the login and mark the email verified; keep an existing avatar."""
        await self._db.execute(
            """UPDATE users SET
                   last_login_at = NOW(),
                   avatar = COALESCE(avatar, $2),
                   email_verified = true,
                   email_verified_at = COALESCE(email_verified_at, NOW()),
                   status = 'ACTIVE',
                   updated_at = NOW()
               WHERE id = $1""",
            user_id,
            picture,
        )

    # Organization operations
    async def get_organization_by_id(self, organization_id: UUID) -> Organization | None:
        """Get organization by ID."""
        row = await self._db.get_organization(organization_id)
        return self._row_to_org(row) if row else None

    async def get_organization_by_slug(self, slug: str) -> Organization | None:
        """Get organization by slug."""
        row = await self._db.get_organization_by_slug(slug)
        return self._row_to_org(row) if row else None

    async def get_organization_by_domain(self, domain: str) -> Organization | None:
        """Get the organization claiming an email domain."""
        row = await self._db.fetch_one(
            """SELECT * FROM organizations
               WHERE domain IS NOT NULL AND lower(domain) = lower($1)
                 AND deleted_at IS NULL
               LIMIT 1""",
            domain,
        )
        return self._row_to_org(row) if row else None

    # OAuth account operations
    async def get_oauth_account(
        self, user_id: UUID, provider: str, provider_account_id: str
    ) -> OAuthAccount | None:
        """Get the user's link to a provider identity."""
        row = await self._db.fetch_one(
            """SELECT * FROM oauth_accounts
               WHERE user_id = $1 AND provider = $2 AND provider_account_id = $3""",
            user_id,
            provider,
            provider_account_id,
        )
        return self._row_to_oauth_account(row) if row else None

    async def create_oauth_account(
        self, user_id: UUID, provider: str, provider_account_id: str, tokens: OAuthTokens
    ) -> OAuthAccount:
        """Link a provider identity to an existing user."""
        row = await self._db.execute_returning(
            _INSERT_OAUTH_ACCOUNT,
            user_id,
            provider,
            provider_account_id,
            tokens.access_token,
            tokens.refresh_token,
            tokens.id_token,
            _token_expiry(tokens.refresh_token),
            tokens.scope or PROVIDER_SCOPES.get(provider),
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_oauth_account(row)

    async def update_oauth_tokens(self, account_id: UUID, tokens: OAuthTokens) -> None:
        """Replace the stored provider tokens."""
        await self._db.execute(
            """UPDATE oauth_accounts SET
                   access_token = $2, refresh_token = $3, id_token = $4,
                   token_expires_at = $5, updated_at = NOW()
               WHERE id = $1""",
            account_id,
            tokens.access_token,
            tokens.refresh_token,
            tokens.id_token,
            _token_expiry(tokens.refresh_token),
        )

    # Registration
    async def create_organization_with_owner(
        self, name: str, slug: str, pending: PendingOAuthData
    ) -> tuple[Organization, User]:
        """Create organization, MANAGER user and OAuth link in one transaction.

        Raises:
            ConflictError: If the slug was taken concurrently.
        """
        try:
            async with self._db.transaction() as conn:
                org_row = await conn.fetchrow(
                    "INSERT INTO organizations (name, slug) VALUES ($1, $2) RETURNING *",
                    name,
                    slug,
                )
                user_row = await conn.fetchrow(
                    _INSERT_USER,
                    org_row["id"],
                    pending.email,
                    pending.name,
                    Role.MANAGER.value,
                    pending.avatar,
                )
                await conn.fetchrow(_INSERT_OAUTH_ACCOUNT, *self._oauth_args(user_row["id"], pending))
        except asyncpg.UniqueViolationError as e:
            raise ConflictError(
                "An organization with this name already exists. Please choose a different name."
            ) from e
        return self._row_to_org(dict(org_row)), self._row_to_user(dict(user_row))

    async def create_member_with_oauth(
        self, organization_id: UUID, pending: PendingOAuthData
    ) -> User:
        """Create an EMPLOYEE user and OAuth link in one transaction.

        Raises:
            ConflictError: If the user was created concurrently.
        """
        try:
            async with self._db.transaction() as conn:
                user_row = await conn.fetchrow(
                    _INSERT_USER,
                    organization_id,
                    pending.email,
                    pending.name,
                    Role.EMPLOYEE.value,
                    pending.avatar,
                )
                await conn.fetchrow(_INSERT_OAUTH_ACCOUNT, *self._oauth_args(user_row["id"], pending))
        except asyncpg.UniqueViolationError as e:
            raise ConflictError("You already have an account in this organization") from e
        return self._row_to_user(dict(user_row))
