"""Auth repository protocol for database operations.

Login and OAuth registration run before any tenant is known, so these
lookups are deliberately not tenant-scoped.
"""

from typing import Protocol, runtime_checkable
from uuid import UUID

from peoplehub.core.auth.types import (
    OAuthAccount,
    OAuthTokens,
    Organization,
    PendingOAuthData,
    User,
)


@runtime_checkable
class AuthRepository(Protocol):
    """Protocol for auth database operations.

    Implementations provide actual database access (PostgreSQL, etc).
    """

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get a live user by ID."""
        ...

    async def get_user_by_email(self, email: str) -> User | None:
        """Get the first live user with this email, in any organization."""
        ...

    async def get_user_in_organization(self, organization_id: UUID, email: str) -> User | None:
        """Get a live user by email within one organization."""
        ...

    async def record_login(self, user_id: UUID) -> None:
        """Stamp ``last_login_at``."""
        ...

    async def record_oauth_login(self, user_id: UUID, picture: str | None) -> None:
        """Stamp the login and mark the email verified (provider-asserted)."""
        ...

    # Organization operations
    async def get_organization_by_id(self, organization_id: UUID) -> Organization | None:
        """Get organization by ID."""
        ...

    async def get_organization_by_slug(self, slug: str) -> Organization | None:
        """Get organization by slug."""
        ...

    async def get_organization_by_domain(self, domain: str) -> Organization | None:
        """Get the organization claiming an email domain."""
        ...

    # OAuth account operations
    async def get_oauth_account(
        self, user_id: UUID, provider: str, provider_account_id: str
    ) -> OAuthAccount | None:
        """Get the user's link to a provider identity."""
        ...

    async def create_oauth_account(
        self, user_id: UUID, provider: str, provider_account_id: str, tokens: OAuthTokens
    ) -> OAuthAccount:
        """Link a provider identity to an existing user."""
        ...

    async def update_oauth_tokens(self, account_id: UUID, tokens: OAuthTokens) -> None:
        """Replace the stored provider tokens."""
        ...

    # Registration (single transaction each)
    async def create_organization_with_owner(
        self, name: str, slug: str, pending: PendingOAuthData
    ) -> tuple[Organization, User]:
        """Create organization, MANAGER user and OAuth link atomically."""
        ...

    async def create_member_with_oauth(
        self, organization_id: UUID, pending: PendingOAuthData
    ) -> User:
        """Create an EMPLOYEE user and OAuth link atomically."""
        ...
