"""Auth domain types."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr


class Role(str, Enum):
    """Organization roles. MANAGER is the elevated role."""

    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    COWORKER = "COWORKER"


class UserStatus(str, Enum):
    """Account lifecycle status."""

    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    SUSPENDED = "SUSPENDED"


class User(BaseModel):
    """User domain model."""

    id: UUID
    organization_id: UUID
    email: EmailStr
    name: str
    role: Role = Role.EMPLOYEE
    password_hash: str | None = None  # None for OAuth-only users
    avatar: str | None = None
    email_verified: bool = False
    status: UserStatus = UserStatus.ACTIVE
    created_at: datetime
    deleted_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        """Whether the user may sign in."""
        return self.status == UserStatus.ACTIVE and self.deleted_at is None


class Organization(BaseModel):
    """Organization (tenant) domain model."""

    id: UUID
    name: str
    slug: str
    domain: str | None = None
    created_at: datetime


class OAuthAccount(BaseModel):
    """A provider identity linked to a user."""

    id: UUID
    user_id: UUID
    provider: str
    provider_account_id: str


class SessionData(BaseModel):
    """Claims carried by the session cookie."""

    user_id: UUID
    email: str
    role: Role
    organization_id: UUID
    organization_slug: str

    @property
    def id(self) -> UUID:
        """Alias so a session can be passed as a permission actor."""
        return self.user_id


class PendingOAuthData(BaseModel):
    """Provider identity held between the OAuth callback and registration."""

    email: str
    name: str
    provider: str
    provider_id: str
    avatar: str | None = None
    org: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    id_token: str | None = None

    def public_view(self) -> dict[str, str | None]:
        """Fields that are safe to hand to the browser (no provider tokens)."""
        return {
            "email": self.email,
            "name": self.name,
            "provider": self.provider,
            "provider_id": self.provider_id,
            "org": self.org,
            "avatar": self.avatar,
        }


class LoginAttempt(BaseModel):
    """A row of the append-only login attempt log."""

    id: UUID
    email: str
    successful: bool
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime


class LockoutStatus(BaseModel):
    """Derived lockout state for an account."""

    is_locked: bool
    remaining_attempts: int
    failed_attempts: int
    lockout_ends_at: datetime | None = None


class OAuthTokens(BaseModel):
    """Tokens returned by a provider's code exchange."""

    access_token: str
    refresh_token: str | None = None
    id_token: str | None = None
    expires_in: int | None = None
    scope: str | None = None


class OAuthUserInfo(BaseModel):
    """Provider profile, normalized across providers."""

    provider_account_id: str
    email: str
    name: str
    picture: str | None = None
    email_verified: bool = False
