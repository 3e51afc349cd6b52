"""Auth service for password login and OAuth onboarding."""

import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

import structlog

from peoplehub.core.auth.lockout import AccountLockoutService
from peoplehub.core.auth.password import verify_password
from peoplehub.core.auth.repository import AuthRepository
from peoplehub.core.auth.types import (
    OAuthTokens,
    OAuthUserInfo,
    Organization,
    PendingOAuthData,
    SessionData,
    User,
)
from peoplehub.core.exceptions import (
    AccountLockedError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    OAuthSessionMismatchError,
    ValidationError,
)

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password"
MAX_SLUG_LENGTH = 50


def generate_slug(name: str) -> str:
    """Generate URL-safe slug from name (``"Acme Corp & Co."`` -> ``"acme-corp-co"``)."""
    slug = name.lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = slug.strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


@dataclass(frozen=True)
class AuthResult:
    """An authenticated user and the organization the session is bound to."""

    user: User
    organization: Organization


class OAuthNextStep(str, Enum):
    """Where the OAuth callback sends the browser."""

    LOGIN = "login"
    JOIN = "join"
    REGISTER = "register"


@dataclass(frozen=True)
class OAuthCallbackResult:
    """Outcome of a provider callback.

    ``auth`` is set for LOGIN; ``pending`` is set for JOIN and REGISTER.
    """

    next_step: OAuthNextStep
    auth: AuthResult | None = None
    pending: PendingOAuthData | None = None


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        repo: AuthRepository,
        lockout: AccountLockoutService,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize with auth repository.

        Args:
            repo: Auth repository for database operations.
            lockout: Login attempt tracker.
            clock: Current time source for lockout messages.
        """
        self._repo = repo
        self._lockout = lockout
        self._clock = clock or (lambda: datetime.now(UTC))

    async def login(
        self,
        email: str,
        password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthResult:
        """Authenticate with email and password.

        Every credential failure is recorded and reported with the same
        generic message, whether or not the account exists.

        Raises:
            AccountLockedError: If the address or the account is locked out.
            AuthorizationError: If authentication fails.
        """
        if await self._lockout.check_ip_lockout(ip_address):
            raise AccountLockedError(
                "Too many failed login attempts from this address. Please try again later."
            )

        status = await self._lockout.check_account_lockout(email)
        if status.is_locked:
            raise AccountLockedError(self._locked_message(status.lockout_ends_at))

        user = await self._repo.get_user_by_email(email)
        organization = None
        if user is not None and user.is_active and verify_password(password, user.password_hash):
            organization = await self._repo.get_organization_by_id(user.organization_id)

        if user is None or organization is None:
            await self._lockout.record_login_attempt(email, False, ip_address, user_agent)
            logger.info("login_failed", email=email.lower(), ip_address=ip_address)
            raise AuthorizationError(INVALID_CREDENTIALS)

        await self._lockout.record_login_attempt(email, True, ip_address, user_agent)
        await self._repo.record_login(user.id)
        logger.info("login_succeeded", user_id=str(user.id), org_id=str(organization.id))
        return AuthResult(user=user, organization=organization)

    def _locked_message(self, lockout_ends_at: datetime | None) -> str:
        if lockout_ends_at is None:
            return AccountLockedError.default_message
        minutes = max(1, math.ceil((lockout_ends_at - self._clock()).total_seconds() / 60))
        return f"Account temporarily locked. Please try again in {minutes} minute(s)."

    async def handle_oauth_callback(
        self,
        provider: str,
        tokens: OAuthTokens,
        info: OAuthUserInfo,
        requested_organization: str | None = None,
    ) -> OAuthCallbackResult:
        """Resolve a provider identity to a login or an onboarding step.

        Existing users are logged in and their provider link refreshed. New
        users are sent to join an organization when their email domain is
        claimed by one (or they started from an organization's join link),
        otherwise to create their own.
        """
        user = await self._repo.get_user_by_email(info.email)
        if user is not None:
            account = await self._repo.get_oauth_account(user.id, provider, info.provider_account_id)
            if account is None:
                await self._repo.create_oauth_account(
                    user.id, provider, info.provider_account_id, tokens
                )
                logger.info("oauth_account_linked", user_id=str(user.id), provider=provider)
            else:
                await self._repo.update_oauth_tokens(account.id, tokens)

            await self._repo.record_oauth_login(user.id, info.picture)
            organization = await self._repo.get_organization_by_id(user.organization_id)
            if organization is None:
                raise NotFoundError("Organization not found")
            logger.info("oauth_login_succeeded", user_id=str(user.id), provider=provider)
            return OAuthCallbackResult(
                next_step=OAuthNextStep.LOGIN,
                auth=AuthResult(user=user, organization=organization),
            )

        pending = PendingOAuthData(
            email=info.email,
            name=info.name,
            provider=provider,
            provider_id=info.provider_account_id,
            avatar=info.picture,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            id_token=tokens.id_token,
        )

        domain = info.email.rpartition("@")[2]
        target = await self._repo.get_organization_by_domain(domain) if domain else None
        if target is None and requested_organization:
            target = await self._repo.get_organization_by_slug(requested_organization)

        if target is not None:
            logger.info("oauth_join_suggested", provider=provider, org_slug=target.slug)
            return OAuthCallbackResult(
                next_step=OAuthNextStep.JOIN,
                pending=pending.model_copy(update={"org": target.slug}),
            )

        logger.info("oauth_registration_started", provider=provider)
        return OAuthCallbackResult(next_step=OAuthNextStep.REGISTER, pending=pending)

    async def complete_oauth_registration(
        self, pending: PendingOAuthData, organization_name: str
    ) -> AuthResult:
        """Create a new organization with the pending identity as its first MANAGER.

        Raises:
            ValidationError: If the name yields an empty slug.
            ConflictError: If the email already has an account or the slug is taken.
        """
        name = organization_name.strip()
        if not name:
            raise ValidationError("Organization name is required")
        slug = generate_slug(name)
        if not slug:
            raise ValidationError("Organization name must contain letters or digits")

        if await self._repo.get_user_by_email(pending.email) is not None:
            raise ConflictError("An account with this email already exists")

        if await self._repo.get_organization_by_slug(slug) is not None:
            raise ConflictError(
                "An organization with this name already exists. Please choose a different name."
            )

        organization, user = await self._repo.create_organization_with_owner(name, slug, pending)
        logger.info(
            "organization_registered",
            org_id=str(organization.id),
            slug=slug,
            user_id=str(user.id),
            provider=pending.provider,
        )
        return AuthResult(user=user, organization=organization)

    async def join_via_oauth(
        self,
        pending: PendingOAuthData,
        email: str,
        provider: str,
        provider_id: str,
        organization_slug: str,
    ) -> AuthResult:
        """Join an existing organization as an EMPLOYEE.

        The submitted identity must match the pending cookie; provider tokens
        are taken from the cookie only.

        Raises:
            OAuthSessionMismatchError: If the submitted identity differs.
            NotFoundError: If the organization does not exist.
            ConflictError: If the user is already a member.
        """
        if (
            pending.email != email
            or pending.provider != provider
            or pending.provider_id != provider_id
        ):
            logger.warning("oauth_session_mismatch", provider=provider)
            raise OAuthSessionMismatchError()

        organization = await self._repo.get_organization_by_slug(organization_slug)
        if organization is None:
            raise NotFoundError("Organization not found")

        if await self._repo.get_user_in_organization(organization.id, pending.email) is not None:
            raise ConflictError("You already have an account in this organization")

        user = await self._repo.create_member_with_oauth(organization.id, pending)
        logger.info(
            "organization_joined",
            org_id=str(organization.id),
            user_id=str(user.id),
            provider=provider,
        )
        return AuthResult(user=user, organization=organization)

    async def get_session_user(self, session: SessionData) -> AuthResult:
        """Load the user and organization behind a session.

        Raises:
            AuthorizationError: If either no longer exists or the user is inactive.
        """
        user = await self._repo.get_user_by_id(session.user_id)
        if user is None or not user.is_active or user.organization_id != session.organization_id:
            raise AuthorizationError()
        organization = await self._repo.get_organization_by_id(session.organization_id)
        if organization is None:
            raise AuthorizationError()
        return AuthResult(user=user, organization=organization)
