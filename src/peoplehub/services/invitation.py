"""Team invitation service.

Managers invite people by email. The invitation token is handed back once,
when it is issued, and only its SHA-256 hash is stored. Accepting an
invitation creates a password account in the inviting organization.
"""

import hashlib
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import structlog

from peoplehub.adapters.db.app_db import AppDatabase
from peoplehub.adapters.db.tenant_scoped import TenantScopedDatabase
from peoplehub.core.auth.password import hash_password
from peoplehub.core.auth.service import AuthResult
from peoplehub.core.auth.types import Organization, Role, User, UserStatus
from peoplehub.core.domain_types import Invitation, InvitationPreview
from peoplehub.core.exceptions import ConflictError, NotFoundError, ValidationError
from peoplehub.core.rbac import Actor, Permissions, assert_permission
from peoplehub.core.tenancy import TenantContext, tenant_scope

logger = structlog.get_logger()

INVITATION_TTL = timedelta(days=7)


def generate_invitation_token() -> str:
    """Random URL-safe token for the accept link."""
    return secrets.token_urlsafe(32)


def hash_invitation_token(token: str) -> str:
    """Hex SHA-256 of a token, as stored in ``invitations.token_hash``."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class IssuedInvitation:
    """An invitation together with its one-time plaintext token."""

    invitation: Invitation
    token: str


class InvitationService:
    """Invite people into the current organization and let them accept."""

    def __init__(
        self,
        db: TenantScopedDatabase,
        app_db: AppDatabase,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.app_db = app_db
        self._clock = clock or (lambda: datetime.now(UTC))

    def _require_manager(self, actor: Actor) -> None:
        assert_permission(
            Permissions.invitation.manage(actor),
            "Only managers can manage invitations",
        )

    async def create(self, actor: Actor, email: str, role: Role) -> IssuedInvitation:
        """Invite ``email`` with ``role``.

        Raises:
            PermissionDeniedError: Unless the actor is a manager.
            ConflictError: If the email is already a member or has an open invitation.
        """
        self._require_manager(actor)
        email = email.strip().lower()

        if await self.db.users.find_first({"email": email, "deleted_at": None}) is not None:
            raise ConflictError("User already exists in this organization")

        now = self._clock()
        pending = await self.db.invitations.find_first(
            {"email": email, "accepted_at": None, "expires_at": {"gt": now}}
        )
        if pending is not None:
            raise ConflictError("Invitation already pending for this email")

        token = generate_invitation_token()
        row = await self.db.invitations.create(
            {
                "email": email,
                "role": role.value,
                "token_hash": hash_invitation_token(token),
                "expires_at": now + INVITATION_TTL,
                "invited_by_id": actor.id,
            }
        )
        invitation = Invitation.model_validate(row)
        logger.info("invitation_created", invitation_id=str(invitation.id), role=role.value)
        return IssuedInvitation(invitation=invitation, token=token)

    async def list_invitations(self, actor: Actor) -> list[Invitation]:
        """All invitations of the organization, newest first."""
        self._require_manager(actor)
        rows = await self.db.invitations.find_many(order_by=["-created_at"])
        return [Invitation.model_validate(r) for r in rows]

    async def _get(self, invitation_id: UUID) -> Invitation:
        row = await self.db.invitations.find_unique(invitation_id)
        if row is None:
            raise NotFoundError("Invitation not found")
        return Invitation.model_validate(row)

    async def resend(self, actor: Actor, invitation_id: UUID) -> IssuedInvitation:
        """Issue a fresh token and restart the expiry clock.

        The previous token stops working.

        Raises:
            NotFoundError: If the invitation does not exist in this organization.
            ValidationError: If it was already accepted.
        """
        self._require_manager(actor)
        invitation = await self._get(invitation_id)
        if invitation.accepted_at is not None:
            raise ValidationError("Invitation already accepted")

        token = generate_invitation_token()
        changes = {
            "token_hash": hash_invitation_token(token),
            "expires_at": self._clock() + INVITATION_TTL,
        }
        row = await self.db.invitations.update({"id": invitation_id}, changes)
        if row is None:
            raise NotFoundError("Invitation not found")
        logger.info("invitation_resent", invitation_id=str(invitation_id))
        return IssuedInvitation(invitation=Invitation.model_validate(row), token=token)

    async def cancel(self, actor: Actor, invitation_id: UUID) -> None:
        """Withdraw an invitation.

        Raises:
            NotFoundError: If the invitation does not exist in this organization.
        """
        self._require_manager(actor)
        await self._get(invitation_id)
        await self.db.invitations.delete({"id": invitation_id})
        logger.info("invitation_cancelled", invitation_id=str(invitation_id))

    # Invitee side. These run before the invitee has a session, so the
    # invitation is found by token hash across organizations.

    async def _find_open(self, token: str) -> tuple[Invitation, dict[str, Any]]:
        row = await self.db.invitations.find_first({"token_hash": hash_invitation_token(token)})
        if row is None:
            raise NotFoundError("Invitation not found")
        invitation = Invitation.model_validate(row)
        if invitation.accepted_at is not None:
            raise ConflictError("Invitation already accepted")
        if not invitation.is_open(self._clock()):
            raise ValidationError("This invitation has expired. Ask for a new one.")

        organization = await self.app_db.get_organization(invitation.organization_id)
        if organization is None:
            raise NotFoundError("Organization not found")
        return invitation, organization

    async def preview(self, token: str) -> InvitationPreview:
        """Details shown on the accept page.

        Raises:
            NotFoundError: If the token is unknown.
            ConflictError: If the invitation was already accepted.
            ValidationError: If it has expired.
        """
        invitation, organization = await self._find_open(token)
        return InvitationPreview(
            email=invitation.email,
            role=invitation.role,
            organization_name=organization["name"],
            expires_at=invitation.expires_at,
        )

    async def accept(self, token: str, name: str, password: str) -> AuthResult:
        """Create the invitee's account in the inviting organization.

        The invitation is claimed with a conditional update before the account
        is created, so a token can only be used once.

        Raises:
            NotFoundError: If the token is unknown.
            ConflictError: If the invitation was used or the email already has an account.
            ValidationError: If the invitation has expired.
        """
        invitation, org_row = await self._find_open(token)
        if await self.app_db.email_in_use(invitation.email):
            raise ConflictError("An account with this email already exists")

        organization = Organization.model_validate(org_row)
        context = TenantContext(
            organization_id=organization.id,
            organization_slug=organization.slug,
            organization_name=organization.name,
        )
        now = self._clock()
        with tenant_scope(context):
            claimed = await self.db.invitations.update(
                {"id": invitation.id, "accepted_at": None}, {"accepted_at": now}
            )
            if claimed is None:
                raise ConflictError("Invitation already accepted")

            user_row = await self.db.users.create(
                {
                    "email": invitation.email,
                    "name": name.strip(),
                    "role": invitation.role.value,
                    "password_hash": hash_password(password),
                    "email_verified": True,
                    "email_verified_at": now,
                    "status": UserStatus.ACTIVE.value,
                }
            )

        user = User.model_validate(user_row)
        logger.info(
            "invitation_accepted",
            invitation_id=str(invitation.id),
            user_id=str(user.id),
            org_id=str(organization.id),
        )
        return AuthResult(user=user, organization=organization)
