"""Domain types - Immutable Pydantic models for the HR entities.

Rows coming back from the tenant-scoped repositories are validated into these
models before they reach permission checks or API responses.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from peoplehub.core.auth.types import Role, UserStatus


class AbsenceStatus(str, Enum):
    """Lifecycle of an absence request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Feedback(BaseModel):
    """Peer feedback from one member to another.

    Attributes:
        id: Feedback ID.
        organization_id: Owning organization.
        giver_id: Author.
        receiver_id: Subject of the feedback.
        content: Free text.
        created_at: When it was written.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    organization_id: UUID
    giver_id: UUID
    receiver_id: UUID
    content: str
    created_at: datetime


class AbsenceRequest(BaseModel):
    """A request for time off.

    Attributes:
        id: Request ID.
        organization_id: Owning organization.
        user_id: Requesting member.
        start_date: First day absent (inclusive).
        end_date: Last day absent (inclusive).
        reason: Free text.
        status: Approval state.
        created_at: When it was filed.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    organization_id: UUID
    user_id: UUID
    start_date: date
    end_date: date
    reason: str
    status: AbsenceStatus = AbsenceStatus.PENDING
    created_at: datetime


class OrganizationInfo(BaseModel):
    """Public view of an organization, shown on the join page."""

    model_config = ConfigDict(frozen=True)

    name: str
    slug: str


class Notification(BaseModel):
    """An in-app notification for one member."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    organization_id: UUID
    user_id: UUID
    type: str
    title: str
    message: str
    read: bool = False
    created_at: datetime


class SensitiveProfile(BaseModel):
    """Compensation and personal data, visible to managers and the member."""

    model_config = ConfigDict(frozen=True)

    salary: Decimal | None = None
    ssn: str | None = None
    address: str | None = None
    performance_rating: int | None = None


class UserProfile(BaseModel):
    """A member's profile.

    Attributes:
        sensitive: Present only when the viewer may see sensitive fields.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    organization_id: UUID
    email: str
    name: str
    role: Role
    department: str | None = None
    title: str | None = None
    bio: str | None = None
    avatar: str | None = None
    status: UserStatus = UserStatus.ACTIVE
    created_at: datetime
    deleted_at: datetime | None = None
    sensitive: SensitiveProfile | None = None


class Invitation(BaseModel):
    """An invitation to join the organization. The token itself is never stored."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    organization_id: UUID
    email: str
    role: Role
    expires_at: datetime
    accepted_at: datetime | None = None
    invited_by_id: UUID | None = None
    created_at: datetime

    def is_open(self, now: datetime) -> bool:
        """Not yet accepted and not expired."""
        return self.accepted_at is None and self.expires_at > now


class InvitationPreview(BaseModel):
    """What the accept page shows before the invitee signs up."""

    model_config = ConfigDict(frozen=True)

    email: str
    role: Role
    organization_name: str
    expires_at: datetime
