"""Team invitation routes.

Managers issue and manage invitations under ``/invitations``. The invitee
opens ``/invite/{token}`` without a session and accepts there.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, EmailStr, Field

from peoplehub.core.auth.session import SessionStore
from peoplehub.core.auth.types import Role, SessionData
from peoplehub.core.domain_types import Invitation, InvitationPreview
from peoplehub.entrypoints.api.deps import (
    Settings,
    get_invitation_service,
    get_session_store,
    get_settings,
)
from peoplehub.entrypoints.api.middleware.session_auth import require_tenant_session
from peoplehub.entrypoints.api.routes.auth import AuthResponse, establish_session
from peoplehub.services.invitation import InvitationService, IssuedInvitation

router = APIRouter(tags=["invitations"])

SessionDep = Annotated[SessionData, Depends(require_tenant_session)]
InvitationServiceDep = Annotated[InvitationService, Depends(get_invitation_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


class InvitationCreate(BaseModel):
    """Who to invite and as what."""

    email: EmailStr
    role: Role = Role.EMPLOYEE


class IssuedInvitationResponse(BaseModel):
    """A new or re-issued invitation and the link to send to the invitee."""

    invitation: Invitation
    accept_url: str


class InvitationAccept(BaseModel):
    """The invitee's account details."""

    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8, max_length=256)


def _issued(settings: Settings, issued: IssuedInvitation) -> IssuedInvitationResponse:
    return IssuedInvitationResponse(
        invitation=issued.invitation,
        accept_url=f"{settings.app_url}/invite/{issued.token}",
    )


@router.post("/invitations", status_code=201, response_model=IssuedInvitationResponse)
async def create_invitation(
    body: InvitationCreate,
    session: SessionDep,
    service: InvitationServiceDep,
    settings: SettingsDep,
) -> IssuedInvitationResponse:
    """Invite someone to the organization (managers only)."""
    return _issued(settings, await service.create(session, body.email, body.role))


@router.get("/invitations", response_model=list[Invitation])
async def list_invitations(session: SessionDep, service: InvitationServiceDep) -> list[Invitation]:
    """All invitations, newest first (managers only)."""
    return await service.list_invitations(session)


@router.post("/invitations/{invitation_id}/resend", response_model=IssuedInvitationResponse)
async def resend_invitation(
    invitation_id: UUID,
    session: SessionDep,
    service: InvitationServiceDep,
    settings: SettingsDep,
) -> IssuedInvitationResponse:
    """Issue a fresh link; the old one stops working."""
    return _issued(settings, await service.resend(session, invitation_id))


@router.delete("/invitations/{invitation_id}", status_code=204)
async def cancel_invitation(
    invitation_id: UUID,
    session: SessionDep,
    service: InvitationServiceDep,
) -> Response:
    """Withdraw an invitation."""
    await service.cancel(session, invitation_id)
    return Response(status_code=204)


@router.get("/invite/{token}", response_model=InvitationPreview)
async def preview_invitation(token: str, service: InvitationServiceDep) -> InvitationPreview:
    """Invitation details for the accept page. No authentication required."""
    return await service.preview(token)


@router.post("/invite/{token}/accept", response_model=AuthResponse)
async def accept_invitation(
    token: str,
    body: InvitationAccept,
    service: InvitationServiceDep,
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> AuthResponse:
    """Create the invitee's account and sign them in."""
    result = await service.accept(token, body.name, body.password)
    return establish_session(sessions, result)
