"""Auth API routes for password login, sessions and OAuth onboarding."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, EmailStr, Field

from peoplehub.core.auth.oauth_pending import PendingOAuthStore
from peoplehub.core.auth.service import AuthResult, AuthService
from peoplehub.core.auth.session import SessionStore
from peoplehub.core.auth.types import Role, SessionData
from peoplehub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from peoplehub.entrypoints.api.deps import (
    get_auth_service,
    get_client_ip,
    get_pending_store,
    get_session_store,
)
from peoplehub.entrypoints.api.middleware.session_auth import require_session

router = APIRouter(prefix="/auth", tags=["auth"])


# Request/Response models
class LoginRequest(BaseModel):
    """Login request body."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=256)


class CompleteRegistrationRequest(BaseModel):
    """Organization to create for a pending OAuth identity."""

    organization_name: str = Field(..., min_length=1, max_length=100)


class JoinRequest(BaseModel):
    """Identity echoed back by the join page, plus the organization to join."""

    email: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    organization_slug: str = Field(..., min_length=1, max_length=50)
    provider: str = Field(..., min_length=1)
    provider_id: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """User summary."""

    id: UUID
    email: str
    name: str
    role: Role


class OrganizationResponse(BaseModel):
    """Organization summary."""

    id: UUID
    name: str
    slug: str


class AuthResponse(BaseModel):
    """Outcome of a successful sign-in or registration."""

    success: bool = True
    user: UserResponse
    organization: OrganizationResponse


class PendingOAuthResponse(BaseModel):
    """Browser-safe view of the pending OAuth identity (no provider tokens)."""

    email: str
    name: str
    provider: str
    provider_id: str
    org: str | None = None
    avatar: str | None = None


class SuccessResponse(BaseModel):
    """Plain acknowledgement."""

    success: bool = True


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserResponse(
            id=result.user.id,
            email=result.user.email,
            name=result.user.name,
            role=result.user.role,
        ),
        organization=OrganizationResponse(
            id=result.organization.id,
            name=result.organization.name,
            slug=result.organization.slug,
        ),
    )


def establish_session(sessions: SessionStore, result: AuthResult) -> AuthResponse:
    """Start a session for ``result`` and describe it to the client."""
    sessions.create(
        user_id=result.user.id,
        email=result.user.email,
        role=result.user.role,
        organization_id=result.organization.id,
        organization_slug=result.organization.slug,
    )
    return _auth_response(result)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    service: Annotated[AuthService, Depends(get_auth_service)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> AuthResponse:
    """Authenticate with email and password and start a session."""
    result = await service.login(
        email=body.email,
        password=body.password,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
    return establish_session(sessions, result)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> SuccessResponse:
    """End the session. Succeeds even without one."""
    sessions.destroy()
    return SuccessResponse()


@router.get("/me", response_model=AuthResponse)
async def me(
    session: Annotated[SessionData, Depends(require_session)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> AuthResponse:
    """Current user and organization."""
    try:
        result = await service.get_session_user(session)
    except AuthorizationError:
        # Account or organization gone: drop the stale session
        sessions.destroy()
        raise
    return _auth_response(result)


@router.get("/pending-oauth", response_model=PendingOAuthResponse)
async def get_pending_oauth(
    pending: Annotated[PendingOAuthStore, Depends(get_pending_store)],
) -> PendingOAuthResponse:
    """Pending provider identity for the registration and join pages.

    404 when there is none; 400 (and the cookie is cleared) when it cannot be read.
    """
    if not pending.exists():
        raise NotFoundError("No pending OAuth session")
    data = pending.load()
    if data is None:
        raise ValidationError("Invalid OAuth session. Please try signing in again.")
    return PendingOAuthResponse(**data.public_view())


@router.delete("/pending-oauth", response_model=SuccessResponse)
async def clear_pending_oauth(
    pending: Annotated[PendingOAuthStore, Depends(get_pending_store)],
) -> SuccessResponse:
    """Abandon the pending OAuth identity."""
    pending.clear()
    return SuccessResponse()


@router.post("/complete-oauth-registration", response_model=AuthResponse)
async def complete_oauth_registration(
    body: CompleteRegistrationRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
    pending: Annotated[PendingOAuthStore, Depends(get_pending_store)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> AuthResponse:
    """Create an organization owned by the pending OAuth identity."""
    data = pending.require()
    result = await service.complete_oauth_registration(data, body.organization_name)
    pending.clear()
    return establish_session(sessions, result)


@router.post("/join-via-oauth", response_model=AuthResponse)
async def join_via_oauth(
    body: JoinRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
    pending: Annotated[PendingOAuthStore, Depends(get_pending_store)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> AuthResponse:
    """Join an existing organization with the pending OAuth identity."""
    data = pending.require()
    result = await service.join_via_oauth(
        data,
        email=body.email,
        provider=body.provider,
        provider_id=body.provider_id,
        organization_slug=body.organization_slug,
    )
    pending.clear()
    return establish_session(sessions, result)
