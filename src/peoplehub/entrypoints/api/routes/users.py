"""Member profile routes."""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field, field_validator

from peoplehub.core.auth.types import Role, SessionData
from peoplehub.core.domain_types import UserProfile
from peoplehub.entrypoints.api.deps import get_user_service
from peoplehub.entrypoints.api.middleware.session_auth import require_tenant_session
from peoplehub.services.user import UserService

router = APIRouter(prefix="/users", tags=["users"])

SessionDep = Annotated[SessionData, Depends(require_tenant_session)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]


class ProfileUpdate(BaseModel):
    """Non-sensitive profile fields. Omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=100)
    title: str | None = Field(None, max_length=100)
    department: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=500)
    avatar: str | None = Field(None, max_length=1024)

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str | None) -> str:
        if value is None or not value.strip():
            raise ValueError("Name is required")
        return value.strip()


class SensitiveUpdate(BaseModel):
    """Sensitive profile fields. An empty ``ssn`` clears it."""

    salary: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    ssn: str | None = Field(None, pattern=r"^(\d{3}-\d{2}-\d{4})?$")
    address: str | None = Field(None, max_length=300)
    performance_rating: int | None = Field(None, ge=1, le=5)


@router.get("", response_model=list[UserProfile])
async def list_users(
    session: SessionDep,
    service: UserServiceDep,
    search: str | None = Query(default=None, max_length=100),
    department: str | None = Query(default=None, max_length=100),
    role: Role | None = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> list[UserProfile]:
    """Members of the organization, ordered by name."""
    return await service.list_members(
        session, search=search, department=department, role=role, limit=limit, offset=offset
    )


@router.get("/departments", response_model=list[str])
async def list_departments(session: SessionDep, service: UserServiceDep) -> list[str]:
    """Departments in use."""
    return await service.departments()


@router.get("/{user_id}", response_model=UserProfile)
async def get_user(user_id: UUID, session: SessionDep, service: UserServiceDep) -> UserProfile:
    """A member's profile; sensitive fields only for managers and the member."""
    return await service.get(session, user_id)


@router.patch("/{user_id}", response_model=UserProfile)
async def update_user(
    user_id: UUID,
    body: ProfileUpdate,
    session: SessionDep,
    service: UserServiceDep,
) -> UserProfile:
    """Edit a profile (the member or a manager)."""
    return await service.update_profile(session, user_id, body.model_dump(exclude_unset=True))


@router.patch("/{user_id}/sensitive", response_model=UserProfile)
async def update_user_sensitive(
    user_id: UUID,
    body: SensitiveUpdate,
    session: SessionDep,
    service: UserServiceDep,
) -> UserProfile:
    """Edit salary, SSN, address or rating (managers only)."""
    return await service.update_sensitive(session, user_id, body.model_dump(exclude_unset=True))


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: UUID, session: SessionDep, service: UserServiceDep) -> Response:
    """Soft-delete a member (managers only, never themselves)."""
    await service.soft_delete(session, user_id)
    return Response(status_code=204)


@router.post("/{user_id}/restore", response_model=UserProfile)
async def restore_user(user_id: UUID, session: SessionDep, service: UserServiceDep) -> UserProfile:
    """Restore a soft-deleted member."""
    return await service.restore(session, user_id)
