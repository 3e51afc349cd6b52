"""Absence request routes."""

from __future__ import annotations

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from peoplehub.core.auth.types import SessionData
from peoplehub.core.domain_types import AbsenceRequest, AbsenceStatus
from peoplehub.entrypoints.api.deps import get_absence_service
from peoplehub.entrypoints.api.middleware.session_auth import require_tenant_session
from peoplehub.services.absence import AbsenceService

router = APIRouter(prefix="/absences", tags=["absences"])

SessionDep = Annotated[SessionData, Depends(require_tenant_session)]
AbsenceServiceDep = Annotated[AbsenceService, Depends(get_absence_service)]


class AbsenceCreate(BaseModel):
    """Request body for filing an absence."""

    start_date: date
    end_date: date
    reason: str = Field(..., max_length=2000)


class AbsenceStatusUpdate(BaseModel):
    """Manager decision on a request."""

    status: AbsenceStatus


@router.post("", status_code=201, response_model=AbsenceRequest)
async def create_absence(
    body: AbsenceCreate,
    session: SessionDep,
    service: AbsenceServiceDep,
) -> AbsenceRequest:
    """File an absence request for the caller."""
    return await service.create(session, body.start_date, body.end_date, body.reason)


@router.get("/me", response_model=list[AbsenceRequest])
async def list_my_absences(
    session: SessionDep,
    service: AbsenceServiceDep,
) -> list[AbsenceRequest]:
    """The caller's own requests."""
    return await service.list_mine(session)


@router.get("", response_model=list[AbsenceRequest])
async def list_absences(
    session: SessionDep,
    service: AbsenceServiceDep,
    status: AbsenceStatus | None = None,
) -> list[AbsenceRequest]:
    """All requests in the organization (managers only)."""
    return await service.list_all(session, status)


@router.get("/users/{user_id}", response_model=list[AbsenceRequest])
async def list_user_absences(
    user_id: UUID,
    session: SessionDep,
    service: AbsenceServiceDep,
) -> list[AbsenceRequest]:
    """A member's requests (that member or a manager)."""
    return await service.list_for_user(session, user_id)


@router.patch("/{absence_id}/status", response_model=AbsenceRequest)
async def update_absence_status(
    absence_id: UUID,
    body: AbsenceStatusUpdate,
    session: SessionDep,
    service: AbsenceServiceDep,
) -> AbsenceRequest:
    """Approve or reject a request."""
    return await service.update_status(session, absence_id, body.status)


@router.delete("/{absence_id}", status_code=204)
async def delete_absence(
    absence_id: UUID,
    session: SessionDep,
    service: AbsenceServiceDep,
) -> Response:
    """Withdraw a pending request."""
    await service.delete(session, absence_id)
    return Response(status_code=204)
