"""In-app notification routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from peoplehub.core.auth.types import SessionData
from peoplehub.core.domain_types import Notification
from peoplehub.entrypoints.api.deps import get_notification_service
from peoplehub.entrypoints.api.middleware.session_auth import require_tenant_session
from peoplehub.services.notification import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])

SessionDep = Annotated[SessionData, Depends(require_tenant_session)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]


class UnreadCountResponse(BaseModel):
    """Number of unread notifications."""

    count: int


class MarkAllReadResponse(BaseModel):
    """Number of notifications that changed."""

    updated: int


@router.get("", response_model=list[Notification])
async def list_notifications(
    session: SessionDep,
    service: NotificationServiceDep,
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
) -> list[Notification]:
    """The caller's newest notifications."""
    return await service.list_for(session, unread_only=unread_only, limit=limit)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    session: SessionDep,
    service: NotificationServiceDep,
) -> UnreadCountResponse:
    return UnreadCountResponse(count=await service.unread_count(session))


@router.post("/{notification_id}/read", response_model=Notification)
async def mark_notification_read(
    notification_id: UUID,
    session: SessionDep,
    service: NotificationServiceDep,
) -> Notification:
    """Mark one notification as read."""
    return await service.mark_read(session, notification_id)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
    session: SessionDep,
    service: NotificationServiceDep,
) -> MarkAllReadResponse:
    """Mark every unread notification as read."""
    return MarkAllReadResponse(updated=await service.mark_all_read(session))
