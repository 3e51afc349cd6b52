"""Peer feedback routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from peoplehub.core.auth.types import SessionData
from peoplehub.core.domain_types import Feedback
from peoplehub.entrypoints.api.deps import get_feedback_service
from peoplehub.entrypoints.api.middleware.session_auth import require_tenant_session
from peoplehub.services.feedback import FeedbackService

router = APIRouter(prefix="/feedback", tags=["feedback"])

SessionDep = Annotated[SessionData, Depends(require_tenant_session)]
FeedbackServiceDep = Annotated[FeedbackService, Depends(get_feedback_service)]


class FeedbackCreate(BaseModel):
    """Request body for giving feedback."""

    receiver_id: UUID
    content: str = Field(..., max_length=5000)


@router.post("", status_code=201, response_model=Feedback)
async def give_feedback(
    body: FeedbackCreate,
    session: SessionDep,
    service: FeedbackServiceDep,
) -> Feedback:
    """Give feedback to a colleague."""
    return await service.give(session, body.receiver_id, body.content)


@router.get("/given", response_model=list[Feedback])
async def list_given_feedback(
    session: SessionDep,
    service: FeedbackServiceDep,
) -> list[Feedback]:
    """Feedback the caller wrote."""
    return await service.list_given(session)


@router.get("/received", response_model=list[Feedback])
async def list_received_feedback(
    session: SessionDep,
    service: FeedbackServiceDep,
) -> list[Feedback]:
    """Feedback the caller received."""
    return await service.list_received(session)


@router.get("/users/{user_id}", response_model=list[Feedback])
async def list_feedback_for_user(
    user_id: UUID,
    session: SessionDep,
    service: FeedbackServiceDep,
) -> list[Feedback]:
    """Feedback received by a member, filtered to what the caller may see."""
    return await service.list_for_user(session, user_id)


@router.delete("/{feedback_id}", status_code=204)
async def delete_feedback(
    feedback_id: UUID,
    session: SessionDep,
    service: FeedbackServiceDep,
) -> Response:
    """Delete feedback (author or manager)."""
    await service.delete(session, feedback_id)
    return Response(status_code=204)
