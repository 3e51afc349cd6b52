"""Peer feedback service."""
from uuid import UUID

import structlog

from peoplehub.adapters.db.tenant_scoped import TenantScopedDatabase
from peoplehub.core.auth.types import User
from peoplehub.core.domain_types import Feedback
from peoplehub.core.exceptions import NotFoundError, ValidationError
from peoplehub.core.rbac import Actor, Permissions, assert_permission
from peoplehub.services.notification import NotificationService

logger = structlog.get_logger()

MIN_CONTENT_LENGTH = 10
MAX_CONTENT_LENGTH = 2000


class FeedbackService:
    """Give, list and delete feedback within the current organization."""

    def __init__(self, db: TenantScopedDatabase, notifications: NotificationService):
        self.db = db
        self.notifications = notifications

    async def _get_member(self, user_id: UUID) -> User:
        row = await self.db.users.find_first({"id": user_id, "deleted_at": None})
        if row is None:
            raise NotFoundError("User not found")
        return User.model_validate(row)

    async def give(self, actor: Actor, receiver_id: UUID, content: str) -> Feedback:
        """Write feedback about a colleague and notify them.

        Raises:
            ValidationError: If the content is too short or too long.
            NotFoundError: If the receiver is not a live member of this organization.
            PermissionDeniedError: If the actor targets themselves.
        """
        content = content.strip()
        if not MIN_CONTENT_LENGTH <= len(content) <= MAX_CONTENT_LENGTH:
            raise ValidationError(
                f"Feedback must be between {MIN_CONTENT_LENGTH} and {MAX_CONTENT_LENGTH} characters",
                fields={"content": "invalid length"},
            )

        receiver = await self._get_member(receiver_id)
        assert_permission(
            Permissions.feedback.give(actor, receiver),
            "You cannot give feedback to yourself",
        )

        row = await self.db.feedback.create(
            {"giver_id": actor.id, "receiver_id": receiver_id, "content": content}
        )
        feedback = Feedback.model_validate(row)
        logger.info(
            "feedback_created",
            feedback_id=str(feedback.id),
            receiver_id=str(receiver_id),
            content_length=len(content),
        )

        await self.notifications.notify(
            receiver_id,
            type="feedback_received",
            title="New feedback",
            message="A colleague left you feedback.",
        )
        return feedback

    async def list_for_user(self, actor: Actor, user_id: UUID) -> list[Feedback]:
        """Feedback received by ``user_id`` that the actor may see.

        Managers and the receiver see everything; others only what they wrote.
        """
        await self._get_member(user_id)
        rows = await self.db.feedback.find_many({"receiver_id": user_id}, order_by=["-created_at"])
        items = [Feedback.model_validate(r) for r in rows]
        return [f for f in items if Permissions.feedback.view(actor, f)]

    async def list_given(self, actor: Actor) -> list[Feedback]:
        rows = await self.db.feedback.find_many({"giver_id": actor.id}, order_by=["-created_at"])
        return [Feedback.model_validate(r) for r in rows]

    async def list_received(self, actor: Actor) -> list[Feedback]:
        rows = await self.db.feedback.find_many({"receiver_id": actor.id}, order_by=["-created_at"])
        return [Feedback.model_validate(r) for r in rows]

    async def delete(self, actor: Actor, feedback_id: UUID) -> None:
        """Delete feedback; allowed for its author and managers.

        Raises:
            NotFoundError: If the feedback does not exist in this organization.
            PermissionDeniedError: If the actor may not delete it.
        """
        row = await self.db.feedback.find_unique(feedback_id)
        if row is None:
            raise NotFoundError("Feedback not found")
        feedback = Feedback.model_validate(row)
        assert_permission(
            Permissions.feedback.delete(actor, feedback),
            "You do not have permission to delete this feedback",
        )
        await self.db.feedback.delete({"id": feedback_id})
        logger.info("feedback_deleted", feedback_id=str(feedback_id))

