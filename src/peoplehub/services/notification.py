"""In-app notification service."""
from uuid import UUID

import structlog

from peoplehub.adapters.db.tenant_scoped import TenantScopedDatabase
from peoplehub.core.domain_types import Notification
from peoplehub.core.exceptions import NotFoundError
from peoplehub.core.rbac import Actor

logger = structlog.get_logger()


class NotificationService:
    """Creates and reads notifications of the current organization."""

    def __init__(self, db: TenantScopedDatabase):
        self.db = db

    async def notify(self, user_id: UUID, type: str, title: str, message: str) -> Notification:
        """Create a notification for ``user_id``.

        Requires a tenant context; the notification belongs to it.
        """
        row = await self.db.notifications.create(
            {"user_id": user_id, "type": type, "title": title, "message": message}
        )
        logger.info("notification_created", user_id=str(user_id), type=type)
        return Notification.model_validate(row)

    async def list_for(self, actor: Actor, unread_only: bool = False, limit: int = 50) -> list[Notification]:
        """Newest notifications addressed to ``actor``."""
        where: dict = {"user_id": actor.id}
        if unread_only:
            where["read"] = False
        rows = await self.db.notifications.find_many(where, order_by=["-created_at"], limit=limit)
        return [Notification.model_validate(r) for r in rows]

    async def unread_count(self, actor: Actor) -> int:
        return await self.db.notifications.count({"user_id": actor.id, "read": False})

    async def mark_read(self, actor: Actor, notification_id: UUID) -> Notification:
        """Mark one of the actor's notifications as read."""
        row = await self.db.notifications.update(
            {"id": notification_id, "user_id": actor.id}, {"read": True}
        )
        if row is None:
            raise NotFoundError("Notification not found")
        return Notification.model_validate(row)

    async def mark_all_read(self, actor: Actor) -> int:
        """Mark all of the actor's notifications as read; returns how many changed."""
        return await self.db.notifications.update_many(
            {"user_id": actor.id, "read": False}, {"read": True}
        )
