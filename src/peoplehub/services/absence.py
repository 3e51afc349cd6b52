"""Absence request service."""
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from uuid import UUID

import structlog

from peoplehub.adapters.db.tenant_scoped import TenantScopedDatabase
from peoplehub.core.domain_types import AbsenceRequest, AbsenceStatus
from peoplehub.core.exceptions import ConflictError, NotFoundError, ValidationError
from peoplehub.core.rbac import Actor, Permissions, assert_permission
from peoplehub.services.notification import NotificationService

logger = structlog.get_logger()

MIN_REASON_LENGTH = 10
MAX_REASON_LENGTH = 500
MAX_ABSENCE_SPAN = timedelta(days=365)


def _today() -> date:
    return datetime.now(UTC).date()


class AbsenceService:
    """File, review and withdraw absence requests within the current organization."""

    def __init__(
        self,
        db: TenantScopedDatabase,
        notifications: NotificationService,
        today: Callable[[], date] = _today,
    ):
        self.db = db
        self.notifications = notifications
        self._today = today

    def _validate(self, start_date: date, end_date: date, reason: str) -> None:
        errors: dict[str, str] = {}
        if start_date < self._today():
            errors["start_date"] = "Start date cannot be in the past"
        if end_date < start_date:
            errors["end_date"] = "End date must be on or after start date"
        elif end_date - start_date > MAX_ABSENCE_SPAN:
            errors["end_date"] = "Absence period cannot exceed 1 year"
        if not MIN_REASON_LENGTH <= len(reason) <= MAX_REASON_LENGTH:
            errors["reason"] = (
                f"Reason must be between {MIN_REASON_LENGTH} and {MAX_REASON_LENGTH} characters"
            )
        if errors:
            raise ValidationError("Invalid absence request", fields=errors)

    async def create(
        self, actor: Actor, start_date: date, end_date: date, reason: str
    ) -> AbsenceRequest:
        """File a request for the actor.

        Raises:
            ValidationError: For past, inverted or over-long periods and bad reasons.
            ConflictError: If it overlaps one of the actor's existing requests.
        """
        reason = reason.strip()
        self._validate(start_date, end_date, reason)
        assert_permission(Permissions.absence.create(actor))

        # Two closed intervals overlap iff each starts before the other ends
        overlap = await self.db.absence_requests.find_first(
            {
                "user_id": actor.id,
                "start_date": {"lte": end_date},
                "end_date": {"gte": start_date},
            }
        )
        if overlap is not None:
            raise ConflictError(
                "You already have an absence request from "
                f"{overlap['start_date'].isoformat()} to {overlap['end_date'].isoformat()}"
            )

        row = await self.db.absence_requests.create(
            {
                "user_id": actor.id,
                "start_date": start_date,
                "end_date": end_date,
                "reason": reason,
                "status": AbsenceStatus.PENDING.value,
            }
        )
        absence = AbsenceRequest.model_validate(row)
        logger.info(
            "absence_requested",
            absence_id=str(absence.id),
            days=(end_date - start_date).days + 1,
        )
        return absence

    async def list_mine(self, actor: Actor) -> list[AbsenceRequest]:
        rows = await self.db.absence_requests.find_many(
            {"user_id": actor.id}, order_by=["-start_date"]
        )
        return [AbsenceRequest.model_validate(r) for r in rows]

    async def list_for_user(self, actor: Actor, user_id: UUID) -> list[AbsenceRequest]:
        """A member's requests; visible to that member and managers."""
        assert_permission(
            Permissions.absence.view_for_user(actor, user_id),
            "You do not have permission to view these absence requests",
        )
        if await self.db.users.find_unique(user_id) is None:
            raise NotFoundError("User not found")
        rows = await self.db.absence_requests.find_many(
            {"user_id": user_id}, order_by=["-start_date"]
        )
        return [AbsenceRequest.model_validate(r) for r in rows]

    async def list_all(
        self, actor: Actor, status: AbsenceStatus | None = None
    ) -> list[AbsenceRequest]:
        """Every request in the organization (managers only)."""
        assert_permission(
            Permissions.absence.view_all(actor),
            "Only managers can view all absence requests",
        )
        where = {"status": AbsenceStatus(status).value} if status else None
        rows = await self.db.absence_requests.find_many(where, order_by=["-created_at"])
        return [AbsenceRequest.model_validate(r) for r in rows]

    async def update_status(
        self, actor: Actor, absence_id: UUID, status: AbsenceStatus
    ) -> AbsenceRequest:
        """Approve or reject a request and notify its owner.

        Raises:
            PermissionDeniedError: If the actor is not a manager.
            ValidationError: If ``status`` is not APPROVED or REJECTED.
            NotFoundError: If the request does not exist in this organization.
        """
        assert_permission(
            Permissions.absence.approve(actor),
            "Only managers can approve or reject absence requests",
        )
        status = AbsenceStatus(status)
        if status == AbsenceStatus.PENDING:
            raise ValidationError("Status must be APPROVED or REJECTED")

        if await self.db.absence_requests.find_unique(absence_id) is None:
            raise NotFoundError("Absence request not found")

        row = await self.db.absence_requests.update({"id": absence_id}, {"status": status.value})
        if row is None:
            raise NotFoundError("Absence request not found")
        absence = AbsenceRequest.model_validate(row)
        logger.info("absence_status_updated", absence_id=str(absence_id), status=status.value)

        await self.notifications.notify(
            absence.user_id,
            type=f"absence_{status.value.lower()}",
            title=f"Absence request {status.value.lower()}",
            message=(
                f"Your absence from {absence.start_date.isoformat()} "
                f"to {absence.end_date.isoformat()} was {status.value.lower()}."
            ),
        )
        return absence

    async def delete(self, actor: Actor, absence_id: UUID) -> None:
        """Withdraw a pending request (owner or manager).

        Raises:
            NotFoundError: If the request does not exist in this organization.
            PermissionDeniedError: If the actor may not delete it or it is no longer pending.
        """
        row = await self.db.absence_requests.find_unique(absence_id)
        if row is None:
            raise NotFoundError("Absence request not found")
        absence = AbsenceRequest.model_validate(row)
        assert_permission(
            Permissions.absence.delete(actor, absence),
            "You do not have permission to delete this absence request",
        )
        await self.db.absence_requests.delete({"id": absence_id})
        logger.info("absence_deleted", absence_id=str(absence_id))
