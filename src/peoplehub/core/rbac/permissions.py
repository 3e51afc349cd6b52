"""Permission predicates.

Every authorization decision in the API goes through these functions. They
are pure: no I/O, no side effects, only the actor and the resource. An actor
is anything exposing ``id`` and ``role`` (a ``SessionData`` or a ``User``).
"""

from typing import Any, Protocol
from uuid import UUID

from peoplehub.core.auth.types import Role
from peoplehub.core.domain_types import AbsenceStatus
from peoplehub.core.exceptions import PermissionDeniedError


class Actor(Protocol):
    """Who is acting."""

    @property
    def id(self) -> UUID: ...

    @property
    def role(self) -> Role: ...


def _is_manager(actor: Actor) -> bool:
    return actor.role == Role.MANAGER


def _is_pending(absence: Any) -> bool:
    return absence.status == AbsenceStatus.PENDING


class UserPermissions:
    """Profile access."""

    @staticmethod
    def view(actor: Actor, target: Any) -> bool:
        """Any member may view profiles; sensitive fields are filtered separately."""
        return True

    @staticmethod
    def view_sensitive(actor: Actor, target: Any) -> bool:
        return _is_manager(actor) or actor.id == target.id

    @staticmethod
    def edit(actor: Actor, target: Any) -> bool:
        return _is_manager(actor) or actor.id == target.id

    @staticmethod
    def delete(actor: Actor, target: Any) -> bool:
        """Managers may delete accounts, except their own."""
        return _is_manager(actor) and actor.id != target.id

    @staticmethod
    def update_sensitive(actor: Actor) -> bool:
        return _is_manager(actor)


class FeedbackPermissions:
    """Peer feedback access."""

    @staticmethod
    def give(actor: Actor, receiver: Any) -> bool:
        """Anyone may give feedback, but not to themselves."""
        return actor.id != receiver.id

    @staticmethod
    def view(actor: Actor, feedback: Any) -> bool:
        return (
            actor.id == feedback.giver_id
            or actor.id == feedback.receiver_id
            or _is_manager(actor)
        )

    @staticmethod
    def view_for_user(actor: Actor, target_user_id: UUID) -> bool:
        return _is_manager(actor) or actor.id == target_user_id

    @staticmethod
    def edit(actor: Actor, feedback: Any) -> bool:
        return actor.id == feedback.giver_id or _is_manager(actor)

    @staticmethod
    def delete(actor: Actor, feedback: Any) -> bool:
        return actor.id == feedback.giver_id or _is_manager(actor)


class AbsencePermissions:
    """Absence request access."""

    @staticmethod
    def create(actor: Actor) -> bool:
        return True

    @staticmethod
    def view(actor: Actor, absence: Any) -> bool:
        return _is_manager(actor) or actor.id == absence.user_id

    @staticmethod
    def view_for_user(actor: Actor, target_user_id: UUID) -> bool:
        return _is_manager(actor) or actor.id == target_user_id

    @staticmethod
    def view_all(actor: Actor) -> bool:
        return _is_manager(actor)

    @staticmethod
    def approve(actor: Actor) -> bool:
        return _is_manager(actor)

    @staticmethod
    def edit(actor: Actor, absence: Any) -> bool:
        """Only pending requests change; owners edit their own, managers any."""
        if _is_manager(actor):
            return _is_pending(absence)
        return actor.id == absence.user_id and _is_pending(absence)

    @staticmethod
    def delete(actor: Actor, absence: Any) -> bool:
        if _is_manager(actor):
            return _is_pending(absence)
        return actor.id == absence.user_id and _is_pending(absence)


class InvitationPermissions:
    """Team invitations."""

    @staticmethod
    def manage(actor: Actor) -> bool:
        """Create, list, resend and cancel invitations."""
        return _is_manager(actor)


class Permissions:
    """Namespace of all predicates: ``Permissions.feedback.give(actor, user)``."""

    user = UserPermissions
    feedback = FeedbackPermissions
    absence = AbsencePermissions
    invitation = InvitationPermissions


def assert_permission(
    allowed: bool,
    message: str = "You do not have permission to perform this action",
) -> None:
    """Raise if a predicate denied the action.

    Raises:
        PermissionDeniedError: If ``allowed`` is False.
    """
    if not allowed:
        raise PermissionDeniedError(message)
