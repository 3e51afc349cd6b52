"""Role-based permission predicates."""

from peoplehub.core.rbac.permissions import (
    AbsencePermissions,
    Actor,
    FeedbackPermissions,
    InvitationPermissions,
    Permissions,
    UserPermissions,
    assert_permission,
)

__all__ = [
    "AbsencePermissions",
    "Actor",
    "FeedbackPermissions",
    "InvitationPermissions",
    "Permissions",
    "UserPermissions",
    "assert_permission",
]
