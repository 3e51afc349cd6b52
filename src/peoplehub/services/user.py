"""Member profile service.

Profiles are visible to every member of the organization. The sensitive
fields (salary, SSN, address, performance rating) are only returned to
managers and to the member themselves; the SSN is stored encrypted.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import structlog

from peoplehub.adapters.db.tenant_scoped import TenantScopedDatabase
from peoplehub.core.auth.encryption import EncryptionCodec
from peoplehub.core.auth.types import Role
from peoplehub.core.domain_types import SensitiveProfile, UserProfile
from peoplehub.core.exceptions import NotFoundError
from peoplehub.core.rbac import Actor, Permissions, assert_permission

logger = structlog.get_logger()

PROFILE_FIELDS = frozenset({"name", "title", "department", "bio", "avatar"})
SENSITIVE_FIELDS = frozenset({"salary", "ssn", "address", "performance_rating"})

DEFAULT_PAGE_SIZE = 50


class UserService:
    """Read and maintain member profiles within the current organization."""

    def __init__(
        self,
        db: TenantScopedDatabase,
        codec: EncryptionCodec,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.codec = codec
        self._clock = clock or (lambda: datetime.now(UTC))

    async def _get_row(self, user_id: UUID, deleted: bool = False) -> dict[str, Any]:
        where: dict[str, Any] = {"id": user_id, "deleted_at": {"not": None} if deleted else None}
        row = await self.db.users.find_first(where)
        if row is None:
            raise NotFoundError("User not found")
        return row

    def _to_profile(self, row: dict[str, Any], include_sensitive: bool) -> UserProfile:
        profile = UserProfile.model_validate(row)
        if not include_sensitive:
            return profile

        ssn = None
        if row.get("ssn"):
            ssn = self.codec.decrypt(row["ssn"])
            if ssn is None:
                logger.warning("ssn_decryption_failed", user_id=str(row["id"]))
        sensitive = SensitiveProfile(
            salary=row.get("salary"),
            ssn=ssn,
            address=row.get("address"),
            performance_rating=row.get("performance_rating"),
        )
        return profile.model_copy(update={"sensitive": sensitive})

    async def get(self, actor: Actor, user_id: UUID) -> UserProfile:
        """One member's profile, with sensitive fields when the actor may see them.

        Raises:
            NotFoundError: If the member does not exist in this organization.
        """
        row = await self._get_row(user_id)
        target = UserProfile.model_validate(row)
        assert_permission(Permissions.user.view(actor, target))
        include_sensitive = Permissions.user.view_sensitive(actor, target)
        logger.debug("user_profile_read", user_id=str(user_id), sensitive=include_sensitive)
        return self._to_profile(row, include_sensitive)

    async def list_members(
        self,
        actor: Actor,
        search: str | None = None,
        department: str | None = None,
        role: Role | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[UserProfile]:
        """Live members ordered by name.

        ``search`` matches name or email, case-insensitively. Sensitive fields
        are included only for managers.
        """
        where: dict[str, Any] = {"deleted_at": None}
        if search:
            where["OR"] = [{"name": {"contains": search}}, {"email": {"contains": search}}]
        if department:
            where["department"] = department
        if role is not None:
            where["role"] = role.value

        rows = await self.db.users.find_many(
            where, order_by=["name", "id"], limit=limit, offset=offset
        )
        return [
            self._to_profile(
                row, Permissions.user.view_sensitive(actor, UserProfile.model_validate(row))
            )
            for row in rows
        ]

    async def departments(self) -> list[str]:
        """Distinct departments of live members, sorted."""
        rows = await self.db.users.find_many({"deleted_at": None, "department": {"not": None}})
        return sorted({row["department"] for row in rows})

    async def update_profile(
        self, actor: Actor, user_id: UUID, changes: dict[str, Any]
    ) -> UserProfile:
        """Update name, title, department, bio or avatar.

        Raises:
            NotFoundError: If the member does not exist.
            PermissionDeniedError: Unless the actor is the member or a manager.
            ValidationError: If there is nothing to update.
        """
        row = await self._get_row(user_id)
        target = UserProfile.model_validate(row)
        assert_permission(
            Permissions.user.edit(actor, target),
            "You do not have permission to edit this profile",
        )

        data = {k: v for k, v in changes.items() if k in PROFILE_FIELDS}
        updated = await self.db.users.update({"id": user_id, "deleted_at": None}, data)
        if updated is None:
            raise NotFoundError("User not found")
        logger.info("user_profile_updated", user_id=str(user_id), fields=sorted(data))
        return self._to_profile(updated, Permissions.user.view_sensitive(actor, target))

    async def update_sensitive(
        self, actor: Actor, user_id: UUID, changes: dict[str, Any]
    ) -> UserProfile:
        """Update salary, SSN, address or performance rating (managers only).

        An empty SSN clears it; any other value is encrypted before storage.

        Raises:
            PermissionDeniedError: Unless the actor is a manager.
            NotFoundError: If the member does not exist.
        """
        assert_permission(
            Permissions.user.update_sensitive(actor),
            "Only managers can update sensitive fields",
        )
        await self._get_row(user_id)

        data = {k: v for k, v in changes.items() if k in SENSITIVE_FIELDS}
        if "ssn" in data:
            data["ssn"] = self.codec.encrypt(data["ssn"]) if data["ssn"] else None

        updated = await self.db.users.update({"id": user_id, "deleted_at": None}, data)
        if updated is None:
            raise NotFoundError("User not found")
        # Field names only; values are sensitive
        logger.info("user_sensitive_fields_updated", user_id=str(user_id), fields=sorted(data))
        return self._to_profile(updated, include_sensitive=True)

    async def soft_delete(self, actor: Actor, user_id: UUID) -> None:
        """Mark a member deleted. Managers only, and never themselves.

        Raises:
            NotFoundError: If the member does not exist or is already deleted.
            PermissionDeniedError: If the actor may not delete the member.
        """
        row = await self._get_row(user_id)
        target = UserProfile.model_validate(row)
        assert_permission(
            Permissions.user.delete(actor, target),
            "You do not have permission to delete this user",
        )
        await self.db.users.update({"id": user_id}, {"deleted_at": self._clock()})
        logger.info("user_soft_deleted", user_id=str(user_id))

    async def restore(self, actor: Actor, user_id: UUID) -> UserProfile:
        """Bring back a soft-deleted member.

        Raises:
            NotFoundError: If there is no deleted member with this ID.
            PermissionDeniedError: If the actor may not manage the member.
        """
        row = await self._get_row(user_id, deleted=True)
        target = UserProfile.model_validate(row)
        assert_permission(
            Permissions.user.delete(actor, target),
            "You do not have permission to restore this user",
        )
        restored = await self.db.users.update({"id": user_id}, {"deleted_at": None})
        if restored is None:
            raise NotFoundError("User not found")
        logger.info("user_restored", user_id=str(user_id))
        return self._to_profile(restored, include_sensitive=True)
