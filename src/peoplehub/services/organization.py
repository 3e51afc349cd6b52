"""Organization lookups and tenant resolution."""
import structlog

from peoplehub.adapters.db.app_db import AppDatabase
from peoplehub.core.auth.types import SessionData
from peoplehub.core.domain_types import OrganizationInfo
from peoplehub.core.exceptions import AuthorizationError
from peoplehub.core.tenancy import TenantContext

logger = structlog.get_logger()


class OrganizationService:
    """Service for organization (tenant) operations."""

    def __init__(self, db: AppDatabase):
        self.db = db

    async def get_public_info(self, slug: str) -> OrganizationInfo | None:
        """Name and slug of an organization, for the join page."""
        result = await self.db.get_organization_by_slug(slug)
        if not result:
            return None
        return OrganizationInfo(name=result["name"], slug=result["slug"])

    async def resolve_tenant(self, session: SessionData) -> TenantContext:
        """Build the tenant context for an authenticated request.

        Raises:
            AuthorizationError: If the session's organization no longer exists.
        """
        result = await self.db.get_organization(session.organization_id)
        if not result:
            logger.warning(
                "session_organization_missing",
                user_id=str(session.user_id),
                org_id=str(session.organization_id),
            )
            raise AuthorizationError("Organization not found. Please log in again.")

        return TenantContext(
            organization_id=result["id"],
            organization_slug=result["slug"],
            organization_name=result["name"],
        )
