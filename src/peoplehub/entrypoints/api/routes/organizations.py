"""Public organization lookups."""

from typing import Annotated

from fastapi import APIRouter, Depends

from peoplehub.core.domain_types import OrganizationInfo
from peoplehub.core.exceptions import NotFoundError
from peoplehub.entrypoints.api.deps import get_organization_service
from peoplehub.services.organization import OrganizationService

router = APIRouter(prefix="/organizations", tags=["organizations"])

OrganizationServiceDep = Annotated[OrganizationService, Depends(get_organization_service)]


@router.get("/{slug}/info", response_model=OrganizationInfo)
async def get_organization_info(
    slug: str,
    service: OrganizationServiceDep,
) -> OrganizationInfo:
    """Name and slug for the join page. No authentication required."""
    info = await service.get_public_info(slug)
    if info is None:
        raise NotFoundError("Organization not found")
    return info
