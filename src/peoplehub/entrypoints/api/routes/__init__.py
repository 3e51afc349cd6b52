"""API route modules."""

from fastapi import APIRouter

from peoplehub.entrypoints.api.routes.absences import router as absences_router
from peoplehub.entrypoints.api.routes.auth import router as auth_router
from peoplehub.entrypoints.api.routes.csrf import router as csrf_router
from peoplehub.entrypoints.api.routes.feedback import router as feedback_router
from peoplehub.entrypoints.api.routes.health import router as health_router
from peoplehub.entrypoints.api.routes.invitations import router as invitations_router
from peoplehub.entrypoints.api.routes.notifications import router as notifications_router
from peoplehub.entrypoints.api.routes.oauth import router as oauth_router
from peoplehub.entrypoints.api.routes.organizations import router as organizations_router
from peoplehub.entrypoints.api.routes.users import router as users_router

# Create main API router
api_router = APIRouter()

# Fixed /auth paths must be registered before the /auth/{provider} routes
api_router.include_router(auth_router)
api_router.include_router(oauth_router)
api_router.include_router(csrf_router)
api_router.include_router(health_router)
api_router.include_router(organizations_router)
api_router.include_router(feedback_router)
api_router.include_router(absences_router)
api_router.include_router(notifications_router)
api_router.include_router(users_router)
api_router.include_router(invitations_router)

__all__ = ["api_router"]
