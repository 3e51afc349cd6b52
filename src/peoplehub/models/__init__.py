"""SQLAlchemy models for the application database."""
from peoplehub.models.base import BaseModel, TenantModel
from peoplehub.models.organization import Organization
from peoplehub.models.user import User
from peoplehub.models.feedback import Feedback
from peoplehub.models.absence_request import AbsenceRequest
from peoplehub.models.notification import Notification
from peoplehub.models.invitation import Invitation
from peoplehub.models.login_attempt import LoginAttempt
from peoplehub.models.oauth_account import OAuthAccount

# Entity kinds whose rows belong to exactly one organization
TENANT_MODELS: dict[str, type[TenantModel]] = {
    "user": User,
    "feedback": Feedback,
    "absence_request": AbsenceRequest,
    "notification": Notification,
    "invitation": Invitation,
}

__all__ = [
    "BaseModel",
    "TenantModel",
    "TENANT_MODELS",
    "Organization",
    "User",
    "Feedback",
    "AbsenceRequest",
    "Notification",
    "Invitation",
    "LoginAttempt",
    "OAuthAccount",
]
