"""Domain exceptions shared by core services and adapters.

Each exception carries the HTTP status the API layer maps it to, so handlers
never need to know which subsystem raised it.
"""


class PeopleHubError(Exception):
    """Base class for all application errors."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        """Initialize with an optional client-safe message."""
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ConfigurationError(PeopleHubError):
    """Raised when required configuration is missing or invalid.

    Raised at startup only; the process refuses to start.
    """

    default_message = "Invalid configuration"


class AuthorizationError(PeopleHubError):
    """Raised when the caller is not authenticated for the operation."""

    status_code = 401
    default_message = "Authentication required"


class TenantContextError(AuthorizationError):
    """Raised when a tenant-scoped write runs without a tenant context."""

    default_message = "No organization context found. Please log in again."


class OAuthSessionError(AuthorizationError):
    """Raised when the pending OAuth cookie is missing or undecryptable."""

    default_message = "OAuth session expired. Please try signing in again."


class OAuthSessionMismatchError(OAuthSessionError):
    """Raised when submitted identity fields differ from the pending cookie."""

    default_message = "Session mismatch. Please try signing in again."


class PermissionDeniedError(PeopleHubError):
    """Raised when a permission predicate denies the action."""

    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFoundError(PeopleHubError):
    """Raised when a resource does not exist or is not visible to the tenant."""

    status_code = 404
    default_message = "Not found"


class ValidationError(PeopleHubError):
    """Raised for malformed input."""

    status_code = 400
    default_message = "Invalid request"

    def __init__(self, message: str | None = None, fields: dict[str, str] | None = None) -> None:
        """Initialize with an optional field -> message mapping."""
        super().__init__(message)
        self.fields = fields or {}


class ConflictError(PeopleHubError):
    """Raised for duplicates (organization slug, account, overlapping absence)."""

    status_code = 409
    default_message = "Resource already exists"


class AccountLockedError(PeopleHubError):
    """Raised when an account or source address is temporarily locked out."""

    status_code = 429
    default_message = "Too many failed login attempts. Please try again later."


class OAuthProviderError(PeopleHubError):
    """Raised when an OAuth provider rejects or fails a request."""

    status_code = 502
    default_message = "OAuth provider request failed"
