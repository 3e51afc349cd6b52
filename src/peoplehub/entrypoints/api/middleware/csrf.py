"""CSRF protection middleware."""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from peoplehub.core.auth.csrf import CSRF_HEADER, validate_request_token
from peoplehub.entrypoints.api.cookies import HttpCookieStore

logger = structlog.get_logger()

PROTECTED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class CSRFMiddleware(BaseHTTPMiddleware):
    """Reject state-changing requests without a valid double-submit token."""

    def __init__(
        self,
        app: ASGIApp,
        exempt_paths: tuple[str, ...] = (),
        enabled: bool = True,
    ) -> None:
        """Initialize CSRF middleware.

        Args:
            app: The ASGI application.
            exempt_paths: Path prefixes that skip the check.
            enabled: Whether the check runs at all.
        """
        super().__init__(app)
        self.exempt_paths = exempt_paths
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Validate the token on mutating requests."""
        if (
            not self.enabled
            or request.method not in PROTECTED_METHODS
            or request.url.path.startswith(self.exempt_paths)
        ):
            return await call_next(request)

        cookies = HttpCookieStore(request)
        if not validate_request_token(cookies, request.headers.get(CSRF_HEADER)):
            logger.warning("csrf_validation_failed")
            return JSONResponse(status_code=403, content={"detail": "Invalid CSRF token"})

        return await call_next(request)
