"""API middleware."""

from peoplehub.entrypoints.api.middleware.csrf import CSRFMiddleware
from peoplehub.entrypoints.api.middleware.request_context import RequestContextMiddleware

__all__ = ["CSRFMiddleware", "RequestContextMiddleware"]
