"""FastAPI application definition."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from peoplehub.logging import configure_logging

from .deps import Settings, lifespan
from .errors import register_exception_handlers
from .middleware import CSRFMiddleware, RequestContextMiddleware
from .routes import api_router


def create_app(settings: Settings | None = None, csrf_enabled: bool = True) -> FastAPI:
    """Build the API application.

    Args:
        settings: Settings to use; read from the environment when omitted.
        csrf_enabled: Whether mutating requests must carry a CSRF token.
    """
    settings = settings or Settings()
    configure_logging(settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="peoplehub",
        description="Multi-tenant people management API",
        version="1.0.0",
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.settings = settings

    # Last added runs first: CORS, then request context, then CSRF
    app.add_middleware(CSRFMiddleware, enabled=csrf_enabled)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.app_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
