"""Exception handlers mapping domain errors to HTTP responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from peoplehub.core.exceptions import PeopleHubError, ValidationError

logger = structlog.get_logger()

# Where a request field came from; only the field path is shown to clients
_LOCATIONS = {"body", "query", "path", "header", "cookie"}


async def peoplehub_error_handler(request: Request, exc: PeopleHubError) -> JSONResponse:
    """Render a domain error with its status code and client-safe message."""
    if exc.status_code == 500:
        logger.error("request_failed", error_type=type(exc).__name__, error=exc.message)
        return _internal_error(request)

    content: dict[str, object] = {"detail": exc.message}
    if isinstance(exc, ValidationError) and exc.fields:
        content["fields"] = exc.fields
    response = JSONResponse(status_code=exc.status_code, content=content)
    _carry_cookies(request, response)
    return response


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render malformed input as a 400 with one message per field."""
    fields: dict[str, str] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if len(loc) > 1 and loc[0] in _LOCATIONS:
            loc = loc[1:]
        fields.setdefault(".".join(loc) or "request", error.get("msg", "Invalid value"))

    logger.info("request_validation_failed", path=request.url.path, fields=sorted(fields))
    return await peoplehub_error_handler(request, ValidationError(fields=fields))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback and answer with a generic 500."""
    logger.exception("unhandled_exception", error_type=type(exc).__name__)
    return _internal_error(request)


def _internal_error(request: Request) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "request_id": getattr(request.state, "request_id", None),
        },
    )


def _carry_cookies(request: Request, response: JSONResponse) -> None:
    """Keep cookie changes made before the error (e.g. a rejected session being cleared)."""
    source = getattr(request.state, "cookie_response", None)
    if source is None:
        return
    response.raw_headers.extend(
        (key, value) for key, value in source.raw_headers if key == b"set-cookie"
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on ``app``."""
    app.add_exception_handler(PeopleHubError, peoplehub_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, request_validation_error_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unhandled_error_handler)
