"""Liveness and readiness checks."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from peoplehub.adapters.db.app_db import AppDatabase
from peoplehub.entrypoints.api.deps import get_app_db

logger = structlog.get_logger()

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@router.get("/live")
async def liveness() -> dict[str, str]:
    """The process is up."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(
    app_db: Annotated[AppDatabase, Depends(get_app_db)],
) -> JSONResponse:
    """The database answers; 503 otherwise."""
    try:
        await app_db.ping()
    except Exception as e:
        logger.warning("readiness_check_failed", error=str(e))
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "database": "unreachable"},
        )
    return JSONResponse(content={"status": "ready", "database": "ok"})
