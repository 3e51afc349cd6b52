"""Login attempt cleanup job.

Run via: python -m peoplehub.jobs.login_attempt_cleanup
"""

import asyncio
import os
from datetime import timedelta

import structlog

from peoplehub.adapters.auth.login_attempts import PostgresLoginAttemptRepository
from peoplehub.adapters.db.app_db import AppDatabase
from peoplehub.core.auth.lockout import AccountLockoutService, LockoutConfig
from peoplehub.logging import configure_logging

logger = structlog.get_logger()

RETENTION_HOURS = int(os.getenv("LOGIN_ATTEMPT_RETENTION_HOURS", "24"))


async def main() -> int:
    """Run login attempt cleanup; returns the number of rows deleted."""
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("database_url_not_set")
        return 0

    db = AppDatabase(database_url, min_size=1, max_size=2)
    await db.connect()
    try:
        service = AccountLockoutService(
            PostgresLoginAttemptRepository(db),
            LockoutConfig(retention=timedelta(hours=RETENTION_HOURS)),
        )
        return await service.cleanup_old_attempts()
    finally:
        await db.close()


if __name__ == "__main__":
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    asyncio.run(main())
