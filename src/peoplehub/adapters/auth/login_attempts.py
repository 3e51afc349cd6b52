"""PostgreSQL implementation of LoginAttemptRepository."""

from datetime import datetime
from typing import Any

from peoplehub.adapters.db.app_db import AppDatabase, rows_affected
from peoplehub.core.auth.types import LoginAttempt


class PostgresLoginAttemptRepository:
    """Login attempt log stored in the ``login_attempts`` table."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection."""
        self._db = db

    def _row_to_attempt(self, row: dict[str, Any]) -> LoginAttempt:
        return LoginAttempt(
            id=row["id"],
            email=row["email"],
            successful=row["successful"],
            ip_address=row.get("ip_address"),
            user_agent=row.get("user_agent"),
            created_at=row["created_at"],
        )

    async def create(
        self,
        email: str,
        successful: bool,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Append an attempt."""
        await self._db.execute(
            """INSERT INTO login_attempts (email, successful, ip_address, user_agent)
               VALUES ($1, $2, $3, $4)""",
            email,
            successful,
            ip_address,
            user_agent,
        )

    async def count_failed(
        self,
        since: datetime,
        email: str | None = None,
        ip_address: str | None = None,
    ) -> int:
        """Count failed attempts since ``since`` for an email and/or address."""
        conditions = ["successful = false", "created_at >= $1"]
        params: list[Any] = [since]
        if email is not None:
            params.append(email)
            conditions.append(f"email = ${len(params)}")
        if ip_address is not None:
            params.append(ip_address)
            conditions.append(f"ip_address = ${len(params)}")

        count = await self._db.fetch_value(
            f"SELECT COUNT(*) FROM login_attempts WHERE {' AND '.join(conditions)}",
            *params,
        )
        return int(count or 0)

    async def latest_failed(self, email: str, since: datetime) -> LoginAttempt | None:
        """Return the newest failed attempt for ``email`` since ``since``."""
        row = await self._db.fetch_one(
            """SELECT * FROM login_attempts
               WHERE email = $1 AND successful = false AND created_at >= $2
               ORDER BY created_at DESC
               LIMIT 1""",
            email,
            since,
        )
        return self._row_to_attempt(row) if row else None

    async def list_for_email(self, email: str, limit: int) -> list[LoginAttempt]:
        """Return attempts for ``email``, newest first."""
        rows = await self._db.fetch_all(
            """SELECT * FROM login_attempts
               WHERE email = $1
               ORDER BY created_at DESC
               LIMIT $2""",
            email,
            limit,
        )
        return [self._row_to_attempt(r) for r in rows]

    async def delete_before(self, cutoff: datetime) -> int:
        """Delete attempts older than ``cutoff``."""
        status = await self._db.execute(
            "DELETE FROM login_attempts WHERE created_at < $1",
            cutoff,
        )
        return rows_affected(status)

    async def delete_failed(self, email: str) -> int:
        """Delete failed attempts for ``email``."""
        status = await self._db.execute(
            "DELETE FROM login_attempts WHERE email = $1 AND successful = false",
            email,
        )
        return rows_affected(status)
