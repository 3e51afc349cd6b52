"""Account lockout tracking.

Lockout state is derived from the append-only login attempt log; nothing is
stored about the lock itself. An account locks once it accumulates
``max_attempts`` failures inside the trailing window and unlocks by itself
``lockout_duration`` after the newest of those failures. Source addresses get
a coarser limit of ``ip_attempt_multiplier * max_attempts`` failures.

Every check fails open: if the attempt log is unreachable, logins proceed.
Availability of the login path is preferred over strict enforcement.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol, runtime_checkable

import structlog

from peoplehub.core.auth.types import LockoutStatus, LoginAttempt

logger = structlog.get_logger()


@dataclass(frozen=True)
class LockoutConfig:
    """Lockout thresholds."""

    max_attempts: int = 5
    lockout_duration: timedelta = timedelta(minutes=15)
    attempt_window: timedelta = timedelta(minutes=15)
    retention: timedelta = timedelta(hours=24)
    ip_attempt_multiplier: int = 3

    @property
    def ip_max_attempts(self) -> int:
        """Failed attempts from one address before it is blocked."""
        return self.max_attempts * self.ip_attempt_multiplier


@runtime_checkable
class LoginAttemptRepository(Protocol):
    """Storage for the login attempt log."""

    async def create(
        self,
        email: str,
        successful: bool,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Append an attempt."""
        ...

    async def count_failed(
        self,
        since: datetime,
        email: str | None = None,
        ip_address: str | None = None,
    ) -> int:
        """Count failed attempts since ``since`` for an email and/or address."""
        ...

    async def latest_failed(self, email: str, since: datetime) -> LoginAttempt | None:
        """Return the newest failed attempt for ``email`` since ``since``."""
        ...

    async def list_for_email(self, email: str, limit: int) -> list[LoginAttempt]:
        """Return attempts for ``email``, newest first."""
        ...

    async def delete_before(self, cutoff: datetime) -> int:
        """Delete attempts older than ``cutoff`` and return how many."""
        ...

    async def delete_failed(self, email: str) -> int:
        """Delete failed attempts for ``email`` and return how many."""
        ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AccountLockoutService:
    """Record login attempts and derive lockout state from them."""

    def __init__(
        self,
        repo: LoginAttemptRepository,
        config: LockoutConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the service.

        Args:
            repo: Login attempt storage.
            config: Thresholds; defaults to 5 attempts / 15 minutes.
            clock: Returns the current aware UTC time.
        """
        self._repo = repo
        self.config = config or LockoutConfig()
        self._clock = clock

    async def record_login_attempt(
        self,
        email: str,
        successful: bool,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Append an attempt to the log. Never raises."""
        try:
            await self._repo.create(
                email=email.lower(),
                successful=successful,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            logger.debug(
                "login_attempt_recorded",
                email=email.lower(),
                successful=successful,
                ip_address=ip_address,
            )
        except Exception:
            logger.exception("login_attempt_record_failed", email=email.lower())

    async def check_account_lockout(self, email: str) -> LockoutStatus:
        """Derive the lockout status for ``email``."""
        normalized = email.lower()
        now = self._clock()
        window_start = now - self.config.attempt_window

        try:
            failed = await self._repo.count_failed(since=window_start, email=normalized)

            if failed >= self.config.max_attempts:
                last_failed = await self._repo.latest_failed(normalized, since=window_start)
                if last_failed is not None:
                    lockout_ends_at = _as_aware(last_failed.created_at) + self.config.lockout_duration
                    if lockout_ends_at > now:
                        logger.warning(
                            "account_locked",
                            email=normalized,
                            failed_attempts=failed,
                            lockout_ends_at=lockout_ends_at.isoformat(),
                        )
                        return LockoutStatus(
                            is_locked=True,
                            remaining_attempts=0,
                            failed_attempts=failed,
                            lockout_ends_at=lockout_ends_at,
                        )

            return LockoutStatus(
                is_locked=False,
                remaining_attempts=max(0, self.config.max_attempts - failed),
                failed_attempts=failed,
            )
        except Exception:
            logger.exception("account_lockout_check_failed", email=normalized)
            return LockoutStatus(
                is_locked=False,
                remaining_attempts=self.config.max_attempts,
                failed_attempts=0,
            )

    async def check_ip_lockout(self, ip_address: str | None) -> bool:
        """Whether ``ip_address`` is temporarily blocked."""
        if not ip_address:
            return False

        window_start = self._clock() - self.config.attempt_window
        try:
            failed = await self._repo.count_failed(since=window_start, ip_address=ip_address)
        except Exception:
            logger.exception("ip_lockout_check_failed", ip_address=ip_address)
            return False

        if failed >= self.config.ip_max_attempts:
            logger.warning("ip_address_blocked", ip_address=ip_address, failed_attempts=failed)
            return True
        return False

    async def cleanup_old_attempts(self) -> int:
        """Delete attempts past the retention horizon. Returns 0 on failure."""
        cutoff = self._clock() - self.config.retention
        try:
            deleted = await self._repo.delete_before(cutoff)
        except Exception:
            logger.exception("login_attempt_cleanup_failed")
            return 0

        logger.info("login_attempts_cleaned", deleted_count=deleted, cutoff=cutoff.isoformat())
        return deleted

    async def get_login_attempt_history(self, email: str, limit: int = 20) -> list[LoginAttempt]:
        """Return recent attempts for ``email``, newest first. Empty on failure."""
        try:
            return await self._repo.list_for_email(email.lower(), limit)
        except Exception:
            logger.exception("login_attempt_history_failed", email=email.lower())
            return []

    async def clear_failed_attempts(self, email: str) -> None:
        """Forget failed attempts for ``email`` (admin unlock, password reset)."""
        normalized = email.lower()
        try:
            deleted = await self._repo.delete_failed(normalized)
            logger.info("failed_login_attempts_cleared", email=normalized, deleted_count=deleted)
        except Exception:
            logger.exception("failed_login_attempts_clear_failed", email=normalized)


def _as_aware(value: datetime) -> datetime:
    """Treat naive timestamps from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
