"""Unit tests for AppDatabase."""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from peoplehub.adapters.db.app_db import AppDatabase, rows_affected


class TestAppDatabase:
    """Tests for AppDatabase."""

    @pytest.fixture
    def mock_conn(self) -> MagicMock:
        """Return a mock connection."""
        conn = MagicMock()
        conn.fetchrow = AsyncMock(return_value=None)
        conn.fetch = AsyncMock(return_value=[])
        conn.fetchval = AsyncMock(return_value=1)
        conn.execute = AsyncMock(return_value="UPDATE 1")

        @asynccontextmanager
        async def transaction():
            yield

        conn.transaction = transaction
        return conn

    @pytest.fixture
    def db(self, mock_conn: MagicMock) -> AppDatabase:
        """Return an AppDatabase with a mocked pool."""
        db = AppDatabase("postgresql://user:pw@localhost:5432/peoplehub")
        mock_pool = MagicMock()

        @asynccontextmanager
        async def mock_acquire():
            yield mock_conn

        mock_pool.acquire = mock_acquire
        mock_pool.close = AsyncMock()
        db.pool = mock_pool
        return db

    async def test_connect_creates_pool(self) -> None:
        """connect() creates the asyncpg pool."""
        db = AppDatabase("postgresql://localhost/peoplehub", min_size=1, max_size=3)
        mock_pool = MagicMock()

        with patch(
            "peoplehub.adapters.db.app_db.asyncpg.create_pool", AsyncMock(return_value=mock_pool)
        ) as create_pool:
            await db.connect()

        assert db.pool is mock_pool
        assert create_pool.call_args.kwargs["min_size"] == 1
        assert create_pool.call_args.kwargs["max_size"] == 3

    async def test_close(self, db: AppDatabase) -> None:
        """close() closes and forgets the pool."""
        pool = db.pool

        await db.close()

        pool.close.assert_awaited_once()
        assert db.pool is None

    async def test_acquire_without_pool(self) -> None:
        """Queries fail clearly before connect()."""
        with pytest.raises(RuntimeError, match="not initialized"):
            await AppDatabase("postgresql://localhost/x").fetch_one("SELECT 1")

    async def test_fetch_one_converts_record(self, db: AppDatabase, mock_conn: MagicMock) -> None:
        """Rows come back as dicts."""
        mock_conn.fetchrow.return_value = {"id": 1, "name": "Acme"}

        assert await db.fetch_one("SELECT * FROM organizations WHERE id = $1", 1) == {
            "id": 1,
            "name": "Acme",
        }

    async def test_fetch_all(self, db: AppDatabase, mock_conn: MagicMock) -> None:
        """All rows come back as dicts."""
        mock_conn.fetch.return_value = [{"id": 1}, {"id": 2}]

        assert await db.fetch_all("SELECT id FROM users") == [{"id": 1}, {"id": 2}]

    async def test_ping(self, db: AppDatabase, mock_conn: MagicMock) -> None:
        """ping() runs SELECT 1."""
        assert await db.ping()
        mock_conn.fetchval.assert_awaited_once_with("SELECT 1")

    async def test_transaction_yields_connection(
        self, db: AppDatabase, mock_conn: MagicMock
    ) -> None:
        """transaction() hands out the pooled connection."""
        async with db.transaction() as conn:
            assert conn is mock_conn

    async def test_get_organization_excludes_deleted(
        self, db: AppDatabase, mock_conn: MagicMock
    ) -> None:
        """Soft-deleted organizations are never returned."""
        org_id = uuid.uuid4()

        await db.get_organization(org_id)

        query = mock_conn.fetchrow.call_args.args[0]
        assert "deleted_at IS NULL" in query

    async def test_email_in_use(self, db: AppDatabase, mock_conn: MagicMock) -> None:
        """Emails are compared case-insensitively across organizations."""
        mock_conn.fetchrow.return_value = {"?column?": 1}

        assert await db.email_in_use("Jane@Acme.io") is True

        query, email = mock_conn.fetchrow.call_args.args
        assert "lower(email) = lower($1)" in query
        assert "organization_id" not in query
        assert email == "Jane@Acme.io"

    async def test_email_not_in_use(self, db: AppDatabase, mock_conn: MagicMock) -> None:
        """No row means the email is free."""
        mock_conn.fetchrow.return_value = None

        assert await db.email_in_use("new@acme.io") is False


class TestRowsAffected:
    """Tests for rows_affected."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [("DELETE 3", 3), ("UPDATE 0", 0), ("INSERT 0 5", 5), ("", 0), ("BEGIN", 0)],
    )
    def test_parse(self, status: str, expected: int) -> None:
        """The trailing count is parsed; anything else is zero."""
        assert rows_affected(status) == expected
