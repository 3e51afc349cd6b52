"""Tests for the notification routes."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from peoplehub.core.auth.session import SESSION_COOKIE
from peoplehub.core.auth.types import SessionData
from peoplehub.core.domain_types import Notification
from peoplehub.core.exceptions import NotFoundError
from peoplehub.entrypoints.api.deps import get_notification_service
from peoplehub.services.notification import NotificationService
from tests.fixtures.api import session_cookie
from tests.fixtures.domain_objects import make_notification_row


@pytest.fixture
def notification_service(api_app: FastAPI) -> AsyncMock:
    """Replace the notification service with a mock."""
    service = AsyncMock(spec=NotificationService)
    api_app.dependency_overrides[get_notification_service] = lambda: service
    return service


@pytest.fixture
def signed_in(
    client: TestClient, tenant_resolver: MagicMock, employee_session: SessionData
) -> TestClient:
    """Client carrying an employee session."""
    client.cookies.set(SESSION_COOKIE, session_cookie(employee_session))
    return client


class TestNotificationRoutes:
    """Tests for /api/notifications."""

    def test_list(
        self, signed_in: TestClient, notification_service: AsyncMock, org_id: uuid.UUID
    ) -> None:
        """Query parameters reach the service."""
        notification_service.list_for.return_value = [
            Notification.model_validate(make_notification_row(org_id))
        ]

        response = signed_in.get("/api/notifications", params={"unread_only": "true", "limit": 5})

        assert response.status_code == 200
        assert len(response.json()) == 1
        assert notification_service.list_for.await_args.kwargs == {"unread_only": True, "limit": 5}

    def test_limit_bounds(self, signed_in: TestClient, notification_service: AsyncMock) -> None:
        """The page size is capped."""
        response = signed_in.get("/api/notifications", params={"limit": 500})

        assert response.status_code == 400
        assert set(response.json()["fields"]) == {"limit"}

    def test_unread_count(self, signed_in: TestClient, notification_service: AsyncMock) -> None:
        """The count is wrapped in an object."""
        notification_service.unread_count.return_value = 7

        response = signed_in.get("/api/notifications/unread-count")

        assert response.json() == {"count": 7}

    def test_mark_read_missing(
        self, signed_in: TestClient, notification_service: AsyncMock
    ) -> None:
        """Other members' notifications are not found."""
        notification_service.mark_read.side_effect = NotFoundError("Notification not found")

        response = signed_in.post(f"/api/notifications/{uuid.uuid4()}/read")

        assert response.status_code == 404

    def test_mark_all_read(self, signed_in: TestClient, notification_service: AsyncMock) -> None:
        """The number of updated notifications is returned."""
        notification_service.mark_all_read.return_value = 3

        response = signed_in.post("/api/notifications/read-all")

        assert response.json() == {"updated": 3}
