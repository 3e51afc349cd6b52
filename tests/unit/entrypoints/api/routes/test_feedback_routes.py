"""Tests for the feedback routes."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from peoplehub.core.auth.session import SESSION_COOKIE
from peoplehub.core.auth.types import SessionData
from peoplehub.core.domain_types import Feedback
from peoplehub.core.exceptions import NotFoundError, PermissionDeniedError
from peoplehub.core.tenancy import current_or_none
from peoplehub.entrypoints.api.deps import get_feedback_service
from peoplehub.services.feedback import FeedbackService
from tests.fixtures.api import session_cookie
from tests.fixtures.domain_objects import make_feedback_row


@pytest.fixture
def feedback_service(api_app: FastAPI) -> AsyncMock:
    """Replace the feedback service with a mock."""
    service = AsyncMock(spec=FeedbackService)
    api_app.dependency_overrides[get_feedback_service] = lambda: service
    return service


@pytest.fixture
def signed_in(
    client: TestClient, tenant_resolver: MagicMock, employee_session: SessionData
) -> TestClient:
    """Client carrying an employee session."""
    client.cookies.set(SESSION_COOKIE, session_cookie(employee_session))
    return client


class TestFeedbackRoutes:
    """Tests for /api/feedback."""

    def test_requires_session(self, client: TestClient, feedback_service: AsyncMock) -> None:
        """Anonymous callers get 401."""
        response = client.get("/api/feedback/given")

        assert response.status_code == 401
        feedback_service.list_given.assert_not_awaited()

    def test_give(
        self,
        signed_in: TestClient,
        feedback_service: AsyncMock,
        employee_session: SessionData,
        org_id: uuid.UUID,
    ) -> None:
        """Feedback is created under the caller's organization."""
        receiver_id = uuid.uuid4()
        seen_tenants = []

        async def give(actor: SessionData, receiver: uuid.UUID, content: str) -> Feedback:
            seen_tenants.append(current_or_none())
            return Feedback.model_validate(
                make_feedback_row(org_id, giver_id=actor.user_id, receiver_id=receiver)
            )

        feedback_service.give.side_effect = give

        response = signed_in.post(
            "/api/feedback",
            json={"receiver_id": str(receiver_id), "content": "Great work on the launch."},
        )

        assert response.status_code == 201
        assert response.json()["receiver_id"] == str(receiver_id)
        assert seen_tenants[0] is not None
        assert seen_tenants[0].organization_id == org_id

    def test_give_to_self(self, signed_in: TestClient, feedback_service: AsyncMock) -> None:
        """Predicate denials are 403."""
        feedback_service.give.side_effect = PermissionDeniedError(
            "You cannot give feedback to yourself"
        )

        response = signed_in.post(
            "/api/feedback",
            json={"receiver_id": str(uuid.uuid4()), "content": "I am great."},
        )

        assert response.status_code == 403
        assert response.json() == {"detail": "You cannot give feedback to yourself"}

    def test_invalid_receiver_id(self, signed_in: TestClient, feedback_service: AsyncMock) -> None:
        """Malformed IDs are rejected before the service."""
        response = signed_in.post(
            "/api/feedback", json={"receiver_id": "not-a-uuid", "content": "Great work."}
        )

        assert response.status_code == 400
        assert set(response.json()["fields"]) == {"receiver_id"}
        feedback_service.give.assert_not_awaited()

    def test_list_received(
        self, signed_in: TestClient, feedback_service: AsyncMock, org_id: uuid.UUID
    ) -> None:
        """Received feedback is listed."""
        feedback_service.list_received.return_value = [
            Feedback.model_validate(make_feedback_row(org_id)) for _ in range(2)
        ]

        response = signed_in.get("/api/feedback/received")

        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_list_for_unknown_user(
        self, signed_in: TestClient, feedback_service: AsyncMock
    ) -> None:
        """Members of other organizations are not found."""
        feedback_service.list_for_user.side_effect = NotFoundError("User not found")

        response = signed_in.get(f"/api/feedback/users/{uuid.uuid4()}")

        assert response.status_code == 404

    def test_delete(self, signed_in: TestClient, feedback_service: AsyncMock) -> None:
        """Deletes answer 204 with no body."""
        feedback_id = uuid.uuid4()

        response = signed_in.delete(f"/api/feedback/{feedback_id}")

        assert response.status_code == 204
        assert response.content == b""
        assert feedback_service.delete.await_args.args[1] == feedback_id
