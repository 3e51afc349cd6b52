"""Tests for the absence request routes."""

from __future__ import annotations

import uuid
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from peoplehub.core.auth.session import SESSION_COOKIE
from peoplehub.core.auth.types import SessionData
from peoplehub.core.domain_types import AbsenceRequest, AbsenceStatus
from peoplehub.core.exceptions import (
    AuthorizationError,
    ConflictError,
    PermissionDeniedError,
    ValidationError,
)
from peoplehub.entrypoints.api.deps import get_absence_service
from peoplehub.services.absence import AbsenceService
from tests.fixtures.api import session_cookie
from tests.fixtures.domain_objects import make_absence_row


@pytest.fixture
def absence_service(api_app: FastAPI) -> AsyncMock:
    """Replace the absence service with a mock."""
    service = AsyncMock(spec=AbsenceService)
    api_app.dependency_overrides[get_absence_service] = lambda: service
    return service


@pytest.fixture
def as_manager(
    client: TestClient, tenant_resolver: MagicMock, manager_session: SessionData
) -> TestClient:
    """Client carrying a manager session."""
    client.cookies.set(SESSION_COOKIE, session_cookie(manager_session))
    return client


class TestAbsenceRoutes:
    """Tests for /api/absences."""

    def test_create(
        self, as_manager: TestClient, absence_service: AsyncMock, org_id: uuid.UUID
    ) -> None:
        """Dates are parsed and the new request is returned."""
        absence_service.create.return_value = AbsenceRequest.model_validate(
            make_absence_row(org_id)
        )

        response = as_manager.post(
            "/api/absences",
            json={
                "start_date": "2026-03-10",
                "end_date": "2026-03-12",
                "reason": "Family trip to the coast",
            },
        )

        assert response.status_code == 201
        assert response.json()["status"] == "PENDING"
        _, start, end, reason = absence_service.create.await_args.args
        assert (start, end) == (date(2026, 3, 10), date(2026, 3, 12))
        assert reason == "Family trip to the coast"

    def test_create_validation_fields(
        self, as_manager: TestClient, absence_service: AsyncMock
    ) -> None:
        """Field errors are included in the 400 body."""
        absence_service.create.side_effect = ValidationError(
            "Invalid absence request", fields={"start_date": "Start date cannot be in the past"}
        )

        response = as_manager.post(
            "/api/absences",
            json={"start_date": "2020-01-01", "end_date": "2020-01-02", "reason": "Old trip!!"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "detail": "Invalid absence request",
            "fields": {"start_date": "Start date cannot be in the past"},
        }

    def test_create_overlap(self, as_manager: TestClient, absence_service: AsyncMock) -> None:
        """Overlaps are 409."""
        absence_service.create.side_effect = ConflictError("overlap")

        response = as_manager.post(
            "/api/absences",
            json={"start_date": "2026-03-10", "end_date": "2026-03-12", "reason": "Trip again!"},
        )

        assert response.status_code == 409

    def test_list_with_status(self, as_manager: TestClient, absence_service: AsyncMock) -> None:
        """The status query parameter is parsed into the enum."""
        absence_service.list_all.return_value = []

        response = as_manager.get("/api/absences", params={"status": "APPROVED"})

        assert response.status_code == 200
        assert absence_service.list_all.await_args.args[1] == AbsenceStatus.APPROVED

    def test_list_with_unknown_status(
        self, as_manager: TestClient, absence_service: AsyncMock
    ) -> None:
        """Unknown statuses are rejected."""
        response = as_manager.get("/api/absences", params={"status": "MAYBE"})

        assert response.status_code == 400
        assert set(response.json()["fields"]) == {"status"}

    def test_list_mine(
        self, as_manager: TestClient, absence_service: AsyncMock, org_id: uuid.UUID
    ) -> None:
        """/me is not taken for an absence ID."""
        absence_service.list_mine.return_value = [
            AbsenceRequest.model_validate(make_absence_row(org_id))
        ]

        response = as_manager.get("/api/absences/me")

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_approve(
        self, as_manager: TestClient, absence_service: AsyncMock, org_id: uuid.UUID
    ) -> None:
        """Managers decide on requests."""
        row = make_absence_row(org_id, status="APPROVED")
        absence_service.update_status.return_value = AbsenceRequest.model_validate(row)

        response = as_manager.patch(
            f"/api/absences/{row['id']}/status", json={"status": "APPROVED"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"

    def test_delete_decided_request(
        self, as_manager: TestClient, absence_service: AsyncMock
    ) -> None:
        """Decided requests cannot be withdrawn."""
        absence_service.delete.side_effect = PermissionDeniedError()

        response = as_manager.delete(f"/api/absences/{uuid.uuid4()}")

        assert response.status_code == 403

    def test_stale_organization(
        self,
        client: TestClient,
        tenant_resolver: MagicMock,
        absence_service: AsyncMock,
        employee_session: SessionData,
    ) -> None:
        """A session whose organization is gone is 401."""
        tenant_resolver.resolve_tenant.side_effect = AuthorizationError(
            "Organization not found. Please log in again."
        )
        client.cookies.set(SESSION_COOKIE, session_cookie(employee_session))

        response = client.get("/api/absences/me")

        assert response.status_code == 401
        absence_service.list_mine.assert_not_awaited()
