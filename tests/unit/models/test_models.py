"""Unit tests for the table models."""

from __future__ import annotations

import pytest
from sqlalchemy import DateTime, Table

from peoplehub.models import TENANT_MODELS, BaseModel, LoginAttempt, OAuthAccount, Organization


def _table(model: type[BaseModel]) -> Table:
    table = model.__table__
    assert isinstance(table, Table)
    return table


class TestBaseModel:
    """Tests for the shared columns."""

    def test_all_tables_registered(self) -> None:
        """Every model lands in the shared metadata."""
        assert set(BaseModel.metadata.tables) == {
            "organizations",
            "users",
            "feedback",
            "absence_requests",
            "notifications",
            "invitations",
            "login_attempts",
            "oauth_accounts",
        }

    @pytest.mark.parametrize("model", [Organization, LoginAttempt, OAuthAccount])
    def test_common_columns(self, model: type[BaseModel]) -> None:
        """id, created_at and updated_at come from the base."""
        columns = _table(model).c
        assert columns.id.primary_key
        assert columns.id.server_default is not None
        assert "created_at" in columns
        assert "updated_at" in columns

    def test_timestamps_are_timezone_aware(self) -> None:
        """Every datetime column is timestamptz."""
        for table in BaseModel.metadata.tables.values():
            for column in table.columns:
                if isinstance(column.type, DateTime):
                    assert column.type.timezone, f"{table.name}.{column.name}"


class TestTenantModels:
    """Tests for organization-owned tables."""

    @pytest.mark.parametrize("kind", sorted(TENANT_MODELS))
    def test_owned_by_organization(self, kind: str) -> None:
        """Tenant tables reference organizations and cascade on delete."""
        column = _table(TENANT_MODELS[kind]).c.organization_id

        assert not column.nullable
        (fk,) = column.foreign_keys
        assert fk.target_fullname == "organizations.id"
        assert fk.ondelete == "CASCADE"

    def test_global_tables_are_not_tenant_models(self) -> None:
        """Organizations and auth bookkeeping are not tenant scoped."""
        for model in (Organization, LoginAttempt, OAuthAccount):
            assert "organization_id" not in _table(model).c
            assert model not in TENANT_MODELS.values()

    def test_email_unique_per_organization(self) -> None:
        """The same email may exist in two organizations, not twice in one."""
        users = _table(TENANT_MODELS["user"])
        unique_sets = [
            {c.name for c in constraint.columns}
            for constraint in users.constraints
            if constraint.__class__.__name__ == "UniqueConstraint"
        ]
        assert {"organization_id", "email"} in unique_sets
        assert not users.c.email.unique

    def test_sensitive_user_columns(self) -> None:
        """Salary, SSN, address and rating live on the user row; the SSN column fits ciphertext."""
        columns = _table(TENANT_MODELS["user"]).c
        for name in ("salary", "ssn", "address", "performance_rating"):
            assert columns[name].nullable
        assert columns.ssn.type.length >= 256

    def test_invitation_stores_only_token_hash(self) -> None:
        """Invitation tokens are never persisted in plain text."""
        columns = _table(TENANT_MODELS["invitation"]).c
        assert "token_hash" in columns
        assert "token" not in columns
        assert columns.token_hash.unique
        (fk,) = columns.invited_by_id.foreign_keys
        assert fk.ondelete == "SET NULL"
