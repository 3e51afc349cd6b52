"""Organization model; the tenant boundary."""

from datetime import datetime
from typing import Any

from sqlalchemy import String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from peoplehub.models.base import BaseModel


class Organization(BaseModel):
    """An organization (tenant)."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    # Email domain used to suggest joining on OAuth sign-up
    domain: Mapped[str | None] = mapped_column(String(255), index=True)
    settings: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, server_default="{}")
    deleted_at: Mapped[datetime | None] = mapped_column()
