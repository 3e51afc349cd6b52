"""User model."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, Integer, Numeric, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column

from peoplehub.models.base import TenantModel


class User(TenantModel):
    """A member of an organization.

    ``salary``, ``ssn``, ``address`` and ``performance_rating`` are sensitive:
    only managers and the member themselves may read them. ``ssn`` is stored
    encrypted.
    """

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("organization_id", "email", name="organization_email"),)

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, server_default="EMPLOYEE")
    password_hash: Mapped[str | None] = mapped_column(String(255))
    avatar: Mapped[str | None] = mapped_column(String(1024))
    department: Mapped[str | None] = mapped_column(String(100))
    title: Mapped[str | None] = mapped_column(String(100))
    bio: Mapped[str | None] = mapped_column(String(500))
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=false())
    email_verified_at: Mapped[datetime | None] = mapped_column()
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="ACTIVE")
    last_login_at: Mapped[datetime | None] = mapped_column()
    deleted_at: Mapped[datetime | None] = mapped_column()

    salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    ssn: Mapped[str | None] = mapped_column(String(512))
    address: Mapped[str | None] = mapped_column(String(300))
    performance_rating: Mapped[int | None] = mapped_column(Integer)
