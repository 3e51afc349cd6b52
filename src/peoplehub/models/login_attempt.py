"""Login attempt log model."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from peoplehub.models.base import BaseModel


class LoginAttempt(BaseModel):
    """One password login attempt. Append-only; pruned after 24 hours."""

    __tablename__ = "login_attempts"

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    successful: Mapped[bool] = mapped_column(Boolean, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(45), index=True)
    user_agent: Mapped[str | None] = mapped_column(String(512))
