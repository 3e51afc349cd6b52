"""Peer feedback model."""

from uuid import UUID

from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from peoplehub.models.base import TenantModel


class Feedback(TenantModel):
    """Feedback one member wrote about another."""

    __tablename__ = "feedback"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    giver_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    receiver_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
