"""Notification model for in-app alerts."""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from projecthub.db.base import BaseModel


class Notification(BaseModel):
    """
    In-app notification for a single recipient.

    Rows are written by the workflow handlers and read by the notification
    bell; there is no delivery or ordering guarantee beyond created_at.
    """

    __tablename__ = "notifications"

    # Recipient
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Notification content
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        comment="Notification title/headline",
    )
    message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Notification body/details",
    )
    type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="Tag such as STAGE_APPROVED or BLOCKER_ASSIGNED",
    )
    link: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
        comment="Direct URL to navigate to",
    )

    # Status
    is_read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Notification {self.type} user={self.user_id}>"
