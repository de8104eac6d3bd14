"""Notification service for creating in-app notifications."""

from collections.abc import Iterable
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.config import get_settings
from projecthub.models.activity import Notification

logger = structlog.get_logger()


class NotificationService:
    """Service for creating and managing user notifications."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify(
        self,
        user_id: UUID,
        notification_type: str,
        title: str,
        message: str,
        link: str | None = None,
    ) -> Notification | None:
        """Create a single notification for a user."""
        notifications = await self.notify_many(
            user_ids=[user_id],
            notification_type=notification_type,
            title=title,
            message=message,
            link=link,
        )
        return notifications[0] if notifications else None

    async def notify_many(
        self,
        user_ids: Iterable[UUID | None],
        notification_type: str,
        title: str,
        message: str,
        link: str | None = None,
        exclude: UUID | None = None,
    ) -> list[Notification]:
        """
        Insert one notification per distinct recipient.

        Args:
            user_ids: Recipients; duplicates and None are dropped, order kept
            notification_type: Tag such as 'STAGE_REJECTED'
            title: Notification title
            message: Notification body
            link: Optional URL to navigate to
            exclude: Optional user (usually the actor) who is never notified

        Returns:
            Created notifications, or an empty list when the insert failed.
            A failed insert is rolled back to a savepoint and logged; the
            caller's objects and earlier commits are left in place.
        """
        recipients: list[UUID] = []
        for user_id in user_ids:
            if user_id is None or user_id == exclude or user_id in recipients:
                continue
            recipients.append(user_id)

        if not recipients:
            return []

        notifications = [
            Notification(
                user_id=user_id,
                type=notification_type,
                title=title,
                message=message,
                link=link,
                is_read=False,
            )
            for user_id in recipients
        ]

        try:
            # A failed insert rolls back to the savepoint only
            async with self.db.begin_nested():
                self.db.add_all(notifications)
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.warning(
                "notification_insert_failed",
                notification_type=notification_type,
                recipients=len(recipients),
                error=str(e),
            )
            return []

        logger.info(
            "notifications_created",
            notification_type=notification_type,
            recipients=len(recipients),
        )
        return notifications

    async def list_for_user(self, user_id: UUID, limit: int | None = None) -> list[Notification]:
        """Latest notifications for a user, newest first."""
        limit = limit or get_settings().notification_list_limit
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> Notification | None:
        """Mark one of the user's notifications as read."""
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            return None

        notification.is_read = True
        await self.db.commit()
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        """Mark every unread notification of the user as read."""
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount or 0
