"""Notification API endpoints."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.auth import CurrentUser
from projecthub.api.v1.schemas import DataResponse, NotificationResponse
from projecthub.db.session import get_db_session
from projecthub.services.deadline import DeadlineService
from projecthub.services.notification import NotificationService

router = APIRouter()
logger = structlog.get_logger()


@router.get("", response_model=DataResponse[list[NotificationResponse]])
async def list_notifications(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Run the task deadline check for the user, then list their latest notifications."""
    await DeadlineService(db).notify_due_tasks(current_user.id)

    service = NotificationService(db)
    return {"data": await service.list_for_user(current_user.id)}


@router.patch("/{notification_id}/read", response_model=DataResponse[NotificationResponse])
async def mark_notification_read(
    notification_id: UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Mark a notification as read."""
    service = NotificationService(db)
    notification = await service.mark_read(notification_id, current_user.id)

    if notification is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found.",
        )

    return {"data": notification}


@router.post("/read-all", response_model=DataResponse[dict[str, int]])
async def mark_all_notifications_read(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Mark all of the user's notifications as read."""
    service = NotificationService(db)
    count = await service.mark_all_read(current_user.id)
    return {"data": {"updated": count}}
