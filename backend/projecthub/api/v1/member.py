"""Member dashboard endpoints."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.auth import CurrentUser
from projecthub.api.v1.schemas import BlockerResponse, DataResponse
from projecthub.db.session import get_db_session
from projecthub.services.blocker import BlockerService
from projecthub.services.deadline import DeadlineReminder, DeadlineService

router = APIRouter()
logger = structlog.get_logger()


@router.get("/blockers", response_model=DataResponse[list[BlockerResponse]])
async def list_assigned_blockers(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Unresolved blockers assigned to the current user."""
    service = BlockerService(db)
    return {"data": await service.list_assigned(current_user.id)}


@router.get("/deadline-reminders", response_model=DataResponse[list[DeadlineReminder]])
async def list_deadline_reminders(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Project and stage deadlines due within the reminder horizon."""
    service = DeadlineService(db)
    return {"data": await service.get_reminders(current_user.id)}
