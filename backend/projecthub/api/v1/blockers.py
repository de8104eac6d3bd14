"""Blockers API endpoints."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.auth import CurrentUser
from projecthub.api.v1.schemas import BlockerResponse, CamelModel, DataResponse
from projecthub.db.session import get_db_session
from projecthub.services.access_control import check_project_access
from projecthub.services.blocker import BlockerService

router = APIRouter()
logger = structlog.get_logger()


# Request Models
class BlockerCreate(CamelModel):
    """Report a blocker on a task."""

    task_id: UUID
    title: str | None = None
    product: str | None = None
    reason: str | None = None
    notes: str | None = None


class BlockerUpdate(CamelModel):
    """Assign, unassign or change the status of a blocker."""

    assignee_id: UUID | None = None
    status: str | None = None
    notes: str | None = None


@router.get("", response_model=DataResponse[list[BlockerResponse]])
async def list_blockers(
    current_user: CurrentUser,
    project_id: UUID | None = Query(None, alias="projectId"),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """List blockers of the projects the user owns or belongs to."""
    service = BlockerService(db)

    project_ids = None
    if project_id is not None:
        await check_project_access(db, project_id, current_user.id)
        project_ids = [project_id]

    return {"data": await service.list_for_user(current_user.id, project_ids)}


@router.post("", response_model=DataResponse[BlockerResponse])
async def create_blocker(
    body: BlockerCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Report a blocker and notify the project manager."""
    service = BlockerService(db)
    blocker = await service.report(
        task_id=body.task_id,
        reporter_id=current_user.id,
        title=body.title,
        product=body.product,
        reason=body.reason,
        notes=body.notes,
    )
    return {"data": blocker}


@router.patch("/{blocker_id}", response_model=DataResponse[BlockerResponse])
async def update_blocker(
    blocker_id: UUID,
    body: BlockerUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Assign, unassign or resolve a blocker."""
    service = BlockerService(db)
    blocker = await service.update(
        blocker_id=blocker_id,
        actor_id=current_user.id,
        assign="assignee_id" in body.model_fields_set,
        assignee_id=body.assignee_id,
        status=body.status,
        notes=body.notes,
    )
    return {"data": blocker}
