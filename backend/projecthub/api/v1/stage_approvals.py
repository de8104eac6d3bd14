"""Stage approval endpoints."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.auth import OptionalUserId
from projecthub.api.v1.schemas import CamelModel, DataResponse, StageApprovalResponse
from projecthub.db.session import get_db_session
from projecthub.services.stage_approval import StageApprovalService

router = APIRouter()
logger = structlog.get_logger()


class StageApprovalRequest(CamelModel):
    """Request approval of a stage."""

    project_id: UUID
    stage_id: str = Field(..., min_length=1)
    status: str = "Pending"


class StageApprovalUpdate(CamelModel):
    """Approve, reject or reset a stage."""

    project_id: UUID
    status: str = Field(..., min_length=1)
    comment: str | None = None
    requested_by: UUID | None = None
    approved_by: UUID | None = None


@router.get("", response_model=DataResponse[list[StageApprovalResponse]])
async def list_stage_approvals(
    project_id: UUID = Query(..., alias="projectId"),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """List the approval rows of a project."""
    service = StageApprovalService(db)
    return {"data": await service.list_for_project(project_id)}


@router.post("", response_model=DataResponse[StageApprovalResponse])
async def request_stage_approval(
    body: StageApprovalRequest,
    actor_id: OptionalUserId,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Create or overwrite the approval request of a stage."""
    service = StageApprovalService(db)
    approval = await service.request_approval(
        project_id=body.project_id,
        stage_id=body.stage_id,
        requested_by=actor_id,
        status=body.status,
    )
    return {"data": approval}


@router.patch("/{stage_id}", response_model=DataResponse[StageApprovalResponse])
async def update_stage_approval(
    stage_id: str,
    body: StageApprovalUpdate,
    actor_id: OptionalUserId,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Approve, reject or reset a stage and notify the people involved."""
    service = StageApprovalService(db)
    try:
        approval = await service.transition(
            project_id=body.project_id,
            stage_id=stage_id,
            status=body.status,
            actor_id=actor_id,
            comment=body.comment,
            requested_by=body.requested_by,
            approved_by=body.approved_by,
        )
    except SQLAlchemyError as e:
        logger.error(
            "stage_approval_update_failed",
            project_id=str(body.project_id),
            stage_id=stage_id,
            error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update approval.",
        )

    return {"data": approval}
