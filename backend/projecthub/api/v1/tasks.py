"""Task, comment and deliverable endpoints."""

from datetime import date
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.auth import CurrentUser, OptionalUserId
from projecthub.api.v1.schemas import (
    CamelModel,
    CommentResponse,
    DataResponse,
    DeliverableResponse,
    OkResponse,
    TaskResponse,
)
from projecthub.db.session import get_db_session
from projecthub.models.user import Profile
from projecthub.services.task import TaskService

router = APIRouter()
deliverables_router = APIRouter()
logger = structlog.get_logger()


# Request Models
class TaskCreate(CamelModel):
    """Create a task in a project stage."""

    project_id: UUID
    stage_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    priority: str | None = None
    due_date: date | None = None
    assignee: str | None = None


class TaskUpdate(CamelModel):
    """Partially update a task."""

    title: str | None = Field(None, max_length=500)
    description: str | None = None
    priority: str | None = None
    status: str | None = None


class CommentCreate(CamelModel):
    """Add a comment to a task."""

    text: str = Field(..., min_length=1)


class DeliverableCreate(CamelModel):
    """Submit the deliverables of a task."""

    task_id: UUID
    attachment_link: str | None = None
    total_data_ingest: str | None = None
    notes: str | None = None


@router.get("", response_model=DataResponse[list[TaskResponse]])
async def list_tasks(
    project_id: UUID = Query(..., alias="projectId"),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """List the tasks of a project with their deliverables."""
    service = TaskService(db)
    return {"data": await service.list_for_project(project_id)}


@router.post("", response_model=DataResponse[TaskResponse])
async def create_task(
    body: TaskCreate,
    actor_id: OptionalUserId,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Create a task and notify the project team."""
    service = TaskService(db)
    task = await service.create(
        project_id=body.project_id,
        stage_id=body.stage_id,
        title=body.title,
        actor_id=actor_id,
        description=body.description,
        priority=body.priority,
        due_date=body.due_date,
        assignee=body.assignee,
    )
    return {"data": task}


@router.patch("/{task_id}", response_model=DataResponse[TaskResponse])
async def update_task(
    task_id: UUID,
    body: TaskUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Update a task."""
    service = TaskService(db)
    task = await service.update(task_id, body.model_dump(exclude_unset=True))
    return {"data": task}


@router.delete("/{task_id}", response_model=OkResponse)
async def delete_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Delete a task."""
    service = TaskService(db)
    await service.delete(task_id)
    return {"ok": True}


@router.get("/{task_id}/comments", response_model=DataResponse[list[CommentResponse]])
async def list_comments(
    task_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """List the comments of a task, newest first."""
    service = TaskService(db)
    return {"data": await service.list_comments(task_id)}


@router.post("/{task_id}/comments", response_model=DataResponse[CommentResponse])
async def add_comment(
    task_id: UUID,
    body: CommentCreate,
    actor_id: OptionalUserId,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Comment on a task and notify its assignee and the PM."""
    author = None
    if actor_id is not None:
        result = await db.execute(select(Profile).where(Profile.id == actor_id))
        author = result.scalar_one_or_none()

    service = TaskService(db)
    comment = await service.add_comment(task_id, body.text, author)
    return {"data": comment}


@deliverables_router.post("", response_model=DataResponse[DeliverableResponse])
async def submit_deliverable(
    body: DeliverableCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Submit deliverables, completing the task."""
    service = TaskService(db)
    deliverable = await service.submit_deliverable(
        task_id=body.task_id,
        data_ingest=body.total_data_ingest,
        attachment_link=body.attachment_link,
        notes=body.notes,
    )
    return {"data": deliverable}
