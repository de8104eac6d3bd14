"""Project API endpoints."""

from datetime import date
from typing import Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.auth import CurrentUser, OptionalUserId
from projecthub.api.v1.schemas import CamelModel, DataResponse, OkResponse, ProjectResponse
from projecthub.db.session import get_db_session
from projecthub.services.project import ProjectService

router = APIRouter()
logger = structlog.get_logger()


# Request Models
class ProjectBase(CamelModel):
    """Fields shared by project create and update."""

    code: str | None = None
    location: str | None = None
    description: str | None = None
    status: str | None = None
    progress: int | None = Field(None, ge=0, le=100)
    lead: str | None = None
    icon_bg: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    stage_deadlines: dict[str, date | None] | None = None
    team_members: list[str] | None = None


class ProjectCreate(ProjectBase):
    """Create a new project."""

    name: str


class ProjectUpdate(ProjectBase):
    """Update a project."""

    name: str | None = None


def _project_values(body: ProjectBase, exclude_unset: bool) -> dict[str, Any]:
    values = body.model_dump(exclude_unset=exclude_unset, exclude={"team_members"})
    if values.get("stage_deadlines") is not None:
        values["stage_deadlines"] = {
            stage_id: deadline.isoformat() if deadline else None
            for stage_id, deadline in values["stage_deadlines"].items()
        }
    if not exclude_unset:
        values = {key: value for key, value in values.items() if value is not None}
    else:
        # Required columns are never cleared by an explicit null
        values = {
            key: value
            for key, value in values.items()
            if value is not None or key not in ("name", "status", "progress")
        }
    return values


@router.get("", response_model=DataResponse[list[ProjectResponse]])
async def list_projects(db: AsyncSession = Depends(get_db_session)) -> dict:
    """List all projects, most recently updated first."""
    service = ProjectService(db)
    return {"data": await service.list_all()}


@router.post("", response_model=DataResponse[ProjectResponse])
async def create_project(
    body: ProjectCreate,
    owner_id: OptionalUserId,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Create a project owned by the caller and sync its team members."""
    service = ProjectService(db)
    project = await service.create(
        owner_id=owner_id,
        values=_project_values(body, exclude_unset=False),
        team_members=body.team_members,
    )
    return {"data": project}


@router.get("/{project_id}", response_model=DataResponse[ProjectResponse])
async def get_project(
    project_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Get a project by ID."""
    service = ProjectService(db)
    return {"data": await service.get(project_id)}


@router.put("/{project_id}", response_model=DataResponse[ProjectResponse])
async def update_project(
    project_id: UUID,
    body: ProjectUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Update a project. Only the owner may update it."""
    service = ProjectService(db)
    project = await service.update(
        project_id=project_id,
        owner_id=current_user.id,
        values=_project_values(body, exclude_unset=True),
        team_members=body.team_members,
    )
    return {"data": project}


@router.delete("/{project_id}", response_model=OkResponse)
async def delete_project(
    project_id: UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Delete a project. Only the owner may delete it."""
    service = ProjectService(db)
    await service.delete(project_id, current_user.id)
    return {"ok": True}
