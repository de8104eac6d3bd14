"""Global search API endpoints."""

from typing import Literal
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.auth import CurrentUser
from projecthub.api.v1.schemas import DataResponse
from projecthub.db.session import get_db_session
from projecthub.models.project import Project, Task
from projecthub.services.access_control import get_accessible_project_ids

logger = structlog.get_logger()

router = APIRouter(tags=["search"])

MIN_QUERY_LENGTH = 2
RESULTS_PER_TYPE = 5


class SearchResult(BaseModel):
    """Individual search result."""

    type: Literal["project", "task"]
    id: UUID
    title: str
    subtitle: str
    url: str


@router.get("", response_model=DataResponse[list[SearchResult]])
async def search(
    current_user: CurrentUser,
    q: str = Query("", description="Search query"),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Search projects and tasks within the user's projects by name, title or description."""
    query = q.strip()
    if len(query) < MIN_QUERY_LENGTH:
        return {"data": []}

    project_ids = await get_accessible_project_ids(db, current_user.id)
    if not project_ids:
        return {"data": []}

    pattern = f"%{query}%"

    project_result = await db.execute(
        select(Project)
        .where(
            Project.id.in_(project_ids),
            or_(Project.name.ilike(pattern), Project.description.ilike(pattern)),
        )
        .order_by(Project.name)
        .limit(RESULTS_PER_TYPE)
    )
    task_result = await db.execute(
        select(Task, Project.name)
        .join(Project, Project.id == Task.project_id)
        .where(
            Task.project_id.in_(project_ids),
            or_(Task.title.ilike(pattern), Task.description.ilike(pattern)),
        )
        .order_by(Task.title)
        .limit(RESULTS_PER_TYPE)
    )

    results = [
        SearchResult(
            type="project",
            id=project.id,
            title=project.name,
            subtitle=project.description or "Project",
            url=f"/member/projects/{project.id}",
        )
        for project in project_result.scalars().all()
    ]
    results.extend(
        SearchResult(
            type="task",
            id=task.id,
            title=task.title,
            subtitle=f"{project_name} • Task",
            url=f"/member/projects/{task.project_id}?taskId={task.id}",
        )
        for task, project_name in task_result.all()
    )

    logger.debug("search_completed", query=query, results=len(results))
    return {"data": results}
