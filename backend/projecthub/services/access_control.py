"""Project access control service.

A user can see a project when they own it or have a ``project_members`` row.
"""

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.exceptions import ForbiddenError
from projecthub.models.project import Project, ProjectMember

logger = structlog.get_logger()


async def get_accessible_project_ids(
    db: AsyncSession,
    user_id: UUID,
    include_owned: bool = True,
) -> list[UUID]:
    """
    IDs of projects the user is a member of and, optionally, owns.

    Order is stable: memberships first, then owned projects not already listed.
    """
    member_result = await db.execute(
        select(ProjectMember.project_id).where(ProjectMember.member_id == user_id)
    )
    project_ids: list[UUID] = []
    for (project_id,) in member_result.all():
        if project_id not in project_ids:
            project_ids.append(project_id)

    if include_owned:
        owned_result = await db.execute(select(Project.id).where(Project.owner_id == user_id))
        for (project_id,) in owned_result.all():
            if project_id not in project_ids:
                project_ids.append(project_id)

    return project_ids


async def check_project_access(
    db: AsyncSession,
    project_id: UUID,
    user_id: UUID,
) -> None:
    """
    Raise ForbiddenError unless the user owns or belongs to the project.

    Args:
        db: Database session
        project_id: Project to check
        user_id: User to check
    """
    project_ids = await get_accessible_project_ids(db, user_id)
    if project_id not in project_ids:
        logger.info(
            "project_access_denied",
            project_id=str(project_id),
            user_id=str(user_id),
        )
        raise ForbiddenError("Unauthorized for this project")


async def get_project_recipient_ids(db: AsyncSession, project_id: UUID) -> list[UUID]:
    """Project owner followed by every member, without duplicates."""
    recipients: list[UUID] = []

    owner_result = await db.execute(select(Project.owner_id).where(Project.id == project_id))
    owner_id = owner_result.scalar_one_or_none()
    if owner_id:
        recipients.append(owner_id)

    member_result = await db.execute(
        select(ProjectMember.member_id).where(ProjectMember.project_id == project_id)
    )
    for (member_id,) in member_result.all():
        if member_id not in recipients:
            recipients.append(member_id)

    return recipients
