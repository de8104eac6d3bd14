"""Project CRUD and team membership sync."""

import re
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.exceptions import InvalidRequestError, NotFoundError
from projecthub.models.project import PROJECT_STAGES, PROJECT_STATUSES, Project, ProjectMember
from projecthub.models.user import Profile
from projecthub.services.notification import NotificationService

logger = structlog.get_logger()

CODE_PREFIX = "PRJ-"


class ProjectService:
    """Service for projects and their member lists."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_all(self) -> list[Project]:
        """All projects, most recently updated first."""
        result = await self.db.execute(
            select(Project).order_by(Project.updated_at.desc(), Project.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(self, project_id: UUID) -> Project:
        result = await self.db.execute(select(Project).where(Project.id == project_id))
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project")
        return project

    async def get_owned(self, project_id: UUID, owner_id: UUID) -> Project:
        """A project owned by the user; other people's projects count as missing."""
        result = await self.db.execute(
            select(Project).where(Project.id == project_id, Project.owner_id == owner_id)
        )
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project")
        return project

    async def next_code(self) -> str:
        """Next PRJ-NNNN code after the most recently created coded project."""
        result = await self.db.execute(
            select(Project.code)
            .where(Project.code.is_not(None))
            .order_by(Project.created_at.desc())
            .limit(1)
        )
        last_code = result.scalar_one_or_none() or ""
        match = re.search(r"(\d+)$", last_code)
        next_number = int(match.group(1)) + 1 if match else 1
        return f"{CODE_PREFIX}{next_number:04d}"

    # =========================================================================
    # Create / Update / Delete
    # =========================================================================

    async def create(
        self,
        owner_id: UUID | None,
        values: dict[str, Any],
        team_members: list[str] | None = None,
    ) -> Project:
        """Create a project and add the resolved team members."""
        name = (values.get("name") or "").strip()
        if not name:
            raise InvalidRequestError("Project name is required.")

        self._validate_status(values.get("status"))
        self._validate_stage_deadlines(values.get("stage_deadlines"))

        values = {**values, "name": name}
        if not values.get("code"):
            values["code"] = await self.next_code()
        values.setdefault("stage_deadlines", {})

        project = Project(owner_id=owner_id, team_members=team_members, **values)
        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)

        logger.info(
            "project_created",
            project_id=str(project.id),
            code=project.code,
            owner_id=str(owner_id) if owner_id else None,
        )

        await self.sync_members(project.id, project.name, team_members or [])
        await self.db.refresh(project)
        return project

    async def update(
        self,
        project_id: UUID,
        owner_id: UUID,
        values: dict[str, Any],
        team_members: list[str] | None = None,
    ) -> Project:
        """Update a project owned by the user; re-sync members when a list is given."""
        project = await self.get_owned(project_id, owner_id)

        if "name" in values:
            values["name"] = (values["name"] or "").strip()
            if not values["name"]:
                raise InvalidRequestError("Project name is required.")

        self._validate_status(values.get("status"))

        if "stage_deadlines" in values:
            self._validate_stage_deadlines(values["stage_deadlines"])
            values["stage_deadlines"] = values["stage_deadlines"] or {}

        for field, value in values.items():
            setattr(project, field, value)
        if team_members is not None:
            project.team_members = team_members

        await self.db.commit()

        logger.info("project_updated", project_id=str(project_id), fields=sorted(values))

        if team_members is not None:
            await self.sync_members(project.id, project.name, team_members)

        await self.db.refresh(project)
        return project

    async def delete(self, project_id: UUID, owner_id: UUID) -> None:
        """Delete a project owned by the user."""
        project = await self.get_owned(project_id, owner_id)
        await self.db.delete(project)
        await self.db.commit()
        logger.info("project_deleted", project_id=str(project_id))

    # =========================================================================
    # Members
    # =========================================================================

    async def resolve_member_ids(self, members: list[str]) -> list[UUID]:
        """
        Map names and emails as typed on the project form to profile ids.

        Emails match exactly. Names match the full name exactly first; names
        left over fall back to the first case-insensitive partial match.
        Unknown entries are dropped.
        """
        names = [m.strip() for m in members if m and m.strip() and "@" not in m]
        emails = [m.strip() for m in members if m and "@" in m]
        ids: list[UUID] = []
        matched_names: set[str] = set()

        if names:
            result = await self.db.execute(
                select(Profile.id, Profile.full_name).where(Profile.full_name.in_(names))
            )
            for profile_id, full_name in result.all():
                if profile_id not in ids:
                    ids.append(profile_id)
                matched_names.add(full_name)

        if emails:
            result = await self.db.execute(select(Profile.id).where(Profile.email.in_(emails)))
            for (profile_id,) in result.all():
                if profile_id not in ids:
                    ids.append(profile_id)

        for name in names:
            if name in matched_names:
                continue
            result = await self.db.execute(
                select(Profile.id).where(Profile.full_name.ilike(f"%{name}%")).limit(1)
            )
            profile_id = result.scalar_one_or_none()
            if profile_id and profile_id not in ids:
                ids.append(profile_id)

        return ids

    async def sync_members(self, project_id: UUID, project_name: str, members: list[str]) -> list[UUID]:
        """
        Make ``project_members`` match the given list.

        Newly added members get a PROJECT_ASSIGNED notification; members no
        longer listed are removed silently.

        Returns:
            IDs of the newly added members
        """
        desired_ids = await self.resolve_member_ids(members)

        result = await self.db.execute(
            select(ProjectMember.member_id).where(ProjectMember.project_id == project_id)
        )
        existing_ids = {row[0] for row in result.all()}

        to_insert = [member_id for member_id in desired_ids if member_id not in existing_ids]
        to_delete = [member_id for member_id in existing_ids if member_id not in desired_ids]

        if to_insert:
            self.db.add_all(
                ProjectMember(project_id=project_id, member_id=member_id, role="member")
                for member_id in to_insert
            )
        if to_delete:
            await self.db.execute(
                delete(ProjectMember).where(
                    ProjectMember.project_id == project_id,
                    ProjectMember.member_id.in_(to_delete),
                )
            )
        await self.db.commit()

        if to_insert or to_delete:
            logger.info(
                "project_members_synced",
                project_id=str(project_id),
                added=len(to_insert),
                removed=len(to_delete),
            )

        if to_insert:
            await self.notifications.notify_many(
                user_ids=to_insert,
                notification_type="PROJECT_ASSIGNED",
                title="Added to Project",
                message=f'You have been added to project "{project_name}".',
                link=f"/projects/{project_id}",
            )

        return to_insert

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validate_stage_deadlines(self, stage_deadlines: dict[str, Any] | None) -> None:
        for stage_id in stage_deadlines or {}:
            if stage_id not in PROJECT_STAGES:
                raise InvalidRequestError(f"Unknown stage: {stage_id}")

    def _validate_status(self, status: str | None) -> None:
        if status is not None and status not in PROJECT_STATUSES:
            raise InvalidRequestError(f"Status must be one of: {', '.join(PROJECT_STATUSES)}")
