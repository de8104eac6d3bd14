"""Blocker reporting, assignment and resolution."""

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.exceptions import InvalidRequestError, NotFoundError
from projecthub.models.project import (
    BLOCKER_ACTIVE_STATUSES,
    BLOCKER_STATUSES,
    BLOCKER_TERMINAL_STATUSES,
    Blocker,
    Project,
    Task,
)
from projecthub.models.user import Profile
from projecthub.services.access_control import get_accessible_project_ids
from projecthub.services.notification import NotificationService

logger = structlog.get_logger()


class BlockerService:
    """Service for the blocker lifecycle Open -> Assigned -> Investigating -> Resolved/Closed."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_for_user(
        self,
        user_id: UUID,
        project_ids: list[UUID] | None = None,
    ) -> list[Blocker]:
        """Blockers of the given projects (default: every accessible project), newest first."""
        if project_ids is None:
            project_ids = await get_accessible_project_ids(self.db, user_id)
        if not project_ids:
            return []

        result = await self.db.execute(
            select(Blocker)
            .where(Blocker.project_id.in_(project_ids))
            .order_by(Blocker.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_assigned(self, user_id: UUID) -> list[Blocker]:
        """Unresolved blockers assigned to the user, newest first."""
        result = await self.db.execute(
            select(Blocker)
            .where(
                Blocker.assignee_id == user_id,
                Blocker.status.in_(BLOCKER_ACTIVE_STATUSES),
            )
            .order_by(Blocker.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(self, blocker_id: UUID) -> Blocker:
        result = await self.db.execute(select(Blocker).where(Blocker.id == blocker_id))
        blocker = result.scalar_one_or_none()
        if blocker is None:
            raise NotFoundError("Blocker")
        return blocker

    # =========================================================================
    # Report
    # =========================================================================

    async def report(
        self,
        task_id: UUID,
        reporter_id: UUID,
        title: str | None = None,
        product: str | None = None,
        reason: str | None = None,
        notes: str | None = None,
    ) -> Blocker:
        """
        Report a blocker on a task and notify the project manager.

        The project owner is the PM; a project without an owner cannot take
        blocker reports.
        """
        title = (title or "").strip() or None
        product = (product or "").strip() or None
        reason = (reason or "").strip() or None
        notes = (notes or "").strip() or None

        if not (title or reason or notes):
            raise InvalidRequestError("Provide a blocker title or a detailed description.")

        task = (await self.db.execute(select(Task).where(Task.id == task_id))).scalar_one_or_none()
        if task is None:
            raise NotFoundError("Task")

        project = (
            await self.db.execute(select(Project).where(Project.id == task.project_id))
        ).scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project")

        if project.owner_id is None:
            raise InvalidRequestError("No project manager is assigned to this project.")

        reporter = (
            await self.db.execute(select(Profile).where(Profile.id == reporter_id))
        ).scalar_one_or_none()
        reporter_name = reporter.display_name("Member") if reporter else "Member"

        blocker = Blocker(
            task_id=task.id,
            task_title=task.title,
            project_id=project.id,
            project_name=project.name,
            title=title or reason,
            product=product,
            reason=reason or title,
            notes=notes,
            reporter_id=reporter_id,
            reporter_name=reporter_name,
            pm_id=project.owner_id,
            status="Open",
        )
        self.db.add(blocker)
        await self.db.commit()
        await self.db.refresh(blocker)

        logger.info(
            "blocker_reported",
            blocker_id=str(blocker.id),
            project_id=str(project.id),
            reporter_id=str(reporter_id),
        )

        await self.notifications.notify(
            user_id=project.owner_id,
            notification_type="BLOCKER_REPORTED",
            title="Blocker Reported",
            message=(
                f'{reporter_name} reported a blocker: "{blocker.label}" '
                f'in project "{project.name}".'
            ),
            link=f"/projects/{project.id}?blockerId={blocker.id}",
        )

        return blocker

    # =========================================================================
    # Update
    # =========================================================================

    async def update(
        self,
        blocker_id: UUID,
        actor_id: UUID,
        assign: bool = False,
        assignee_id: UUID | None = None,
        status: str | None = None,
        notes: str | None = None,
    ) -> Blocker:
        """
        Assign, unassign or change the status of a blocker.

        Args:
            blocker_id: Blocker to update
            actor_id: User making the change
            assign: True when the request carried an assignee field, even a null one
            assignee_id: New assignee, None to unassign
            status: New status, applied after the assignment
            notes: Assignment instructions, stored only with an assignment

        Returns:
            The updated blocker
        """
        if status is not None and status not in BLOCKER_STATUSES:
            raise InvalidRequestError(f"Status must be one of: {', '.join(BLOCKER_STATUSES)}")

        blocker = await self.get(blocker_id)
        previous_status = blocker.status
        link = f"/projects/{blocker.project_id}?blockerId={blocker.id}"

        assignee: Profile | None = None
        if assign and assignee_id is not None:
            assignee = (
                await self.db.execute(select(Profile).where(Profile.id == assignee_id))
            ).scalar_one_or_none()
            if assignee is None:
                raise NotFoundError("Assignee")
            blocker.assignee_id = assignee_id
            blocker.assignee_name = assignee.display_name()
            blocker.status = "Assigned"
            if notes:
                blocker.notes = notes
        elif assign:
            blocker.assignee_id = None
            blocker.assignee_name = None
            blocker.status = "Open"

        if status:
            blocker.status = status

        await self.db.commit()
        await self.db.refresh(blocker)

        logger.info(
            "blocker_updated",
            blocker_id=str(blocker.id),
            status=blocker.status,
            previous_status=previous_status,
            assignee_id=str(blocker.assignee_id) if blocker.assignee_id else None,
        )

        if assignee is not None:
            note = f" Note: {notes}" if notes else ""
            await self.notifications.notify(
                user_id=assignee.id,
                notification_type="BLOCKER_ASSIGNED",
                title="Blocker Assigned",
                message=(
                    f'You have been assigned to blocker "{blocker.label}" '
                    f'in project "{blocker.project_name}".{note}'
                ),
                link=link,
            )

        is_resolving = (
            blocker.status in BLOCKER_TERMINAL_STATUSES
            and previous_status not in BLOCKER_TERMINAL_STATUSES
        )
        if is_resolving and blocker.reporter_id and blocker.reporter_id != actor_id:
            await self.notifications.notify(
                user_id=blocker.reporter_id,
                notification_type="BLOCKER_RESOLVED",
                title="Blocker Resolved",
                message=f'Your blocker "{blocker.label}" has been marked as {blocker.status}.',
                link=link,
            )

        return blocker
