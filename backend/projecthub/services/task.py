"""Task, comment and deliverable service."""

from datetime import date
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.exceptions import InvalidRequestError, NotFoundError
from projecthub.models.project import PROJECT_STAGES, Project, Task, TaskComment, TaskDeliverable
from projecthub.models.user import Profile
from projecthub.services.access_control import get_project_recipient_ids
from projecthub.services.notification import NotificationService

logger = structlog.get_logger()

COMMENT_PREVIEW_LENGTH = 50


class TaskService:
    """Service for project tasks and the activity around them."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    # =========================================================================
    # Task CRUD Operations
    # =========================================================================

    async def list_for_project(self, project_id: UUID) -> list[Task]:
        """Tasks of a project, oldest first, deliverables loaded."""
        result = await self.db.execute(
            select(Task).where(Task.project_id == project_id).order_by(Task.created_at.asc())
        )
        return list(result.scalars().all())

    async def get(self, task_id: UUID, reload: bool = False) -> Task:
        """A task by id; ``reload`` re-reads it together with its deliverables."""
        result = await self.db.execute(
            select(Task).where(Task.id == task_id).execution_options(populate_existing=reload)
        )
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundError("Task")
        return task

    async def create(
        self,
        project_id: UUID,
        stage_id: str,
        title: str,
        actor_id: UUID | None = None,
        description: str | None = None,
        priority: str | None = None,
        due_date: date | None = None,
        assignee: str | None = None,
    ) -> Task:
        """Create a task and notify the project owner and members except the actor."""
        title = (title or "").strip()
        if not title:
            raise InvalidRequestError("Project, stage, and title are required.")
        if stage_id not in PROJECT_STAGES:
            raise InvalidRequestError(f"Unknown stage: {stage_id}")

        project = (
            await self.db.execute(select(Project).where(Project.id == project_id))
        ).scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project")

        task = Task(
            project_id=project_id,
            stage=stage_id,
            title=title,
            description=description or None,
            priority=priority or None,
            due_date=due_date,
            assignee=assignee or None,
            status="Not Started",
        )
        self.db.add(task)
        await self.db.commit()

        logger.info("task_created", task_id=str(task.id), project_id=str(project_id), stage=stage_id)

        recipients = await get_project_recipient_ids(self.db, project_id)
        await self.notifications.notify_many(
            user_ids=recipients,
            notification_type="TASK_CREATED",
            title="New Task Created",
            message=f'A new task "{title}" has been added to project "{project.name}".',
            link=f"/projects/{project_id}?taskId={task.id}",
            exclude=actor_id,
        )

        return await self.get(task.id, reload=True)

    async def update(self, task_id: UUID, values: dict[str, Any]) -> Task:
        """Partially update title, description, priority or status."""
        task = await self.get(task_id)

        for field, value in values.items():
            if value is None or value == "":
                continue
            setattr(task, field, value.strip() if field == "title" else value)

        await self.db.commit()

        logger.info("task_updated", task_id=str(task_id), fields=sorted(values))
        return await self.get(task_id, reload=True)

    async def delete(self, task_id: UUID) -> None:
        task = await self.get(task_id)
        await self.db.delete(task)
        await self.db.commit()
        logger.info("task_deleted", task_id=str(task_id))

    # =========================================================================
    # Comments
    # =========================================================================

    async def list_comments(self, task_id: UUID) -> list[TaskComment]:
        """Comments of a task, newest first."""
        result = await self.db.execute(
            select(TaskComment)
            .where(TaskComment.task_id == task_id)
            .order_by(TaskComment.created_at.desc())
        )
        return list(result.scalars().all())

    async def add_comment(self, task_id: UUID, text: str, author: Profile | None) -> TaskComment:
        """
        Add a comment and notify the task assignee and the PM.

        The assignee is stored as typed, so it is matched against profiles
        by full name or email prefix. The author is never notified.
        """
        if not text or not text.strip():
            raise InvalidRequestError("Text required")

        task = await self.get(task_id)
        author_name = (author.full_name or author.email or "Unknown") if author else "Unknown"

        comment = TaskComment(
            task_id=task.id,
            author=author_name,
            author_id=author.id if author else None,
            text=text,
        )
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)

        logger.info("task_comment_added", task_id=str(task_id), comment_id=str(comment.id))

        if author is None:
            return comment

        project = (
            await self.db.execute(select(Project).where(Project.id == task.project_id))
        ).scalar_one_or_none()
        project_name = project.name if project else "Unknown Project"

        recipients: list[UUID | None] = []
        assignee_id = await self.resolve_assignee_id(task.assignee)
        if assignee_id:
            recipients.append(assignee_id)
        if project and project.owner_id:
            recipients.append(project.owner_id)

        preview = text[:COMMENT_PREVIEW_LENGTH]
        if len(text) > COMMENT_PREVIEW_LENGTH:
            preview += "..."

        await self.notifications.notify_many(
            user_ids=recipients,
            notification_type="TASK_COMMENT",
            title="New Comment",
            message=(
                f'{author_name} commented on task "{task.title}" in project '
                f'"{project_name}": "{preview}"'
            ),
            link=f"/member/tasks?taskId={task_id}",
            exclude=author.id,
        )

        return comment

    async def resolve_assignee_id(self, assignee: str | None) -> UUID | None:
        """Profile id for an assignee typed as a full name or an email (prefix)."""
        if not assignee:
            return None
        result = await self.db.execute(
            select(Profile.id)
            .where(or_(Profile.full_name == assignee, Profile.email.ilike(f"{assignee}%")))
            .limit(1)
        )
        return result.scalar_one_or_none()

    # =========================================================================
    # Deliverables
    # =========================================================================

    async def submit_deliverable(
        self,
        task_id: UUID,
        data_ingest: str | None = None,
        attachment_link: str | None = None,
        notes: str | None = None,
    ) -> TaskDeliverable:
        """Mark the task Done, record the deliverable and notify the PM."""
        task = await self.get(task_id)
        task.status = "Done"

        deliverable = TaskDeliverable(
            task_id=task.id,
            data_ingest=(data_ingest or "").strip() or None,
            attachment_link=(attachment_link or "").strip() or None,
            notes=(notes or "").strip() or None,
        )
        self.db.add(deliverable)
        await self.db.commit()
        await self.db.refresh(deliverable)

        logger.info("task_deliverable_submitted", task_id=str(task_id), deliverable_id=str(deliverable.id))

        project = (
            await self.db.execute(select(Project).where(Project.id == task.project_id))
        ).scalar_one_or_none()
        if project and project.owner_id:
            await self.notifications.notify(
                user_id=project.owner_id,
                notification_type="TASK_SUBMITTED",
                title="Task Deliverable Submitted",
                message=(
                    f'Deliverables for task "{task.title}" have been submitted '
                    f'in project "{project.name}".'
                ),
                link=f"/projects/{task.project_id}?taskId={task_id}",
            )

        return deliverable
