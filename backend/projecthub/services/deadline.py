"""Deadline reminders for tasks, project end dates and stage deadlines."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Literal
from uuid import UUID

import structlog
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.config import get_settings
from projecthub.models.activity import Notification
from projecthub.models.project import PROJECT_STAGES, Project, Task
from projecthub.services.access_control import get_accessible_project_ids
from projecthub.services.notification import NotificationService

logger = structlog.get_logger()

DEADLINE_NOTIFICATION_TYPE = "DEADLINE_APPROACHING"

Urgency = Literal["overdue", "urgent", "warning", "normal"]


class DeadlineReminder(BaseModel):
    """Upcoming or missed project/stage deadline, serialized with camelCase keys."""

    id: str
    type: Literal["project", "stage"]
    title: str
    project_name: str
    deadline: date
    days_left: int
    is_overdue: bool
    urgency: Urgency

    class Config:
        alias_generator = to_camel
        populate_by_name = True


def classify_urgency(days_left: int) -> Urgency:
    """Urgency bucket for a deadline ``days_left`` days away."""
    if days_left < 0:
        return "overdue"
    if days_left <= 1:
        return "urgent"
    if days_left <= 3:
        return "warning"
    return "normal"


def _parse_deadline(value: object) -> date | None:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def build_reminders(
    projects: list[Project],
    today: date,
    horizon_days: int | None = None,
) -> list[DeadlineReminder]:
    """
    Collect project end dates and stage deadlines due within the horizon.

    Overdue deadlines are always included. The result is sorted overdue
    first, then by days left.
    """
    horizon = horizon_days if horizon_days is not None else get_settings().deadline_reminder_horizon_days
    reminders: list[DeadlineReminder] = []

    for project in projects:
        if project.end_date:
            days_left = (project.end_date - today).days
            if days_left <= horizon:
                reminders.append(
                    DeadlineReminder(
                        id=f"project-{project.id}",
                        type="project",
                        title="Project Deadline",
                        project_name=project.name,
                        deadline=project.end_date,
                        days_left=days_left,
                        is_overdue=days_left < 0,
                        urgency=classify_urgency(days_left),
                    )
                )

        for stage_id, raw_deadline in (project.stage_deadlines or {}).items():
            deadline = _parse_deadline(raw_deadline)
            if deadline is None:
                continue
            days_left = (deadline - today).days
            if days_left > horizon:
                continue
            reminders.append(
                DeadlineReminder(
                    id=f"stage-{project.id}-{stage_id}",
                    type="stage",
                    title=f"{PROJECT_STAGES.get(stage_id, stage_id)} Deadline",
                    project_name=project.name,
                    deadline=deadline,
                    days_left=days_left,
                    is_overdue=days_left < 0,
                    urgency=classify_urgency(days_left),
                )
            )

    reminders.sort(key=lambda r: (not r.is_overdue, r.days_left))
    return reminders


class DeadlineService:
    """Service that turns due dates into reminders and notifications."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def get_reminders(self, user_id: UUID, today: date | None = None) -> list[DeadlineReminder]:
        """Reminders for open projects the user is a member of."""
        project_ids = await get_accessible_project_ids(self.db, user_id, include_owned=False)
        if not project_ids:
            return []

        result = await self.db.execute(
            select(Project).where(
                Project.id.in_(project_ids),
                Project.status != "Completed",
            )
        )
        projects = list(result.scalars().all())
        return build_reminders(projects, today or date.today())

    async def notify_due_tasks(self, user_id: UUID, now: datetime | None = None) -> int:
        """
        Notify the user about open tasks that are overdue or due soon.

        A task is notified at most once per window: an existing deadline
        notification for the same task within the window suppresses it.

        Returns:
            Number of notifications created
        """
        now = now or datetime.now(timezone.utc)
        window = timedelta(hours=get_settings().deadline_task_window_hours)

        project_ids = await get_accessible_project_ids(self.db, user_id)
        if not project_ids:
            return 0

        result = await self.db.execute(
            select(Task, Project.name)
            .join(Project, Project.id == Task.project_id)
            .where(
                Task.project_id.in_(project_ids),
                Task.status != "Done",
                Task.due_date.is_not(None),
            )
        )

        created = 0
        for task, project_name in result.all():
            due_at = datetime.combine(task.due_date, time.min, tzinfo=timezone.utc)
            if due_at - now >= window:
                continue

            link = f"/projects/{task.project_id}?taskId={task.id}"
            existing = await self.db.execute(
                select(Notification.id)
                .where(
                    Notification.user_id == user_id,
                    Notification.type == DEADLINE_NOTIFICATION_TYPE,
                    Notification.link == link,
                    Notification.created_at >= now - window,
                )
                .limit(1)
            )
            if existing.scalar_one_or_none() is not None:
                continue

            is_past_due = due_at < now
            if is_past_due:
                title = "Task Overdue"
                message = f'Task "{task.title}" in project "{project_name}" is OVERDUE.'
            else:
                title = "Task Deadline Approaching"
                message = f'Task "{task.title}" in project "{project_name}" is due soon.'

            if await self.notifications.notify(
                user_id=user_id,
                notification_type=DEADLINE_NOTIFICATION_TYPE,
                title=title,
                message=message,
                link=link,
            ):
                created += 1

        if created:
            logger.info("deadline_notifications_created", user_id=str(user_id), count=created)
        return created
