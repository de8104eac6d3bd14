"""Celery background tasks."""

import asyncio

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from projecthub.config import get_settings
from projecthub.db.session import engine_options
from projecthub.models.user import Profile
from projecthub.services.deadline import DeadlineService
from projecthub.worker import celery_app

logger = structlog.get_logger()


async def run_deadline_reminders(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, int]:
    """Run the task deadline check for every active profile."""
    async with session_factory() as db:
        result = await db.execute(select(Profile.id).where(Profile.is_active.is_(True)))
        user_ids = [row[0] for row in result.all()]

        service = DeadlineService(db)
        notifications_created = 0
        for user_id in user_ids:
            notifications_created += await service.notify_due_tasks(user_id)

    return {"users_checked": len(user_ids), "notifications_created": notifications_created}


@celery_app.task(bind=True, name="projecthub.tasks.send_deadline_reminders")
def send_deadline_reminders(self) -> dict:
    """
    Notify users about overdue tasks and tasks due within the next day.

    Scheduled hourly by Celery Beat; a task already notified within the
    window is skipped, so repeated runs do not duplicate notifications.
    """
    async def _process():
        settings = get_settings()
        # Each run gets its own event loop, so it gets its own engine too
        engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))
        try:
            session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
            return await run_deadline_reminders(session_factory)
        finally:
            await engine.dispose()

    try:
        counts = asyncio.run(_process())
        logger.info("deadline_reminders_sent", **counts)
        return {"status": "success", **counts}
    except Exception as e:
        logger.exception("deadline_reminders_failed", error=str(e))
        return {"status": "error", "error": str(e)}
