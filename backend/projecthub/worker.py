"""Celery worker configuration."""

from celery import Celery
from celery.schedules import crontab

from projecthub.config import get_settings
from projecthub.logging_setup import configure_logging

settings = get_settings()
configure_logging()

# Create Celery app
celery_app = Celery(
    "projecthub",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    task_soft_time_limit=240,  # 4 minutes
    beat_schedule={
        "send-deadline-reminders-hourly": {
            "task": "projecthub.tasks.send_deadline_reminders",
            "schedule": crontab(minute=0),
        },
    },
)

# Auto-discover tasks from projecthub.tasks module
celery_app.autodiscover_tasks(["projecthub"])
