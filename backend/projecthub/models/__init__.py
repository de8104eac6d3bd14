"""SQLAlchemy models package."""

from projecthub.models.user import Profile
from projecthub.models.project import (
    PROJECT_STAGES,
    Blocker,
    Project,
    ProjectMember,
    StageApproval,
    Task,
    TaskComment,
    TaskDeliverable,
)
from projecthub.models.activity import Notification

__all__ = [
    # Users
    "Profile",
    # Projects
    "PROJECT_STAGES",
    "Blocker",
    "Project",
    "ProjectMember",
    "StageApproval",
    "Task",
    "TaskComment",
    "TaskDeliverable",
    # Notifications
    "Notification",
]
