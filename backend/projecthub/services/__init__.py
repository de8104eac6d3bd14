"""Services package."""

from projecthub.services.blocker import BlockerService
from projecthub.services.deadline import DeadlineService
from projecthub.services.notification import NotificationService
from projecthub.services.profile import ProfileService
from projecthub.services.project import ProjectService
from projecthub.services.stage_approval import StageApprovalService
from projecthub.services.task import TaskService

__all__ = [
    "BlockerService",
    "DeadlineService",
    "NotificationService",
    "ProfileService",
    "ProjectService",
    "StageApprovalService",
    "TaskService",
]
