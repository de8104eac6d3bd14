"""Shared request/response models.

Responses wrap their payload as ``{"data": ...}``; request bodies accept the
camelCase keys the web client sends as well as snake_case.
"""

from datetime import date, datetime
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Success envelope."""

    data: T


class OkResponse(BaseModel):
    """Acknowledgement for deletes."""

    ok: bool = True


class CamelModel(BaseModel):
    """Request body with camelCase aliases."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# =============================================================================
# Responses
# =============================================================================


class ProfileResponse(BaseModel):
    """Profile response model."""

    id: UUID
    email: str | None
    full_name: str | None
    first_name: str | None = None
    last_name: str | None = None
    avatar_url: str | None = None
    phone: str | None = None
    position: str | None = None
    bio: str | None = None
    role: str | None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileSummary(BaseModel):
    """Profile entry of the member picker."""

    id: UUID
    full_name: str | None
    email: str | None
    role: str | None
    is_active: bool

    class Config:
        from_attributes = True


class ProjectResponse(BaseModel):
    """Project response model."""

    id: UUID
    code: str | None
    name: str
    location: str | None
    description: str | None
    status: str
    progress: int
    lead: str | None
    icon_bg: str | None
    start_date: date | None
    end_date: date | None
    stage_deadlines: dict[str, str | None]
    team_members: list[str] | None
    owner_id: UUID | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DeliverableResponse(BaseModel):
    """Task deliverable response model."""

    id: UUID
    task_id: UUID
    data_ingest: str | None
    attachment_link: str | None
    notes: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class TaskResponse(BaseModel):
    """Task response model."""

    id: UUID
    project_id: UUID
    title: str
    description: str | None
    status: str
    priority: str | None
    stage: str
    assignee: str | None
    due_date: date | None
    created_at: datetime
    updated_at: datetime
    deliverables: list[DeliverableResponse] = []

    class Config:
        from_attributes = True


class CommentResponse(BaseModel):
    """Task comment response model."""

    id: UUID
    task_id: UUID
    author: str
    author_id: UUID | None
    text: str
    created_at: datetime

    class Config:
        from_attributes = True


class StageApprovalResponse(BaseModel):
    """Stage approval response model."""

    id: UUID
    project_id: UUID
    stage_id: str
    status: str
    requested_by: UUID | None
    approved_by: UUID | None
    approved_at: datetime | None
    comment: str | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BlockerResponse(BaseModel):
    """Blocker response model."""

    id: UUID
    task_id: UUID
    task_title: str | None
    project_id: UUID
    project_name: str | None
    title: str | None
    product: str | None
    reason: str | None
    notes: str | None
    status: str
    reporter_id: UUID | None
    reporter_name: str | None
    pm_id: UUID | None
    assignee_id: UUID | None
    assignee_name: str | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class NotificationResponse(BaseModel):
    """Notification response model."""

    id: UUID
    user_id: UUID
    title: str
    message: str | None
    type: str
    link: str | None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
