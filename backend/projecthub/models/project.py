"""Project, task, stage approval and blocker models."""

from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from projecthub.db.base import BaseModel, JSONType

if TYPE_CHECKING:
    from projecthub.models.user import Profile

# Five fixed phases every project passes through, in order
PROJECT_STAGES: dict[str, str] = {
    "stage-1": "Initiation",
    "stage-2": "Planning",
    "stage-3": "Execution",
    "stage-4": "Monitoring & Control",
    "stage-5": "Closure",
}

PROJECT_STATUSES = ("Not Started", "In Progress", "Completed", "Pending")
APPROVAL_STATUSES = ("Pending", "Approved", "Rejected")
BLOCKER_STATUSES = ("Open", "Assigned", "Investigating", "Resolved", "Closed")
BLOCKER_ACTIVE_STATUSES = ("Open", "Assigned", "Investigating")
BLOCKER_TERMINAL_STATUSES = ("Resolved", "Closed")


class Project(BaseModel):
    """Project owned by a project manager and worked on by members."""

    __tablename__ = "projects"

    # Basic info
    code: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Status and progress
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="In Progress"
    )  # Not Started, In Progress, Completed, Pending
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Display
    lead: Mapped[str | None] = mapped_column(String(255), nullable=True)
    icon_bg: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Timeline
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    stage_deadlines: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    # Member names/emails as entered on the project form
    team_members: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)

    # Ownership
    owner_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Relationships
    owner: Mapped["Profile | None"] = relationship("Profile", foreign_keys=[owner_id])
    members: Mapped[list["ProjectMember"]] = relationship(
        "ProjectMember", back_populates="project", lazy="selectin", cascade="all, delete-orphan"
    )
    tasks: Mapped[list["Task"]] = relationship(
        "Task", back_populates="project", cascade="all, delete-orphan"
    )
    approvals: Mapped[list["StageApproval"]] = relationship(
        "StageApproval", back_populates="project", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        try:
            return f"<Project {self.name}>"
        except Exception:
            return "<Project detached>"


class ProjectMember(BaseModel):
    """Project membership."""

    __tablename__ = "project_members"
    __table_args__ = (
        UniqueConstraint("project_id", "member_id", name="uq_project_member"),
    )

    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    member_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="member")

    # Relationships
    project: Mapped["Project"] = relationship("Project", back_populates="members")
    member: Mapped["Profile"] = relationship("Profile")

    def __repr__(self) -> str:
        return f"<ProjectMember project={self.project_id} member={self.member_id}>"


class Task(BaseModel):
    """Task within one stage of a project."""

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Status and priority
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="Not Started"
    )  # Not Started, In Progress, Review, Done
    priority: Mapped[str | None] = mapped_column(String(20), nullable=True)
    stage: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Assignee display name or email, resolved against profiles when notifying
    assignee: Mapped[str | None] = mapped_column(String(255), nullable=True)

    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Relationships
    project: Mapped["Project"] = relationship("Project", back_populates="tasks")
    comments: Mapped[list["TaskComment"]] = relationship(
        "TaskComment", back_populates="task", cascade="all, delete-orphan"
    )
    deliverables: Mapped[list["TaskDeliverable"]] = relationship(
        "TaskDeliverable", back_populates="task", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        try:
            return f"<Task {self.title[:30]}>"
        except Exception:
            return "<Task detached>"


class TaskComment(BaseModel):
    """Comment on a task."""

    __tablename__ = "task_comments"

    task_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    author_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)

    # Relationships
    task: Mapped["Task"] = relationship("Task", back_populates="comments")


class TaskDeliverable(BaseModel):
    """Deliverable submitted when a member completes a task."""

    __tablename__ = "task_deliverables"

    task_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    data_ingest: Mapped[str | None] = mapped_column(String(255), nullable=True)
    attachment_link: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    task: Mapped["Task"] = relationship("Task", back_populates="deliverables")


class StageApproval(BaseModel):
    """Approval state of one stage of one project."""

    __tablename__ = "project_stage_approvals"
    __table_args__ = (
        UniqueConstraint("project_id", "stage_id", name="uq_project_stage_approval"),
    )

    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    stage_id: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="Pending"
    )  # Pending, Approved, Rejected

    requested_by: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_by: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    project: Mapped["Project"] = relationship("Project", back_populates="approvals")

    def __repr__(self) -> str:
        return f"<StageApproval project={self.project_id} stage={self.stage_id} {self.status}>"


class Blocker(BaseModel):
    """Impediment reported against a task and routed to the project manager."""

    __tablename__ = "blockers"

    # Task and project, with names cached for listing
    task_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    task_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    project_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Basic info
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    product: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="Open"
    )  # Open, Assigned, Investigating, Resolved, Closed

    # People
    reporter_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    reporter_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    pm_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    assignee_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    assignee_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def label(self) -> str:
        """Title shown in notifications."""
        return self.title or self.reason or "Blocker"

    def __repr__(self) -> str:
        try:
            return f"<Blocker {self.label[:30]}>"
        except Exception:
            return "<Blocker detached>"
