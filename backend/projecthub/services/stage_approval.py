"""Stage approval workflow: approval state per (project, stage) and its fan-out."""

from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.db.upsert import upsert
from projecthub.exceptions import InvalidRequestError, NotFoundError
from projecthub.models.project import (
    APPROVAL_STATUSES,
    PROJECT_STAGES,
    Project,
    ProjectMember,
    StageApproval,
)
from projecthub.services.notification import NotificationService

logger = structlog.get_logger()


class StageApprovalService:
    """Service for requesting, approving and rejecting project stages."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_for_project(self, project_id: UUID) -> list[StageApproval]:
        """All approval rows of a project."""
        result = await self.db.execute(
            select(StageApproval)
            .where(StageApproval.project_id == project_id)
            .order_by(StageApproval.stage_id)
        )
        return list(result.scalars().all())

    async def get(self, project_id: UUID, stage_id: str) -> StageApproval | None:
        """The approval row of one stage, reloaded from the database."""
        result = await self.db.execute(
            select(StageApproval)
            .where(
                StageApproval.project_id == project_id,
                StageApproval.stage_id == stage_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # =========================================================================
    # Request / Transition
    # =========================================================================

    async def request_approval(
        self,
        project_id: UUID,
        stage_id: str,
        requested_by: UUID | None,
        status: str = "Pending",
    ) -> StageApproval:
        """Create or overwrite the approval request for a stage."""
        self._validate(stage_id, status)
        await self._get_project(project_id)

        await upsert(
            self.db,
            StageApproval,
            {
                "project_id": project_id,
                "stage_id": stage_id,
                "status": status,
                "requested_by": requested_by,
            },
            conflict_columns=["project_id", "stage_id"],
        )
        await self.db.commit()

        logger.info(
            "stage_approval_requested",
            project_id=str(project_id),
            stage_id=stage_id,
            status=status,
        )
        return await self.get(project_id, stage_id)

    async def transition(
        self,
        project_id: UUID,
        stage_id: str,
        status: str,
        actor_id: UUID | None,
        comment: str | None = None,
        requested_by: UUID | None = None,
        approved_by: UUID | None = None,
    ) -> StageApproval:
        """
        Move a stage to a new approval status and fan out its notifications.

        This will:
        1. Upsert the approval row, keeping the original requester
        2. On approval, notify the requester and complete the project once
           all five stages are approved
        3. On rejection, notify every project member except the actor with
           the comment embedded in the message

        Writes are committed step by step; a failure in a later step leaves
        the earlier ones in place.

        Args:
            project_id: Project whose stage changes
            stage_id: One of the fixed stage ids
            status: Pending, Approved or Rejected
            actor_id: User making the change (may be unknown)
            comment: Optional reviewer comment
            requested_by: Requester to record when no row exists yet
            approved_by: Explicit approver, defaults to the actor

        Returns:
            The approval row after the write
        """
        self._validate(stage_id, status)
        project = await self._get_project(project_id)

        existing = await self.get(project_id, stage_id)
        values = {
            "project_id": project_id,
            "stage_id": stage_id,
            "status": status,
            "requested_by": (existing.requested_by if existing else None)
            or requested_by
            or actor_id,
            "approved_by": approved_by
            or actor_id
            or (existing.approved_by if existing else None),
            "approved_at": datetime.now(timezone.utc) if status == "Approved" else None,
            "comment": comment,
        }

        await upsert(
            self.db,
            StageApproval,
            values,
            conflict_columns=["project_id", "stage_id"],
        )
        await self.db.commit()

        logger.info(
            "stage_approval_updated",
            project_id=str(project_id),
            stage_id=stage_id,
            status=status,
            actor_id=str(actor_id) if actor_id else None,
        )

        stage_label = PROJECT_STAGES[stage_id]
        link = f"/projects/{project_id}?tab=approvals"

        if status == "Approved":
            if values["requested_by"]:
                await self.notifications.notify(
                    user_id=values["requested_by"],
                    notification_type="STAGE_APPROVED",
                    title="Stage Approval Accepted",
                    message=(
                        f'Your stage approval request for "{stage_label}" in project '
                        f'"{project.name}" has been APPROVED.'
                    ),
                    link=link,
                )
            await self.complete_project_if_approved(project_id)

        elif status == "Rejected":
            member_ids = await self._member_ids(project_id)
            reason = f' Reason: "{comment}"' if comment else ""
            await self.notifications.notify_many(
                user_ids=member_ids,
                notification_type="STAGE_REJECTED",
                title="Stage Approval Rejected",
                message=(
                    f'Stage "{stage_label}" in project "{project.name}" has been REJECTED.'
                    f"{reason}"
                ),
                link=link,
                exclude=actor_id,
            )

        return await self.get(project_id, stage_id)

    # =========================================================================
    # Project Completion
    # =========================================================================

    async def complete_project_if_approved(self, project_id: UUID) -> bool:
        """Mark the project Completed at 100% when every fixed stage is approved."""
        result = await self.db.execute(
            select(StageApproval.stage_id, StageApproval.status).where(
                StageApproval.project_id == project_id
            )
        )
        approved = {stage_id for stage_id, status in result.all() if status == "Approved"}

        if not all(stage_id in approved for stage_id in PROJECT_STAGES):
            return False

        project = await self._get_project(project_id)
        project.status = "Completed"
        project.progress = 100
        await self.db.commit()

        logger.info("project_completed", project_id=str(project_id))
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validate(self, stage_id: str, status: str) -> None:
        if stage_id not in PROJECT_STAGES:
            raise InvalidRequestError(f"Unknown stage: {stage_id}")
        if status not in APPROVAL_STATUSES:
            raise InvalidRequestError(
                f"Status must be one of: {', '.join(APPROVAL_STATUSES)}"
            )

    async def _get_project(self, project_id: UUID) -> Project:
        result = await self.db.execute(select(Project).where(Project.id == project_id))
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project")
        return project

    async def _member_ids(self, project_id: UUID) -> list[UUID]:
        result = await self.db.execute(
            select(ProjectMember.member_id).where(ProjectMember.project_id == project_id)
        )
        return [row[0] for row in result.all()]
