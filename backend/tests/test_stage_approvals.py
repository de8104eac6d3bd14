"""Tests for the stage approval workflow."""

from uuid import uuid4

import pytest

from projecthub.exceptions import InvalidRequestError, NotFoundError
from projecthub.models import PROJECT_STAGES
from projecthub.services.stage_approval import StageApprovalService

from helpers import (
    approvals_for,
    auth_headers,
    count_notifications,
    fail_inserts,
    load_project,
    notifications_for,
)


class TestRequestApproval:

    @pytest.mark.asyncio
    async def test_upsert_keeps_one_row_per_stage(self, db, session_factory, project, alice) -> None:
        service = StageApprovalService(db)
        await service.request_approval(project.id, "stage-2", alice.id)
        await service.request_approval(project.id, "stage-2", alice.id, status="Rejected")

        rows = await approvals_for(session_factory, project.id)
        assert len(rows) == 1
        assert rows[0].status == "Rejected"

    @pytest.mark.asyncio
    async def test_unknown_stage_rejected(self, db, project, alice) -> None:
        service = StageApprovalService(db)
        with pytest.raises(InvalidRequestError):
            await service.request_approval(project.id, "stage-9", alice.id)

    @pytest.mark.asyncio
    async def test_unknown_project_rejected(self, db, alice) -> None:
        service = StageApprovalService(db)
        with pytest.raises(NotFoundError):
            await service.request_approval(uuid4(), "stage-1", alice.id)


class TestTransition:

    @pytest.mark.asyncio
    async def test_requester_preserved_and_approver_is_actor(self, db, project, alice, pm) -> None:
        service = StageApprovalService(db)
        await service.request_approval(project.id, "stage-1", alice.id)

        approval = await service.transition(project.id, "stage-1", "Approved", actor_id=pm.id)

        assert approval.requested_by == alice.id
        assert approval.approved_by == pm.id
        assert approval.approved_at is not None

    @pytest.mark.asyncio
    async def test_approved_at_cleared_when_not_approved(self, db, project, alice, pm) -> None:
        service = StageApprovalService(db)
        await service.transition(project.id, "stage-1", "Approved", actor_id=pm.id, requested_by=alice.id)

        approval = await service.transition(project.id, "stage-1", "Pending", actor_id=pm.id)

        assert approval.status == "Pending"
        assert approval.approved_at is None
        assert approval.requested_by == alice.id

    @pytest.mark.asyncio
    async def test_approval_notifies_requester(self, db, session_factory, project, alice, pm) -> None:
        service = StageApprovalService(db)
        await service.request_approval(project.id, "stage-3", alice.id)
        await service.transition(project.id, "stage-3", "Approved", actor_id=pm.id)

        notes = await notifications_for(session_factory, alice.id, "STAGE_APPROVED")
        assert len(notes) == 1
        assert "Execution" in notes[0].message
        assert notes[0].link == f"/projects/{project.id}?tab=approvals"

    @pytest.mark.asyncio
    async def test_all_five_approved_completes_project(self, db, session_factory, project, pm) -> None:
        service = StageApprovalService(db)
        for stage_id in PROJECT_STAGES:
            await service.transition(project.id, stage_id, "Approved", actor_id=pm.id)

        reloaded = await load_project(session_factory, project.id)
        assert reloaded.status == "Completed"
        assert reloaded.progress == 100

    @pytest.mark.asyncio
    async def test_four_approved_leaves_project_unchanged(self, db, session_factory, project, pm) -> None:
        service = StageApprovalService(db)
        for stage_id in list(PROJECT_STAGES)[:4]:
            await service.transition(project.id, stage_id, "Approved", actor_id=pm.id)
        await service.transition(project.id, "stage-5", "Rejected", actor_id=pm.id)

        reloaded = await load_project(session_factory, project.id)
        assert reloaded.status == "In Progress"
        assert reloaded.progress == 40

    @pytest.mark.asyncio
    async def test_rejection_notifies_members_except_actor(
        self, db, session_factory, project, alice, bob
    ) -> None:
        service = StageApprovalService(db)
        await service.transition(
            project.id, "stage-2", "Rejected", actor_id=alice.id, comment="Budget missing"
        )

        assert await count_notifications(session_factory, "STAGE_REJECTED") == 1
        notes = await notifications_for(session_factory, bob.id, "STAGE_REJECTED")
        assert len(notes) == 1
        assert 'Reason: "Budget missing"' in notes[0].message
        assert await notifications_for(session_factory, alice.id, "STAGE_REJECTED") == []


class TestStageApprovalEndpoints:

    @pytest.mark.asyncio
    async def test_list_requires_project_id(self, client) -> None:
        response = await client.get("/api/project-stage-approvals")
        assert response.status_code == 400
        assert "message" in response.json()

    @pytest.mark.asyncio
    async def test_request_and_list(self, client, project, alice) -> None:
        response = await client.post(
            "/api/project-stage-approvals",
            json={"projectId": str(project.id), "stageId": "stage-1"},
            headers=auth_headers(alice.id),
        )
        assert response.status_code == 200
        body = response.json()["data"]
        assert body["status"] == "Pending"
        assert body["requested_by"] == str(alice.id)

        response = await client.get(
            "/api/project-stage-approvals", params={"projectId": str(project.id)}
        )
        assert response.status_code == 200
        assert len(response.json()["data"]) == 1

    @pytest.mark.asyncio
    async def test_request_without_actor_stores_null_requester(self, client, project) -> None:
        response = await client.post(
            "/api/project-stage-approvals",
            json={"projectId": str(project.id), "stageId": "stage-4"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["requested_by"] is None

    @pytest.mark.asyncio
    async def test_patch_rejects_invalid_status(self, client, project, pm) -> None:
        response = await client.patch(
            "/api/project-stage-approvals/stage-1",
            json={"projectId": str(project.id), "status": "Maybe"},
            headers=auth_headers(pm.id),
        )
        assert response.status_code == 400
        assert "Status must be one of" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_patch_rejects_unknown_stage(self, client, project, pm) -> None:
        response = await client.patch(
            "/api/project-stage-approvals/stage-7",
            json={"projectId": str(project.id), "status": "Approved"},
            headers=auth_headers(pm.id),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_patch_approves_all_stages(self, client, session_factory, project, pm) -> None:
        for stage_id in PROJECT_STAGES:
            response = await client.patch(
                f"/api/project-stage-approvals/{stage_id}",
                json={"projectId": str(project.id), "status": "Approved", "comment": "ok"},
                headers=auth_headers(pm.id),
            )
            assert response.status_code == 200
            assert response.json()["data"]["approved_by"] == str(pm.id)

        reloaded = await load_project(session_factory, project.id)
        assert reloaded.status == "Completed"
        assert reloaded.progress == 100


class TestStageApprovalDatabaseErrors:

    @pytest.mark.asyncio
    async def test_patch_reports_failed_update(self, client, engine, session_factory, project, pm) -> None:
        await fail_inserts(engine, "project_stage_approvals")

        response = await client.patch(
            "/api/project-stage-approvals/stage-1",
            json={"projectId": str(project.id), "status": "Approved"},
            headers=auth_headers(pm.id),
        )

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to update approval."}
        assert await approvals_for(session_factory, project.id) == []

    @pytest.mark.asyncio
    async def test_request_database_error_uses_envelope(self, client, engine, project, alice) -> None:
        await fail_inserts(engine, "project_stage_approvals")

        response = await client.post(
            "/api/project-stage-approvals",
            json={"projectId": str(project.id), "stageId": "stage-1"},
            headers=auth_headers(alice.id),
        )

        assert response.status_code == 500
        assert response.json() == {"message": "Database request failed."}

    @pytest.mark.asyncio
    async def test_rejection_succeeds_when_notification_insert_fails(
        self, client, engine, session_factory, project, pm
    ) -> None:
        await fail_inserts(engine, "notifications")

        response = await client.patch(
            "/api/project-stage-approvals/stage-2",
            json={"projectId": str(project.id), "status": "Rejected", "comment": "Budget missing"},
            headers=auth_headers(pm.id),
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Rejected"
        assert await count_notifications(session_factory, "STAGE_REJECTED") == 0
