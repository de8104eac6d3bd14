"""Tests for project CRUD and team membership sync."""

import pytest
from sqlalchemy import select

from projecthub.exceptions import InvalidRequestError
from projecthub.models import ProjectMember
from projecthub.services.project import ProjectService

from helpers import auth_headers, load_project, make_profile, notifications_for


async def _member_ids(session_factory, project_id) -> set:
    async with session_factory() as session:
        result = await session.execute(
            select(ProjectMember.member_id).where(ProjectMember.project_id == project_id)
        )
        return {row[0] for row in result.all()}


class TestProjectService:

    @pytest.mark.asyncio
    async def test_next_code_increments_latest(self, db, project) -> None:
        assert await ProjectService(db).next_code() == "PRJ-0002"

    @pytest.mark.asyncio
    async def test_next_code_without_projects(self, db) -> None:
        assert await ProjectService(db).next_code() == "PRJ-0001"

    @pytest.mark.asyncio
    async def test_resolve_member_ids(self, db, alice, bob) -> None:
        carol = await make_profile(db, "Carol Jones", "carol@example.com")
        service = ProjectService(db)

        ids = await service.resolve_member_ids(["Alice Member", "bob@example.com", "carol", "Nobody Here", " "])

        assert ids == [alice.id, bob.id, carol.id]

    @pytest.mark.asyncio
    async def test_create_requires_name(self, db, pm) -> None:
        with pytest.raises(InvalidRequestError):
            await ProjectService(db).create(pm.id, {"name": "   "})

    @pytest.mark.asyncio
    async def test_create_rejects_unknown_stage_deadline(self, db, pm) -> None:
        with pytest.raises(InvalidRequestError):
            await ProjectService(db).create(
                pm.id, {"name": "Edge Sites", "stage_deadlines": {"stage-6": "2026-01-01"}}
            )

    @pytest.mark.asyncio
    async def test_create_rejects_unknown_status(self, db, pm) -> None:
        with pytest.raises(InvalidRequestError, match="Status must be one of"):
            await ProjectService(db).create(pm.id, {"name": "Edge Sites", "status": "Archived"})

    @pytest.mark.asyncio
    async def test_sync_adds_and_removes_members(self, db, session_factory, project, alice, bob) -> None:
        carol = await make_profile(db, "Carol Jones", "carol@example.com")
        service = ProjectService(db)

        added = await service.sync_members(project.id, project.name, ["Alice Member", "carol@example.com"])

        assert added == [carol.id]
        assert await _member_ids(session_factory, project.id) == {alice.id, carol.id}
        assert len(await notifications_for(session_factory, carol.id, "PROJECT_ASSIGNED")) == 1
        assert await notifications_for(session_factory, alice.id, "PROJECT_ASSIGNED") == []
        assert await notifications_for(session_factory, bob.id, "PROJECT_ASSIGNED") == []


class TestProjectEndpoints:

    @pytest.mark.asyncio
    async def test_create_project(self, client, session_factory, pm, alice) -> None:
        response = await client.post(
            "/api/projects",
            json={
                "name": "Edge Sites",
                "location": "Austin",
                "stageDeadlines": {"stage-1": "2026-11-01"},
                "teamMembers": ["Alice Member"],
            },
            headers=auth_headers(pm.id),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["code"] == "PRJ-0001"
        assert data["owner_id"] == str(pm.id)
        assert data["stage_deadlines"] == {"stage-1": "2026-11-01"}
        assert data["team_members"] == ["Alice Member"]

        notes = await notifications_for(session_factory, alice.id, "PROJECT_ASSIGNED")
        assert len(notes) == 1
        assert notes[0].message == 'You have been added to project "Edge Sites".'
        assert notes[0].link == f"/projects/{data['id']}"

    @pytest.mark.asyncio
    async def test_create_without_name(self, client) -> None:
        response = await client.post("/api/projects", json={"location": "Austin"})
        assert response.status_code == 400
        assert response.json()["message"].startswith("name")

    @pytest.mark.asyncio
    async def test_list_and_get(self, client, project) -> None:
        response = await client.get("/api/projects")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["data"]] == [str(project.id)]

        response = await client.get(f"/api/projects/{project.id}")
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Data Center Migration"

    @pytest.mark.asyncio
    async def test_owner_updates_fields_and_members(self, client, session_factory, project, pm, alice, bob) -> None:
        response = await client.put(
            f"/api/projects/{project.id}",
            json={"progress": 60, "teamMembers": ["bob@example.com"]},
            headers=auth_headers(pm.id),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["progress"] == 60
        assert data["name"] == "Data Center Migration"
        assert await _member_ids(session_factory, project.id) == {bob.id}

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_status(self, client, session_factory, project, pm) -> None:
        response = await client.put(
            f"/api/projects/{project.id}",
            json={"status": "Archived"},
            headers=auth_headers(pm.id),
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("Status must be one of")
        assert (await load_project(session_factory, project.id)).status == "In Progress"

    @pytest.mark.asyncio
    async def test_non_owner_cannot_update(self, client, session_factory, project, alice) -> None:
        response = await client.put(
            f"/api/projects/{project.id}",
            json={"name": "Hijacked"},
            headers=auth_headers(alice.id),
        )

        assert response.status_code == 404
        assert response.json() == {"message": "Project not found."}
        assert (await load_project(session_factory, project.id)).name == "Data Center Migration"

    @pytest.mark.asyncio
    async def test_delete(self, client, project, pm, alice) -> None:
        response = await client.delete(f"/api/projects/{project.id}", headers=auth_headers(alice.id))
        assert response.status_code == 404

        response = await client.delete(f"/api/projects/{project.id}", headers=auth_headers(pm.id))
        assert response.status_code == 200
        assert response.json() == {"ok": True}

        response = await client.get(f"/api/projects/{project.id}")
        assert response.status_code == 404
