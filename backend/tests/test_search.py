"""Tests for global search."""

import pytest

from helpers import auth_headers, make_profile


class TestSearch:

    @pytest.mark.asyncio
    async def test_short_query_returns_nothing(self, client, alice, project) -> None:
        response = await client.get("/api/search", params={"q": "d"}, headers=auth_headers(alice.id))

        assert response.status_code == 200
        assert response.json() == {"data": []}

    @pytest.mark.asyncio
    async def test_matches_projects_and_tasks(self, client, alice, project, task) -> None:
        response = await client.get("/api/search", params={"q": "rack"}, headers=auth_headers(alice.id))

        results = response.json()["data"]
        assert [(r["type"], r["title"]) for r in results] == [("task", "Inventory racks")]
        assert results[0]["subtitle"] == "Data Center Migration • Task"
        assert results[0]["url"] == f"/member/projects/{project.id}?taskId={task.id}"

        response = await client.get("/api/search", params={"q": "center"}, headers=auth_headers(alice.id))
        results = response.json()["data"]
        assert [(r["type"], r["id"]) for r in results] == [("project", str(project.id))]

    @pytest.mark.asyncio
    async def test_outsider_sees_nothing(self, client, db, project, task) -> None:
        outsider = await make_profile(db, "Olga Outsider", "olga@example.com")

        response = await client.get("/api/search", params={"q": "rack"}, headers=auth_headers(outsider.id))

        assert response.json() == {"data": []}

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client) -> None:
        response = await client.get("/api/search", params={"q": "rack"})
        assert response.status_code == 401
