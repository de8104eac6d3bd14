"""Tests for profile sync, edits and the current-user dependencies."""

from datetime import timedelta
from uuid import uuid4

import pytest

from projecthub.api.v1.auth import create_access_token
from projecthub.exceptions import InvalidRequestError
from projecthub.services.profile import ProfileService

from helpers import auth_headers


class TestProfileService:

    @pytest.mark.asyncio
    async def test_sync_creates_then_updates(self, db) -> None:
        user_id = uuid4()
        service = ProfileService(db)

        created = await service.sync_from_claims(
            {
                "sub": str(user_id),
                "email": "nina@example.com",
                "user_metadata": {"firstName": "Nina", "lastName": "Ops", "name": "Nina Ops", "role": "member"},
            }
        )
        assert created.full_name == "Nina Ops"
        assert created.role == "member"
        assert created.is_active is True

        updated = await service.sync_from_claims({"sub": str(user_id), "email": "nina@example.com"})
        assert updated.id == user_id
        assert updated.full_name == "nina@example.com"

    @pytest.mark.asyncio
    async def test_update_own_rebuilds_full_name(self, db, alice) -> None:
        profile = await ProfileService(db).update_own(
            alice.id, alice.email, first_name=" Alicia ", last_name="", position="Engineer"
        )

        assert profile.full_name == "Alicia"
        assert profile.first_name == "Alicia"
        assert profile.position == "Engineer"

    @pytest.mark.asyncio
    async def test_update_own_falls_back_to_email(self, db, alice) -> None:
        profile = await ProfileService(db).update_own(alice.id, alice.email)
        assert profile.full_name == "alice@example.com"

    @pytest.mark.asyncio
    async def test_set_status_validates(self, db, alice) -> None:
        service = ProfileService(db)
        with pytest.raises(InvalidRequestError):
            await service.set_status(alice.id, "Suspended")

        profile = await service.set_status(alice.id, "Inactive")
        assert profile.is_active is False


class TestProfileEndpoints:

    @pytest.mark.asyncio
    async def test_me(self, client, alice) -> None:
        response = await client.get("/api/auth/me", headers=auth_headers(alice.id))

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "alice@example.com"

    @pytest.mark.asyncio
    async def test_invalid_token(self, client) -> None:
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid token"}

    @pytest.mark.asyncio
    async def test_expired_token(self, client, alice) -> None:
        token = create_access_token(alice.id, expires_delta=timedelta(minutes=-5))
        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_user(self, client) -> None:
        response = await client.get("/api/auth/me", headers=auth_headers(uuid4()))

        assert response.status_code == 401
        assert response.json() == {"message": "User not found"}

    @pytest.mark.asyncio
    async def test_disabled_user(self, client, alice) -> None:
        response = await client.patch(f"/api/profiles/{alice.id}/status", json={"status": "Inactive"})
        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is False

        response = await client.get("/api/auth/me", headers=auth_headers(alice.id))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_profiles_ordered_by_name(self, client, pm, alice, bob) -> None:
        response = await client.get("/api/profiles")

        assert response.status_code == 200
        assert [p["full_name"] for p in response.json()["data"]] == [
            "Alice Member",
            "Bob Member",
            "Paula Manager",
        ]

    @pytest.mark.asyncio
    async def test_sync_from_token(self, client) -> None:
        user_id = uuid4()
        headers = auth_headers(
            user_id,
            email="omar@example.com",
            user_metadata={"firstName": "Omar", "lastName": "Field", "name": "Omar Field"},
        )

        response = await client.post("/api/profile/sync", headers=headers)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == str(user_id)
        assert response.json()["data"]["full_name"] == "Omar Field"

    @pytest.mark.asyncio
    async def test_update_profile(self, client, bob) -> None:
        response = await client.put(
            "/api/profile/update",
            json={"firstName": "Robert", "lastName": "Member", "bio": "Cabling"},
            headers=auth_headers(bob.id),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["full_name"] == "Robert Member"
        assert data["bio"] == "Cabling"
