"""Profile service: identity-provider sync and self-service edits."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.db.upsert import upsert
from projecthub.exceptions import InvalidRequestError, NotFoundError
from projecthub.models.user import Profile

logger = structlog.get_logger()

PROFILE_STATUSES = ("Active", "Inactive")


class ProfileService:
    """Service for user profiles."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_all(self) -> list[Profile]:
        """All profiles ordered by full name."""
        result = await self.db.execute(select(Profile).order_by(Profile.full_name.asc()))
        return list(result.scalars().all())

    async def get(self, profile_id: UUID) -> Profile:
        result = await self.db.execute(
            select(Profile)
            .where(Profile.id == profile_id)
            .execution_options(populate_existing=True)
        )
        profile = result.scalar_one_or_none()
        if profile is None:
            raise NotFoundError("Profile")
        return profile

    async def set_status(self, profile_id: UUID, status: str) -> Profile:
        """Activate or deactivate a profile."""
        if status not in PROFILE_STATUSES:
            raise InvalidRequestError("Status must be Active or Inactive.")

        profile = await self.get(profile_id)
        profile.is_active = status == "Active"
        await self.db.commit()

        logger.info("profile_status_changed", profile_id=str(profile_id), status=status)
        return await self.get(profile_id)

    async def sync_from_claims(self, claims: dict[str, Any]) -> Profile:
        """
        Create or refresh the caller's profile from access-token claims.

        ``user_metadata`` carries what the user entered at sign-up
        (firstName, lastName, name, phone, position, role).
        """
        profile_id = UUID(str(claims["sub"]))
        email = claims.get("email")
        metadata = claims.get("user_metadata") or {}

        await upsert(
            self.db,
            Profile,
            {
                "id": profile_id,
                "email": email,
                "first_name": metadata.get("firstName", ""),
                "last_name": metadata.get("lastName", ""),
                "full_name": metadata.get("name") or email,
                "phone": metadata.get("phone", ""),
                "position": metadata.get("position", ""),
                "role": metadata.get("role"),
            },
            conflict_columns=["id"],
        )
        await self.db.commit()

        logger.info("profile_synced", profile_id=str(profile_id))
        return await self.get(profile_id)

    async def update_own(
        self,
        profile_id: UUID,
        email: str | None,
        first_name: str = "",
        last_name: str = "",
        phone: str = "",
        position: str = "",
        bio: str = "",
    ) -> Profile:
        """Update the caller's editable fields; full name is rebuilt from first and last name."""
        first_name = first_name.strip()
        last_name = last_name.strip()
        full_name = " ".join(part for part in (first_name, last_name) if part) or email

        await upsert(
            self.db,
            Profile,
            {
                "id": profile_id,
                "email": email,
                "first_name": first_name,
                "last_name": last_name,
                "full_name": full_name,
                "phone": phone.strip(),
                "position": position.strip(),
                "bio": bio.strip(),
            },
            conflict_columns=["id"],
        )
        await self.db.commit()

        logger.info("profile_updated", profile_id=str(profile_id))
        return await self.get(profile_id)
