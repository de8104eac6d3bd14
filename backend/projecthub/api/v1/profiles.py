"""Profile API endpoints."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.auth import CurrentUser, TokenClaims
from projecthub.api.v1.schemas import (
    CamelModel,
    DataResponse,
    ProfileResponse,
    ProfileSummary,
)
from projecthub.db.session import get_db_session
from projecthub.services.profile import ProfileService

router = APIRouter()
logger = structlog.get_logger()


class ProfileStatusUpdate(CamelModel):
    """Activate or deactivate a profile."""

    status: str


class ProfileUpdate(CamelModel):
    """Self-service profile edit."""

    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    position: str = ""
    bio: str = ""


@router.get("/profiles", response_model=DataResponse[list[ProfileSummary]])
async def list_profiles(db: AsyncSession = Depends(get_db_session)) -> dict:
    """List profiles for the member picker, ordered by name."""
    service = ProfileService(db)
    return {"data": await service.list_all()}


@router.patch("/profiles/{profile_id}/status", response_model=DataResponse[ProfileSummary])
async def update_profile_status(
    profile_id: UUID,
    body: ProfileStatusUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Activate or deactivate a profile."""
    service = ProfileService(db)
    profile = await service.set_status(profile_id, body.status.strip())
    return {"data": profile}


@router.post("/profile/sync", response_model=DataResponse[ProfileResponse])
async def sync_profile(
    claims: TokenClaims,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Create or refresh the caller's profile from their access token."""
    service = ProfileService(db)
    return {"data": await service.sync_from_claims(claims)}


@router.put("/profile/update", response_model=DataResponse[ProfileResponse])
async def update_profile(
    body: ProfileUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Update the caller's name, phone, position and bio."""
    service = ProfileService(db)
    profile = await service.update_own(
        profile_id=current_user.id,
        email=current_user.email,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        position=body.position,
        bio=body.bio,
    )
    return {"data": profile}
