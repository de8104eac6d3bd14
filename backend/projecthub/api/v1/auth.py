"""Bearer token verification and the current-user dependencies.

Tokens are issued by the external identity provider; this service only
verifies them. The ``sub`` claim is the profile id.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.schemas import DataResponse, ProfileResponse
from projecthub.config import get_settings
from projecthub.db.session import get_db_session
from projecthub.models.user import Profile

router = APIRouter()
logger = structlog.get_logger()
settings = get_settings()
security = HTTPBearer(auto_error=False)


def create_access_token(
    user_id: UUID,
    expires_delta: timedelta | None = None,
    **claims: Any,
) -> str:
    """Create a token shaped like the identity provider's access tokens."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=1))
    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "exp": expire,
        **claims,
    }
    if settings.jwt_audience:
        to_encode.setdefault("aud", settings.jwt_audience)
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> dict[str, Any]:
    """Verify a bearer token and return its claims. Raises JWTError."""
    return jwt.decode(
        token,
        settings.jwt_secret_key.get_secret_value(),
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options={"verify_aud": settings.jwt_audience is not None},
    )


async def get_token_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict[str, Any]:
    """Claims of a valid bearer token carrying a UUID subject."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_token(credentials.credentials)
        UUID(str(payload.get("sub")))
    except (JWTError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    return payload


async def get_current_user(
    claims: Annotated[dict[str, Any], Depends(get_token_claims)],
    db: AsyncSession = Depends(get_db_session),
) -> Profile:
    """Get the profile of the authenticated user."""
    result = await db.execute(select(Profile).where(Profile.id == UUID(claims["sub"])))
    user = result.scalar_one_or_none()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


async def get_current_user_id_optional(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> UUID | None:
    """The token subject if a valid token is present, otherwise None."""
    if not credentials:
        return None

    try:
        payload = decode_token(credentials.credentials)
        return UUID(str(payload.get("sub")))
    except (JWTError, ValueError):
        logger.debug("optional_token_rejected")
        return None


# Type alias for dependency injection
CurrentUser = Annotated[Profile, Depends(get_current_user)]
OptionalUserId = Annotated[UUID | None, Depends(get_current_user_id_optional)]
TokenClaims = Annotated[dict[str, Any], Depends(get_token_claims)]


@router.get("/me", response_model=DataResponse[ProfileResponse])
async def get_current_user_info(current_user: CurrentUser) -> dict:
    """Get current user information."""
    return {"data": current_user}
