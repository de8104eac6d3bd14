"""Seed and query helpers shared by the test modules."""

from uuid import UUID

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from projecthub.api.v1.auth import create_access_token
from projecthub.models import Notification, Profile, Project, StageApproval


def auth_headers(user_id: UUID, **claims) -> dict[str, str]:
    """Bearer header for a token issued to ``user_id``."""
    return {"Authorization": f"Bearer {create_access_token(user_id, **claims)}"}


async def make_profile(db: AsyncSession, full_name: str | None, email: str, **kwargs) -> Profile:
    profile = Profile(full_name=full_name, email=email, **kwargs)
    db.add(profile)
    await db.commit()
    return profile


async def notifications_for(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: UUID,
    notification_type: str | None = None,
) -> list[Notification]:
    async with session_factory() as session:
        query = select(Notification).where(Notification.user_id == user_id)
        if notification_type:
            query = query.where(Notification.type == notification_type)
        result = await session.execute(query)
        return list(result.scalars().all())


async def count_notifications(
    session_factory: async_sessionmaker[AsyncSession],
    notification_type: str,
) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(func.count()).select_from(Notification).where(Notification.type == notification_type)
        )
        return result.scalar_one()


async def load_project(session_factory: async_sessionmaker[AsyncSession], project_id: UUID) -> Project:
    async with session_factory() as session:
        result = await session.execute(select(Project).where(Project.id == project_id))
        return result.scalar_one()


async def approvals_for(
    session_factory: async_sessionmaker[AsyncSession],
    project_id: UUID,
) -> list[StageApproval]:
    async with session_factory() as session:
        result = await session.execute(
            select(StageApproval).where(StageApproval.project_id == project_id)
        )
        return list(result.scalars().all())


async def fail_inserts(engine: AsyncEngine, table: str) -> None:
    """Make every INSERT into ``table`` abort from now on (SQLite only)."""
    async with engine.begin() as conn:
        await conn.execute(
            text(
                f"CREATE TRIGGER fail_{table}_insert BEFORE INSERT ON {table} "
                f"BEGIN SELECT RAISE(ABORT, '{table} unavailable'); END"
            )
        )
