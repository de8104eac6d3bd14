"""Shared pytest fixtures.

Every test gets its own in-memory SQLite database; the application's
session dependency is overridden to use it, so no external services are
needed.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

from collections.abc import AsyncGenerator
from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from projecthub import models  # noqa: F401
from projecthub.db.base import Base
from projecthub.db.session import get_db_session
from projecthub.main import app
from projecthub.models import Profile, Project, ProjectMember, Task

from helpers import make_profile


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

@pytest.fixture
async def pm(db) -> Profile:
    return await make_profile(db, "Paula Manager", "paula@example.com", role="pm")


@pytest.fixture
async def alice(db) -> Profile:
    return await make_profile(db, "Alice Member", "alice@example.com", role="member")


@pytest.fixture
async def bob(db) -> Profile:
    return await make_profile(db, "Bob Member", "bob@example.com", role="member")


@pytest.fixture
async def project(db, pm, alice, bob) -> Project:
    """Project owned by the PM with Alice and Bob as members."""
    project = Project(
        code="PRJ-0001",
        name="Data Center Migration",
        owner_id=pm.id,
        status="In Progress",
        progress=40,
        stage_deadlines={},
        team_members=["Alice Member", "bob@example.com"],
    )
    db.add(project)
    await db.flush()
    db.add_all(
        [
            ProjectMember(project_id=project.id, member_id=alice.id, role="member"),
            ProjectMember(project_id=project.id, member_id=bob.id, role="member"),
        ]
    )
    await db.commit()
    return project


@pytest.fixture
async def task(db, project) -> Task:
    task = Task(
        project_id=project.id,
        stage="stage-1",
        title="Inventory racks",
        status="Not Started",
        assignee="Alice Member",
        due_date=date(2026, 10, 20),
    )
    db.add(task)
    await db.commit()
    return task
