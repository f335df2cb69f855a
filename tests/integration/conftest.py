"""Integration test fixtures for database and HTTP client operations.

Uses a shared in-memory SQLite database (aiosqlite + StaticPool) that is
installed as the process engine, so request sessions, health checks and
Temporal activities all see the same tables.
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from src.feedback.core import redis as redis_core
from src.feedback.core.config import Settings
from src.feedback.core.db import engine as engine_module
from src.feedback.core.db import get_session
from src.feedback.core.storage import MemoryBlobStore
from src.feedback.main import create_app
from src.feedback.models import Project
from src.feedback.repositories import CommentRepository, ProjectRepository
from src.feedback.services import CommentService, FeedbackService, ProjectService
from tests.factories import ProjectFactory
from tests.helpers import BROWSER_UA, FrozenClock


@pytest.fixture(autouse=True)
async def _reset_redis_between_tests() -> AsyncGenerator[None]:
    """Redis clients hold a reference to their event loop; drop them per test."""
    redis_core.reset_redis_state()
    yield
    await redis_core.close_redis()


@pytest.fixture
async def engine(monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory database with all tables and install it as the app engine."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    monkeypatch.setattr(engine_module, "_engine", test_engine)
    yield test_engine
    monkeypatch.setattr(engine_module, "_engine", None)
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session for arranging and inspecting data directly.

    Commit is explicit; the context manager only closes the session.
    """
    async with get_session(engine) as session:
        yield session


@pytest.fixture
def comment_service(
    db_session: AsyncSession, blob_store: MemoryBlobStore, clock: FrozenClock
) -> CommentService:
    return CommentService(CommentRepository(db_session), blob_store, db_session, clock=clock)


@pytest.fixture
def project_service(
    db_session: AsyncSession,
    comment_service: CommentService,
    test_settings: Settings,
    clock: FrozenClock,
) -> ProjectService:
    return ProjectService(
        ProjectRepository(db_session), comment_service, db_session, test_settings, clock=clock
    )


@pytest.fixture
def feedback_service(
    project_service: ProjectService, comment_service: CommentService, test_settings: Settings
) -> FeedbackService:
    return FeedbackService(project_service, comment_service, test_settings)


@pytest.fixture
async def project(db_session: AsyncSession) -> Project:
    """A live project stored in the database."""
    project = ProjectFactory.build()
    db_session.add(project)
    await db_session.commit()
    return project


@pytest.fixture
def app(engine: AsyncEngine, test_settings: Settings, blob_store: MemoryBlobStore) -> FastAPI:
    application = create_app(test_settings)
    application.state.blob_store = blob_store
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTP client bound to the app with a browser User-Agent."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"User-Agent": BROWSER_UA},
    ) as ac:
        yield ac
