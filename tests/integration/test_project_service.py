"""Tests for ProjectService: code allocation, lazy expiry and lifecycle."""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from src.feedback.core import codes
from src.feedback.core.exceptions import InternalError, ValidationError
from src.feedback.core.storage import MemoryBlobStore
from src.feedback.models import Comment, Project, ProjectStatus
from src.feedback.schemas import CommentCreate, ProjectCreate
from src.feedback.services import CommentService, ProjectService
from tests.factories import CommentFactory, ProjectFactory
from tests.helpers import OWNER_EMAIL, PNG_DATA_URL, FrozenClock

pytestmark = pytest.mark.integration


async def _status_in_db(session: AsyncSession, code: str) -> str:
    result = await session.execute(select(Project.status).where(Project.code == code))
    return result.scalar_one()


class TestCreate:
    async def test_creates_active_project_with_30_day_expiry(
        self, project_service: ProjectService, clock: FrozenClock
    ) -> None:
        project = await project_service.create(
            ProjectCreate(name="Demo", owner_email="a@b.com")
        )

        assert codes.is_valid_format(project.code)
        assert project.status == ProjectStatus.ACTIVE.value
        assert project.created_at == clock.now
        assert project.expires_at == clock.now + timedelta(days=30)
        assert project.max_comments == 100

    async def test_name_is_stored_escaped(self, project_service: ProjectService) -> None:
        project = await project_service.create(
            ProjectCreate(name="Tom & Jerry", owner_email="a@b.com")
        )
        assert project.name == "Tom &amp; Jerry"

    async def test_skips_codes_already_in_store(
        self,
        project_service: ProjectService,
        db_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        taken = ProjectFactory.build(code="AAA-AAA-AAA")
        db_session.add(taken)
        await db_session.commit()

        sequence = iter(["AAA-AAA-AAA", "BBB-BBB-BBB"])
        monkeypatch.setattr(codes, "generate", lambda: next(sequence))

        project = await project_service.create(ProjectCreate(name="Demo", owner_email="a@b.com"))
        assert project.code == "BBB-BBB-BBB"

    async def test_exhausted_attempts_raise_internal_error(
        self,
        project_service: ProjectService,
        db_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        db_session.add(ProjectFactory.build(code="AAA-AAA-AAA"))
        await db_session.commit()
        monkeypatch.setattr(codes, "generate", lambda: "AAA-AAA-AAA")

        with pytest.raises(InternalError):
            await project_service.create(ProjectCreate(name="Demo", owner_email="a@b.com"))


class TestGetByCode:
    async def test_returns_live_project(
        self, project_service: ProjectService, project: Project
    ) -> None:
        found = await project_service.get_by_code(project.code)
        assert found is not None
        assert found.id == project.id

    async def test_malformed_code_is_none(self, project_service: ProjectService) -> None:
        assert await project_service.get_by_code("NOTREAL") is None

    async def test_inactive_project_is_none(
        self, project_service: ProjectService, db_session: AsyncSession
    ) -> None:
        inactive = ProjectFactory.inactive()
        db_session.add(inactive)
        await db_session.commit()
        assert await project_service.get_by_code(inactive.code) is None

    async def test_overdue_project_is_expired_on_read(
        self,
        project_service: ProjectService,
        project: Project,
        clock: FrozenClock,
        engine,
    ) -> None:
        clock.advance(days=31)

        assert await project_service.get_by_code(project.code) is None

        # The flip is committed, visible from an independent session
        async with AsyncSession(engine) as other:
            assert await _status_in_db(other, project.code) == ProjectStatus.EXPIRED.value

    async def test_store_failure_is_none(
        self,
        project_service: ProjectService,
        project: Project,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def broken(code):
            raise OperationalError("SELECT", {}, Exception("db down"))

        monkeypatch.setattr(project_service.project_repo, "get_by_code", broken)
        assert await project_service.get_by_code(project.code) is None


class TestUpdate:
    async def test_applies_whitelisted_fields(
        self, project_service: ProjectService, project: Project
    ) -> None:
        changed = await project_service.update(
            project.code, {"name": "<b>New</b>", "max_comments": 5, "owner_email": "x@y.com"}
        )
        assert changed is True

        found = await project_service.get_by_code(project.code)
        assert found is not None
        assert found.name == "&lt;b&gt;New&lt;&#x2F;b&gt;"
        assert found.max_comments == 5
        assert found.owner_email == OWNER_EMAIL

    async def test_empty_update_is_failure(
        self, project_service: ProjectService, project: Project
    ) -> None:
        assert await project_service.update(project.code, {}) is False
        assert await project_service.update(project.code, {"owner_email": "x@y.com"}) is False

    async def test_pause_and_resume(
        self, project_service: ProjectService, project: Project
    ) -> None:
        assert await project_service.update(project.code, {"status": ProjectStatus.INACTIVE})
        assert await project_service.get_by_code(project.code) is None

        assert await project_service.update(project.code, {"status": ProjectStatus.ACTIVE})
        assert await project_service.get_by_code(project.code) is not None

    async def test_expired_project_is_not_updatable(
        self, project_service: ProjectService, project: Project, clock: FrozenClock
    ) -> None:
        clock.advance(days=31)
        assert await project_service.update(project.code, {"name": "Too late"}) is False

    async def test_missing_project_is_failure(self, project_service: ProjectService) -> None:
        assert await project_service.update("ZZZ-ZZZ-ZZZ", {"name": "Ghost"}) is False


class TestExtend:
    async def test_adds_days_to_current_expiry(
        self, project_service: ProjectService, project: Project
    ) -> None:
        original = project.expires_at
        expires_at = await project_service.extend_expiration(project.code, 10)
        assert expires_at == original + timedelta(days=10)

    async def test_revives_expired_project(
        self,
        project_service: ProjectService,
        project: Project,
        clock: FrozenClock,
        db_session: AsyncSession,
    ) -> None:
        clock.advance(days=31)
        assert await project_service.get_by_code(project.code) is None

        await project_service.extend_expiration(project.code, 30)
        assert await _status_in_db(db_session, project.code) == ProjectStatus.ACTIVE.value
        assert await project_service.get_by_code(project.code) is not None

    async def test_inactive_stays_inactive(
        self, project_service: ProjectService, db_session: AsyncSession
    ) -> None:
        inactive = ProjectFactory.inactive()
        db_session.add(inactive)
        await db_session.commit()

        assert await project_service.extend_expiration(inactive.code, 5) is not None
        assert await _status_in_db(db_session, inactive.code) == ProjectStatus.INACTIVE.value

    @pytest.mark.parametrize("days", [0, 366])
    async def test_days_out_of_range(
        self, project_service: ProjectService, project: Project, days: int
    ) -> None:
        with pytest.raises(ValidationError):
            await project_service.extend_expiration(project.code, days)

    async def test_missing_project_is_none(self, project_service: ProjectService) -> None:
        assert await project_service.extend_expiration("ZZZ-ZZZ-ZZZ", 5) is None


async def test_sweep_expires_only_overdue_active_projects(
    project_service: ProjectService, db_session: AsyncSession, clock: FrozenClock
):
    live = ProjectFactory.build()
    overdue = ProjectFactory.expired()
    paused = ProjectFactory.inactive(expires_at=clock.now - timedelta(days=2))
    db_session.add_all([live, overdue, paused])
    await db_session.commit()

    assert await project_service.sweep_expired() == 1
    assert await _status_in_db(db_session, overdue.code) == ProjectStatus.EXPIRED.value
    assert await _status_in_db(db_session, live.code) == ProjectStatus.ACTIVE.value
    assert await _status_in_db(db_session, paused.code) == ProjectStatus.INACTIVE.value

    assert await project_service.sweep_expired() == 0


async def test_delete_cascades_to_comments_and_screenshots(
    project_service: ProjectService,
    comment_service: CommentService,
    project: Project,
    db_session: AsyncSession,
    blob_store: MemoryBlobStore,
):
    with_shot = await comment_service.create(
        CommentCreate(
            project_code=project.code,
            url="https://example.com/page",
            text="Logo is blurry",
            screenshot=PNG_DATA_URL,
        )
    )
    db_session.add(CommentFactory.build(project_code=project.code))
    other = ProjectFactory.build()
    db_session.add(other)
    db_session.add(CommentFactory.build(project_code=other.code))
    await db_session.commit()
    assert with_shot.screenshot_key in blob_store

    assert await project_service.delete(project.code) is True

    remaining = (await db_session.execute(select(Comment.project_code))).scalars().all()
    assert remaining == [other.code]
    assert len(blob_store) == 0
    assert await project_service.get_by_code(project.code) is None
    assert await project_service.delete(project.code) is False


async def test_stats_counts_every_status_and_priority(
    project_service: ProjectService, project: Project, db_session: AsyncSession
):
    db_session.add_all(
        [
            CommentFactory.build(project_code=project.code, status="new", priority="high"),
            CommentFactory.build(project_code=project.code, status="new", priority="low"),
            CommentFactory.build(project_code=project.code, status="resolved"),
        ]
    )
    await db_session.commit()

    stats = await project_service.stats(project.code)
    assert stats is not None
    assert stats.total_comments == 3
    assert stats.by_status == {"new": 2, "in_progress": 0, "resolved": 1}
    assert stats.by_priority == {"low": 1, "normal": 1, "high": 1}


async def test_list_by_owner_paginates_and_sorts(
    project_service: ProjectService, db_session: AsyncSession, clock: FrozenClock
):
    for index, name in enumerate(["Charlie", "Alpha", "Bravo"]):
        db_session.add(
            ProjectFactory.build(name=name, created_at=clock.now + timedelta(minutes=index))
        )
    db_session.add(ProjectFactory.build(owner_email="someone@else.com"))
    await db_session.commit()

    items, total, params = await project_service.list_by_owner(
        OWNER_EMAIL, page=1, per_page=2, sort="name", order="asc"
    )
    assert total == 3
    assert params.per_page == 2
    assert [p.name for p in items] == ["Alpha", "Bravo"]

    items, _, _ = await project_service.list_by_owner(OWNER_EMAIL, page=2, per_page=2)
    # Default sort: newest first
    assert [p.name for p in items] == ["Charlie"]
