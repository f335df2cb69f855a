"""Project service: code allocation and the expiry state machine.

Status transitions::

    active   -> inactive   (owner pause)
    inactive -> active     (owner resume)
    active   -> expired    (wall clock, explicit update or sweep)
    expired  -> active     (extension only)

An expired project is never updatable and never returned by
:meth:`ProjectService.get_by_code`.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.feedback.core import codes
from src.feedback.core.config import Settings, get_settings
from src.feedback.core.exceptions import InternalError, ValidationError
from src.feedback.core.logging import get_logger
from src.feedback.core.security import sanitize_html
from src.feedback.models import Project, ProjectStatus
from src.feedback.models.base import utc_now
from src.feedback.repositories import ProjectRepository
from src.feedback.schemas import PageParams, ProjectCreate, ProjectStats
from src.feedback.services.comment_service import CommentService

logger = get_logger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "max_comments", "notify_email", "webhook_url", "status"})
SORT_FIELDS = frozenset({"created_at", "name", "expires_at"})

# Extra allocation rounds after a unique-constraint race on insert
_INSERT_RETRIES = 1


class ProjectService:
    """Service for project lifecycle operations."""

    def __init__(
        self,
        project_repo: ProjectRepository,
        comment_service: CommentService,
        session: AsyncSession,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.project_repo = project_repo
        self.comment_service = comment_service
        self.session = session
        self.settings = settings or get_settings()
        self.clock = clock

    async def _allocate_code(self, tried: set[str]) -> str:
        """Generate codes until one is unused in the store."""
        for _ in range(self.settings.code_max_attempts):
            try:
                code = codes.generate_unique(tried)
            except codes.CodeGenerationError as e:
                raise InternalError("Failed to allocate project code") from e
            tried.add(code)
            if not await self.project_repo.code_exists(code):
                return code
            logger.warning("Project code already taken, regenerating", code=code)
        raise InternalError("Failed to allocate project code")

    async def create(self, data: ProjectCreate) -> Project:
        """Create an active project with a fresh code and a 30-day lifetime.

        Raises:
            InternalError: no code could be allocated or the insert failed.
        """
        tried: set[str] = set()
        for _ in range(_INSERT_RETRIES + 1):
            try:
                code = await self._allocate_code(tried)
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error("Project code lookup failed", error=str(e))
                raise InternalError("Failed to create project") from e

            now = self.clock()
            project = Project(
                code=code,
                name=sanitize_html(data.name),
                owner_email=data.owner_email,
                created_at=now,
                expires_at=now + timedelta(days=self.settings.project_ttl_days),
                max_comments=data.max_comments,
                notify_email=data.notify_email,
                webhook_url=data.webhook_url,
                status=ProjectStatus.ACTIVE.value,
            )
            self.project_repo.add(project)

            try:
                await self.session.commit()
            except IntegrityError:
                # Another request inserted the same code between check and insert
                await self.session.rollback()
                logger.warning("Project code collided on insert, retrying", code=code)
                continue
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error("Project insert failed", error=str(e))
                raise InternalError("Failed to create project") from e

            logger.info("Project created", code=code, project_id=str(project.id))
            return project

        raise InternalError("Failed to allocate project code")

    async def get_by_code(self, code: str) -> Project | None:
        """Return the project only if it is active and not past its expiry.

        Side effect: an active project found past ``expires_at`` is flipped
        to ``expired`` and committed before None is returned.
        """
        if not codes.is_valid_format(code):
            return None

        try:
            project = await self.project_repo.get_by_code(code)
            if project is None or project.status != ProjectStatus.ACTIVE.value:
                return None

            if project.is_expired_at(self.clock()):
                await self.project_repo.set_status(code, ProjectStatus.EXPIRED)
                await self.session.commit()
                logger.info("Project expired on read", code=code)
                return None
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Project lookup failed", code=code, error=str(e))
            return None

        return project

    async def update(self, code: str, fields: dict[str, Any]) -> bool:
        """Apply whitelisted fields to a live project.

        Returns False when nothing updatable was supplied, the code is
        malformed, or the project is missing or expired.
        """
        values: dict[str, Any] = {}
        for name, value in fields.items():
            if name not in UPDATABLE_FIELDS:
                continue
            if name == "name" and value is not None:
                value = sanitize_html(value)
            elif isinstance(value, ProjectStatus):
                value = value.value
            values[name] = value
        # name, max_comments, notify_email and status are NOT NULL
        values = {k: v for k, v in values.items() if v is not None or k == "webhook_url"}

        if not values or not codes.is_valid_format(code):
            return False

        try:
            changed = await self.project_repo.update_live(code, values, self.clock())
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Project update failed", code=code, error=str(e))
            return False

        if changed:
            logger.info("Project updated", code=code, fields=sorted(values))
        return changed > 0

    async def delete(self, code: str) -> bool:
        """Delete a project with all its comments and screenshots."""
        if not codes.is_valid_format(code):
            return False

        try:
            if not await self.project_repo.code_exists(code):
                return False
            comments = await self.comment_service.delete_all_for_project(code, commit=False)
            deleted = await self.project_repo.delete_by_code(code)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Project delete failed", code=code, error=str(e))
            return False

        logger.info("Project deleted", code=code, comments=comments)
        return deleted > 0

    async def extend_expiration(self, code: str, days: int = 30) -> datetime | None:
        """Push ``expires_at`` forward by ``days`` from its current value.

        Revives an expired project to active; an inactive project stays
        inactive. Returns the new expiry, or None when the project is missing.

        Raises:
            ValidationError: ``days`` outside 1..project_max_extend_days.
        """
        if days < 1 or days > self.settings.project_max_extend_days:
            raise ValidationError(
                f"Extension must be between 1 and {self.settings.project_max_extend_days} days"
            )
        if not codes.is_valid_format(code):
            return None

        try:
            project = await self.project_repo.get_by_code(code)
            if project is None:
                return None
            project.expires_at = project.expires_at + timedelta(days=days)
            if project.status == ProjectStatus.EXPIRED.value:
                project.status = ProjectStatus.ACTIVE.value
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Project extension failed", code=code, error=str(e))
            return None

        logger.info("Project extended", code=code, days=days, expires_at=str(project.expires_at))
        return project.expires_at

    async def sweep_expired(self) -> int:
        """Bulk-expire active projects past their expiry. Returns the row count."""
        try:
            changed = await self.project_repo.expire_overdue(self.clock())
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Expiry sweep failed", error=str(e))
            return 0

        if changed:
            logger.info("Expired projects swept", count=changed)
        return changed

    async def stats(self, code: str) -> ProjectStats | None:
        project = await self.get_by_code(code)
        if project is None:
            return None

        by_status = await self.comment_service.stats_by_project(code)
        by_priority = await self.comment_service.priority_stats_by_project(code)
        return ProjectStats(
            total_comments=sum(by_status.values()),
            by_status=by_status,
            by_priority=by_priority,
        )

    async def list_by_owner(
        self,
        owner_email: str,
        page: int | None = None,
        per_page: int | None = None,
        sort: str = "created_at",
        order: str = "desc",
    ) -> tuple[list[Project], int, PageParams]:
        params = PageParams.clamp(page, per_page)
        if sort not in SORT_FIELDS:
            sort = "created_at"
        if order not in ("asc", "desc"):
            order = "desc"
        try:
            items, total = await self.project_repo.list_by_owner(
                owner_email, params.page, params.per_page, sort, order
            )
        except SQLAlchemyError as e:
            logger.error("Owner project list failed", error=str(e))
            return [], 0, params
        return items, total, params
