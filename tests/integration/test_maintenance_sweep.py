"""Tests for the Temporal maintenance sweep: activities, workflow and worker."""

import asyncio
import contextlib
import socket
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from temporalio import activity
from temporalio.exceptions import WorkflowAlreadyStartedError
from temporalio.testing import ActivityEnvironment, WorkflowEnvironment
from temporalio.worker import Worker

from src.feedback.core.config import Settings
from src.feedback.core.storage import MemoryBlobStore
from src.feedback.models import Project
from src.feedback.temporal import worker as worker_module
from src.feedback.temporal.activities import sweep as sweep_module
from src.feedback.temporal.activities import sweep_expired_projects, sweep_orphan_screenshots
from src.feedback.temporal.worker import SWEEP_WORKFLOW_ID, ensure_sweep_schedule, run_health_server
from src.feedback.temporal.workflows import MaintenanceSweepWorkflow
from tests.factories import ProjectFactory
from tests.helpers import PNG_BYTES

pytestmark = pytest.mark.integration


class TestActivities:
    async def test_expired_projects_are_swept(
        self, project: Project, db_session: AsyncSession
    ) -> None:
        db_session.add(ProjectFactory.expired())
        await db_session.commit()

        env = ActivityEnvironment()
        assert await env.run(sweep_expired_projects) == 1
        # Idempotent
        assert await env.run(sweep_expired_projects) == 0

    async def test_orphan_screenshots_are_swept(
        self, engine, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        store = MemoryBlobStore()
        await store.put("screenshots/orphan.webp", PNG_BYTES, content_type="image/webp")
        monkeypatch.setattr(sweep_module, "_blob_store", store)

        env = ActivityEnvironment()
        assert await env.run(sweep_orphan_screenshots, 60) == 0
        assert await env.run(sweep_orphan_screenshots, 0) == 1
        assert len(store) == 0


@activity.defn(name="sweep_expired_projects")
async def fake_sweep_expired_projects() -> int:
    return 4


@activity.defn(name="sweep_orphan_screenshots")
async def fake_sweep_orphan_screenshots(grace_minutes: int) -> int:
    return grace_minutes // 10


async def test_workflow_runs_both_sweeps():
    async with await WorkflowEnvironment.start_time_skipping() as env:  # noqa: SIM117
        async with Worker(
            env.client,
            task_queue="test-queue",
            workflows=[MaintenanceSweepWorkflow],
            activities=[fake_sweep_expired_projects, fake_sweep_orphan_screenshots],
        ):
            result = await env.client.execute_workflow(
                MaintenanceSweepWorkflow.run,
                30,
                id="sweep-test",
                task_queue="test-queue",
            )

    assert result == {"expired_projects": 4, "orphan_screenshots": 3}


class TestSweepSchedule:
    async def test_not_started_without_schedule(self, test_settings: Settings) -> None:
        client = AsyncMock()
        assert await ensure_sweep_schedule(client, test_settings) is False
        client.start_workflow.assert_not_called()

    async def test_started_with_cron(self, test_settings: Settings) -> None:
        settings = test_settings.model_copy(update={"sweep_schedule": "*/15 * * * *"})
        client = AsyncMock()

        assert await ensure_sweep_schedule(client, settings) is True

        kwargs = client.start_workflow.call_args.kwargs
        assert kwargs["id"] == SWEEP_WORKFLOW_ID
        assert kwargs["cron_schedule"] == "*/15 * * * *"
        assert kwargs["task_queue"] == settings.temporal_task_queue

    async def test_memory_backend_warns_orphan_sweep_is_empty(
        self, test_settings: Settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        settings = test_settings.model_copy(
            update={"sweep_schedule": "0 * * * *", "blob_backend": "memory"}
        )
        fake_logger = MagicMock()
        monkeypatch.setattr(worker_module, "logger", fake_logger)

        assert await ensure_sweep_schedule(AsyncMock(), settings) is True
        fake_logger.warning.assert_called_once()
        assert "BLOB_BACKEND=memory" in fake_logger.warning.call_args.args[0]

    async def test_local_backend_does_not_warn(
        self, test_settings: Settings, monkeypatch: pytest.MonkeyPatch, tmp_path
    ) -> None:
        settings = test_settings.model_copy(
            update={
                "sweep_schedule": "0 * * * *",
                "blob_backend": "local",
                "blob_root": str(tmp_path),
            }
        )
        fake_logger = MagicMock()
        monkeypatch.setattr(worker_module, "logger", fake_logger)

        assert await ensure_sweep_schedule(AsyncMock(), settings) is True
        fake_logger.warning.assert_not_called()

    async def test_already_running_is_not_an_error(self, test_settings: Settings) -> None:
        settings = test_settings.model_copy(update={"sweep_schedule": "0 * * * *"})
        client = AsyncMock()
        client.start_workflow.side_effect = WorkflowAlreadyStartedError(
            SWEEP_WORKFLOW_ID, "MaintenanceSweepWorkflow"
        )

        assert await ensure_sweep_schedule(client, settings) is False


def get_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.listen(1)
        return s.getsockname()[1]


async def test_worker_health_endpoints():
    port = get_free_port()
    task = asyncio.create_task(run_health_server("feedback-jobs", port))
    await asyncio.sleep(0.5)

    try:
        async with AsyncClient(base_url=f"http://localhost:{port}") as client:
            health = await client.get("/health")
            ready = await client.get("/ready")
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    assert health.status_code == 200
    assert health.json() == {
        "status": "healthy",
        "service": "temporal-worker",
        "task_queue": "feedback-jobs",
    }
    assert ready.json() == {"status": "ready"}
