"""
Temporal Worker - Separate process from API.

Run with:
    python -m src.feedback.temporal.worker
"""

import asyncio

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.exceptions import WorkflowAlreadyStartedError
from temporalio.worker import Worker

from src.feedback.core.config import Settings, get_settings
from src.feedback.core.db import dispose_engine
from src.feedback.core.logging import get_logger, setup_logging
from src.feedback.temporal.activities import sweep_expired_projects, sweep_orphan_screenshots
from src.feedback.temporal.workflows import MaintenanceSweepWorkflow

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001
SWEEP_WORKFLOW_ID = "maintenance-sweep"


def create_worker(client: Client, task_queue: str) -> Worker:
    """Worker for the maintenance queue. Sweeps are short, so concurrency stays low."""
    return Worker(
        client,
        task_queue=task_queue,
        workflows=[MaintenanceSweepWorkflow],
        activities=[sweep_expired_projects, sweep_orphan_screenshots],
        max_concurrent_activities=10,
        max_concurrent_workflow_tasks=10,
    )


async def ensure_sweep_schedule(client: Client, settings: Settings) -> bool:
    """Start the cron sweep workflow if ``sweep_schedule`` is configured.

    Returns:
        True if a new cron workflow was started
    """
    if not settings.sweep_schedule:
        logger.info("No sweep schedule configured")
        return False

    if settings.blob_backend == "memory":
        # The worker's memory store is not the API's, it is always empty
        logger.warning(
            "Orphan screenshot sweep is a no-op with BLOB_BACKEND=memory",
            blob_backend=settings.blob_backend,
        )

    try:
        await client.start_workflow(
            MaintenanceSweepWorkflow.run,
            settings.orphan_grace_minutes,
            id=SWEEP_WORKFLOW_ID,
            task_queue=settings.temporal_task_queue,
            cron_schedule=settings.sweep_schedule,
        )
    except WorkflowAlreadyStartedError:
        logger.info("Sweep schedule already running", workflow_id=SWEEP_WORKFLOW_ID)
        return False

    logger.info("Sweep schedule started", cron=settings.sweep_schedule)
    return True


async def run_health_server(task_queue: str, port: int = WORKER_HEALTH_PORT) -> None:
    """Run a lightweight health server for K8s probes."""
    health_app = FastAPI(title="Temporal Worker Health")

    @health_app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": "temporal-worker",
            "task_queue": task_queue,
        }

    @health_app.get("/ready")
    async def ready() -> dict[str, str]:
        return {"status": "ready"}

    config = uvicorn.Config(health_app, host="0.0.0.0", port=port, log_level="warning")
    server = uvicorn.Server(config)
    logger.info(f"Starting health server on port {port}")
    await server.serve()


async def main() -> None:
    settings = get_settings()
    setup_logging(settings.debug)

    client = await Client.connect(
        settings.temporal_host,
        namespace=settings.temporal_namespace,
    )
    await ensure_sweep_schedule(client, settings)

    worker = create_worker(client, settings.temporal_task_queue)
    logger.info(f"Polling task queue: {settings.temporal_task_queue}")

    try:
        await asyncio.gather(
            worker.run(),
            run_health_server(settings.temporal_task_queue),
        )
    finally:
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
