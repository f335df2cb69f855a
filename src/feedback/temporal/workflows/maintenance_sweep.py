"""
Maintenance Sweep Workflow.

Expires overdue projects, then removes screenshots left behind by comment
inserts that never completed. Designed to run on a Temporal cron schedule
(``SWEEP_SCHEDULE``).
"""

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.feedback.temporal.activities import (
        sweep_expired_projects,
        sweep_orphan_screenshots,
    )

_RETRY_POLICY = RetryPolicy(
    maximum_attempts=3,
    initial_interval=timedelta(seconds=2),
)


@workflow.defn
class MaintenanceSweepWorkflow:
    """Run the expiry sweep and the orphan screenshot sweep."""

    @workflow.run
    async def run(self, orphan_grace_minutes: int = 60) -> dict[str, int]:
        """
        Args:
            orphan_grace_minutes: Minimum screenshot age before it may be
                treated as orphaned

        Returns:
            {"expired_projects": int, "orphan_screenshots": int}
        """
        expired = await workflow.execute_activity(
            sweep_expired_projects,
            start_to_close_timeout=timedelta(minutes=5),
            retry_policy=_RETRY_POLICY,
        )
        orphans = await workflow.execute_activity(
            sweep_orphan_screenshots,
            orphan_grace_minutes,
            start_to_close_timeout=timedelta(minutes=10),
            retry_policy=_RETRY_POLICY,
        )

        result = {"expired_projects": expired, "orphan_screenshots": orphans}
        workflow.logger.info(
            f"Maintenance sweep complete: {expired} projects expired, "
            f"{orphans} screenshots removed"
        )
        return result
