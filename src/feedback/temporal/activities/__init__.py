"""Temporal activities. Each one is idempotent and safe to retry."""

from src.feedback.temporal.activities.sweep import (
    sweep_expired_projects,
    sweep_orphan_screenshots,
)

__all__ = [
    "sweep_expired_projects",
    "sweep_orphan_screenshots",
]
