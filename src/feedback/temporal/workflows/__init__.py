"""Temporal Workflows - Re-exports for worker registration."""

from src.feedback.temporal.workflows.maintenance_sweep import MaintenanceSweepWorkflow

__all__ = [
    "MaintenanceSweepWorkflow",
]
