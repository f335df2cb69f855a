"""Maintenance endpoints (API key only)."""

from fastapi import APIRouter
from pydantic import BaseModel

from src.feedback.api.dependencies import ApiKey, FeedbackServiceDep
from src.feedback.schemas.common import AUTH_RESPONSES

router = APIRouter(prefix="/admin", tags=["admin"])


class SweepResult(BaseModel):
    expired_projects: int
    orphan_screenshots: int


@router.post(
    "/sweep",
    response_model=SweepResult,
    summary="Run maintenance sweep",
    description=(
        "Expire overdue projects and remove screenshots no comment references. "
        "The Temporal worker runs the same sweep on a schedule."
    ),
    responses=AUTH_RESPONSES,
)
async def run_sweep(_api_key: ApiKey, service: FeedbackServiceDep) -> SweepResult:
    return SweepResult(**await service.run_maintenance())
