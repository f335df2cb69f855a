"""Project endpoints.

Creation and public lookups need no credentials. Changes require an API key
plus the owner's ``X-Owner-Email``.
"""

from typing import Annotated

from fastapi import APIRouter, Query, Request, status

from src.feedback.api.dependencies import ApiKey, FeedbackServiceDep, OwnerEmail
from src.feedback.api.v1.paths import ProjectCode
from src.feedback.core.rate_limit import limiter, project_create_limit
from src.feedback.schemas import (
    OwnerProjectRead,
    PaginatedResponse,
    ProjectCreate,
    ProjectCreated,
    ProjectExtend,
    ProjectExtended,
    ProjectStats,
    ProjectSummary,
    ProjectUpdate,
    SuccessResponse,
)
from src.feedback.schemas.common import AUTH_RESPONSES, ERROR_RESPONSES
from src.feedback.schemas.project import ProjectSort, SortOrder

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post(
    "",
    response_model=ProjectCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    description="Create a project with a fresh 9-character code. Expires after 30 days.",
    responses={
        **ERROR_RESPONSES,
        429: {"description": "Too many projects created from this address"},
    },
)
@limiter.limit(project_create_limit)
async def create_project(
    request: Request,
    data: ProjectCreate,
    service: FeedbackServiceDep,
) -> ProjectCreated:
    project = await service.create_project(data)
    return ProjectCreated.model_validate(project)


@router.get(
    "",
    response_model=PaginatedResponse[OwnerProjectRead],
    summary="List owner projects",
    description="Projects owned by the address in X-Owner-Email, in any status.",
    responses=AUTH_RESPONSES,
)
async def list_projects(
    owner_email: OwnerEmail,
    service: FeedbackServiceDep,
    page: Annotated[int | None, Query(description="Page number, 1-based")] = None,
    per_page: Annotated[int | None, Query(description="Items per page, max 100")] = None,
    sort: ProjectSort = "created_at",
    order: SortOrder = "desc",
) -> PaginatedResponse[OwnerProjectRead]:
    items, total, params = await service.list_owner_projects(
        owner_email, page, per_page, sort, order
    )
    return PaginatedResponse(
        items=[OwnerProjectRead.model_validate(p) for p in items],
        total=total,
        page=params.page,
        per_page=params.per_page,
    )


@router.get(
    "/{code}",
    response_model=ProjectSummary,
    summary="Get project",
    description="Public summary of a live project. Expired and inactive projects are 404.",
    responses=ERROR_RESPONSES,
)
async def get_project(code: ProjectCode, service: FeedbackServiceDep) -> ProjectSummary:
    project = await service.get_project(code)
    return ProjectSummary.model_validate(project)


@router.put(
    "/{code}",
    response_model=SuccessResponse,
    summary="Update project",
    responses={**ERROR_RESPONSES, **AUTH_RESPONSES},
)
async def update_project(
    code: ProjectCode,
    data: ProjectUpdate,
    _api_key: ApiKey,
    _owner: OwnerEmail,
    service: FeedbackServiceDep,
) -> SuccessResponse:
    await service.update_project(code, data)
    return SuccessResponse()


@router.delete(
    "/{code}",
    response_model=SuccessResponse,
    summary="Delete project",
    description="Delete a project together with its comments and screenshots.",
    responses={**ERROR_RESPONSES, **AUTH_RESPONSES},
)
async def delete_project(
    code: ProjectCode,
    _api_key: ApiKey,
    _owner: OwnerEmail,
    service: FeedbackServiceDep,
) -> SuccessResponse:
    await service.delete_project(code)
    return SuccessResponse()


@router.post(
    "/{code}/extend",
    response_model=ProjectExtended,
    summary="Extend project",
    description="Push the expiry forward. Revives an expired project.",
    responses={**ERROR_RESPONSES, **AUTH_RESPONSES},
)
async def extend_project(
    code: ProjectCode,
    _api_key: ApiKey,
    _owner: OwnerEmail,
    service: FeedbackServiceDep,
    data: ProjectExtend | None = None,
) -> ProjectExtended:
    days = data.days if data else ProjectExtend().days
    expires_at = await service.extend_project(code, days)
    return ProjectExtended(expires_at=expires_at)


@router.get(
    "/{code}/stats",
    response_model=ProjectStats,
    summary="Project statistics",
    description="Comment counts by status and priority.",
    responses=ERROR_RESPONSES,
)
async def project_stats(code: ProjectCode, service: FeedbackServiceDep) -> ProjectStats:
    return await service.project_stats(code)
