"""Comment endpoints.

Submission and reads are public, keyed by the unguessable project code or
comment UUID. Moderation requires an API key.
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Query, Response, status

from src.feedback.api.dependencies import ApiKey, FeedbackServiceDep
from src.feedback.api.v1.paths import CommentId, ProjectCode
from src.feedback.models import CommentPriority, CommentStatus
from src.feedback.repositories import CommentFilters
from src.feedback.schemas import (
    BulkStatusResult,
    BulkStatusUpdate,
    CommentCreate,
    CommentPage,
    CommentRead,
    CommentStatusUpdate,
    CommentSubmitted,
    CommentUpdate,
    SuccessResponse,
)
from src.feedback.schemas.comment import CommentSort
from src.feedback.schemas.common import AUTH_RESPONSES, ERROR_RESPONSES
from src.feedback.schemas.project import SortOrder
from src.feedback.services.feedback_service import comment_to_read

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post(
    "",
    response_model=CommentSubmitted,
    status_code=status.HTTP_201_CREATED,
    summary="Submit comment",
    description=(
        "Submit feedback for a live project, optionally with a screenshot "
        "data URL (png, jpeg or webp, at most 5 MB decoded)."
    ),
    responses=ERROR_RESPONSES,
)
async def submit_comment(
    data: CommentCreate,
    service: FeedbackServiceDep,
    background_tasks: BackgroundTasks,
) -> CommentSubmitted:
    comment, project = await service.submit_comment(data)
    if project.notify_email or project.webhook_url:
        background_tasks.add_task(service.notify_new_comment, project, comment)
    return CommentSubmitted(id=comment.id)


# Declared before "/{comment_id}/status" so "bulk" is not taken for an id
@router.put(
    "/bulk/status",
    response_model=BulkStatusResult,
    summary="Bulk status update",
    description="Set the status of up to 100 comments. Unknown ids are skipped.",
    responses={**ERROR_RESPONSES, **AUTH_RESPONSES},
)
async def bulk_update_status(
    data: BulkStatusUpdate,
    _api_key: ApiKey,
    service: FeedbackServiceDep,
) -> BulkStatusResult:
    updated = await service.bulk_update_status(data.ids, data.status)
    return BulkStatusResult(updated=updated, total=len(data.ids))


@router.get(
    "/comment/{comment_id}",
    response_model=CommentRead,
    summary="Get comment",
    responses=ERROR_RESPONSES,
)
async def get_comment(comment_id: CommentId, service: FeedbackServiceDep) -> CommentRead:
    comment = await service.get_comment(str(comment_id))
    return comment_to_read(comment)


@router.get(
    "/comment/{comment_id}/screenshot",
    summary="Get comment screenshot",
    response_class=Response,
    responses={
        200: {"content": {"image/webp": {}}, "description": "Screenshot bytes"},
        **ERROR_RESPONSES,
    },
)
async def get_screenshot(comment_id: CommentId, service: FeedbackServiceDep) -> Response:
    blob = await service.get_screenshot(str(comment_id))
    headers = {}
    if blob.cache_control:
        headers["Cache-Control"] = blob.cache_control
    if blob.content_disposition:
        headers["Content-Disposition"] = blob.content_disposition
    return Response(content=blob.data, media_type=blob.content_type, headers=headers)


@router.get(
    "/{code}",
    response_model=CommentPage,
    summary="List project comments",
    description="Filtered, paginated comments of a live project.",
    responses=ERROR_RESPONSES,
)
async def list_comments(
    code: ProjectCode,
    service: FeedbackServiceDep,
    status_filter: Annotated[CommentStatus | None, Query(alias="status")] = None,
    priority: CommentPriority | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    search: Annotated[str | None, Query(max_length=200)] = None,
    page: Annotated[int | None, Query(description="Page number, 1-based")] = None,
    per_page: Annotated[int | None, Query(description="Items per page, max 100")] = None,
    sort: CommentSort = "created_at",
    order: SortOrder = "desc",
) -> CommentPage:
    filters = CommentFilters(
        status=status_filter.value if status_filter else None,
        priority=priority.value if priority else None,
        date_from=date_from,
        date_to=date_to,
        search=search or None,
    )
    return await service.list_comments(code, filters, page, per_page, sort, order)


@router.put(
    "/{comment_id}",
    response_model=SuccessResponse,
    summary="Update comment",
    responses={**ERROR_RESPONSES, **AUTH_RESPONSES},
)
async def update_comment(
    comment_id: CommentId,
    data: CommentUpdate,
    _api_key: ApiKey,
    service: FeedbackServiceDep,
) -> SuccessResponse:
    await service.update_comment(str(comment_id), data)
    return SuccessResponse()


@router.put(
    "/{comment_id}/status",
    response_model=SuccessResponse,
    summary="Update comment status",
    responses={**ERROR_RESPONSES, **AUTH_RESPONSES},
)
async def update_comment_status(
    comment_id: CommentId,
    data: CommentStatusUpdate,
    _api_key: ApiKey,
    service: FeedbackServiceDep,
) -> SuccessResponse:
    await service.update_comment_status(str(comment_id), data.status)
    return SuccessResponse()


@router.delete(
    "/{comment_id}",
    response_model=SuccessResponse,
    summary="Delete comment",
    description="Delete a comment and, best-effort, its screenshot.",
    responses={**ERROR_RESPONSES, **AUTH_RESPONSES},
)
async def delete_comment(
    comment_id: CommentId,
    _api_key: ApiKey,
    service: FeedbackServiceDep,
) -> SuccessResponse:
    await service.delete_comment(str(comment_id))
    return SuccessResponse()
