"""
Submission Endpoints.

Public intake of proposed opportunities and the admin triage surface.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from modules.backend.core.dependencies import AdminUser, DbSession, RequestId
from modules.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from modules.backend.schemas.base import ApiResponse
from modules.backend.schemas.opportunity import OpportunityResponse
from modules.backend.schemas.submission import (
    BulkDeleteRequest,
    BulkDeleteResult,
    PendingCount,
    SubmissionCreate,
    SubmissionResponse,
    SubmissionStatus,
    SubmissionStatusUpdate,
)
from modules.backend.services.submission import SubmissionService

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[SubmissionResponse],
    status_code=201,
    summary="Submit an opportunity",
    description="Propose a new opportunity for admin review.",
)
async def create_submission(
    data: SubmissionCreate,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[SubmissionResponse]:
    """Create a pending submission."""
    service = SubmissionService(db)
    submission = await service.create_submission(data, correlation_id=request_id)
    return ApiResponse(data=SubmissionResponse.model_validate(submission))


@router.get(
    "",
    summary="List submissions",
    description="Submissions newest first, optionally filtered by status.",
)
async def list_submissions(
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
    status: SubmissionStatus | None = Query(default=None, description="Filter by status"),
    pagination: PaginationParams = Depends(get_pagination_params),
) -> dict[str, Any]:
    """List submissions with pagination."""
    service = SubmissionService(db)
    submissions, total = await service.list_submissions_paginated(
        status=status,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return create_paginated_response(
        items=submissions,
        item_schema=SubmissionResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.get(
    "/pending-count",
    response_model=ApiResponse[PendingCount],
    summary="Count pending submissions",
)
async def pending_count(
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[PendingCount]:
    """Number of submissions awaiting review."""
    service = SubmissionService(db)
    return ApiResponse(data=PendingCount(pending=await service.count_pending()))


@router.post(
    "/bulk-delete",
    response_model=ApiResponse[BulkDeleteResult],
    summary="Delete submissions",
)
async def bulk_delete_submissions(
    data: BulkDeleteRequest,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[BulkDeleteResult]:
    """Delete several submissions at once."""
    service = SubmissionService(db)
    deleted = await service.delete_submissions(data.ids)
    return ApiResponse(data=BulkDeleteResult(deleted=deleted))


@router.patch(
    "/{submission_id}/status",
    response_model=ApiResponse[SubmissionResponse],
    summary="Set submission status",
)
async def update_submission_status(
    submission_id: str,
    data: SubmissionStatusUpdate,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[SubmissionResponse]:
    """Record a triage decision."""
    service = SubmissionService(db)
    submission = await service.update_status(submission_id, data.status)
    return ApiResponse(data=SubmissionResponse.model_validate(submission))


@router.post(
    "/{submission_id}/approve",
    response_model=ApiResponse[OpportunityResponse],
    status_code=201,
    summary="Approve a submission",
    description="Create an active opportunity from the submission and mark it approved.",
)
async def approve_submission(
    submission_id: str,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[OpportunityResponse]:
    """Approve a submission into an opportunity."""
    service = SubmissionService(db)
    _, opportunity = await service.approve(submission_id, admin, correlation_id=request_id)
    return ApiResponse(data=OpportunityResponse.model_validate(opportunity))
