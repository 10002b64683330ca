"""
Opportunity Endpoints.

Public listing and detail reads plus the admin mutations. The listing
endpoint reads a coarse snapshot and runs it through the filter/sort engine,
so every query parameter beyond ``status`` is applied in memory.
"""

from fastapi import APIRouter, Query

from modules.backend.core.config import get_app_config
from modules.backend.core.dependencies import AdminUser, DbSession, OptionalAdmin, RequestId
from modules.backend.core.exceptions import AuthenticationError
from modules.backend.listing.engine import ViewOptions
from modules.backend.listing.reorder import ReorderItem
from modules.backend.listing.view import SnapshotQuery
from modules.backend.schemas.base import ApiResponse
from modules.backend.schemas.opportunity import (
    DuplicateRequest,
    OpportunityCreate,
    OpportunityResponse,
    OpportunityUpdate,
    ReorderRequest,
    ReorderResult,
    StatusUpdate,
    UnarchiveRequest,
)
from modules.backend.services.opportunity import OpportunityService

router = APIRouter()


def _snapshot_query(status: str | None, include_archived: bool, admin: str | None) -> SnapshotQuery:
    """
    Build the coarse query. Anything beyond the public status needs an admin.

    Raises:
        AuthenticationError: If a non-admin asks for non-public records
    """
    public_status = get_app_config().listing.public_status
    coarse = status or public_status
    if admin is None and (coarse != public_status or include_archived):
        raise AuthenticationError("Authentication required for non-public listings")
    return SnapshotQuery(status=coarse, include_archived=include_archived)


@router.get(
    "",
    response_model=ApiResponse[list[OpportunityResponse]],
    summary="List opportunities",
    description=(
        "Display sequence for a coarse status, filtered and sorted in memory. "
        "Non-public statuses and archived records require an admin token."
    ),
)
async def list_opportunities(
    db: DbSession,
    request_id: RequestId,
    admin: OptionalAdmin,
    status: str | None = Query(
        default=None,
        description="Coarse store filter: all, active, inactive or archived (default: public status)",
    ),
    statuses: list[str] = Query(
        default=[],
        description="Fine status filter; 'all' is dropped when combined with others",
    ),
    search: str = Query(default="", max_length=200, description="Case-insensitive text search"),
    sort: str | None = Query(
        default=None,
        description="recent, updated, ongoing, deadline or default",
    ),
    categories: list[str] = Query(default=[], description="Predefined category tags"),
    include_archived: bool = Query(default=False, description="Include archived records"),
) -> ApiResponse[list[OpportunityResponse]]:
    """List opportunities for display."""
    query = _snapshot_query(status, include_archived, admin)
    options = ViewOptions.build(
        statuses=query.display_statuses(statuses),
        search=search,
        sort=sort or get_app_config().listing.default_sort,
        include_archived=include_archived,
        categories=categories,
    )
    service = OpportunityService(db)
    records = await service.list_display(query, options)
    return ApiResponse(data=[OpportunityResponse.model_validate(record) for record in records])


@router.get(
    "/categories",
    response_model=ApiResponse[list[str]],
    summary="List categories in use",
    description="Predefined category tags used by at least one public opportunity.",
)
async def list_categories(
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[list[str]]:
    """List categories in use."""
    service = OpportunityService(db)
    query = SnapshotQuery(status=get_app_config().listing.public_status)
    return ApiResponse(data=await service.list_categories(query))


@router.put(
    "/order",
    response_model=ApiResponse[ReorderResult],
    summary="Reorder opportunities",
    description="Apply a batch of (id, sort_order) pairs. All or nothing.",
)
async def reorder_opportunities(
    data: ReorderRequest,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[ReorderResult]:
    """Apply a reorder batch."""
    service = OpportunityService(db)
    items = [ReorderItem(id=entry.id, sort_order=entry.sort_order) for entry in data.items]
    updated = await service.reorder(items, admin, correlation_id=request_id)
    return ApiResponse(data=ReorderResult(updated=updated))


@router.post(
    "",
    response_model=ApiResponse[OpportunityResponse],
    status_code=201,
    summary="Create an opportunity",
    description="Create an opportunity. An empty logo_url is filled from the apply URL's favicon.",
)
async def create_opportunity(
    data: OpportunityCreate,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[OpportunityResponse]:
    """Create an opportunity."""
    service = OpportunityService(db)
    opportunity = await service.create_opportunity(data, admin, correlation_id=request_id)
    return ApiResponse(data=OpportunityResponse.model_validate(opportunity))


@router.get(
    "/{opportunity_id}",
    response_model=ApiResponse[OpportunityResponse],
    summary="Get an opportunity",
)
async def get_opportunity(
    opportunity_id: str,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[OpportunityResponse]:
    """Get an opportunity by ID."""
    service = OpportunityService(db)
    opportunity = await service.get_opportunity(opportunity_id)
    return ApiResponse(data=OpportunityResponse.model_validate(opportunity))


@router.patch(
    "/{opportunity_id}",
    response_model=ApiResponse[OpportunityResponse],
    summary="Update an opportunity",
    description="Partial update. Only provided fields are changed.",
)
async def update_opportunity(
    opportunity_id: str,
    data: OpportunityUpdate,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[OpportunityResponse]:
    """Update an opportunity."""
    service = OpportunityService(db)
    opportunity = await service.update_opportunity(opportunity_id, data, correlation_id=request_id)
    return ApiResponse(data=OpportunityResponse.model_validate(opportunity))


@router.patch(
    "/{opportunity_id}/status",
    response_model=ApiResponse[OpportunityResponse],
    summary="Set opportunity status",
)
async def update_opportunity_status(
    opportunity_id: str,
    data: StatusUpdate,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[OpportunityResponse]:
    """Set an opportunity's status."""
    service = OpportunityService(db)
    opportunity = await service.update_status(opportunity_id, data.status, correlation_id=request_id)
    return ApiResponse(data=OpportunityResponse.model_validate(opportunity))


@router.post(
    "/{opportunity_id}/verify",
    response_model=ApiResponse[OpportunityResponse],
    summary="Mark an opportunity verified",
)
async def verify_opportunity(
    opportunity_id: str,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[OpportunityResponse]:
    """Stamp verified_at."""
    service = OpportunityService(db)
    opportunity = await service.verify(opportunity_id, correlation_id=request_id)
    return ApiResponse(data=OpportunityResponse.model_validate(opportunity))


@router.post(
    "/{opportunity_id}/archive",
    response_model=ApiResponse[OpportunityResponse],
    summary="Archive an opportunity",
    description="Hide an opportunity from default listings without deleting it.",
)
async def archive_opportunity(
    opportunity_id: str,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[OpportunityResponse]:
    """Archive an opportunity."""
    service = OpportunityService(db)
    opportunity = await service.archive(opportunity_id, admin, correlation_id=request_id)
    return ApiResponse(data=OpportunityResponse.model_validate(opportunity))


@router.post(
    "/{opportunity_id}/unarchive",
    response_model=ApiResponse[OpportunityResponse],
    summary="Unarchive an opportunity",
)
async def unarchive_opportunity(
    opportunity_id: str,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
    data: UnarchiveRequest | None = None,
) -> ApiResponse[OpportunityResponse]:
    """Restore an archived opportunity."""
    service = OpportunityService(db)
    opportunity = await service.unarchive(
        opportunity_id,
        admin,
        status=data.status if data else None,
        correlation_id=request_id,
    )
    return ApiResponse(data=OpportunityResponse.model_validate(opportunity))


@router.post(
    "/{opportunity_id}/duplicate",
    response_model=ApiResponse[OpportunityResponse],
    status_code=201,
    summary="Duplicate an opportunity",
)
async def duplicate_opportunity(
    opportunity_id: str,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
    data: DuplicateRequest | None = None,
) -> ApiResponse[OpportunityResponse]:
    """Copy an opportunity into a new record."""
    data = data or DuplicateRequest()
    service = OpportunityService(db)
    copy = await service.duplicate(
        opportunity_id,
        admin,
        title_suffix=data.title_suffix,
        status=data.status,
        correlation_id=request_id,
    )
    return ApiResponse(data=OpportunityResponse.model_validate(copy))


@router.delete(
    "/{opportunity_id}",
    status_code=204,
    summary="Delete an opportunity",
    description="Permanently delete an opportunity.",
)
async def delete_opportunity(
    opportunity_id: str,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> None:
    """Permanently delete an opportunity."""
    service = OpportunityService(db)
    await service.hard_delete(opportunity_id, admin, correlation_id=request_id)
