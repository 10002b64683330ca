"""
Data Sync Endpoints.

Export, import and sync of opportunity data between environments.
"""

from fastapi import APIRouter

from modules.backend.core.dependencies import AdminUser, DbSession, RequestId
from modules.backend.schemas.base import ApiResponse
from modules.backend.schemas.sync import (
    ImportRequest,
    ImportResult,
    SyncRecord,
    SyncRequest,
    SyncResult,
)
from modules.backend.services.data_sync import DataSyncService

router = APIRouter()


@router.get(
    "/export",
    response_model=ApiResponse[list[SyncRecord]],
    summary="Export opportunities",
    description="Every opportunity, archived ones included, without ids.",
)
async def export_opportunities(
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[list[SyncRecord]]:
    """Export all opportunities."""
    service = DataSyncService(db)
    return ApiResponse(data=await service.export_opportunities())


@router.post(
    "/import",
    response_model=ApiResponse[ImportResult],
    summary="Import opportunities",
    description="Import in replace, merge (default) or append mode.",
)
async def import_opportunities(
    data: ImportRequest,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[ImportResult]:
    """Import exported opportunities."""
    service = DataSyncService(db)
    return ApiResponse(data=await service.import_opportunities(data.opportunities, data.mode))


@router.post(
    "/sync",
    response_model=ApiResponse[SyncResult],
    summary="Sync opportunities",
    description="Insert unknown records and update those whose source copy is newer.",
)
async def sync_opportunities(
    data: SyncRequest,
    db: DbSession,
    request_id: RequestId,
    admin: AdminUser,
) -> ApiResponse[SyncResult]:
    """Sync against a source export."""
    service = DataSyncService(db)
    return ApiResponse(data=await service.sync_opportunities(data.source_opportunities))
