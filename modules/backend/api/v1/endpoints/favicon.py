"""
Favicon Endpoint.

Resolves a logo for a website URL through the favicon fallback chain.
"""

from fastapi import APIRouter, Query

from modules.backend.core.dependencies import AdminUser, RequestId
from modules.backend.schemas.base import ApiResponse
from modules.backend.schemas.favicon import FaviconResponse
from modules.backend.services.favicon import FaviconResolver

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[FaviconResponse],
    summary="Resolve a favicon",
    description="Provider favicon, then the site's /favicon.ico, then a generated placeholder.",
)
async def resolve_favicon(
    request_id: RequestId,
    admin: AdminUser,
    url: str = Query(..., min_length=1, max_length=1024, description="Website URL"),
) -> ApiResponse[FaviconResponse]:
    """Resolve a favicon for a URL."""
    async with FaviconResolver() as resolver:
        result = await resolver.resolve(url)
    return ApiResponse(
        data=FaviconResponse(
            url=result.url,
            domain=result.domain,
            logo_url=result.logo_url,
            source=result.source,
        )
    )
