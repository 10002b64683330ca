"""
Pagination Utilities.

Offset pagination for admin list endpoints (submissions). Page size
defaults and limits come from application.yaml.
"""

from dataclasses import dataclass
from typing import Any

from fastapi import Query
from pydantic import BaseModel

from modules.backend.core.config import get_app_config
from modules.backend.schemas.base import PaginatedResponse, PaginationInfo, ResponseMetadata


@dataclass(frozen=True)
class PaginationParams:
    """Page window requested by the caller."""

    limit: int
    offset: int


def get_pagination_params(
    limit: int | None = Query(default=None, ge=1, description="Page size"),
    offset: int = Query(default=0, ge=0, description="Items to skip"),
) -> PaginationParams:
    """
    FastAPI dependency for offset pagination.

    A missing limit takes ``pagination.default_limit``; a larger one is
    capped at ``pagination.max_limit``.
    """
    config = get_app_config().application.pagination
    page_size = config.default_limit if limit is None else min(limit, config.max_limit)
    return PaginationParams(limit=page_size, offset=offset)


def create_paginated_response(
    items: list[Any],
    item_schema: type[BaseModel],
    total: int,
    limit: int,
    offset: int = 0,
    request_id: str | None = None,
) -> dict[str, Any]:
    """
    Serialize one page into the PaginatedResponse envelope.

    Items may be ORM instances or dicts; each is validated through
    ``item_schema``.
    """
    page = PaginatedResponse(
        data=[item_schema.model_validate(item).model_dump(mode="json") for item in items],
        pagination=PaginationInfo.for_page(total, limit, offset, returned=len(items)),
        metadata=ResponseMetadata(request_id=request_id),
    )
    return page.model_dump(mode="json")
