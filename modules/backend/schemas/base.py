"""
Base Schemas.

Response envelopes shared by every endpoint. Success, error and page
bodies all carry ``success`` and ``metadata``; the admin client and the
public page branch on ``success`` before reading ``data`` or ``error``.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from modules.backend.core.utils import utc_now

DataT = TypeVar("DataT")


class ResponseMetadata(BaseModel):
    """Server time of the response and the request ID it answers."""

    timestamp: datetime = Field(default_factory=utc_now)
    request_id: str | None = None


class ErrorDetail(BaseModel):
    code: str = Field(description="Stable error code, e.g. RES_NOT_FOUND")
    message: str
    details: dict[str, Any] | None = None


class Envelope(BaseModel):
    """Fields present on every response body."""

    success: bool
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


class ApiResponse(Envelope, Generic[DataT]):
    """Successful single-payload response."""

    success: bool = True
    data: DataT | None = None
    error: ErrorDetail | None = None

    model_config = ConfigDict(from_attributes=True)


class ErrorResponse(Envelope):
    """Failed response; ``data`` is always null."""

    success: bool = False
    data: None = None
    error: ErrorDetail

    @classmethod
    def build(
        cls,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> "ErrorResponse":
        return cls(
            error=ErrorDetail(code=code, message=message, details=details),
            metadata=ResponseMetadata(request_id=request_id),
        )


class PaginationInfo(BaseModel):
    """Offset window of a page and whether more rows follow it."""

    total: int = Field(ge=0)
    limit: int = Field(ge=1)
    offset: int = Field(default=0, ge=0)
    has_more: bool = False

    @classmethod
    def for_page(cls, total: int, limit: int, offset: int, returned: int) -> "PaginationInfo":
        return cls(total=total, limit=limit, offset=offset, has_more=offset + returned < total)


class PaginatedResponse(Envelope, Generic[DataT]):
    """One page of a list endpoint."""

    success: bool = True
    data: list[DataT]
    error: None = None
    pagination: PaginationInfo
