"""
API schemas.

Response envelopes live in ``base``; resource schemas sit in one module
per resource.
"""

from modules.backend.schemas.base import (
    ApiResponse,
    Envelope,
    ErrorDetail,
    ErrorResponse,
    PaginatedResponse,
    PaginationInfo,
    ResponseMetadata,
)

__all__ = [
    "ApiResponse",
    "Envelope",
    "ErrorDetail",
    "ErrorResponse",
    "PaginatedResponse",
    "PaginationInfo",
    "ResponseMetadata",
]
