"""
Submission Schemas.

Pydantic schemas for submission API request/response validation.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SubmissionStatus = Literal["pending", "approved", "rejected"]


class SubmissionCreate(BaseModel):
    """Schema for a visitor-proposed opportunity."""

    opportunity_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Name of the proposed opportunity",
        examples=["Climate Fellowship 2026"],
    )
    opportunity_type: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Kind of opportunity (bootcamp, grant, fellowship, ...)",
        examples=["fellowship"],
    )
    description: str = Field(..., min_length=1, max_length=5000)
    link: str = Field(..., min_length=1, max_length=1024)
    user_name: str | None = Field(default=None, max_length=255)
    user_twitter: str | None = Field(default=None, max_length=255)


class SubmissionResponse(BaseModel):
    """Schema for submission in API responses."""

    id: str
    opportunity_name: str
    opportunity_type: str
    description: str
    link: str
    user_name: str | None
    user_twitter: str | None
    status: str
    created_at: datetime
    reviewed_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class SubmissionStatusUpdate(BaseModel):
    """Schema for a triage decision."""

    status: SubmissionStatus


class BulkDeleteRequest(BaseModel):
    """Schema for deleting several submissions at once."""

    ids: list[str] = Field(..., min_length=1)


class BulkDeleteResult(BaseModel):
    deleted: int


class PendingCount(BaseModel):
    pending: int
