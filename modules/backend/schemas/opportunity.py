"""
Opportunity Schemas.

Pydantic schemas for opportunity API request/response validation.
Incoming timestamps are normalized to naive UTC.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from modules.backend.core.utils import as_naive_utc
from modules.backend.listing.engine import DeadlineState, deadline_state

OpportunityStatus = Literal["active", "inactive", "archived"]
RestorableStatus = Literal["active", "inactive"]


def _naive(value: datetime | None) -> datetime | None:
    return as_naive_utc(value) if value is not None else None


class OpportunityBase(BaseModel):
    """Fields shared by create and import payloads."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Opportunity title",
        examples=["Startup Grant Program"],
    )
    provider: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Organisation offering the opportunity",
        examples=["Acme Foundation"],
    )
    description: str = Field(default="", max_length=2000, description="Short description")
    description_full: str = Field(default="", max_length=20000, description="Full description")
    logo_url: str = Field(default="", max_length=1024, description="Logo URL; resolved from apply_url when empty")
    apply_url: str = Field(..., min_length=1, max_length=1024, description="Application URL")
    category_tags: list[str] = Field(default_factory=list, description="Category tags")
    applicable_groups: list[str] = Field(default_factory=list)
    regions: list[str] = Field(default_factory=list)
    funding_types: list[str] = Field(default_factory=list)
    eligibility: str = Field(default="", max_length=5000)
    deadline: datetime | None = Field(default=None, description="Deadline; omit for rolling opportunities")
    status: OpportunityStatus = Field(default="active")

    @field_validator("deadline")
    @classmethod
    def _deadline_naive(cls, value: datetime | None) -> datetime | None:
        return _naive(value)


class OpportunityCreate(OpportunityBase):
    """Schema for creating a new opportunity."""

    sort_order: int | None = Field(default=None, ge=0, description="Manual position")


class OpportunityUpdate(BaseModel):
    """Schema for a partial update. Only provided fields are changed."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    provider: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    description_full: str | None = Field(default=None, max_length=20000)
    logo_url: str | None = Field(default=None, max_length=1024)
    apply_url: str | None = Field(default=None, min_length=1, max_length=1024)
    category_tags: list[str] | None = None
    applicable_groups: list[str] | None = None
    regions: list[str] | None = None
    funding_types: list[str] | None = None
    eligibility: str | None = Field(default=None, max_length=5000)
    deadline: datetime | None = None
    status: OpportunityStatus | None = None
    verified_at: datetime | None = None

    @field_validator("deadline", "verified_at")
    @classmethod
    def _timestamps_naive(cls, value: datetime | None) -> datetime | None:
        return _naive(value)


class OpportunityResponse(BaseModel):
    """Schema for opportunity in API responses."""

    id: str = Field(description="Opportunity unique identifier")
    title: str
    provider: str
    description: str
    description_full: str
    logo_url: str
    apply_url: str
    category_tags: list[str]
    applicable_groups: list[str]
    regions: list[str]
    funding_types: list[str]
    eligibility: str
    deadline: datetime | None
    status: str
    sort_order: int | None
    verified_at: datetime | None = None
    archived_at: datetime | None = None
    archived_by: str | None = None
    created_by: str = ""
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def deadline_state(self) -> DeadlineState:
        return deadline_state(self.deadline)


class StatusUpdate(BaseModel):
    """Schema for setting an opportunity's status."""

    status: OpportunityStatus


class UnarchiveRequest(BaseModel):
    """Schema for restoring an archived opportunity."""

    status: RestorableStatus | None = Field(
        default=None,
        description="Status to restore; defaults to the configured unarchive status",
    )


class DuplicateRequest(BaseModel):
    """Schema for duplicating an opportunity."""

    title_suffix: str | None = Field(
        default=None,
        max_length=64,
        description="Appended to the copied title; defaults to the configured suffix",
    )
    status: OpportunityStatus = Field(default="inactive")


class ReorderEntry(BaseModel):
    """One (id, sort_order) pair of a reorder batch."""

    id: str = Field(..., min_length=1)
    sort_order: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    """Schema for a batch reorder."""

    items: list[ReorderEntry] = Field(..., min_length=1)

    @field_validator("items")
    @classmethod
    def _unique_ids(cls, items: list[ReorderEntry]) -> list[ReorderEntry]:
        ids = [item.id for item in items]
        if len(ids) != len(set(ids)):
            raise ValueError("Reorder batch contains duplicate ids")
        return items


class ReorderResult(BaseModel):
    """Schema for an applied reorder batch."""

    updated: int
