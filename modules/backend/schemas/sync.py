"""
Data Sync Schemas.

Portable opportunity records exchanged between environments. Records carry
no ids; they are matched on title and provider.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.backend.core.utils import as_naive_utc
from modules.backend.schemas.opportunity import OpportunityBase

ImportMode = Literal["replace", "merge", "append"]


class SyncRecord(OpportunityBase):
    """One exported opportunity."""

    sort_order: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    verified_at: datetime | None = None
    archived_at: datetime | None = None
    created_by: str = ""
    archived_by: str | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at", "verified_at", "archived_at")
    @classmethod
    def _timestamps_naive(cls, value: datetime | None) -> datetime | None:
        return as_naive_utc(value) if value is not None else None


class ImportRequest(BaseModel):
    """
    Schema for an import.

    Records are validated one by one so that a malformed record is reported
    and skipped instead of rejecting the whole payload.
    """

    opportunities: list[dict[str, Any]] = Field(default_factory=list)
    mode: ImportMode = "merge"


class SyncRequest(BaseModel):
    """Schema for a sync against a source environment's export."""

    source_opportunities: list[dict[str, Any]] = Field(default_factory=list)


class ImportResult(BaseModel):
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)


class SyncResult(BaseModel):
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: list[str] = Field(default_factory=list)
