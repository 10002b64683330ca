"""
Opportunity Model.

A listed grant, bootcamp, accelerator or program. Manual ordering lives in
``sort_order``; archiving is marked by ``archived_at`` regardless of status.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from modules.backend.models.base import Base, TimestampMixin, UUIDMixin


class Opportunity(UUIDMixin, TimestampMixin, Base):
    """Opportunity database model."""

    __tablename__ = "opportunities"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description_full: Mapped[str] = mapped_column(Text, nullable=False, default="")
    logo_url: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    apply_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    category_tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    applicable_groups: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    regions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    funding_types: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    eligibility: Mapped[str] = mapped_column(Text, nullable=False, default="")
    deadline: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="active",
        index=True,
    )
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    archived_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def __repr__(self) -> str:
        return f"<Opportunity(id={self.id}, title={self.title!r}, sort_order={self.sort_order})>"
