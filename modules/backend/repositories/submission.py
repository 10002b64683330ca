"""
Submission Repository.

Data access layer for visitor submissions.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.models.submission import Submission
from modules.backend.repositories.base import BaseRepository


class SubmissionRepository(BaseRepository[Submission]):
    """Repository for Submission model."""

    model = Submission

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def list_recent(
        self,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Submission]:
        """
        Get submissions, newest first.

        Args:
            status: Only submissions with this status (all if None)
            limit: Maximum number of submissions to return
            offset: Number of submissions to skip
        """
        query = select(Submission)
        if status:
            query = query.where(Submission.status == status)
        result = await self.session.execute(
            query.order_by(Submission.created_at.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def count_by_status(self, status: str | None = None) -> int:
        """Count submissions, optionally restricted to one status."""
        query = select(func.count()).select_from(Submission)
        if status:
            query = query.where(Submission.status == status)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def count_pending(self) -> int:
        """Count submissions awaiting review."""
        return await self.count_by_status("pending")
