"""
Opportunity Repository.

Data access layer for opportunities. Only the coarse status filter runs in
SQL; search, categories and display ordering are applied by the listing
engine over the returned snapshot.
"""

from collections.abc import Mapping
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.models.opportunity import Opportunity
from modules.backend.repositories.base import BaseRepository


class OpportunityRepository(BaseRepository[Opportunity]):
    """Repository for Opportunity model."""

    model = Opportunity

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def list_snapshot(
        self,
        status: str | None = None,
        include_archived: bool = False,
    ) -> list[Opportunity]:
        """
        Get the snapshot for a coarse query.

        Args:
            status: Only records with this status (any status if None)
            include_archived: Keep records with ``archived_at`` set

        Returns:
            Records in creation order
        """
        query = select(Opportunity)
        if status:
            query = query.where(Opportunity.status == status)
        if not include_archived:
            query = query.where(Opportunity.archived_at.is_(None))
        result = await self.session.execute(
            query.order_by(Opportunity.created_at.asc(), Opportunity.id.asc())
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[Opportunity]:
        """Every stored opportunity, archived ones included."""
        return await self.list_snapshot(include_archived=True)

    async def find_by_title_provider(self, title: str, provider: str) -> Opportunity | None:
        """First opportunity matching title and provider exactly."""
        result = await self.session.execute(
            select(Opportunity)
            .where(Opportunity.title == title)
            .where(Opportunity.provider == provider)
            .order_by(Opportunity.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def apply_sort_orders(
        self,
        instances: Mapping[str, Opportunity],
        orders: Mapping[str, int],
        updated_at: datetime,
    ) -> None:
        """
        Write new ``sort_order`` values onto loaded records and flush once.

        Args:
            instances: Loaded records keyed by ID, covering every key of ``orders``
            orders: New sort order per record ID
            updated_at: Modification timestamp to stamp on every touched record
        """
        for record_id, sort_order in orders.items():
            instance = instances[record_id]
            instance.sort_order = sort_order
            instance.updated_at = updated_at
        await self.session.flush()

    async def delete_all(self) -> int:
        """Delete every opportunity. Returns the number deleted."""
        result = await self.session.execute(delete(Opportunity))
        await self.session.flush()
        return result.rowcount or 0
