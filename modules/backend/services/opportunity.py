"""
Opportunity Service.

Business logic for opportunities: admin mutations with their audit trail,
the batch reorder, and the public listing that runs snapshots through the
filter/sort engine.
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.config import get_app_config
from modules.backend.core.exceptions import NotFoundError, ValidationError
from modules.backend.core.utils import utc_now
from modules.backend.events.publishers import OpportunityEventPublisher
from modules.backend.listing.engine import ViewOptions, available_categories, filter_sort
from modules.backend.listing.reorder import ReorderItem
from modules.backend.listing.view import SnapshotQuery
from modules.backend.models.opportunity import Opportunity
from modules.backend.repositories.audit_log import AuditLogRepository
from modules.backend.repositories.opportunity import OpportunityRepository
from modules.backend.schemas.opportunity import OpportunityCreate, OpportunityUpdate
from modules.backend.services.base import BaseService
from modules.backend.services.favicon import favicon_url_sync

RESOURCE_TYPE = "opportunity"

# Fields a partial update may explicitly clear
_CLEARABLE_FIELDS = frozenset({"deadline", "verified_at"})


class OpportunityService(BaseService):
    """
    Service for opportunity business logic.

    Every mutating method takes the acting admin's username, which is
    recorded in ``created_by``/``archived_by`` and in the audit log.
    Events are published after the change is flushed.
    """

    def __init__(
        self,
        session: AsyncSession,
        publisher: OpportunityEventPublisher | None = None,
    ) -> None:
        super().__init__(session)
        self.repo = OpportunityRepository(session)
        self.audit = AuditLogRepository(session)
        self.publisher = publisher or OpportunityEventPublisher()
        self.listing_config = get_app_config().listing

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_opportunity(self, opportunity_id: str) -> Opportunity:
        """
        Get an opportunity by ID.

        Raises:
            NotFoundError: If opportunity not found
        """
        return await self.repo.get_by_id(opportunity_id)

    async def list_snapshot(self, query: SnapshotQuery) -> list[Opportunity]:
        """
        Read the snapshot for a coarse query.

        A status of "all" (or none) applies no status filter. "archived"
        selects by ``archived_at`` rather than by the status column, and a
        concrete status such as "active" never includes archived records.
        """
        status = query.status if query.status and query.status != "all" else None
        if status == "archived":
            records = await self._execute_db_operation(
                "list_snapshot",
                self.repo.list_snapshot(include_archived=True),
            )
            return [record for record in records if record.is_archived]

        return await self._execute_db_operation(
            "list_snapshot",
            self.repo.list_snapshot(
                status=status,
                include_archived=query.include_archived and status is None,
            ),
        )

    async def list_display(
        self,
        query: SnapshotQuery,
        options: ViewOptions,
        now: datetime | None = None,
    ) -> list[Opportunity]:
        """Snapshot for ``query`` filtered and sorted by the listing engine."""
        snapshot = await self.list_snapshot(query)
        display = filter_sort(snapshot, options, now=now)
        self._log_debug(
            "Listing computed",
            snapshot=len(snapshot),
            displayed=len(display),
            sort=options.sort.value,
        )
        return display

    async def list_categories(self, query: SnapshotQuery) -> list[str]:
        """Predefined categories used by the snapshot for ``query``."""
        return available_categories(await self.list_snapshot(query))

    # -------------------------------------------------------------------------
    # Single-record mutations
    # -------------------------------------------------------------------------

    async def create_opportunity(
        self,
        data: OpportunityCreate,
        admin: str,
        correlation_id: str = "",
    ) -> Opportunity:
        """
        Create a new opportunity.

        An empty ``logo_url`` is filled with the favicon provider URL for
        the apply link.
        """
        values = data.model_dump()
        if not values["logo_url"]:
            values["logo_url"] = favicon_url_sync(values["apply_url"])

        self._log_operation("Creating opportunity", title=data.title, provider=data.provider)

        opportunity = await self._execute_db_operation(
            "create_opportunity",
            self.repo.create(**values, created_by=admin),
        )
        await self.publisher.opportunity_created(opportunity.id, opportunity.title, correlation_id)
        return opportunity

    async def update_opportunity(
        self,
        opportunity_id: str,
        data: OpportunityUpdate,
        correlation_id: str = "",
    ) -> Opportunity:
        """
        Apply a partial update. Only provided fields are changed.

        Raises:
            NotFoundError: If opportunity not found
        """
        update_data = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in _CLEARABLE_FIELDS
        }
        if not update_data:
            return await self.repo.get_by_id(opportunity_id)

        self._log_operation(
            "Updating opportunity",
            opportunity_id=opportunity_id,
            fields=list(update_data.keys()),
        )

        opportunity = await self._execute_db_operation(
            "update_opportunity",
            self.repo.update(opportunity_id, **update_data),
        )
        await self.publisher.opportunity_updated(opportunity.id, list(update_data.keys()), correlation_id)
        return opportunity

    async def update_status(
        self,
        opportunity_id: str,
        status: str,
        correlation_id: str = "",
    ) -> Opportunity:
        """Set the status column only; ``archived_at`` is left alone."""
        self._log_operation("Updating opportunity status", opportunity_id=opportunity_id, status=status)
        opportunity = await self._execute_db_operation(
            "update_status",
            self.repo.update(opportunity_id, status=status),
        )
        await self.publisher.opportunity_updated(opportunity.id, ["status"], correlation_id)
        return opportunity

    async def verify(self, opportunity_id: str, correlation_id: str = "") -> Opportunity:
        """Stamp ``verified_at`` with the current time."""
        self._log_operation("Verifying opportunity", opportunity_id=opportunity_id)
        opportunity = await self._execute_db_operation(
            "verify_opportunity",
            self.repo.update(opportunity_id, verified_at=utc_now()),
        )
        await self.publisher.opportunity_updated(opportunity.id, ["verified_at"], correlation_id)
        return opportunity

    async def archive(
        self,
        opportunity_id: str,
        admin: str,
        correlation_id: str = "",
    ) -> Opportunity:
        """
        Archive an opportunity instead of deleting it.

        Raises:
            NotFoundError: If opportunity not found
        """
        now = utc_now()
        self._log_operation("Archiving opportunity", opportunity_id=opportunity_id, admin=admin)

        opportunity = await self._execute_db_operation(
            "archive_opportunity",
            self.repo.update(
                opportunity_id,
                archived_at=now,
                archived_by=admin,
                status="archived",
            ),
        )
        await self._execute_db_operation(
            "archive_opportunity_audit",
            self.audit.record(
                admin, "archived", RESOURCE_TYPE, opportunity.id,
                {"archived_at": now.isoformat()},
            ),
        )
        await self.publisher.opportunity_archived(opportunity.id, admin, correlation_id)
        return opportunity

    async def unarchive(
        self,
        opportunity_id: str,
        admin: str,
        status: str | None = None,
        correlation_id: str = "",
    ) -> Opportunity:
        """
        Restore an archived opportunity with the given (or configured default) status.

        Raises:
            NotFoundError: If opportunity not found
        """
        restored_status = status or self.listing_config.unarchive_status
        self._log_operation(
            "Unarchiving opportunity",
            opportunity_id=opportunity_id,
            status=restored_status,
        )

        opportunity = await self._execute_db_operation(
            "unarchive_opportunity",
            self.repo.update(
                opportunity_id,
                archived_at=None,
                archived_by=None,
                status=restored_status,
            ),
        )
        await self._execute_db_operation(
            "unarchive_opportunity_audit",
            self.audit.record(
                admin, "unarchived", RESOURCE_TYPE, opportunity.id,
                {"archived_at": None, "status": restored_status},
            ),
        )
        await self.publisher.opportunity_updated(opportunity.id, ["archived_at", "status"], correlation_id)
        return opportunity

    async def duplicate(
        self,
        opportunity_id: str,
        admin: str,
        title_suffix: str | None = None,
        status: str = "inactive",
        correlation_id: str = "",
    ) -> Opportunity:
        """
        Copy an opportunity's content into a new record.

        The copy gets a suffixed title, the given status, no manual position
        and no archive/verification stamps.

        Raises:
            NotFoundError: If the original is not found
        """
        original = await self.repo.get_by_id(opportunity_id)
        suffix = self.listing_config.duplicate_title_suffix if title_suffix is None else title_suffix

        self._log_operation("Duplicating opportunity", opportunity_id=opportunity_id, status=status)

        copy = await self._execute_db_operation(
            "duplicate_opportunity",
            self.repo.create(
                title=f"{original.title}{suffix}",
                provider=original.provider,
                description=original.description,
                description_full=original.description_full,
                logo_url=original.logo_url,
                apply_url=original.apply_url,
                category_tags=list(original.category_tags),
                applicable_groups=list(original.applicable_groups),
                regions=list(original.regions),
                funding_types=list(original.funding_types),
                eligibility=original.eligibility,
                deadline=original.deadline,
                status=status,
                created_by=admin,
            ),
        )
        await self._execute_db_operation(
            "duplicate_opportunity_audit",
            self.audit.record(
                admin, "duplicated", RESOURCE_TYPE, copy.id,
                {"duplicated_from": original.id},
            ),
        )
        await self.publisher.opportunity_created(copy.id, copy.title, correlation_id)
        return copy

    async def hard_delete(
        self,
        opportunity_id: str,
        admin: str,
        correlation_id: str = "",
    ) -> None:
        """
        Permanently delete an opportunity. The audit entry is written first.

        Raises:
            NotFoundError: If opportunity not found
        """
        existing = await self.repo.get_by_id(opportunity_id)
        self._log_operation("Deleting opportunity", opportunity_id=opportunity_id, admin=admin)

        await self._execute_db_operation(
            "delete_opportunity_audit",
            self.audit.record(
                admin, "deleted", RESOURCE_TYPE, existing.id,
                {"deleted": True, "title": existing.title, "provider": existing.provider},
            ),
        )
        await self._execute_db_operation(
            "delete_opportunity",
            self.repo.delete(existing.id),
        )
        await self.publisher.opportunity_deleted(existing.id, correlation_id)

    # -------------------------------------------------------------------------
    # Batch reorder
    # -------------------------------------------------------------------------

    async def reorder(
        self,
        items: Sequence[ReorderItem],
        admin: str,
        correlation_id: str = "",
    ) -> int:
        """
        Apply a reorder batch as one unit.

        Every id is resolved before anything is written, so a missing record
        leaves the whole batch unapplied. The request session commits or
        rolls back the batch together with its audit entry.

        Args:
            items: (id, sort_order) pairs
            admin: Acting admin

        Returns:
            Number of records updated

        Raises:
            ValidationError: If the batch is empty or repeats an id
            NotFoundError: If any id does not exist
        """
        orders: dict[str, int] = {}
        for item in items:
            if item.id in orders:
                raise ValidationError("Reorder batch contains duplicate ids", details={"id": item.id})
            orders[item.id] = item.sort_order
        if not orders:
            raise ValidationError("Reorder batch is empty")

        instances = await self._execute_db_operation(
            "reorder_resolve",
            self.repo.get_many(list(orders)),
        )
        missing = [record_id for record_id in orders if record_id not in instances]
        if missing:
            raise NotFoundError(f"Opportunity not found: {', '.join(missing)}")

        self._log_operation("Reordering opportunities", items=len(orders), admin=admin)

        await self._execute_db_operation(
            "reorder_apply",
            self.repo.apply_sort_orders(instances, orders, utc_now()),
        )
        await self._execute_db_operation(
            "reorder_audit",
            self.audit.record(admin, "reordered", RESOURCE_TYPE, "batch", {"orders": orders}),
        )
        await self.publisher.opportunities_reordered(orders, correlation_id)
        return len(orders)

