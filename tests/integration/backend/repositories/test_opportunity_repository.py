"""
Integration tests for the repositories against the test database.
"""

import pytest

from modules.backend.core.exceptions import NotFoundError
from modules.backend.core.utils import utc_now
from modules.backend.repositories.audit_log import AuditLogRepository
from modules.backend.repositories.opportunity import OpportunityRepository
from modules.backend.repositories.submission import SubmissionRepository


class TestOpportunitySnapshot:
    """Tests for the coarse snapshot query."""

    @pytest.mark.asyncio
    async def test_excludes_archived_by_default(self, db_session, make_opportunity):
        live = await make_opportunity(title="Live")
        await make_opportunity(title="Gone", archived_at=utc_now())

        snapshot = await OpportunityRepository(db_session).list_snapshot()

        assert [record.id for record in snapshot] == [live.id]

    @pytest.mark.asyncio
    async def test_status_filter(self, db_session, make_opportunity):
        await make_opportunity(title="On")
        off = await make_opportunity(title="Off", status="inactive")

        snapshot = await OpportunityRepository(db_session).list_snapshot(status="inactive")

        assert [record.id for record in snapshot] == [off.id]

    @pytest.mark.asyncio
    async def test_list_all_includes_archived(self, db_session, make_opportunity):
        await make_opportunity(title="Live")
        await make_opportunity(title="Gone", archived_at=utc_now())

        records = await OpportunityRepository(db_session).list_all()

        assert sorted(record.title for record in records) == ["Gone", "Live"]


class TestOpportunityWrites:

    @pytest.mark.asyncio
    async def test_find_by_title_provider(self, db_session, make_opportunity):
        target = await make_opportunity(title="Grant", provider="A")
        await make_opportunity(title="Grant", provider="B")

        repo = OpportunityRepository(db_session)

        assert (await repo.find_by_title_provider("Grant", "A")).id == target.id
        assert await repo.find_by_title_provider("Grant", "C") is None

    @pytest.mark.asyncio
    async def test_get_many_skips_missing(self, db_session, make_opportunity):
        a = await make_opportunity(title="A")

        found = await OpportunityRepository(db_session).get_many([a.id, "missing"])

        assert list(found) == [a.id]

    @pytest.mark.asyncio
    async def test_apply_sort_orders(self, db_session, make_opportunity):
        a = await make_opportunity(title="A", sort_order=0)
        b = await make_opportunity(title="B", sort_order=1)
        stamp = utc_now()

        repo = OpportunityRepository(db_session)
        instances = await repo.get_many([a.id, b.id])
        await repo.apply_sort_orders(instances, {a.id: 1, b.id: 0}, stamp)

        reloaded = await repo.get_by_id(a.id)
        assert reloaded.sort_order == 1
        assert reloaded.updated_at == stamp

    @pytest.mark.asyncio
    async def test_delete_all(self, db_session, make_opportunity):
        await make_opportunity(title="A")
        await make_opportunity(title="B")

        repo = OpportunityRepository(db_session)

        assert await repo.delete_all() == 2
        assert await repo.count() == 0

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self, db_session):
        with pytest.raises(NotFoundError):
            await OpportunityRepository(db_session).get_by_id("missing")


class TestSubmissionRepository:

    @pytest.mark.asyncio
    async def test_counts_by_status(self, db_session):
        repo = SubmissionRepository(db_session)
        for status in ("pending", "pending", "rejected"):
            await repo.create(
                opportunity_name="Sub",
                opportunity_type="grant",
                description="d",
                link="https://x.org",
                status=status,
            )

        assert await repo.count_pending() == 2
        assert await repo.count_by_status() == 3
        assert len(await repo.list_recent(status="rejected")) == 1

    @pytest.mark.asyncio
    async def test_delete_many_ignores_unknown(self, db_session):
        repo = SubmissionRepository(db_session)
        created = await repo.create(
            opportunity_name="Sub",
            opportunity_type="grant",
            description="d",
            link="https://x.org",
            status="pending",
        )

        assert await repo.delete_many([created.id, "unknown"]) == 1


class TestAuditLogRepository:

    @pytest.mark.asyncio
    async def test_record_and_list(self, db_session):
        repo = AuditLogRepository(db_session)
        await repo.record("admin", "archived", "opportunity", "opp-1", {"archived_at": "x"})
        await repo.record("admin", "deleted", "opportunity", "opp-2")

        entries = await repo.list_for_resource("opp-1")

        assert len(entries) == 1
        assert entries[0].admin_id == "admin"
        assert entries[0].admin_email == "admin"
        assert entries[0].changes == {"archived_at": "x"}
