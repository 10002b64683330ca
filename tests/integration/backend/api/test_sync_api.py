"""
Integration tests for the data sync endpoints.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from modules.backend.core.utils import utc_now

BASE = "/api/v1/sync"


def record(**overrides) -> dict:
    values = {
        "title": "Solar Grant",
        "provider": "Sun Trust",
        "apply_url": "https://suntrust.org/apply",
        "category_tags": ["Grant"],
        "status": "active",
    }
    values.update(overrides)
    return values


class TestExport:

    @pytest.mark.asyncio
    async def test_export_includes_archived_without_ids(
        self, client: AsyncClient, api, admin_headers, make_opportunity,
    ):
        await make_opportunity(title="Live")
        await make_opportunity(title="Gone", archived_at=utc_now(), archived_by="admin")

        response = await client.get(f"{BASE}/export", headers=admin_headers)

        exported = api.assert_success(response)["data"]
        assert sorted(item["title"] for item in exported) == ["Gone", "Live"]
        assert all("id" not in item for item in exported)

    @pytest.mark.asyncio
    async def test_export_requires_admin(self, client: AsyncClient, api):
        api.assert_error(await client.get(f"{BASE}/export"), 401)


class TestImport:

    @pytest.mark.asyncio
    async def test_merge_updates_match_and_inserts_rest(
        self, client: AsyncClient, api, admin_headers, make_opportunity,
    ):
        await make_opportunity(title="Solar Grant", provider="Sun Trust", description="old")

        response = await client.post(
            f"{BASE}/import",
            json={
                "mode": "merge",
                "opportunities": [
                    record(description="new"),
                    record(title="Wind Grant"),
                ],
            },
            headers=admin_headers,
        )

        result = api.assert_success(response)["data"]
        assert result == {"created": 1, "updated": 1, "skipped": 0, "errors": []}

        listing = api.assert_success(
            await client.get("/api/v1/opportunities", params={"search": "solar"})
        )["data"]
        assert [item["description"] for item in listing] == ["new"]

    @pytest.mark.asyncio
    async def test_replace_clears_existing(
        self, client: AsyncClient, api, admin_headers, make_opportunity,
    ):
        await make_opportunity(title="Old One")

        response = await client.post(
            f"{BASE}/import",
            json={"mode": "replace", "opportunities": [record()]},
            headers=admin_headers,
        )

        assert api.assert_success(response)["data"]["created"] == 1
        exported = api.assert_success(await client.get(f"{BASE}/export", headers=admin_headers))["data"]
        assert [item["title"] for item in exported] == ["Solar Grant"]

    @pytest.mark.asyncio
    async def test_invalid_record_skipped_with_error(
        self, client: AsyncClient, api, admin_headers,
    ):
        response = await client.post(
            f"{BASE}/import",
            json={
                "mode": "append",
                "opportunities": [record(), {"title": "Broken"}],
            },
            headers=admin_headers,
        )

        result = api.assert_success(response)["data"]
        assert result["created"] == 1
        assert result["skipped"] == 1
        assert len(result["errors"]) == 1
        assert result["errors"][0].startswith("Failed to import Broken")

    @pytest.mark.asyncio
    async def test_unknown_mode_rejected(self, client: AsyncClient, api, admin_headers):
        response = await client.post(
            f"{BASE}/import",
            json={"mode": "overwrite", "opportunities": []},
            headers=admin_headers,
        )

        api.assert_validation_error(response, field="mode")


class TestSync:

    @pytest.mark.asyncio
    async def test_newer_source_updates_older_unchanged(
        self, client: AsyncClient, api, admin_headers, make_opportunity,
    ):
        now = utc_now()
        await make_opportunity(title="Fresh", provider="P", description="local", updated_at=now)
        await make_opportunity(title="Stale", provider="P", description="local", updated_at=now)

        response = await client.post(
            f"{BASE}/sync",
            json={"source_opportunities": [
                record(title="Fresh", provider="P", description="source",
                       updated_at=(now - timedelta(days=1)).isoformat()),
                record(title="Stale", provider="P", description="source",
                       updated_at=(now + timedelta(days=1)).isoformat()),
                record(title="Brand New", provider="P"),
            ]},
            headers=admin_headers,
        )

        result = api.assert_success(response)["data"]
        assert result == {"created": 1, "updated": 1, "unchanged": 1, "errors": []}

        exported = api.assert_success(await client.get(f"{BASE}/export", headers=admin_headers))["data"]
        descriptions = {item["title"]: item["description"] for item in exported}
        assert descriptions["Fresh"] == "local"
        assert descriptions["Stale"] == "source"
