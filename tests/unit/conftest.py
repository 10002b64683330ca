"""
Unit Test Fixtures.

Everything external is mocked. Unit tests never touch a database or the
network; listing tests work on plain dict records.
"""

from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """AsyncSession stand-in with the methods repositories call."""
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_publisher() -> AsyncMock:
    """Event publisher whose methods record calls and publish nothing."""
    return AsyncMock()


def record(
    id: str,
    *,
    title: str = "",
    provider: str = "",
    description: str = "",
    status: str = "active",
    sort_order: int | None = None,
    deadline: datetime | int | None = None,
    created_at: datetime | int | None = None,
    updated_at: datetime | int | None = None,
    archived_at: datetime | None = None,
    category_tags: list[str] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Plain dict record in the shape the listing engine reads."""
    return {
        "id": id,
        "title": title or f"Opportunity {id}",
        "provider": provider or "Provider",
        "description": description,
        "status": status,
        "sort_order": sort_order,
        "deadline": deadline,
        "created_at": created_at,
        "updated_at": updated_at,
        "archived_at": archived_at,
        "category_tags": category_tags or [],
        **extra,
    }


@pytest.fixture
def make_record():
    """Factory for dict records. See ``record``."""
    return record


class FakeSnapshotStore:
    """
    In-memory SnapshotStore.

    Keeps records as dicts, applies reorder batches to ``sort_order`` and
    can be told to fail the next reorder.
    """

    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self.records = [dict(r) for r in records or []]
        self.list_calls = 0
        self.reorder_calls: list[list[Any]] = []
        self.fail_reorder: Exception | None = None
        self.fail_list: Exception | None = None

    async def list(self, query: Any) -> list[dict[str, Any]]:
        self.list_calls += 1
        if self.fail_list is not None:
            raise self.fail_list
        return [dict(r) for r in self.records]

    async def reorder(self, items: Any) -> None:
        self.reorder_calls.append(list(items))
        if self.fail_reorder is not None:
            raise self.fail_reorder
        orders = {item.id: item.sort_order for item in items}
        for r in self.records:
            if r["id"] in orders:
                r["sort_order"] = orders[r["id"]]


@pytest.fixture
def fake_store() -> FakeSnapshotStore:
    return FakeSnapshotStore()
