"""
Snapshot Feed and Listing View.

A ``SnapshotSource`` delivers full replacement snapshots for a coarse query;
it never sends diffs. ``PollingSnapshotSource`` is the transport-agnostic
default: it polls a ``SnapshotStore`` and yields whenever the content
changes.

``ListingView`` holds the one snapshot a client session works on plus its
immutable ``ViewOptions``, and recomputes the display sequence on demand.
A speculative order set by the reorder coordinator overrides the computed
order until the next snapshot arrives, the options change, or it is
explicitly cleared.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from modules.backend.core.logging import get_logger, log_with_source
from modules.backend.listing.engine import StatusFilter, ViewOptions, filter_sort, get_field
from modules.backend.listing.reorder import ReorderItem

logger = get_logger(__name__)

_FINGERPRINT_FIELDS = ("id", "updated_at", "sort_order", "status", "archived_at", "deadline")


@dataclass(frozen=True)
class SnapshotQuery:
    """Coarse server-side filter for a snapshot read."""

    status: str | None = None
    include_archived: bool = False

    def display_statuses(self, statuses: Sequence[str] | None = None) -> list[str]:
        """
        Fine status selection for a display over this query.

        An explicit selection is kept. Without one, an archived snapshot
        selects "archived" so its records are not filtered back out.
        """
        if statuses:
            return list(statuses)
        if self.status == StatusFilter.ARCHIVED.value:
            return [StatusFilter.ARCHIVED.value]
        return []

    def as_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.status:
            params["status"] = self.status
        if self.include_archived:
            params["include_archived"] = "true"
        return params


class SnapshotStore(Protocol):
    """Read and batch-write collaborator of the listing core."""

    async def list(self, query: SnapshotQuery) -> list[Any]:
        ...

    async def reorder(self, items: Sequence[ReorderItem]) -> None:
        ...


class SnapshotSource(Protocol):
    """Push or poll capability yielding full snapshots for a query."""

    def subscribe(self, query: SnapshotQuery) -> AsyncIterator[list[Any]]:
        ...


def snapshot_fingerprint(records: Sequence[Any]) -> tuple:
    """Content identity of a snapshot, used to suppress unchanged polls."""
    return tuple(
        tuple(get_field(record, name) for name in _FINGERPRINT_FIELDS)
        for record in records
    )


class PollingSnapshotSource:
    """
    Snapshot source that polls a store at a fixed interval.

    The first poll always yields. Later polls yield only when the snapshot
    differs from the previous one. Store errors propagate to the consumer.
    """

    def __init__(
        self,
        store: SnapshotStore,
        interval: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.interval = interval
        self._sleep = sleep

    async def subscribe(self, query: SnapshotQuery) -> AsyncIterator[list[Any]]:
        previous: tuple | None = None
        while True:
            snapshot = await self.store.list(query)
            fingerprint = snapshot_fingerprint(snapshot)
            if fingerprint != previous:
                previous = fingerprint
                yield snapshot
            await self._sleep(self.interval)


class ListingView:
    """
    One client session's view over a snapshot.

    Attributes:
        query: Coarse query used for snapshot reads and re-fetches
        version: Incremented every time a snapshot is applied
    """

    def __init__(
        self,
        query: SnapshotQuery | None = None,
        options: ViewOptions | None = None,
    ) -> None:
        self.query = query or SnapshotQuery()
        self._options = options or ViewOptions()
        self._snapshot: list[Any] = []
        self._speculative: list[str] | None = None
        self.version = 0

    @property
    def snapshot(self) -> list[Any]:
        return list(self._snapshot)

    @property
    def options(self) -> ViewOptions:
        return self._options

    @property
    def has_speculative_order(self) -> bool:
        return self._speculative is not None

    def set_options(self, options: ViewOptions) -> None:
        """Replace the options; the display is recomputed without any speculative order."""
        self._options = options
        self._speculative = None

    def apply_snapshot(self, records: Sequence[Any]) -> None:
        """Replace the snapshot; any speculative order is superseded."""
        self._snapshot = list(records)
        self._speculative = None
        self.version += 1

    def set_speculative_order(self, ids: Sequence[str]) -> None:
        self._speculative = list(ids)

    def clear_speculative_order(self) -> None:
        self._speculative = None

    def display(self, now: datetime | None = None) -> list[Any]:
        """Current display sequence for the snapshot and options."""
        rows = filter_sort(self._snapshot, self._options, now)
        if self._speculative is None:
            return rows

        position = {record_id: index for index, record_id in enumerate(self._speculative)}
        tail = len(position)
        return sorted(rows, key=lambda record: position.get(str(get_field(record, "id")), tail))

    async def follow(
        self,
        source: SnapshotSource,
        on_update: Callable[["ListingView"], None] | None = None,
        max_updates: int | None = None,
    ) -> int:
        """
        Consume a subscription, applying each snapshot as it arrives.

        Args:
            source: Snapshot source to subscribe to
            on_update: Called after each applied snapshot
            max_updates: Stop after this many snapshots (runs until cancelled if None)

        Returns:
            Number of snapshots applied
        """
        applied = 0
        async for snapshot in source.subscribe(self.query):
            self.apply_snapshot(snapshot)
            applied += 1
            log_with_source(logger, "listing", "debug", "Snapshot applied", records=len(snapshot))
            if on_update is not None:
                on_update(self)
            if max_updates is not None and applied >= max_updates:
                break
        return applied
