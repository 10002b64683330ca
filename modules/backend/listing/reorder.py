"""
Reorder Coordinator.

Turns a single-item move within the displayed sequence into a dense batch
of ``(id, sort_order)`` pairs and submits it as one write. The requested
order is shown speculatively while the write is in flight; on failure it is
discarded and the authoritative snapshot is fetched again.

Only records in the displayed sequence take part in a batch. Records hidden
by the current filter keep whatever ``sort_order`` they already had.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from modules.backend.core.exceptions import ReorderFailedError, ValidationError
from modules.backend.core.logging import get_logger, log_with_source
from modules.backend.listing.engine import SortMode, get_field

if TYPE_CHECKING:
    from modules.backend.listing.view import ListingView, SnapshotStore

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ReorderItem:
    """One entry of a reorder batch."""

    id: str
    sort_order: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "sort_order": self.sort_order}


def move_item(sequence: Sequence[T], source: int, destination: int) -> list[T]:
    """
    Move one element: remove at ``source``, insert at ``destination``.

    Elements between the two positions shift by one. The input is not
    modified.

    Raises:
        ValidationError: If either index is outside the sequence
    """
    size = len(sequence)
    for name, index in (("source", source), ("destination", destination)):
        if not 0 <= index < size:
            raise ValidationError(
                f"Reorder {name} index {index} is out of range",
                details={name: index, "size": size},
            )

    moved = list(sequence)
    item = moved.pop(source)
    moved.insert(destination, item)
    return moved


def plan_reorder(display: Sequence[Any], source: int, destination: int) -> list[ReorderItem]:
    """
    Compute the batch for moving ``display[source]`` to ``destination``.

    Every displayed record receives its new position as ``sort_order``
    (dense ``0..n-1``). Moving a record onto its own position yields an
    empty batch.

    Raises:
        ValidationError: If either index is outside the displayed sequence
    """
    moved = move_item(display, source, destination)
    if source == destination:
        return []
    return [
        ReorderItem(id=str(get_field(record, "id")), sort_order=position)
        for position, record in enumerate(moved)
    ]


class ReorderCoordinator:
    """
    Applies drag-and-drop moves against a store on behalf of one view.

    The coordinator reads the view's current display sequence; moves are
    rejected unless the view is sorted in ``default`` mode.
    """

    def __init__(self, store: "SnapshotStore", view: "ListingView") -> None:
        self.store = store
        self.view = view

    async def move(self, source: int, destination: int) -> list[ReorderItem]:
        """
        Move the record at ``source`` to ``destination`` and persist the order.

        Args:
            source: Index of the dragged record in the displayed sequence
            destination: Index it was dropped on

        Returns:
            The submitted batch (empty for a no-op, in which case the store
            is not called)

        Raises:
            ValidationError: If the view is not in ``default`` sort mode or
                either index is out of range
            ReorderFailedError: If the batch was rejected; the view has been
                reset to the re-fetched authoritative snapshot
        """
        sort = self.view.options.sort
        if sort is not SortMode.DEFAULT:
            raise ValidationError(
                "Manual reordering requires the default sort",
                details={"sort": sort.value},
            )

        items = plan_reorder(self.view.display(), source, destination)
        if not items:
            logger.debug("Reorder skipped, record already in place", position=source)
            return []

        self.view.set_speculative_order([item.id for item in items])
        try:
            await self.store.reorder(items)
        except Exception as e:
            self.view.clear_speculative_order()
            log_with_source(
                logger, "listing", "warning", "Reorder batch rejected, refetching snapshot",
                items=len(items), error=str(e),
            )
            await self._refetch()
            raise ReorderFailedError(f"Failed to reorder opportunities: {e}") from e

        log_with_source(
            logger, "listing", "info", "Reorder batch applied",
            items=len(items), from_index=source, to_index=destination,
        )
        return items

    async def _refetch(self) -> None:
        try:
            snapshot = await self.store.list(self.view.query)
        except Exception as e:
            log_with_source(
                logger, "listing", "error", "Snapshot refetch after failed reorder also failed",
                error=str(e),
            )
            return
        self.view.apply_snapshot(snapshot)
