"""
Filter/Sort Engine.

Pure functions that turn an in-memory snapshot of opportunity records into
the display sequence for a given set of view options. Nothing here performs
I/O or mutates its input, and nothing here raises: malformed or missing
fields degrade to the "absent" branch of each rule.

Records may be ORM rows, Pydantic response models or plain mappings. Fields
are read by name; timestamps may be datetimes or epoch milliseconds.

Usage:
    from modules.backend.listing.engine import ViewOptions, filter_sort

    options = ViewOptions.build(statuses=["active"], search="grant", sort="deadline")
    display = filter_sort(snapshot, options)
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from math import ceil
from typing import Any

from modules.backend.core.utils import as_naive_utc, from_epoch_ms, utc_now
from modules.backend.listing.tags import PREDEFINED_TAGS, normalize_tags

_EPOCH = datetime(1970, 1, 1)

ENDING_SOON_DAYS = 7


class StatusFilter(str, Enum):
    """Selectable status filter values."""

    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class SortMode(str, Enum):
    """Display sort modes."""

    RECENT = "recent"
    UPDATED = "updated"
    ONGOING = "ongoing"
    DEADLINE = "deadline"
    DEFAULT = "default"

    @classmethod
    def parse(cls, value: Any) -> "SortMode":
        """Resolve a sort mode, falling back to DEFAULT for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.DEFAULT


class DeadlineState(str, Enum):
    """Badge state derived from a deadline."""

    ONGOING = "ongoing"
    CLOSED = "closed"
    ENDING_SOON = "ending_soon"
    OPEN = "open"


_KNOWN_STATUSES = frozenset(s.value for s in StatusFilter)


def normalize_status_selection(selection: Iterable[Any] | None) -> frozenset[str]:
    """
    Normalize a status filter selection.

    "all" is dropped when any other status is selected, an empty selection
    becomes {"all"}, and unknown values are ignored.
    """
    values = {
        str(getattr(item, "value", item)).lower()
        for item in selection or ()
        if item is not None
    }
    values &= _KNOWN_STATUSES
    if StatusFilter.ALL.value in values and len(values) > 1:
        values.discard(StatusFilter.ALL.value)
    if not values:
        return frozenset({StatusFilter.ALL.value})
    return frozenset(values)


@dataclass(frozen=True)
class ViewOptions:
    """
    Immutable view configuration fed to ``filter_sort``.

    Use ``ViewOptions.build`` to construct from raw input; it normalizes the
    status selection, sort mode and categories. ``with_changes`` returns a
    copy with some fields replaced.
    """

    statuses: frozenset[str] = field(default_factory=lambda: frozenset({StatusFilter.ALL.value}))
    search: str = ""
    sort: SortMode = SortMode.DEFAULT
    include_archived: bool = False
    categories: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        statuses: Iterable[Any] | None = None,
        search: str | None = "",
        sort: Any = SortMode.DEFAULT,
        include_archived: bool = False,
        categories: Iterable[str] | None = None,
    ) -> "ViewOptions":
        return cls(
            statuses=normalize_status_selection(statuses),
            search=search or "",
            sort=SortMode.parse(sort),
            include_archived=bool(include_archived),
            categories=frozenset(normalize_tags(categories)),
        )

    def with_changes(self, **changes: Any) -> "ViewOptions":
        current = {
            "statuses": self.statuses,
            "search": self.search,
            "sort": self.sort,
            "include_archived": self.include_archived,
            "categories": self.categories,
        }
        current.update(changes)
        return ViewOptions.build(**current)


# =============================================================================
# Field access
# =============================================================================


def get_field(record: Any, name: str) -> Any:
    """Read a field from a mapping or an attribute-bearing record."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _text(record: Any, name: str) -> str:
    value = get_field(record, name)
    return value if isinstance(value, str) else ""


def _timestamp(value: Any) -> datetime | None:
    """Coerce a datetime or epoch-milliseconds value; anything else is absent."""
    if isinstance(value, datetime):
        return as_naive_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return from_epoch_ms(value)
        except (OverflowError, ValueError):
            return None
    return None


def _seconds(value: datetime) -> float:
    return (value - _EPOCH).total_seconds()


def _sort_order(record: Any) -> float | None:
    value = get_field(record, "sort_order")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return None


def is_archived(record: Any) -> bool:
    """A record is archived when ``archived_at`` is set, whatever its status."""
    return get_field(record, "archived_at") is not None


def is_ongoing(record: Any, now: datetime) -> bool:
    """Active with no deadline or a deadline still in the future."""
    if _text(record, "status") != StatusFilter.ACTIVE.value:
        return False
    deadline = _timestamp(get_field(record, "deadline"))
    return deadline is None or deadline > now


# =============================================================================
# Filters
# =============================================================================


def matches_status(record: Any, statuses: frozenset[str], include_archived: bool = False) -> bool:
    """Apply a normalized status selection to one record (OR across statuses)."""
    archived = is_archived(record)
    if StatusFilter.ALL.value in statuses:
        return include_archived or not archived

    status = _text(record, "status")
    if StatusFilter.ARCHIVED.value in statuses and archived:
        return True
    if StatusFilter.ACTIVE.value in statuses and status == StatusFilter.ACTIVE.value and not archived:
        return True
    if StatusFilter.INACTIVE.value in statuses and status == StatusFilter.INACTIVE.value and not archived:
        return True
    return False


def matches_search(record: Any, query: str) -> bool:
    """Case-insensitive substring match over title, provider and description."""
    if not query:
        return True
    needle = query.lower()
    return any(
        needle in _text(record, name).lower()
        for name in ("title", "provider", "description")
    )


def matches_categories(record: Any, categories: frozenset[str]) -> bool:
    """Empty selection matches everything; otherwise any normalized tag must be selected."""
    if not categories:
        return True
    tags = get_field(record, "category_tags")
    if not isinstance(tags, (list, tuple)):
        return False
    return any(tag in categories for tag in normalize_tags(tags))


# =============================================================================
# Sort keys
# =============================================================================


def _deadline_key(record: Any) -> tuple:
    deadline = _timestamp(get_field(record, "deadline"))
    if deadline is None:
        return (1, 0.0)
    return (0, _seconds(deadline))


def _descending_time_key(name: str):
    def key(record: Any) -> tuple:
        value = _timestamp(get_field(record, name))
        if value is None:
            return (1, 0.0)
        return (0, -_seconds(value))

    return key


def _default_key(record: Any) -> tuple:
    sort_order = _sort_order(record)
    if sort_order is not None:
        return (0, sort_order)
    return (1, *_deadline_key(record))


def _ongoing_key(now: datetime):
    # Non-ongoing records share one key so the stable sort keeps their input order.
    def key(record: Any) -> tuple:
        if not is_ongoing(record, now):
            return (1, 0, 0.0)
        return (0, *_deadline_key(record))

    return key


def _sort_key(mode: SortMode, now: datetime):
    if mode is SortMode.RECENT:
        return _descending_time_key("created_at")
    if mode is SortMode.UPDATED:
        return _descending_time_key("updated_at")
    if mode is SortMode.ONGOING:
        return _ongoing_key(now)
    if mode is SortMode.DEADLINE:
        return _deadline_key
    return _default_key


# =============================================================================
# Public entry points
# =============================================================================


def filter_sort(
    records: Sequence[Any],
    options: ViewOptions | None = None,
    now: datetime | None = None,
) -> list[Any]:
    """
    Produce the display sequence for a snapshot.

    Args:
        records: Snapshot records, in store order
        options: View configuration (defaults to all statuses, default sort)
        now: Reference time for the ``ongoing`` mode (defaults to current UTC)

    Returns:
        New list of the records that pass every filter, stably sorted
    """
    options = options or ViewOptions()
    statuses = normalize_status_selection(options.statuses)
    reference = as_naive_utc(now) if now is not None else utc_now()

    visible = [
        record
        for record in records
        if matches_status(record, statuses, options.include_archived)
        and matches_search(record, options.search)
        and matches_categories(record, options.categories)
    ]
    return sorted(visible, key=_sort_key(SortMode.parse(options.sort), reference))


def available_categories(records: Iterable[Any]) -> list[str]:
    """Predefined tags used by at least one record, in predefined order."""
    used: set[str] = set()
    for record in records:
        tags = get_field(record, "category_tags")
        if isinstance(tags, (list, tuple)):
            used.update(normalize_tags(tags))
    return [tag for tag in PREDEFINED_TAGS if tag in used]


def deadline_state(deadline: Any, now: datetime | None = None) -> DeadlineState:
    """
    Classify a deadline for display.

    Days remaining are rounded up, so a deadline later today still counts
    as one day left.
    """
    value = _timestamp(deadline)
    if value is None:
        return DeadlineState.ONGOING
    reference = as_naive_utc(now) if now is not None else utc_now()
    days_left = ceil((value - reference).total_seconds() / 86400)
    if days_left < 0:
        return DeadlineState.CLOSED
    if days_left <= ENDING_SOON_DAYS:
        return DeadlineState.ENDING_SOON
    return DeadlineState.OPEN
