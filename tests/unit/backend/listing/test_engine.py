"""
Unit Tests for the Filter/Sort Engine.

Records are plain dicts; ``now`` is always passed explicitly.
"""

from datetime import datetime, timedelta

import pytest

from modules.backend.listing.engine import (
    DeadlineState,
    SortMode,
    ViewOptions,
    available_categories,
    deadline_state,
    filter_sort,
    normalize_status_selection,
)
from modules.backend.listing.tags import normalize_tags

NOW = datetime(2026, 3, 1, 12, 0, 0)


def ids(records) -> list[str]:
    return [r["id"] for r in records]


class TestStatusSelection:
    """Tests for normalize_status_selection."""

    def test_empty_selection_means_all(self):
        assert normalize_status_selection([]) == {"all"}
        assert normalize_status_selection(None) == {"all"}

    def test_all_dropped_when_combined(self):
        assert normalize_status_selection(["all", "active"]) == {"active"}

    def test_unknown_values_ignored(self):
        assert normalize_status_selection(["ACTIVE", "bogus"]) == {"active"}
        assert normalize_status_selection(["bogus"]) == {"all"}


class TestStatusFilter:
    """Status OR semantics and archived handling."""

    @pytest.fixture
    def snapshot(self, make_record):
        return [
            make_record("a", status="active"),
            make_record("b", status="inactive"),
            make_record("c", status="archived", archived_at=NOW),
            make_record("d", status="active", archived_at=NOW),
        ]

    def test_all_excludes_archived_by_default(self, snapshot):
        result = filter_sort(snapshot, ViewOptions.build(statuses=["all"]), now=NOW)
        assert set(ids(result)) == {"a", "b"}

    def test_all_with_include_archived(self, snapshot):
        options = ViewOptions.build(statuses=["all"], include_archived=True)
        assert set(ids(filter_sort(snapshot, options, now=NOW))) == {"a", "b", "c", "d"}

    def test_statuses_are_or_combined(self, snapshot):
        options = ViewOptions.build(statuses=["active", "inactive"])
        assert set(ids(filter_sort(snapshot, options, now=NOW))) == {"a", "b"}

    def test_archived_is_decided_by_archived_at(self, snapshot):
        options = ViewOptions.build(statuses=["archived"])
        assert set(ids(filter_sort(snapshot, options, now=NOW))) == {"c", "d"}

    def test_active_excludes_archived_active(self, snapshot):
        options = ViewOptions.build(statuses=["active"])
        assert ids(filter_sort(snapshot, options, now=NOW)) == ["a"]

    def test_all_dominates_only_when_alone(self, snapshot):
        combined = ViewOptions.build(statuses=["all", "inactive"])
        assert ids(filter_sort(snapshot, combined, now=NOW)) == ["b"]


class TestSearchAndCategories:
    """Text search and category filtering."""

    def test_search_is_case_insensitive(self, make_record):
        snapshot = [
            make_record("a", title="Solar Grant"),
            make_record("b", provider="SOLARIS Labs"),
            make_record("c", description="A grant for solar startups"),
            make_record("d", title="Unrelated"),
        ]
        lower = filter_sort(snapshot, ViewOptions.build(search="solar"), now=NOW)
        upper = filter_sort(snapshot, ViewOptions.build(search="SOLAR"), now=NOW)
        assert ids(lower) == ids(upper)
        assert set(ids(lower)) == {"a", "b", "c"}

    def test_empty_search_matches_everything(self, make_record):
        snapshot = [make_record("a"), make_record("b")]
        assert len(filter_sort(snapshot, ViewOptions.build(search=""), now=NOW)) == 2

    def test_missing_text_fields_do_not_match(self):
        assert filter_sort([{"id": "x", "status": "active"}], ViewOptions.build(search="x"), now=NOW) == []

    def test_category_filter_matches_any_selected(self, make_record):
        snapshot = [
            make_record("a", category_tags=["Grant"]),
            make_record("b", category_tags=["AI", "Bootcamp"]),
            make_record("c", category_tags=[]),
        ]
        options = ViewOptions.build(categories=["AI", "Grant"])
        assert set(ids(filter_sort(snapshot, options, now=NOW))) == {"a", "b"}

    def test_unknown_categories_are_dropped(self):
        options = ViewOptions.build(categories=["Fellowship", "Grant", "Grant"])
        assert options.categories == {"Grant"}

    def test_available_categories_in_predefined_order(self, make_record):
        snapshot = [
            make_record("a", category_tags=["Other", "AI"]),
            make_record("b", category_tags=["Bootcamp", "Nonsense", 7]),
        ]
        assert available_categories(snapshot) == ["Bootcamp", "AI", "Other"]

    def test_normalize_tags_dedupes_in_first_seen_order(self):
        assert normalize_tags(["AI", "Grant", "AI", None, "x"]) == ["AI", "Grant"]


class TestSortModes:
    """Per-mode ordering rules."""

    def test_recent_newest_first_missing_last(self, make_record):
        snapshot = [
            make_record("old", created_at=NOW - timedelta(days=3)),
            make_record("none"),
            make_record("new", created_at=NOW),
        ]
        result = filter_sort(snapshot, ViewOptions.build(sort="recent"), now=NOW)
        assert ids(result) == ["new", "old", "none"]

    def test_updated_accepts_epoch_milliseconds(self, make_record):
        snapshot = [
            make_record("a", updated_at=1_000),
            make_record("b", updated_at=5_000),
        ]
        result = filter_sort(snapshot, ViewOptions.build(sort="updated"), now=NOW)
        assert ids(result) == ["b", "a"]

    def test_deadline_soonest_first_absent_last(self, make_record):
        snapshot = [
            make_record("none"),
            make_record("late", deadline=NOW + timedelta(days=30)),
            make_record("soon", deadline=NOW + timedelta(days=2)),
        ]
        result = filter_sort(snapshot, ViewOptions.build(sort="deadline"), now=NOW)
        assert ids(result) == ["soon", "late", "none"]

    def test_default_sort_order_takes_precedence(self, make_record):
        snapshot = [
            make_record("deadline-soon", deadline=NOW + timedelta(days=1)),
            make_record("ordered-1", sort_order=1),
            make_record("no-deadline"),
            make_record("ordered-0", sort_order=0, deadline=NOW + timedelta(days=90)),
            make_record("deadline-late", deadline=NOW + timedelta(days=10)),
        ]
        result = filter_sort(snapshot, ViewOptions.build(sort="default"), now=NOW)
        assert ids(result) == ["ordered-0", "ordered-1", "deadline-soon", "deadline-late", "no-deadline"]

    def test_ongoing_first_others_keep_input_order(self, make_record):
        snapshot = [
            make_record("closed", deadline=NOW - timedelta(days=1)),
            make_record("inactive", status="inactive"),
            make_record("open-late", deadline=NOW + timedelta(days=20)),
            make_record("open-none"),
            make_record("open-soon", deadline=NOW + timedelta(days=1)),
        ]
        result = filter_sort(snapshot, ViewOptions.build(sort="ongoing"), now=NOW)
        assert ids(result) == ["open-soon", "open-late", "open-none", "closed", "inactive"]

    def test_ties_are_stable(self, make_record):
        snapshot = [make_record(str(i), deadline=NOW) for i in range(5)]
        result = filter_sort(snapshot, ViewOptions.build(sort="deadline"), now=NOW)
        assert ids(result) == ["0", "1", "2", "3", "4"]

    def test_unknown_sort_falls_back_to_default(self):
        assert ViewOptions.build(sort="alphabetical").sort is SortMode.DEFAULT


class TestEngineProperties:
    """Properties the display sequence must keep."""

    @pytest.fixture
    def snapshot(self, make_record):
        return [
            make_record("a", sort_order=2, title="Grant A", deadline=NOW + timedelta(days=3)),
            make_record("b", status="inactive", title="grant b"),
            make_record("c", sort_order=0, created_at=NOW),
            make_record("d", deadline=NOW - timedelta(days=1), category_tags=["AI"]),
            make_record("e", archived_at=NOW, title="GRANT E"),
        ]

    @pytest.mark.parametrize("sort", [mode.value for mode in SortMode])
    def test_idempotent(self, snapshot, sort):
        options = ViewOptions.build(statuses=["active", "inactive"], search="", sort=sort)
        once = filter_sort(snapshot, options, now=NOW)
        twice = filter_sort(once, options, now=NOW)
        assert ids(once) == ids(twice)

    def test_input_not_mutated(self, snapshot):
        before = [dict(r) for r in snapshot]
        filter_sort(snapshot, ViewOptions.build(sort="deadline"), now=NOW)
        assert snapshot == before

    def test_output_is_subset_of_input(self, snapshot):
        result = filter_sort(snapshot, ViewOptions.build(search="grant"), now=NOW)
        assert set(ids(result)) <= set(ids(snapshot))
        assert set(ids(result)) == {"a", "b"}

    def test_malformed_records_do_not_raise(self):
        snapshot = [
            {"id": "x", "status": None, "deadline": "tomorrow", "sort_order": "1", "category_tags": "AI"},
            {"id": "y"},
        ]
        for mode in SortMode:
            result = filter_sort(snapshot, ViewOptions.build(sort=mode, categories=["AI"]), now=NOW)
            assert result == []
        assert len(filter_sort(snapshot, ViewOptions(), now=NOW)) == 2


class TestDeadlineState:
    """Deadline badge classification."""

    def test_missing_deadline_is_ongoing(self):
        assert deadline_state(None, NOW) is DeadlineState.ONGOING

    def test_past_deadline_is_closed(self):
        assert deadline_state(NOW - timedelta(days=2), NOW) is DeadlineState.CLOSED

    def test_later_today_is_ending_soon(self):
        assert deadline_state(NOW + timedelta(hours=3), NOW) is DeadlineState.ENDING_SOON

    def test_seven_days_is_ending_soon_eight_is_open(self):
        assert deadline_state(NOW + timedelta(days=7), NOW) is DeadlineState.ENDING_SOON
        assert deadline_state(NOW + timedelta(days=8), NOW) is DeadlineState.OPEN
