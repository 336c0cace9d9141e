"""
Unit tests for due-item selection.

Run: pytest tests/unit/test_selector.py -v
"""

import pytest

from askme.scheduler import due_records, filter_by_tags, select_next, upcoming


class TestTagFilter:
    """All requested tags must be present (AND semantics)."""

    def test_superset_only(self, make_record, now):
        records = [
            make_record("both.md", due_in_hours=-1, tags={"go", "algorithms", "review"}),
            make_record("go.md", due_in_hours=-1, tags={"go"}),
            make_record("none.md", due_in_hours=-1),
        ]

        matched = filter_by_tags(records, {"go", "algorithms"})

        assert [r.identifier for r in matched] == ["both.md"]
        assert select_next(records, ["go", "algorithms"], now=now).identifier == "both.md"

    def test_empty_filter_keeps_everything(self, make_record):
        records = [make_record("a.md"), make_record("b.md", tags={"x"})]

        assert filter_by_tags(records, []) == records

    def test_filter_matching_nothing(self, make_record, now):
        records = [make_record("a.md", due_in_hours=-5, tags={"python"})]

        assert select_next(records, ["rust"], now=now) is None


class TestSelection:
    """Ordering and tie-break of the due scan."""

    def test_empty_collection(self, now):
        assert select_next([], now=now) is None

    def test_nothing_overdue(self, make_record, now):
        records = [
            make_record("a.md", repetitions=1, interval=1, due_in_hours=1),
            make_record("b.md", repetitions=2, interval=6, due_in_hours=6),
        ]

        assert select_next(records, now=now) is None

    def test_due_exactly_now_is_not_overdue(self, make_record, now):
        records = [make_record("a.md", repetitions=1, interval=1, due_in_hours=0)]

        assert select_next(records, now=now) is None

    def test_first_overdue_in_descending_order(self, make_record, now):
        never = make_record("never.md", repetitions=0, due_in_hours=-2)
        reviewed = make_record("reviewed.md", repetitions=2, interval=6, due_in_hours=-1)
        future = make_record("future.md", repetitions=3, interval=15, due_in_hours=1)

        selected = select_next([never, reviewed, future], now=now)

        assert selected is reviewed

    def test_most_recently_due_wins(self, make_record, now):
        records = [
            make_record("old.md", repetitions=2, due_in_hours=-48),
            make_record("recent.md", repetitions=2, due_in_hours=-2),
            make_record("middle.md", repetitions=2, due_in_hours=-10),
        ]

        assert select_next(records, now=now).identifier == "recent.md"

    def test_scheduled_preferred_over_unscheduled(self, make_record, now):
        unscheduled = make_record("new.md")
        scheduled = make_record("old.md", repetitions=1, interval=1, due_in_hours=-300)

        assert select_next([unscheduled, scheduled], now=now) is scheduled
        assert select_next([scheduled, unscheduled], now=now) is scheduled

    def test_falls_back_to_unscheduled(self, make_record, now):
        unscheduled = make_record("new.md")
        future = make_record("future.md", repetitions=1, interval=1, due_in_hours=1)

        assert select_next([future, unscheduled], now=now) is unscheduled

    def test_fallback_is_last_unscheduled_scanned(self, make_record, now):
        first = make_record("first.md")
        second = make_record("second.md")

        assert select_next([first, second], now=now) is second

    def test_does_not_mutate_input_order(self, make_record, now):
        records = [
            make_record("a.md", due_in_hours=-1, repetitions=1),
            make_record("b.md", due_in_hours=-5, repetitions=1),
            make_record("c.md", due_in_hours=3, repetitions=1),
        ]

        select_next(records, now=now)

        assert [r.identifier for r in records] == ["a.md", "b.md", "c.md"]

    def test_accepts_mapping_values(self, make_record, now):
        records = {r.identifier: r for r in [
            make_record("a.md", due_in_hours=-1, repetitions=1),
            make_record("b.md", due_in_hours=2, repetitions=1),
        ]}

        assert select_next(records.values(), now=now).identifier == "a.md"


class TestListingHelpers:
    """due_records and upcoming, used by the status and list commands."""

    def test_due_records(self, make_record, now):
        records = [
            make_record("new.md"),
            make_record("due.md", repetitions=1, due_in_hours=-1),
            make_record("later.md", repetitions=1, due_in_hours=1),
        ]

        assert [r.identifier for r in due_records(records, now)] == ["new.md", "due.md"]

    @pytest.mark.parametrize("limit,expected", [
        (None, ["new.md", "due.md", "later.md"]),
        (2, ["new.md", "due.md"]),
    ])
    def test_upcoming(self, make_record, limit, expected):
        records = [
            make_record("later.md", repetitions=1, due_in_hours=1),
            make_record("due.md", repetitions=1, due_in_hours=-1),
            make_record("new.md"),
        ]

        assert [r.identifier for r in upcoming(records, limit)] == expected
