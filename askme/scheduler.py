"""
SM-2 Spaced Repetition Scheduler and Due-Item Selector.

Implements:
- SM-2 algorithm for review intervals (hour-based by default)
- Selection of the single item to present next

Rating Scale:
1 - Complete blackout
2 - Incorrect, but recognised once shown
3 - Correct, with significant difficulty
4 - Correct, after some hesitation
5 - Correct, perfect recall

Ratings below 3 count as a failed recall and restart the repetition count.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Literal

from loguru import logger

from .errors import InvalidRatingError
from .index_store import ItemRecord, utcnow

MIN_RATING = 1
MAX_RATING = 5
PASSING_RATING = 3

# Sort key for records that were never scheduled.
_UNSCHEDULED = datetime.min.replace(tzinfo=timezone.utc)
# Due time given to intervals that reach past the calendar.
LATEST_DUE = datetime.max.replace(tzinfo=timezone.utc)

# =============================================================================
# SM-2 Algorithm
# =============================================================================


@dataclass
class SM2Config:
    """Configuration for SM-2 algorithm."""

    minimum_easiness: float = 1.3
    first_interval: float = 1  # Units for first successful review
    second_interval: float = 6  # Units for second successful review
    interval_unit: timedelta = timedelta(hours=1)
    easiness_formula: Literal["multiplicative", "additive"] = "multiplicative"


def validate_rating(quality) -> int:
    """
    Check a rating and return it as an int.

    Raises:
        InvalidRatingError: not an integer in [1, 5]
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidRatingError(quality)
    if not MIN_RATING <= quality <= MAX_RATING:
        raise InvalidRatingError(quality)
    return quality


def parse_rating(text: str) -> int:
    """
    Parse a rating typed by the user.

    Raises:
        InvalidRatingError: text is not an integer in [1, 5]
    """
    text = text.strip()
    try:
        quality = int(text)
    except ValueError:
        raise InvalidRatingError(text) from None
    try:
        return validate_rating(quality)
    except InvalidRatingError:
        raise InvalidRatingError(text) from None


class SM2Scheduler:
    """
    Implements the SM-2 spaced repetition algorithm.

    Each item has:
    - Easiness Factor (EF): growth rate of the interval (min 1.3)
    - Interval: units until next review
    - Repetitions: consecutive correct recalls

    By default the easiness update is multiplicative,
    EF' = EF * (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)),
    which is what existing indexes were scheduled with. Set
    `easiness_formula="additive"` for the published EF' = EF + delta.
    """

    def __init__(self, config: SM2Config | None = None):
        """
        Initialize SM-2 scheduler.

        Args:
            config: Custom configuration (uses defaults if None)
        """
        self.config = config or SM2Config()

    def next_easiness(self, easiness: float, quality: int) -> float:
        """Easiness after a successful recall, before the floor is applied."""
        delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
        if self.config.easiness_formula == "additive":
            return easiness + delta
        return easiness * delta

    def due_after(self, now: datetime, interval: float) -> datetime:
        """`now` plus `interval` units, capped at the last representable time."""
        try:
            return now + interval * self.config.interval_unit
        except OverflowError:
            logger.warning(f"Interval {interval:g} runs past {LATEST_DUE.year}, capping the due time")
            return LATEST_DUE

    def apply_rating(
        self,
        record: ItemRecord,
        quality: int,
        now: datetime | None = None,
    ) -> ItemRecord:
        """
        Compute the record's next scheduling state.

        The input record is not modified.

        Args:
            record: Current state of the reviewed item
            quality: User rating (1-5)
            now: Review time (defaults to the current UTC time)

        Returns:
            New ItemRecord with updated repetitions, easiness, interval and due
        """
        quality = validate_rating(quality)
        now = now or utcnow()

        if quality >= PASSING_RATING:
            if record.repetitions == 0:
                interval = self.config.first_interval
            elif record.repetitions == 1:
                interval = self.config.second_interval
            else:
                interval = math.ceil(min(record.interval * record.easiness, sys.float_info.max))
            easiness = max(self.next_easiness(record.easiness, quality), self.config.minimum_easiness)
            repetitions = record.repetitions + 1
        else:
            # Failed - back to the first interval
            interval = self.config.first_interval
            easiness = record.easiness
            repetitions = 0

        updated = replace(
            record,
            repetitions=repetitions,
            easiness=easiness,
            interval=float(interval),
            due=self.due_after(now, interval),
            tags=set(record.tags),
        )

        logger.debug(f"Rated {record.identifier} q={quality}: {record} -> {updated}")
        return updated


# =============================================================================
# Selection
# =============================================================================


def _due_key(record: ItemRecord) -> datetime:
    return record.due if record.due is not None else _UNSCHEDULED


def filter_by_tags(records: Iterable[ItemRecord], tags: Iterable[str]) -> list[ItemRecord]:
    """Records carrying every requested tag (all records if none requested)."""
    wanted = set(tags)
    return [r for r in records if wanted <= r.tags]


def select_next(
    records: Iterable[ItemRecord],
    tag_filter: Iterable[str] = (),
    now: datetime | None = None,
) -> ItemRecord | None:
    """
    Pick the item to review next.

    Candidates are the records carrying every tag in `tag_filter`, sorted
    by due time, latest first. The scan takes the first overdue record;
    if that record was never scheduled it keeps looking for a scheduled
    overdue one and only falls back to the unscheduled one if none exists.

    Args:
        records: All loaded records (tags populated if filtering)
        tag_filter: Tags that must all be present
        now: Reference time (defaults to the current UTC time)

    Returns:
        The selected ItemRecord, or None when nothing is due
    """
    now = now or utcnow()
    candidates = filter_by_tags(records, tag_filter)
    if not candidates:
        return None

    candidates.sort(key=_due_key, reverse=True)

    selected = None
    for record in candidates:
        if record.is_due(now):
            selected = record
            if record.is_scheduled:
                break

    if selected is not None:
        logger.debug(f"Selected {selected.identifier} from {len(candidates)} candidates")
    return selected


def due_records(records: Iterable[ItemRecord], now: datetime | None = None) -> list[ItemRecord]:
    """All records eligible for review at `now`."""
    now = now or utcnow()
    return [r for r in records if r.is_due(now)]


def upcoming(records: Iterable[ItemRecord], limit: int | None = None) -> list[ItemRecord]:
    """Records ordered by due time, never-scheduled first."""
    ordered = sorted(records, key=_due_key)
    return ordered if limit is None else ordered[:limit]
