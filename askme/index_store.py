"""
CSV Index Store for askme.

Provides crash-safe persistence of the SM-2 scheduling state:
- One row per item: identifier, repetitions, easiness, interval, due
- No header; standard CSV quoting
- Saves are committed by renaming, never by rewriting the live file

Index location: ~/.askme/index.csv (previous generation in index.csv.old)
"""

from __future__ import annotations

import csv
import math
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from loguru import logger

from .errors import EnvironmentSetupError, IndexFormatError, IndexReadError, IndexWriteError

# Zero value of `due`, written the way the index has always stored it.
ZERO_TIMESTAMP = "0001-01-01T00:00:00Z"
FIELD_COUNT = 5

# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ItemRecord:
    """SM-2 scheduling state for a single item."""

    identifier: str  # Item file name, relative to the data directory
    repetitions: int = 0  # Consecutive correct recalls
    easiness: float = 2.5  # EF, floored at 1.3 after each update
    interval: float = 0.0  # Time units until next review
    due: datetime | None = None  # None = never scheduled
    tags: set[str] = field(default_factory=set, compare=False)  # Never persisted

    @property
    def is_scheduled(self) -> bool:
        """Whether the item has been given a due time."""
        return self.due is not None

    def is_due(self, now: datetime) -> bool:
        """Check if this item is eligible for review at `now`."""
        if self.due is None:
            return True
        return self.due < now

    def __str__(self) -> str:
        due = format_timestamp(self.due)
        return (
            f"{{identifier: {self.identifier!r}, tags: {sorted(self.tags)}, due: {due}, "
            f"sm2: (n={self.repetitions}, EF={self.easiness:.2f}, I={self.interval:g})}}"
        )


# =============================================================================
# Field Codecs
# =============================================================================


def format_timestamp(value: datetime | None) -> str:
    """Format a due time as RFC3339, using `Z` for UTC."""
    if value is None:
        return ZERO_TIMESTAMP
    if value.tzinfo is None:
        value = value.astimezone()
    text = value.replace(microsecond=0).isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def parse_timestamp(text: str) -> datetime | None:
    """
    Parse an RFC3339 timestamp.

    Returns:
        Timezone-aware datetime, or None for the zero timestamp

    Raises:
        ValueError: text is not RFC3339 or carries no timezone
    """
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        raise ValueError(f"timestamp {text!r} has no timezone")
    if value.year == 1 and value.replace(tzinfo=None) == datetime(1, 1, 1):
        return None
    return value


def utcnow() -> datetime:
    """Current time, timezone-aware."""
    return datetime.now(timezone.utc)


def _parse_real(text: str) -> float:
    value = float(text)
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"{text!r} is not a finite, non-negative number")
    return value


def _parse_count(text: str) -> int:
    return int(_parse_real(text))


def _format_number(value: float) -> str:
    return f"{value:f}"


# =============================================================================
# Index Store
# =============================================================================


class IndexStore:
    """
    CSV-backed index of all items' scheduling state.

    Handles:
    - Loading rows into an ordered identifier -> record mapping
    - Lenient or strict parsing of damaged fields
    - Atomic save via temp file + backup rename
    """

    def __init__(
        self,
        path: Path,
        parsing: Literal["lenient", "strict"] = "lenient",
    ):
        """
        Initialize the index store.

        Args:
            path: Index file path (e.g. ~/.askme/index.csv)
            parsing: How to treat unparsable numeric/timestamp fields
        """
        self.path = Path(path)
        self.parsing = parsing

    @property
    def pending_path(self) -> Path:
        """Temporary sibling the next generation is written to."""
        return self.path.with_name(self.path.name + ".new")

    @property
    def backup_path(self) -> Path:
        """Previous generation, kept after each save."""
        return self.path.with_name(self.path.name + ".old")

    # =========================================================================
    # Load
    # =========================================================================

    def load(self) -> dict[str, ItemRecord]:
        """
        Load all records, in file order.

        A missing index is an empty collection, not an error.

        Returns:
            Ordered mapping of identifier to ItemRecord
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise EnvironmentSetupError(
                f"Unable to create the data directory {str(self.path.parent)!r}: {e}"
            ) from e

        try:
            with open(self.path, newline="", encoding="utf-8") as f:
                rows = list(csv.reader(f))
        except FileNotFoundError:
            logger.debug(f"No index at {self.path}, starting empty")
            return {}
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise IndexReadError(f"Unable to read index file {str(self.path)!r}: {e}") from e

        records: dict[str, ItemRecord] = {}
        for line, row in enumerate(rows, 1):
            if not row:
                continue
            record = self._parse_row(line, row)
            if record.identifier in records:
                if self.parsing == "strict":
                    raise IndexFormatError(
                        self.path, line, f"duplicate identifier {record.identifier!r}"
                    )
                logger.warning(
                    f"{self.path}:{line}: duplicate identifier {record.identifier!r}, "
                    f"keeping the later row"
                )
            records[record.identifier] = record

        logger.info(f"Loaded {len(records)} records from {self.path}")
        return records

    def _parse_row(self, line: int, row: list[str]) -> ItemRecord:
        """Build a record from one CSV row."""
        if len(row) != FIELD_COUNT:
            raise IndexFormatError(
                self.path, line, f"expected {FIELD_COUNT} fields, found {len(row)}"
            )

        identifier, repetitions, easiness, interval, due = row
        if not identifier:
            raise IndexFormatError(self.path, line, "empty identifier")

        return ItemRecord(
            identifier=identifier,
            repetitions=self._parse_field(line, "repetitions", repetitions, _parse_count, 0),
            easiness=self._parse_field(line, "easiness", easiness, _parse_real, 0.0),
            interval=self._parse_field(line, "interval", interval, _parse_real, 0.0),
            due=self._parse_field(line, "due", due, parse_timestamp, None),
        )

    def _parse_field(self, line, name, text, parse, zero):
        try:
            return parse(text)
        except ValueError as e:
            if self.parsing == "strict":
                raise IndexFormatError(self.path, line, f"invalid {name} {text!r}") from e
            logger.warning(f"{self.path}:{line}: invalid {name} {text!r}, using {zero!r}")
            return zero

    # =========================================================================
    # Save
    # =========================================================================

    def save(self, records: dict[str, ItemRecord]) -> None:
        """
        Persist the full record set atomically.

        Sequence: write `.new` and fsync, remove stale `.old`, rename the
        live index to `.old`, rename `.new` to the live index. Until the
        first rename the live index is untouched.

        Args:
            records: Ordered mapping of identifier to ItemRecord
        """
        for key, record in records.items():
            if key != record.identifier:
                raise IndexWriteError(
                    f"Record {record.identifier!r} is stored under identifier {key!r}"
                )

        pending = self.pending_path
        backup = self.backup_path

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(pending, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f, lineterminator="\n")
                for record in records.values():
                    writer.writerow([
                        record.identifier,
                        _format_number(record.repetitions),
                        _format_number(record.easiness),
                        _format_number(record.interval),
                        format_timestamp(record.due),
                    ])
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise IndexWriteError(f"Unable to create new index file {str(pending)!r}: {e}") from e

        try:
            backup.unlink(missing_ok=True)
        except OSError as e:
            raise IndexWriteError(f"Unable to remove the old index file {str(backup)!r}: {e}") from e

        if self.path.exists():
            try:
                os.replace(self.path, backup)
            except OSError as e:
                raise IndexWriteError(
                    f"Unable to rename the current index file {str(self.path)!r} "
                    f"to {str(backup)!r}: {e}"
                ) from e

        try:
            os.replace(pending, self.path)
        except OSError as e:
            raise IndexWriteError(
                f"Unable to rename the new index file {str(pending)!r} "
                f"to {str(self.path)!r}: {e}"
            ) from e

        logger.info(f"Saved {len(records)} records to {self.path}")

    def recover(self) -> bool:
        """
        Restore the live index from its backup after an interrupted save.

        Only acts when the live index is missing and a backup exists. The
        pending `.new` file is never promoted.

        Returns:
            True if the backup was restored
        """
        if self.path.exists() or not self.backup_path.exists():
            return False
        try:
            os.replace(self.backup_path, self.path)
        except OSError as e:
            raise IndexWriteError(
                f"Unable to restore {str(self.backup_path)!r} to {str(self.path)!r}: {e}"
            ) from e
        logger.info(f"Restored {self.path} from {self.backup_path}")
        return True

