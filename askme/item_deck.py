"""
Item Deck: Item Content Loader.

Reads and writes the per-item content files that live beside the index:
- Raw content for rendering
- `Tags: a, b` marker lines for tag filtering
- New items authored from the editor
- Discovery of content files that have no index record yet
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from loguru import logger

from .errors import ContentReadError, ContentWriteError, EmptyItemError
from .index_store import ItemRecord, utcnow

TAGS_MARKER = "Tags: "


def parse_tags(text: str) -> set[str]:
    """
    Extract tags from item content.

    Every line starting with `Tags: ` contributes its comma-separated
    entries; multiple marker lines accumulate.

    Args:
        text: Raw item content

    Returns:
        Set of trimmed, non-empty tags
    """
    tags: set[str] = set()
    for line in text.splitlines():
        if not line.startswith(TAGS_MARKER):
            continue
        for tag in line[len(TAGS_MARKER):].split(","):
            tag = tag.strip()
            if tag:
                tags.add(tag)
    return tags


class ItemDeck:
    """
    Access to the item files in the data directory.

    Tag extraction reads every item file, so it is only done on request
    (see `annotate`).
    """

    def __init__(
        self,
        data_dir: Path,
        extension: str = ".md",
        initial_easiness: float = 2.5,
    ):
        """
        Initialize the deck.

        Args:
            data_dir: Directory holding the item files
            extension: Suffix of item files created by `add_item` and found by `discover`
            initial_easiness: Easiness factor for newly created records
        """
        self.data_dir = Path(data_dir)
        self.extension = extension
        self.initial_easiness = initial_easiness

    def path_for(self, record: ItemRecord) -> Path:
        """Content file of a record."""
        return self.data_dir / record.identifier

    # =========================================================================
    # Reading
    # =========================================================================

    def read_content(self, record: ItemRecord) -> str:
        """
        Read an item's raw content.

        Raises:
            ContentReadError: file missing or unreadable
        """
        path = self.path_for(record)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ContentReadError(f"Unable to read {str(path)!r}: {e}") from e

    def load_tags(self, record: ItemRecord) -> set[str]:
        """Read the tags declared in an item's content."""
        return parse_tags(self.read_content(record))

    def annotate(self, records: Iterable[ItemRecord]) -> None:
        """Populate `tags` on every record from its content file."""
        count = 0
        for record in records:
            record.tags = self.load_tags(record)
            count += 1
        logger.debug(f"Loaded tags for {count} items")

    # =========================================================================
    # Authoring
    # =========================================================================

    def new_record(self, identifier: str) -> ItemRecord:
        """A never-reviewed record with default scheduling state."""
        return ItemRecord(identifier=identifier, easiness=self.initial_easiness)

    def new_identifier(self, now: datetime | None = None, taken: Iterable[str] = ()) -> str:
        """
        Pick an unused file name for a new item.

        Format: YYYYMMDD-HHMMSS.md, with -2, -3... appended on collision
        with an existing file or an identifier in `taken`.
        """
        taken = set(taken)
        stem = (now or utcnow()).strftime("%Y%m%d-%H%M%S")
        candidate = f"{stem}{self.extension}"
        suffix = 2
        while candidate in taken or (self.data_dir / candidate).exists():
            candidate = f"{stem}-{suffix}{self.extension}"
            suffix += 1
        return candidate

    def add_item(
        self,
        text: str,
        records: dict[str, ItemRecord],
        now: datetime | None = None,
    ) -> ItemRecord:
        """
        Store a new item and append its record.

        Args:
            text: Item content as written by the user
            records: Loaded index; the new record is appended in place
            now: Creation time (used for the file name)

        Returns:
            The new ItemRecord
        """
        if not text.strip():
            raise EmptyItemError("The new item is empty, nothing was added.")

        identifier = self.new_identifier(now, taken=records)
        path = self.data_dir / identifier
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
        except OSError as e:
            raise ContentWriteError(f"Unable to write new item {str(path)!r}: {e}") from e

        record = self.new_record(identifier)
        records[identifier] = record
        logger.info(f"Added item {identifier}")
        return record

    def discover(self, records: dict[str, ItemRecord]) -> list[ItemRecord]:
        """
        Create records for item files that are not in the index yet.

        Args:
            records: Loaded index; new records are appended in place

        Returns:
            Newly created records, in file name order
        """
        if not self.data_dir.is_dir():
            return []

        added: list[ItemRecord] = []
        for path in sorted(self.data_dir.glob(f"*{self.extension}")):
            if not path.is_file() or path.name in records:
                continue
            record = self.new_record(path.name)
            records[path.name] = record
            added.append(record)

        logger.info(f"Discovered {len(added)} unindexed items in {self.data_dir}")
        return added
