"""
Unit tests for item content access and tag extraction.

Run: pytest tests/unit/test_item_deck.py -v
"""

import pytest

from askme.errors import ContentReadError, EmptyItemError
from askme.index_store import ItemRecord
from askme.item_deck import ItemDeck, parse_tags


@pytest.fixture
def deck(tmp_path):
    return ItemDeck(tmp_path)


def write_item(deck, name, text):
    path = deck.data_dir / name
    path.write_text(text, encoding="utf-8")
    return ItemRecord(name)


class TestParseTags:
    """`Tags:` marker lines."""

    def test_single_line(self):
        text = "# Binary search\n\nTags: go, algorithms ,review\n\nWhat is its complexity?\n"

        assert parse_tags(text) == {"go", "algorithms", "review"}

    def test_no_marker(self):
        assert parse_tags("# Question\n\nAnswer\n") == set()

    def test_multiple_lines_accumulate(self):
        text = "Tags: go\nbody\nTags: algorithms, go\n"

        assert parse_tags(text) == {"go", "algorithms"}

    @pytest.mark.parametrize("line", [
        "tags: go",
        "Tags:go",
        "  Tags: go",
        "See Tags: go",
    ])
    def test_marker_must_start_line_exactly(self, line):
        assert parse_tags(line + "\n") == set()

    def test_empty_entries_dropped(self):
        assert parse_tags("Tags: go, , ,python,\n") == {"go", "python"}
        assert parse_tags("Tags: \n") == set()

    def test_windows_line_endings(self):
        assert parse_tags("Q\r\nTags: go, web\r\n") == {"go", "web"}


class TestReading:
    """Reading item files."""

    def test_read_content(self, deck):
        record = write_item(deck, "q.md", "# What is SM-2?\n")

        assert deck.read_content(record) == "# What is SM-2?\n"

    def test_missing_content(self, deck):
        with pytest.raises(ContentReadError):
            deck.read_content(ItemRecord("missing.md"))

    def test_load_tags(self, deck):
        record = write_item(deck, "q.md", "Tags: go\n")

        assert deck.load_tags(record) == {"go"}

    def test_annotate(self, deck):
        tagged = write_item(deck, "a.md", "Tags: go, algorithms\n")
        plain = write_item(deck, "b.md", "no tags here\n")
        plain.tags = {"stale"}

        deck.annotate([tagged, plain])

        assert tagged.tags == {"go", "algorithms"}
        assert plain.tags == set()

    def test_annotate_missing_file_fails(self, deck):
        present = write_item(deck, "a.md", "Tags: go\n")

        with pytest.raises(ContentReadError):
            deck.annotate([present, ItemRecord("gone.md")])


class TestAuthoring:
    """Creating and discovering items."""

    def test_add_item(self, deck, now):
        records = {"old.md": ItemRecord("old.md")}

        record = deck.add_item("Tags: go\n\nWhat is a goroutine?", records, now=now)

        assert record.identifier == "20261017-120000.md"
        assert list(records) == ["old.md", "20261017-120000.md"]
        assert records[record.identifier] is record
        assert (record.repetitions, record.interval, record.due) == (0, 0.0, None)
        assert record.easiness == 2.5
        assert (deck.data_dir / record.identifier).read_text(encoding="utf-8") == (
            "Tags: go\n\nWhat is a goroutine?\n"
        )

    def test_add_item_uses_configured_easiness(self, tmp_path, now):
        deck = ItemDeck(tmp_path, initial_easiness=2.0)

        assert deck.add_item("Q", {}, now=now).easiness == 2.0

    def test_identifier_collision(self, deck, now):
        records = {}
        first = deck.add_item("one", records, now=now)
        second = deck.add_item("two", records, now=now)
        records["20261017-120000-3.md"] = ItemRecord("20261017-120000-3.md")
        fourth = deck.add_item("four", records, now=now)

        assert first.identifier == "20261017-120000.md"
        assert second.identifier == "20261017-120000-2.md"
        assert fourth.identifier == "20261017-120000-4.md"

    @pytest.mark.parametrize("text", ["", "   \n\n"])
    def test_empty_item_rejected(self, deck, text):
        records = {}

        with pytest.raises(EmptyItemError):
            deck.add_item(text, records)
        assert records == {}

    def test_discover(self, deck):
        write_item(deck, "b.md", "B")
        write_item(deck, "a.md", "A")
        write_item(deck, "known.md", "K")
        write_item(deck, "notes.txt", "ignored")
        (deck.data_dir / "dir.md").mkdir()
        records = {"known.md": ItemRecord("known.md", repetitions=4)}

        added = deck.discover(records)

        assert [r.identifier for r in added] == ["a.md", "b.md"]
        assert list(records) == ["known.md", "a.md", "b.md"]
        assert records["known.md"].repetitions == 4

    def test_discover_missing_directory(self, tmp_path):
        assert ItemDeck(tmp_path / "nope").discover({}) == []
