"""
askme: a personal spaced repetition scheduler for the terminal.

Components:
- IndexStore: crash-safe CSV persistence of scheduling state
- ItemDeck: item content files and their tags
- SM2Scheduler: SM-2 interval and easiness updates
- select_next: choice of the next due item
"""

__version__ = "1.0.0"

from .errors import (
    AskmeError,
    ContentReadError,
    ContentWriteError,
    EmptyItemError,
    EnvironmentSetupError,
    IndexFormatError,
    IndexReadError,
    IndexWriteError,
    InvalidRatingError,
)
from .index_store import IndexStore, ItemRecord
from .item_deck import ItemDeck, parse_tags
from .scheduler import SM2Config, SM2Scheduler, select_next

__all__ = [
    # Persistence
    "IndexStore",
    "ItemRecord",
    # Content
    "ItemDeck",
    "parse_tags",
    # Scheduling
    "SM2Config",
    "SM2Scheduler",
    "select_next",
    # Errors
    "AskmeError",
    "ContentReadError",
    "ContentWriteError",
    "EmptyItemError",
    "EnvironmentSetupError",
    "IndexFormatError",
    "IndexReadError",
    "IndexWriteError",
    "InvalidRatingError",
]
