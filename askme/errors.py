"""
Exceptions raised by askme.

Library code raises these; only the CLI turns them into exit codes.
"""

from __future__ import annotations


class AskmeError(Exception):
    """Base class for all askme failures."""


class EnvironmentSetupError(AskmeError):
    """Raised when the home or data directory cannot be resolved or created."""


class IndexReadError(AskmeError):
    """Raised when an existing index file cannot be read."""


class IndexFormatError(IndexReadError):
    """Raised when an index row is malformed."""

    def __init__(self, path, line: int, reason: str):
        self.path = path
        self.line = line
        self.reason = reason
        super().__init__(f"{path}:{line}: {reason}")


class IndexWriteError(AskmeError):
    """Raised when any step of the index save sequence fails."""


class ContentReadError(AskmeError):
    """Raised when an item's content file cannot be read."""


class ContentWriteError(AskmeError):
    """Raised when a new item file cannot be written."""


class EmptyItemError(AskmeError):
    """Raised when a new item has no content."""


class InvalidRatingError(AskmeError, ValueError):
    """Raised for a rating that is not an integer in [1, 5]."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"\"{value}\" is not a valid choice")
