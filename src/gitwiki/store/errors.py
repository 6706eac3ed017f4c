"""Error taxonomy for store and page operations."""

from __future__ import annotations


class WikiError(Exception):
    """Base class for all gitwiki errors."""


class InvalidNameError(WikiError, ValueError):
    """A page name that cannot be used as a repository file name."""


class NotFoundError(WikiError, KeyError):
    """The page (or revision) is not in the current snapshot."""

    def __str__(self) -> str:
        # KeyError would repr() the argument
        return str(self.args[0]) if self.args else ""


class ConflictError(WikiError):
    """The snapshot advanced past the revision the caller last read."""

    def __init__(self, expected: str | None, actual: str | None) -> None:
        super().__init__(f"Expected revision {expected}, but HEAD is {actual}")
        self.expected = expected
        self.actual = actual


class PersistenceError(WikiError):
    """The underlying git or filesystem operation failed."""
