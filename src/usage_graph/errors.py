from __future__ import annotations


class UsageGraphError(Exception):
    """Base class for errors raised by the usage graph."""


class InvalidDeletionScopeError(UsageGraphError, ValueError):
    """Raised when a deletion is requested with a scope the engine does not know."""

    def __init__(self, scope: object):
        super().__init__(f"Unknown deletion scope {scope!r}; expected one of: version, locale, item")
        self.scope = scope


class SnapshotMismatchError(UsageGraphError, ValueError):
    """Raised when the original and current snapshots do not describe the same item variant."""


class UnknownExtractorError(UsageGraphError, KeyError):
    def __init__(self, method: str):
        super().__init__(method)
        self.method = method

    def __str__(self) -> str:
        return f"No extractor registered for method {self.method!r}"
