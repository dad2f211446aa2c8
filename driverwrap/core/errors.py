from __future__ import annotations

from typing import Any


class DriverWrapError(Exception):
    """Base class for every error raised by the engine."""


class WaitTimeoutError(DriverWrapError, TimeoutError):
    """A wait or page load did not reach its condition before the deadline."""

    def __init__(self, message: str, timeout_ms: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.timeout_ms = timeout_ms


class NotFoundError(DriverWrapError, LookupError):
    """An action required a matching element but none existed at resolution time."""

    def __init__(self, message: str, locator: Any = None) -> None:
        super().__init__(message)
        self.locator = locator


class EmptyCollectionError(NotFoundError):
    """`first()`, `last()` or `get(i)` was resolved against an empty match set."""


class TransportError(DriverWrapError):
    """The underlying browser session rejected a call."""
