"""Lease-specific exception types shared across modules."""

from __future__ import annotations


class LeaseError(RuntimeError):
    """Base class for instance-election failures."""


class StoreUnavailable(LeaseError):
    """Raised when a read or write against the shared settings store fails."""

    def __init__(self, operation: str, key: str | None = None, reason: str | None = None):
        self.operation = operation
        self.key = key
        self.reason = reason or "store_unavailable"
        target = f"{operation} {key}" if key else operation
        super().__init__(f"{target}: {self.reason}")


class ClockUnavailable(StoreUnavailable):
    """Raised when the shared store cannot report its current time."""

    def __init__(self, reason: str | None = None):
        super().__init__("now", reason=reason or "clock_unavailable")
