"""Error taxonomy for timeline reconstruction and metric distribution."""

from __future__ import annotations


class TimelineError(Exception):
    """Base class for all agent-timeline errors."""


class InvalidWindow(TimelineError, ValueError):
    """Raised when a reporting window is empty or inverted."""


class MalformedEvent(TimelineError, ValueError):
    """Raised when a single raw event cannot be used (no timestamp or agent)."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class RoundingInconsistency(TimelineError):
    """Slot-level sums drifted from the aggregate beyond the allowed tolerance.

    This signals a bug in the distribution code, never bad input.
    """

    def __init__(self, field: str, expected: int, actual: int, tolerance: int) -> None:
        self.field = field
        self.expected = expected
        self.actual = actual
        self.tolerance = tolerance
        super().__init__(
            f"{field}: slots sum to {actual}, aggregate is {expected} "
            f"(tolerance ±{tolerance})"
        )
