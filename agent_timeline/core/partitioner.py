"""Slot Partitioner — tiles a reporting window into aligned slots.

The first slot runs from the window start to the next alignment boundary
(in local wall-clock time) or to the window end, whichever comes first.
Every following slot is exactly one alignment unit long, except the last,
which is truncated to the window end.  Zero-length slots are never emitted.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo

from agent_timeline.domain.errors import InvalidWindow
from agent_timeline.domain.window import Slot
from agent_timeline.foundation.clock import format_local_time

logger = logging.getLogger(__name__)


def next_boundary(instant: datetime, alignment: timedelta, tz: tzinfo | None = None) -> datetime:
    """Return the first alignment boundary strictly after *instant*.

    Boundaries are multiples of *alignment* counted from local midnight in
    *tz* (UTC when omitted), so hourly alignment lands on the local hour.
    """
    unit = alignment.total_seconds()
    offset = instant.astimezone(tz).utcoffset() if tz is not None else None
    shift = offset.total_seconds() if offset is not None else 0.0
    local_seconds = instant.timestamp() + shift
    boundary = (local_seconds // unit + 1) * unit - shift
    return datetime.fromtimestamp(boundary, tz=timezone.utc)


def partition(
    window_start: datetime,
    window_end: datetime,
    alignment: timedelta = timedelta(hours=1),
    tz: tzinfo | None = None,
) -> list[Slot]:
    """Split ``[window_start, window_end)`` into ordered, contiguous slots.

    Args:
        window_start: Inclusive start (timezone-aware).
        window_end: Exclusive end (timezone-aware).
        alignment: Slot granularity; one hour by default.
        tz: Civil timezone for boundary alignment and slot labels.

    Raises:
        InvalidWindow: If ``window_end <= window_start``.
        ValueError: If *alignment* is not positive.
    """
    if window_end <= window_start:
        raise InvalidWindow(
            f"window end {window_end.isoformat()} is not after start {window_start.isoformat()}"
        )
    if alignment <= timedelta(0):
        raise ValueError("alignment must be a positive duration")

    slots: list[Slot] = []
    cursor = window_start
    boundary = next_boundary(window_start, alignment, tz)

    while cursor < window_end:
        end = min(boundary, window_end)
        slots.append(
            Slot(
                index=len(slots),
                start=cursor,
                end=end,
                label=_label(cursor, end, tz) if tz is not None else "",
            )
        )
        cursor = end
        boundary = end + alignment

    logger.debug(
        "Partitioned %s → %s into %d slot(s) of %s",
        window_start.isoformat(),
        window_end.isoformat(),
        len(slots),
        alignment,
    )
    return slots


def _label(start: datetime, end: datetime, tz: tzinfo) -> str:
    return f"{format_local_time(start, tz)} - {format_local_time(end, tz)}"
