"""Timezone-aware clock and instant utilities.

Every instant inside agent-timeline is a UTC-aware datetime.  Civil
(wall-clock) time only exists at the edges: when parsing a user supplied
window bound and when formatting an instant for display.  This module is
also the single source of "now" so tests can monkey-patch it trivially.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

EPOCH_MS_THRESHOLD = 10_000_000_000

_DMY_PATTERN = re.compile(
    r"^\s*(\d{1,2})/(\d{1,2})/(\d{4})\s*,\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([APap][Mm])?\s*$"
)


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone name, e.g. ``Asia/Dubai``."""
    return ZoneInfo(name)


def parse_local(value: str | datetime, tz: tzinfo) -> datetime:
    """Interpret a wall-clock value in *tz* and return the UTC instant.

    Accepted forms:
        - ``YYYY-MM-DDTHH:MM[:SS]`` (ISO, with or without offset)
        - ``DD/MM/YYYY, HH:MM[AM|PM]``
        - a ``datetime`` (naive values are taken as wall-clock in *tz*)

    Raises:
        ValueError: If the string matches none of the accepted forms.
    """
    if isinstance(value, datetime):
        local = value
    else:
        text = value.strip()
        if not text:
            raise ValueError("empty date/time string")
        match = _DMY_PATTERN.match(text)
        if match:
            local = _from_dmy(match)
        else:
            try:
                local = datetime.fromisoformat(text)
            except ValueError as exc:
                raise ValueError(f"unrecognised date/time string: {value!r}") from exc

    if local.tzinfo is None:
        local = local.replace(tzinfo=tz)
    return local.astimezone(timezone.utc)


def _from_dmy(match: re.Match[str]) -> datetime:
    day, month, year, hour, minute, second, meridiem = match.groups()
    hours = int(hour)
    if meridiem:
        meridiem = meridiem.upper()
        if meridiem == "PM" and hours < 12:
            hours += 12
        elif meridiem == "AM" and hours == 12:
            hours = 0
    return datetime(int(year), int(month), int(day), hours, int(minute), int(second or 0))


def from_epoch(value: Any, ms_threshold: int = EPOCH_MS_THRESHOLD) -> datetime:
    """Convert an epoch value (seconds or milliseconds) to a UTC instant.

    Values below *ms_threshold* are seconds, anything else milliseconds.
    Numeric strings are accepted; other strings are parsed as ISO-8601
    (naive ISO strings are assumed to be UTC).

    Raises:
        ValueError: If *value* is missing or cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"not a timestamp: {value!r}")

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty timestamp")
        try:
            value = float(text)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError as exc:
                raise ValueError(f"unrecognised timestamp: {text!r}") from exc
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)

    if not isinstance(value, (int, float)):
        raise ValueError(f"not a timestamp: {value!r}")

    seconds = value if value < ms_threshold else value / 1000.0
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def format_local(instant: datetime, tz: tzinfo) -> str:
    """Format an instant as a local ``DD/MM/YYYY, HH:MM:SS`` string."""
    return instant.astimezone(tz).strftime("%d/%m/%Y, %H:%M:%S")


def format_local_time(instant: datetime, tz: tzinfo) -> str:
    """Format an instant as a local ``HH:MM AM/PM`` string."""
    return instant.astimezone(tz).strftime("%I:%M %p")
