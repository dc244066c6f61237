"""Duration helpers shared by the adapters and the renderer."""

from __future__ import annotations

import math
from typing import Any


def parse_duration(value: Any) -> int:
    """Return a whole number of seconds for *value*.

    Accepts ints, floats, numeric strings and ``HH:MM:SS`` strings.
    Anything unusable (None, garbage, NaN, infinities) counts as zero.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return _whole_seconds(value)
    if isinstance(value, str):
        text = value.strip()
        if ":" in text:
            parts = text.split(":")
            if len(parts) != 3:
                return 0
            try:
                hours, minutes, seconds = (int(p or 0) for p in parts)
            except ValueError:
                return 0
            return max(0, hours * 3600 + minutes * 60 + seconds)
        try:
            return _whole_seconds(float(text))
        except ValueError:
            return 0
    return 0


def _whole_seconds(value: float) -> int:
    if isinstance(value, int):
        return max(0, value)
    if not math.isfinite(value):
        return 0
    return max(0, int(round(value)))


def format_duration(seconds: float | None) -> str:
    """Format seconds as ``HH:MM:SS`` (hours may exceed 24)."""
    total = int(seconds or 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
