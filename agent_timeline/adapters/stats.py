"""StatsFeedAdapter — translates per-agent daily statistics into AgentAggregates.

Expected raw format (mapping keyed by extension):
{
    "3139": {
        "name": "alice",
        "total_calls": 9,
        "answered_calls": 7,
        "talked_time": 1820,
        "wrap_up_time": "00:05:00",
        "hold_time": 45,
        "on_call_time": 2100,
        "not_available_time": 3600,
        "not_available_detailed_report": {"Login": 1800, "lunch": 1800}
    }
}

A list of rows carrying their own ``ext`` / ``extension`` is accepted too.
Field names vary between API versions; every known variant is listed here
and nowhere else.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from agent_timeline.adapters.base import FeedAdapter, first_present
from agent_timeline.domain.aggregate import AgentAggregate
from agent_timeline.foundation.durations import parse_duration

logger = logging.getLogger(__name__)

_NAME_KEYS = ("name", "username", "agent_name", "agentName")
_EXTENSION_KEYS = ("ext", "extension")
_TOTAL_KEYS = ("total_calls", "totalCalls", "calls")
_ANSWERED_KEYS = ("answered_calls", "answeredCalls", "answered")
_TALK_KEYS = ("talked_time", "talk_time", "talkTime")
_WRAP_UP_KEYS = ("wrap_up_time", "wrapUpTime")
_HOLD_KEYS = ("hold_time", "holdTime")
_ON_CALL_KEYS = ("on_call_time", "onCallTime")
_NOT_AVAILABLE_KEYS = ("not_available_time", "notAvailableTime")
_BREAKDOWN_KEYS = ("not_available_detailed_report", "notAvailableDetailedReport")


def _count(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return max(0, value)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, int(number))


class StatsFeedAdapter(FeedAdapter[AgentAggregate]):
    """Maps stats-feed rows to canonical AgentAggregates."""

    @property
    def source_name(self) -> str:
        return "agent_stats"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return any(k in raw for k in _NAME_KEYS + _TOTAL_KEYS + _EXTENSION_KEYS)

    def adapt(self, raw: dict[str, Any], extension: str | None = None) -> AgentAggregate:
        name = first_present(raw, *_NAME_KEYS)
        ext = extension if extension not in (None, "") else first_present(raw, *_EXTENSION_KEYS)
        if name is None and ext is None:
            raise ValueError("stats row has neither a name nor an extension")

        breakdown_raw = first_present(raw, *_BREAKDOWN_KEYS, default={})
        breakdown: dict[str, int] = {}
        if isinstance(breakdown_raw, Mapping):
            for reason, seconds in breakdown_raw.items():
                parsed = parse_duration(seconds)
                if parsed:
                    breakdown[str(reason)] = parsed

        try:
            return AgentAggregate(
                username="" if name is None else str(name).strip(),
                extension="" if ext is None else str(ext).strip(),
                total_calls=_count(first_present(raw, *_TOTAL_KEYS, default=0)),
                answered_calls=_count(first_present(raw, *_ANSWERED_KEYS, default=0)),
                talk_time=parse_duration(first_present(raw, *_TALK_KEYS)),
                wrap_up_time=parse_duration(first_present(raw, *_WRAP_UP_KEYS)),
                hold_time=parse_duration(first_present(raw, *_HOLD_KEYS)),
                on_call_time=parse_duration(first_present(raw, *_ON_CALL_KEYS)),
                not_available_time=parse_duration(first_present(raw, *_NOT_AVAILABLE_KEYS)),
                not_available_breakdown=breakdown,
            )
        except ValidationError as exc:
            raise ValueError(str(exc)) from exc

    def adapt_all(
        self,
        payload: Mapping[str, Any] | Iterable[dict[str, Any]] | None,
    ) -> list[AgentAggregate]:
        """Adapt a whole stats payload, dropping rows that cannot be used.

        A mapping is treated as ``{extension: row}``; any other iterable as a
        list of self-describing rows.
        """
        if not payload:
            return []

        if isinstance(payload, Mapping):
            rows = [(str(ext), row) for ext, row in payload.items()]
        else:
            rows = [(None, row) for row in payload]

        aggregates: list[AgentAggregate] = []
        for ext, row in rows:
            if not isinstance(row, Mapping):
                logger.warning("Skipping stats row for %s: not an object", ext)
                continue
            try:
                aggregates.append(self.adapt(dict(row), extension=ext))
            except ValueError as exc:
                logger.warning("Skipping stats row for %s: %s", ext, exc)
        logger.debug("Adapted %d/%d stats rows", len(aggregates), len(rows))
        return aggregates
