"""Event feed adapters — translate raw state-change records into RawEvents.

Two upstream shapes exist.

Activity feed (``/agents/activity/events``):
{
    "username": "alice",
    "ext": "3139",
    "event": "agent_not_avail_state",
    "state": "lunch",
    "enabled": true,
    "Timestamp": 1755151200
}

Slot-wise feed:
{
    "user_id": "alice",
    "extension": "3139",
    "event_type": "Login",
    "timestamp": 1755151200000
}

``Timestamp`` may also be a numeric string, an ISO string, or a nested
object carrying ``timestamp`` / ``time``.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from agent_timeline.adapters.base import FeedAdapter, first_present
from agent_timeline.domain.errors import MalformedEvent
from agent_timeline.domain.event import RawEvent
from agent_timeline.foundation.clock import EPOCH_MS_THRESHOLD, from_epoch


def _coerce_enabled(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() not in ("0", "false", "no", "off")
    return bool(value)


class _EventAdapter(FeedAdapter[RawEvent]):
    """Shared mapping for both event feed shapes."""

    _timestamp_key: str
    _username_keys: tuple[str, ...]
    _extension_keys: tuple[str, ...]
    _state_keys: tuple[str, ...]

    def __init__(self, ms_threshold: int = EPOCH_MS_THRESHOLD) -> None:
        self._ms_threshold = ms_threshold

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return self._timestamp_key in raw

    def adapt(self, raw: dict[str, Any]) -> RawEvent:
        username = first_present(raw, *self._username_keys)
        extension = first_present(raw, *self._extension_keys)
        if username is None and extension is None:
            raise MalformedEvent(f"{self.source_name} event has no username or extension")

        stamp = raw.get(self._timestamp_key)
        if isinstance(stamp, dict):
            stamp = first_present(stamp, "timestamp", "time")
        if stamp in (None, ""):
            raise MalformedEvent(f"{self.source_name} event missing '{self._timestamp_key}'")
        try:
            instant = from_epoch(stamp, self._ms_threshold)
        except (ValueError, OverflowError, OSError) as exc:
            raise MalformedEvent(f"bad timestamp {stamp!r}: {exc}") from exc

        state = first_present(raw, *self._state_keys)
        try:
            return RawEvent(
                username=username,
                extension=extension,
                timestamp=instant,
                state=None if state is None else str(state).strip(),
                event=raw.get("event"),
                enabled=_coerce_enabled(raw.get("enabled")),
            )
        except ValidationError as exc:
            raise MalformedEvent(str(exc)) from exc


class ActivityEventAdapter(_EventAdapter):
    """Maps activity-feed records (capitalised ``Timestamp``)."""

    _timestamp_key = "Timestamp"
    _username_keys = ("username", "user_id")
    _extension_keys = ("ext", "extension")
    _state_keys = ("state",)

    @property
    def source_name(self) -> str:
        return "activity_events"


class SlotEventAdapter(_EventAdapter):
    """Maps slot-wise feed records (lower-case ``timestamp``)."""

    _timestamp_key = "timestamp"
    _username_keys = ("username", "user_id")
    _extension_keys = ("ext", "extension")
    _state_keys = ("state", "event_type")

    @property
    def source_name(self) -> str:
        return "slot_events"
