"""Adapter Registry — selects the event feed adapter for each raw record.

Adapters are tried in registration order; the first whose can_handle()
returns True translates the record.  A record nobody claims, or one the
claiming adapter rejects, raises, and the Event Normalizer counts it as
malformed in the request's ingestion stats.
"""

from __future__ import annotations

import logging
from typing import Any

from agent_timeline.adapters.base import FeedAdapter
from agent_timeline.adapters.events import ActivityEventAdapter, SlotEventAdapter
from agent_timeline.domain.event import RawEvent
from agent_timeline.foundation.clock import EPOCH_MS_THRESHOLD

logger = logging.getLogger(__name__)


class NoAdapterFoundError(Exception):
    """Raised when no registered adapter can handle a record."""


class AdaptationError(Exception):
    """Raised when the matched adapter cannot translate the record."""

    def __init__(self, adapter_name: str, reason: str) -> None:
        self.adapter_name = adapter_name
        self.reason = reason
        super().__init__(f"{adapter_name}: {reason}")


class AdapterRegistry:
    """Ordered collection of event feed adapters."""

    def __init__(self) -> None:
        self._adapters: list[FeedAdapter[RawEvent]] = []

    @classmethod
    def default(cls, ms_threshold: int = EPOCH_MS_THRESHOLD) -> AdapterRegistry:
        """Registry for both known event feed shapes, activity feed first."""
        registry = cls()
        registry.register(ActivityEventAdapter(ms_threshold))
        registry.register(SlotEventAdapter(ms_threshold))
        return registry

    def register(self, adapter: FeedAdapter[RawEvent]) -> None:
        self._adapters.append(adapter)
        logger.debug("Registered event adapter: %s", adapter.source_name)

    def adapt(self, raw: dict[str, Any]) -> RawEvent:
        """Route *raw* through the first adapter that accepts its shape.

        Raises:
            NoAdapterFoundError: If no adapter's can_handle() returns True.
            AdaptationError: If the matched adapter rejects the record.
        """
        for adapter in self._adapters:
            if not adapter.can_handle(raw):
                continue
            try:
                return adapter.adapt(raw)
            except ValueError as exc:
                raise AdaptationError(adapter.source_name, str(exc)) from exc

        raise NoAdapterFoundError(f"no event adapter for keys {sorted(raw.keys())}")
