"""Event Normalizer — turns a heterogeneous event feed into per-agent sequences.

Drops, per record and never for the whole batch:
    - records no adapter understands, or that lack a timestamp / agent
      (malformed),
    - records explicitly marked disabled,
    - records whose state is empty or the "none" sentinel,
    - records whose state is not tracked, when a tracked list is configured.

Each agent's sequence is sorted by instant; identical instants keep their
feed order (``sorted`` is stable and the feed position is the tie-break).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Optional

from agent_timeline.adapters.registry import (
    AdaptationError,
    AdapterRegistry,
    NoAdapterFoundError,
)
from agent_timeline.core.context import ReportContext
from agent_timeline.domain.event import AgentKey, NormalizedEvent, RawEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentFilter:
    """Case-insensitive substring filters on agent name and extension."""

    name: Optional[str] = None
    extension: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.name and not self.extension

    def matches(self, key: AgentKey) -> bool:
        if self.name and self.name.strip().lower() not in key.username.lower():
            return False
        if self.extension and self.extension.strip().lower() not in key.extension.lower():
            return False
        return True


class EventNormalizer:
    """Groups usable events by agent, in instant order."""

    def __init__(
        self,
        context: ReportContext,
        registry: AdapterRegistry | None = None,
    ) -> None:
        self._context = context
        self._registry = registry or AdapterRegistry.default(context.epoch_ms_threshold)

    def normalize(
        self,
        raw_events: Iterable[dict[str, Any] | RawEvent],
    ) -> dict[AgentKey, list[NormalizedEvent]]:
        """Return ``{agent: [events sorted by instant]}``.

        Accepts raw feed dicts or already-adapted RawEvents.  An agent with
        no surviving events is simply absent from the result.  Every agent
        is kept; name and extension filters apply after identity resolution.
        """
        stats = self._context.stats
        grouped: dict[AgentKey, list[NormalizedEvent]] = {}

        for position, raw in enumerate(raw_events or ()):
            event = self._to_raw_event(raw, position)
            if event is None:
                stats.malformed += 1
                continue
            if not event.enabled:
                stats.disabled += 1
                continue
            if not event.has_state:
                stats.stateless += 1
                continue

            state = event.state.strip()
            if not self._context.is_tracked(state):
                stats.untracked += 1
                continue

            key = event.agent
            grouped.setdefault(key, []).append(
                NormalizedEvent(agent=key, at=event.timestamp, state=state, sequence=position)
            )
            stats.accepted += 1

        for events in grouped.values():
            events.sort(key=lambda e: (e.at, e.sequence))

        logger.debug(
            "Normalised %d event(s) for %d agent(s); dropped %d",
            stats.accepted,
            len(grouped),
            stats.dropped,
        )
        return grouped

    def _to_raw_event(self, raw: dict[str, Any] | RawEvent, position: int) -> RawEvent | None:
        if isinstance(raw, RawEvent):
            if raw.agent.is_empty:
                logger.warning("Dropping event #%d: no username or extension", position)
                return None
            return raw
        if not isinstance(raw, dict):
            logger.warning("Dropping event #%d: not an object", position)
            return None
        try:
            return self._registry.adapt(raw)
        except (AdaptationError, NoAdapterFoundError) as exc:
            logger.warning("Dropping event #%d: %s", position, exc)
            return None
