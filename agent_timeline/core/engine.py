"""ReportEngine — one entry point from raw feed payloads to finished reports.

The engine itself holds no per-request state.  Every call builds a fresh
ReportContext, so concurrent report requests never share counters or
buffers.

Pipeline:
    window bounds → Slot Partitioner
    stats payload → StatsFeedAdapter → AgentAggregates
    event payload → Event Normalizer → per-agent event sequences
    all of the above → Report Assembler
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any, Union

from agent_timeline.adapters.stats import StatsFeedAdapter
from agent_timeline.config import Settings
from agent_timeline.core.assembler import ReportAssembler
from agent_timeline.core.context import ReportContext
from agent_timeline.core.normalizer import AgentFilter, EventNormalizer
from agent_timeline.core.partitioner import partition
from agent_timeline.domain.errors import InvalidWindow
from agent_timeline.domain.report import OverviewReport, SlotReport
from agent_timeline.foundation.clock import parse_local

logger = logging.getLogger(__name__)

WindowBound = Union[str, datetime]
StatsPayload = Union[Mapping[str, Any], Iterable[dict[str, Any]], None]
EventPayload = Union[Iterable[dict[str, Any]], None]


class ReportEngine:
    """Stateless façade over the partitioner, normalizer and assembler.

    Args:
        context_factory: Builds the per-request ReportContext.  Defaults to
            one derived from *settings*.
        settings: Used only when *context_factory* is omitted.
    """

    def __init__(
        self,
        context_factory: Callable[[], ReportContext] | None = None,
        settings: Settings | None = None,
    ) -> None:
        if context_factory is None:
            resolved = settings or Settings()

            def context_factory() -> ReportContext:
                return ReportContext.from_settings(resolved)

        self._context_factory = context_factory
        self._stats_adapter = StatsFeedAdapter()

    # ── Public API ───────────────────────────────────────────────────────

    def generate(
        self,
        stats: StatsPayload,
        events: EventPayload,
        start: WindowBound,
        end: WindowBound,
        agent_name: str | None = None,
        extension: str | None = None,
    ) -> SlotReport:
        """Slot-wise report for ``[start, end)``.

        Raises:
            InvalidWindow: If ``end <= start``.
            ValueError: If a bound string cannot be parsed.
            RoundingInconsistency: If distribution drifts (a bug signal).
        """
        context = self._context_factory()
        window_start, window_end = self._window(start, end, context)
        logger.info(
            "Generating slot-wise report %s → %s",
            window_start.isoformat(),
            window_end.isoformat(),
        )

        slots = partition(window_start, window_end, context.alignment, context.tz)
        aggregates = self._stats_adapter.adapt_all(stats)
        grouped = EventNormalizer(context).normalize(events or ())
        filters = AgentFilter(name=agent_name, extension=extension)

        report = ReportAssembler(context).assemble(aggregates, grouped, slots, filters)
        logger.info(
            "Slot-wise report ready: %d agent(s), %d slot(s), %d call(s), %d event(s) dropped",
            report.summary.total_agents,
            report.summary.total_slots,
            report.summary.total_calls,
            context.stats.dropped,
        )
        return report

    def overview(
        self,
        stats: StatsPayload,
        events: EventPayload,
        start: WindowBound,
        end: WindowBound,
        agent_name: str | None = None,
        extension: str | None = None,
    ) -> OverviewReport:
        """Whole-window per-agent report, without slotting."""
        context = self._context_factory()
        window_start, window_end = self._window(start, end, context)
        logger.info(
            "Generating overview %s → %s",
            window_start.isoformat(),
            window_end.isoformat(),
        )

        aggregates = self._stats_adapter.adapt_all(stats)
        grouped = EventNormalizer(context).normalize(events or ())
        filters = AgentFilter(name=agent_name, extension=extension)
        return ReportAssembler(context).overview(
            aggregates, grouped, window_start, window_end, filters
        )

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _window(start: WindowBound, end: WindowBound, context: ReportContext) -> tuple[datetime, datetime]:
        window_start = parse_local(start, context.tz)
        window_end = parse_local(end, context.tz)
        if window_end <= window_start:
            raise InvalidWindow(
                f"window end {window_end.isoformat()} is not after start {window_start.isoformat()}"
            )
        return window_start, window_end
