"""ReportAssembler — joins aggregates, timelines and distributed metrics.

For every agent that survives the filters:
    - the Timeline Reconstructor runs once per slot, in slot order, with
      carry-out threaded into the next slot's carry-in;
    - the Metric Distributor runs over the same slots, independently of
      the timeline.

Filters are applied after identity resolution and before any
reconstruction work.  The summary is computed by summing the records.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

from agent_timeline.core.context import ReportContext
from agent_timeline.core.correlation import ResolvedAgent, resolve_agents
from agent_timeline.core.distributor import MetricDistributor
from agent_timeline.core.normalizer import AgentFilter
from agent_timeline.core.reconstructor import TimelineReconstructor
from agent_timeline.domain.aggregate import AgentAggregate
from agent_timeline.domain.event import AgentKey, NormalizedEvent
from agent_timeline.domain.report import (
    AgentOverview,
    OverviewReport,
    ReportRecord,
    ReportSummary,
    SlotReport,
)
from agent_timeline.domain.window import Slot
from agent_timeline.foundation.clock import utc_now

logger = logging.getLogger(__name__)

_LOGIN_STATES = frozenset({"available", "login"})
_LOGOFF_STATES = frozenset({"logoff", "logout"})


def answer_rate(answered: int, total: int) -> float:
    """Answered share of total calls in percent, one decimal; 0.0 without calls."""
    if total <= 0:
        return 0.0
    return round(answered / total * 100.0, 1)


class ReportAssembler:
    """Builds slot-wise reports and whole-window overviews."""

    def __init__(
        self,
        context: ReportContext,
        reconstructor: TimelineReconstructor | None = None,
        distributor: MetricDistributor | None = None,
    ) -> None:
        self._context = context
        self._reconstructor = reconstructor or TimelineReconstructor(context.no_activity_label)
        self._distributor = distributor or MetricDistributor(
            verify=context.verify_conservation,
            count_tolerance=context.count_tolerance,
            duration_tolerance=context.duration_tolerance,
        )

    # ── Slot-wise report ─────────────────────────────────────────────────

    def assemble(
        self,
        agents: Iterable[AgentAggregate],
        events: Mapping[AgentKey, list[NormalizedEvent]],
        slots: Sequence[Slot],
        filters: AgentFilter | None = None,
    ) -> SlotReport:
        """One ReportRecord per (agent, slot), plus the window summary."""
        if not slots:
            raise ValueError("cannot assemble a report without slots")

        selected = self._select(agents, events, filters)
        records: list[ReportRecord] = []
        for agent in selected:
            records.extend(self._agent_records(agent, slots))

        summary = self._summarise(records, slots[0].start, slots[-1].end, len(slots))
        logger.info(
            "Assembled %d record(s) for %d agent(s) across %d slot(s)",
            len(records),
            summary.total_agents,
            len(slots),
        )
        return SlotReport(
            records=records,
            slots=list(slots),
            summary=summary,
            ingestion=self._context.stats.to_dict(),
            generated_at=utc_now(),
        )

    def _agent_records(self, agent: ResolvedAgent, slots: Sequence[Slot]) -> list[ReportRecord]:
        carry = None
        if self._context.seed_carry_from_history:
            carry = self._reconstructor.seed_carry(agent.events, slots[0].start)

        timelines = self._reconstructor.reconstruct_all(agent.events, slots, carry)
        metrics = self._distributor.distribute_all(agent.aggregate, slots)

        return [
            ReportRecord(
                agent=agent.key,
                source=agent.source,
                match=agent.match,
                slot=slot,
                intervals=timeline.intervals,
                metrics=slot_metrics,
            )
            for slot, timeline, slot_metrics in zip(slots, timelines, metrics)
        ]

    @staticmethod
    def _summarise(
        records: Sequence[ReportRecord],
        window_start: datetime,
        window_end: datetime,
        slot_count: int,
    ) -> ReportSummary:
        total = sum(r.metrics.total_calls for r in records)
        answered = sum(r.metrics.answered for r in records)
        return ReportSummary(
            window_start=window_start,
            window_end=window_end,
            total_agents=len({r.agent for r in records}),
            total_slots=slot_count,
            total_state_intervals=sum(len(r.intervals) for r in records),
            total_calls=total,
            total_answered=answered,
            total_failed=sum(r.metrics.failed for r in records),
            answer_rate=answer_rate(answered, total),
        )

    # ── Whole-window overview ────────────────────────────────────────────

    def overview(
        self,
        agents: Iterable[AgentAggregate],
        events: Mapping[AgentKey, list[NormalizedEvent]],
        window_start: datetime,
        window_end: datetime,
        filters: AgentFilter | None = None,
    ) -> OverviewReport:
        """Per-agent totals and an unslotted state timeline for the window."""
        overviews = [
            self._agent_overview(agent, window_start, window_end)
            for agent in self._select(agents, events, filters)
        ]
        total = sum(o.total_calls for o in overviews)
        answered = sum(o.answered for o in overviews)
        summary = ReportSummary(
            window_start=window_start,
            window_end=window_end,
            total_agents=len({o.agent for o in overviews}),
            total_slots=0,
            total_state_intervals=sum(len(o.states) for o in overviews),
            total_calls=total,
            total_answered=answered,
            total_failed=sum(o.failed for o in overviews),
            answer_rate=answer_rate(answered, total),
        )
        return OverviewReport(agents=overviews, summary=summary, generated_at=utc_now())

    def _agent_overview(
        self,
        agent: ResolvedAgent,
        window_start: datetime,
        window_end: datetime,
    ) -> AgentOverview:
        aggregate = agent.aggregate
        answered = min(aggregate.answered_calls, aggregate.total_calls)
        in_window = [e for e in agent.events if window_start <= e.at <= window_end]

        logins = [e.at for e in in_window if e.state.lower() in _LOGIN_STATES]
        logoffs = [e.at for e in in_window if e.state.lower() in _LOGOFF_STATES]
        first_login = min(logins) if logins else None
        last_logoff = max(logoffs) if logoffs else None
        logged_in = 0
        if first_login is not None and last_logoff is not None and last_logoff > first_login:
            logged_in = int((last_logoff - first_login).total_seconds())

        return AgentOverview(
            agent=agent.key,
            source=agent.source,
            total_calls=aggregate.total_calls,
            answered=answered,
            failed=aggregate.total_calls - answered,
            wrap_up_time=aggregate.wrap_up_time,
            hold_time=aggregate.hold_time,
            on_call_time=aggregate.on_call_time,
            not_available_time=aggregate.not_available_time,
            not_available_breakdown=dict(aggregate.not_available_breakdown),
            average_handle_time=aggregate.average_handle_time,
            states=self._reconstructor.span(in_window),
            first_login=first_login,
            last_logoff=last_logoff,
            logged_in_seconds=logged_in,
        )

    # ── Internals ────────────────────────────────────────────────────────

    def _select(
        self,
        agents: Iterable[AgentAggregate],
        events: Mapping[AgentKey, list[NormalizedEvent]],
        filters: AgentFilter | None,
    ) -> list[ResolvedAgent]:
        resolved = resolve_agents(agents, events, self._context)
        if filters is None or filters.is_empty:
            return resolved
        kept = [agent for agent in resolved if filters.matches(agent.key)]
        logger.debug("Filters kept %d of %d agent(s)", len(kept), len(resolved))
        return kept
