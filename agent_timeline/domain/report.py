"""Report models returned to callers (HTTP handlers, exporters, renderers).

All of these are frozen and serialise directly with ``model_dump()``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from agent_timeline.domain.enums import AgentSource, IdentityMatch
from agent_timeline.domain.event import AgentKey
from agent_timeline.domain.timeline import StateInterval
from agent_timeline.domain.window import Slot


# ── Slot Metrics ─────────────────────────────────────────────────────────────

class SlotMetrics(BaseModel):
    """One agent's share of the aggregate statistics for one slot.

    Durations are whole seconds.  ``average_handle_time`` is a rate taken
    from the whole-window aggregate and repeated on every slot.
    """

    total_calls: int = Field(default=0, ge=0)
    answered: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    wrap_up_time: int = Field(default=0, ge=0)
    hold_time: int = Field(default=0, ge=0)
    on_call_time: int = Field(default=0, ge=0)
    not_available_time: int = Field(default=0, ge=0)
    not_available_breakdown: dict[str, int] = Field(default_factory=dict)
    average_handle_time: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


# ── Slot Report ──────────────────────────────────────────────────────────────

class ReportRecord(BaseModel):
    """The reconstructed timeline and metrics for one (agent, slot) pair."""

    agent: AgentKey
    source: AgentSource
    match: IdentityMatch = IdentityMatch.NONE
    slot: Slot
    intervals: list[StateInterval]
    metrics: SlotMetrics

    model_config = {"frozen": True}


class ReportSummary(BaseModel):
    """Window-level totals, computed by summing ReportRecords."""

    window_start: datetime
    window_end: datetime
    total_agents: int = 0
    total_slots: int = 0
    total_state_intervals: int = 0
    total_calls: int = 0
    total_answered: int = 0
    total_failed: int = 0
    answer_rate: float = Field(default=0.0, description="Answered / total calls, in percent (1 decimal)")

    model_config = {"frozen": True}


class SlotReport(BaseModel):
    """Full slot-wise report: one record per (agent, slot) plus a summary."""

    records: list[ReportRecord]
    slots: list[Slot]
    summary: ReportSummary
    ingestion: dict[str, int] = Field(default_factory=dict, description="Dropped/accepted event counters")
    generated_at: datetime

    model_config = {"frozen": True}


# ── Whole-Window Overview ────────────────────────────────────────────────────

class AgentOverview(BaseModel):
    """Whole-window view of one agent, without slotting."""

    agent: AgentKey
    source: AgentSource
    total_calls: int = 0
    answered: int = 0
    failed: int = 0
    wrap_up_time: int = 0
    hold_time: int = 0
    on_call_time: int = 0
    not_available_time: int = 0
    not_available_breakdown: dict[str, int] = Field(default_factory=dict)
    average_handle_time: int = 0
    states: list[StateInterval] = Field(default_factory=list)
    first_login: Optional[datetime] = None
    last_logoff: Optional[datetime] = None
    logged_in_seconds: int = 0

    model_config = {"frozen": True}


class OverviewReport(BaseModel):
    """Whole-window report for every agent that passed the filters."""

    agents: list[AgentOverview]
    summary: ReportSummary
    generated_at: datetime

    model_config = {"frozen": True}
