"""ReportFormatter — deterministic plain-text rendering of reports.

Produces consistent, structured output suitable for logs and debugging.
Instants are shown in the configured civil timezone; durations as
``HH:MM:SS``; open-ended states as ``CONTINUED``.
"""

from __future__ import annotations

from datetime import tzinfo

from agent_timeline.domain.report import OverviewReport, SlotReport
from agent_timeline.domain.timeline import StateInterval
from agent_timeline.foundation.clock import format_local, format_local_time
from agent_timeline.foundation.durations import format_duration

CONTINUED = "CONTINUED"


class ReportFormatter:
    """Plain-text renderer bound to one display timezone."""

    def __init__(self, tz: tzinfo) -> None:
        self._tz = tz

    def format_interval(self, interval: StateInterval) -> str:
        start = format_local_time(interval.start, self._tz)
        if interval.is_open or interval.end is None:
            return f"{interval.state}: {start} → {CONTINUED}"
        end = format_local_time(interval.end, self._tz)
        seconds = interval.duration.total_seconds() if interval.duration is not None else 0
        return f"{interval.state}: {start} → {end} ({format_duration(seconds)})"

    def format_plain(self, report: SlotReport) -> str:
        """Slot-wise report: summary header, then one block per (agent, slot)."""
        s = report.summary
        lines = ["SLOT-WISE AGENT ACTIVITY REPORT", "=" * 50]
        lines.append(
            f"Window: {format_local(s.window_start, self._tz)} to {format_local(s.window_end, self._tz)}"
        )
        lines.append(f"Agents: {s.total_agents} | Slots: {s.total_slots}")
        lines.append(
            f"Calls: {s.total_calls} | Answered: {s.total_answered} | "
            f"Failed: {s.total_failed} | Answer rate: {s.answer_rate:.1f}%"
        )
        lines.append("")

        for record in report.records:
            m = record.metrics
            lines.append(
                f"--- {record.agent.username} ({record.agent.extension}) "
                f"slot {record.slot.number}: {record.slot.label or record.slot.start.isoformat()} ---"
            )
            lines.append(f"  Calls: {m.total_calls} | Answered: {m.answered} | Failed: {m.failed}")
            lines.append(
                f"  Wrap-up: {format_duration(m.wrap_up_time)} | Hold: {format_duration(m.hold_time)} | "
                f"On call: {format_duration(m.on_call_time)} | "
                f"Not available: {format_duration(m.not_available_time)} | "
                f"AHT: {format_duration(m.average_handle_time)}"
            )
            for interval in record.intervals:
                lines.append(f"  • {self.format_interval(interval)}")
            lines.append("")

        return "\n".join(lines)

    def format_overview(self, report: OverviewReport) -> str:
        """Whole-window overview, one block per agent."""
        s = report.summary
        lines = ["AGENT ACTIVITY OVERVIEW", "=" * 50]
        lines.append(
            f"Window: {format_local(s.window_start, self._tz)} to {format_local(s.window_end, self._tz)}"
        )
        lines.append(f"Agents: {s.total_agents}")
        lines.append(
            f"Calls: {s.total_calls} | Answered: {s.total_answered} | "
            f"Failed: {s.total_failed} | Answer rate: {s.answer_rate:.1f}%"
        )
        lines.append("")

        for agent in report.agents:
            lines.append(f"--- {agent.agent.username} ({agent.agent.extension}) ---")
            lines.append(
                f"  Calls: {agent.total_calls} | Answered: {agent.answered} | Failed: {agent.failed}"
            )
            lines.append(
                f"  AHT: {format_duration(agent.average_handle_time)} | "
                f"On call: {format_duration(agent.on_call_time)} | "
                f"Hold: {format_duration(agent.hold_time)}"
            )
            if agent.not_available_breakdown:
                reasons = " | ".join(
                    f"{reason}: {format_duration(seconds)}"
                    for reason, seconds in agent.not_available_breakdown.items()
                )
                lines.append(f"  Not available: {reasons}")
            if agent.first_login is not None:
                lines.append(f"  First login: {format_local(agent.first_login, self._tz)}")
            if agent.last_logoff is not None:
                lines.append(f"  Last logoff: {format_local(agent.last_logoff, self._tz)}")
            for interval in agent.states:
                lines.append(f"  • {self.format_interval(interval)}")
            lines.append("")

        return "\n".join(lines)
