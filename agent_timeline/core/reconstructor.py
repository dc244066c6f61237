"""TimelineReconstructor — gap-free state intervals from sparse events.

Design principles:
    1. Pure: accepts events, a slot and the carried-in state, returns a
       SlotTimeline.  No I/O, no mutation of its inputs.
    2. Total: the intervals of a slot cover it exactly, with no gaps and
       no overlaps, whatever the events look like.
    3. Sequential per agent: slots must be fed in ascending order so the
       carry-out of slot *i* can become the carry-in of slot *i+1*.

Per-slot state machine (events restricted to ``[slot.start, slot.end)``):

    no events, carry-in    → one interval with the carried state;
                             carry-out = same state at slot end
    no events, no carry-in → one "No Activity" interval; carry-out = None
    events                 → carried state fills [slot.start, first event)
                             when it exists and the first event is later
                             than slot.start; each event then lasts until
                             the next one, the last until slot end;
                             carry-out = last event's state at slot end

Adjacent intervals with identical labels are consolidated afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from agent_timeline.domain.event import NormalizedEvent
from agent_timeline.domain.timeline import CarryState, SlotTimeline, StateInterval
from agent_timeline.domain.window import Slot

logger = logging.getLogger(__name__)

DEFAULT_NO_ACTIVITY = "No Activity"


def consolidate(intervals: Sequence[StateInterval]) -> list[StateInterval]:
    """Merge runs of adjacent intervals that share a state label.

    Durations are summed.  If any member of a run is open-ended the merged
    interval is open-ended too: an unknown duration stays unknown.
    """
    merged: list[StateInterval] = []
    for interval in intervals:
        if not merged or merged[-1].state != interval.state:
            merged.append(interval)
            continue

        head = merged[-1]
        duration: timedelta | None
        if head.duration is None or interval.duration is None:
            duration = None
        else:
            duration = head.duration + interval.duration
        merged[-1] = StateInterval(
            state=head.state,
            start=head.start,
            end=interval.end,
            duration=duration,
            merged_count=head.merged_count + interval.merged_count,
        )
    return merged


class TimelineReconstructor:
    """Stateless reconstruction of per-agent occupancy timelines."""

    def __init__(self, no_activity_label: str = DEFAULT_NO_ACTIVITY) -> None:
        self._no_activity = no_activity_label

    # ── Public API ───────────────────────────────────────────────────────

    def reconstruct(
        self,
        events: Sequence[NormalizedEvent],
        slot: Slot,
        carry_in: CarryState | None = None,
    ) -> SlotTimeline:
        """Reconstruct the consolidated timeline of one slot.

        *events* is the agent's full instant-sorted sequence; only those
        inside the slot are used.
        """
        in_slot = [e for e in events if slot.contains(e.at)]

        if not in_slot:
            if carry_in is not None:
                return SlotTimeline(
                    intervals=[StateInterval.closed(carry_in.state, slot.start, slot.end)],
                    carry_out=CarryState(state=carry_in.state, at=slot.end),
                )
            return SlotTimeline(
                intervals=[StateInterval.closed(self._no_activity, slot.start, slot.end)],
                carry_out=None,
            )

        raw: list[StateInterval] = []
        first_at = in_slot[0].at
        if first_at > slot.start:
            leading = carry_in.state if carry_in is not None else self._no_activity
            raw.append(StateInterval.closed(leading, slot.start, first_at))

        for current, following in zip(in_slot, in_slot[1:] + [None]):
            end = following.at if following is not None else slot.end
            raw.append(StateInterval.closed(current.state, current.at, end))

        intervals = consolidate(raw)
        logger.debug(
            "Slot %d: %d event(s) → %d interval(s) (%d before consolidation)",
            slot.index,
            len(in_slot),
            len(intervals),
            len(raw),
        )
        return SlotTimeline(
            intervals=intervals,
            carry_out=CarryState(state=in_slot[-1].state, at=slot.end),
        )

    def reconstruct_all(
        self,
        events: Sequence[NormalizedEvent],
        slots: Sequence[Slot],
        carry_in: CarryState | None = None,
    ) -> list[SlotTimeline]:
        """Reconstruct every slot in order, threading carry-out → carry-in."""
        timelines: list[SlotTimeline] = []
        carry = carry_in
        for slot in slots:
            timeline = self.reconstruct(events, slot, carry)
            timelines.append(timeline)
            carry = timeline.carry_out
        return timelines

    @staticmethod
    def seed_carry(events: Sequence[NormalizedEvent], at: datetime) -> CarryState | None:
        """State in effect at *at*, from the latest event strictly before it."""
        prior = [e for e in events if e.at < at]
        if not prior:
            return None
        return CarryState(state=prior[-1].state, at=at)

    def span(
        self,
        events: Sequence[NormalizedEvent],
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[StateInterval]:
        """Whole-window state timeline without slotting.

        Each event lasts until the next one.  The final state has no
        observed end, so it is returned open-ended.
        """
        selected = [
            e for e in events
            if (start is None or e.at >= start) and (end is None or e.at <= end)
        ]
        raw: list[StateInterval] = []
        for current, following in zip(selected, selected[1:] + [None]):
            if following is None:
                raw.append(StateInterval.open_ended(current.state, current.at))
            else:
                raw.append(StateInterval.closed(current.state, current.at, following.at))
        return consolidate(raw)
