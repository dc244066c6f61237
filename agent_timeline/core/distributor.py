"""MetricDistributor — apportions whole-window aggregates across slots.

Weights:
    weight(slot) = slot.duration / sum(slot.duration for slot in slots)

Rounding (largest remainder, exact integer arithmetic):
    Every slot first takes floor(value * weight).  The units still missing
    from the total go, one each, to the slots with the largest fractional
    remainders; ties go to the earlier slot.  Per-field sums therefore
    reproduce the aggregate exactly, and any non-zero count lands in at
    least one slot (non-zero preservation).

Counts:
    answered is clamped to total, first on the aggregate and then per
    slot; answered units removed by the per-slot clamp are placed again in
    slots that still have unanswered calls, so the answered sum is kept.
    failed = total - answered.

Durations:
    Same apportionment, in whole seconds.  No non-zero floor: a true zero
    stays zero.

Average handle time:
    Taken once from the aggregate and repeated on every slot — it is a
    rate, not an additive quantity.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import timedelta

from agent_timeline.domain.aggregate import AgentAggregate
from agent_timeline.domain.errors import RoundingInconsistency
from agent_timeline.domain.report import SlotMetrics
from agent_timeline.domain.window import Slot

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)

_DURATION_FIELDS = ("wrap_up_time", "hold_time", "on_call_time", "not_available_time")


def apportion(value: int, weights: Sequence[int]) -> list[int]:
    """Split *value* into integer shares proportional to integer *weights*.

    Returns a list the same length as *weights* whose sum is exactly
    *value* (when the weights sum to a positive number).
    """
    total_weight = sum(weights)
    if value <= 0 or total_weight <= 0:
        return [0] * len(weights)

    shares: list[int] = []
    remainders: list[int] = []
    for weight in weights:
        share, remainder = divmod(value * weight, total_weight)
        shares.append(share)
        remainders.append(remainder)

    missing = value - sum(shares)
    ranked = sorted(range(len(weights)), key=lambda i: (-remainders[i], i))
    for i in ranked[:missing]:
        shares[i] += 1
    return shares


def slot_weights(slots: Sequence[Slot]) -> list[int]:
    """Slot durations as integer microsecond weights."""
    return [slot.duration // _TICK for slot in slots]


class MetricDistributor:
    """Stateless distribution of AgentAggregates over a slot partition.

    Args:
        verify: Check conservation after every distribution and raise
            RoundingInconsistency on drift.
        count_tolerance: Allowed drift per count field.
        duration_tolerance: Allowed drift (seconds) per duration field.
    """

    def __init__(
        self,
        verify: bool = True,
        count_tolerance: int = 1,
        duration_tolerance: int = 1,
    ) -> None:
        self._verify = verify
        self._count_tolerance = count_tolerance
        self._duration_tolerance = duration_tolerance

    # ── Public API ───────────────────────────────────────────────────────

    def distribute(
        self,
        aggregate: AgentAggregate,
        slot: Slot,
        all_slots: Sequence[Slot],
    ) -> SlotMetrics:
        """Metrics of *aggregate* attributable to *slot* of the partition."""
        for position, candidate in enumerate(all_slots):
            if candidate.index == slot.index and candidate.start == slot.start:
                return self.distribute_all(aggregate, all_slots)[position]
        raise ValueError(f"slot {slot.index} is not part of the given partition")

    def distribute_all(
        self,
        aggregate: AgentAggregate,
        slots: Sequence[Slot],
    ) -> list[SlotMetrics]:
        """Metrics for every slot of the partition, in slot order."""
        if not slots:
            return []

        weights = slot_weights(slots)
        answered_total = aggregate.answered_calls
        if answered_total > aggregate.total_calls:
            logger.warning(
                "Agent %s reports %d answered of %d calls; clamping answered",
                aggregate.key,
                answered_total,
                aggregate.total_calls,
            )
            answered_total = aggregate.total_calls

        totals = apportion(aggregate.total_calls, weights)
        answered = self._apportion_answered(answered_total, totals, weights)
        durations = {
            name: apportion(getattr(aggregate, name), weights) for name in _DURATION_FIELDS
        }
        breakdown = {
            reason: apportion(seconds, weights)
            for reason, seconds in aggregate.not_available_breakdown.items()
        }
        aht = aggregate.average_handle_time

        metrics = [
            SlotMetrics(
                total_calls=totals[i],
                answered=answered[i],
                failed=max(0, totals[i] - answered[i]),
                wrap_up_time=durations["wrap_up_time"][i],
                hold_time=durations["hold_time"][i],
                on_call_time=durations["on_call_time"][i],
                not_available_time=durations["not_available_time"][i],
                not_available_breakdown={r: shares[i] for r, shares in breakdown.items()},
                average_handle_time=aht,
            )
            for i in range(len(slots))
        ]

        if self._verify:
            self.verify_conservation(aggregate, metrics)
        return metrics

    def verify_conservation(
        self,
        aggregate: AgentAggregate,
        metrics: Sequence[SlotMetrics],
    ) -> None:
        """Raise RoundingInconsistency if slot sums drift from the aggregate."""
        expected_answered = min(aggregate.answered_calls, aggregate.total_calls)
        checks = [
            ("total_calls", aggregate.total_calls, sum(m.total_calls for m in metrics), self._count_tolerance),
            ("answered", expected_answered, sum(m.answered for m in metrics), self._count_tolerance),
        ]
        checks += [
            (name, getattr(aggregate, name), sum(getattr(m, name) for m in metrics), self._duration_tolerance)
            for name in _DURATION_FIELDS
        ]
        for name, expected, actual, tolerance in checks:
            if abs(expected - actual) > tolerance:
                raise RoundingInconsistency(name, expected, actual, tolerance)

        for m in metrics:
            if m.answered > m.total_calls:
                raise RoundingInconsistency("answered<=total_calls", m.total_calls, m.answered, 0)

    # ── Internals ────────────────────────────────────────────────────────

    @staticmethod
    def _apportion_answered(value: int, totals: list[int], weights: Sequence[int]) -> list[int]:
        answered = apportion(value, weights)
        overflow = 0
        for i, total in enumerate(totals):
            if answered[i] > total:
                overflow += answered[i] - total
                answered[i] = total

        # Re-place clamped units where calls are still unanswered, favouring
        # the heaviest slots; capacity always suffices since value <= sum(totals).
        order = sorted(range(len(totals)), key=lambda i: (-weights[i], i))
        while overflow > 0:
            placed = False
            for i in order:
                if overflow == 0:
                    break
                if answered[i] < totals[i]:
                    answered[i] += 1
                    overflow -= 1
                    placed = True
            if not placed:
                break
        return answered
