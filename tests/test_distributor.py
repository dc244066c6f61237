"""Tests for the Metric Distributor and largest-remainder apportionment."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from agent_timeline.core.distributor import MetricDistributor, apportion, slot_weights
from agent_timeline.core.partitioner import partition
from agent_timeline.domain.aggregate import AgentAggregate
from agent_timeline.domain.errors import RoundingInconsistency
from agent_timeline.domain.report import SlotMetrics

_DUBAI = ZoneInfo("Asia/Dubai")


# ── Helpers ──────────────────────────────────────────────────────────────────


def _local(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 8, 14, hour, minute, tzinfo=_DUBAI)


def _example_slots():
    return partition(_local(10, 30), _local(14, 45), timedelta(hours=1), _DUBAI)


def _equal_slots(count: int):
    return partition(_local(8), _local(8 + count), timedelta(hours=1), _DUBAI)


def _aggregate(**overrides) -> AgentAggregate:
    fields = dict(
        username="alice",
        extension="3139",
        total_calls=9,
        answered_calls=7,
        talk_time=1800,
        wrap_up_time=270,
        hold_time=90,
        on_call_time=2400,
        not_available_time=3600,
        not_available_breakdown={"lunch": 2700, "Tea Break": 900},
    )
    fields.update(overrides)
    return AgentAggregate(**fields)


# ── Apportionment ────────────────────────────────────────────────────────────


class TestApportion:
    def test_remainder_goes_to_earliest_on_tie(self) -> None:
        assert apportion(10, [1, 1, 1]) == [4, 3, 3]

    def test_largest_remainder_wins(self) -> None:
        assert apportion(3, [3, 1]) == [2, 1]

    def test_sum_is_exact(self) -> None:
        weights = [30, 60, 60, 60, 45]
        for value in (0, 1, 7, 99, 12345):
            assert sum(apportion(value, weights)) == value

    def test_zero_value(self) -> None:
        assert apportion(0, [1, 2]) == [0, 0]

    def test_zero_weights(self) -> None:
        assert apportion(5, [0, 0]) == [0, 0]

    def test_slot_weights_are_microseconds(self) -> None:
        weights = slot_weights(_example_slots())
        minute = 60 * 1_000_000
        assert weights == [30 * minute, 60 * minute, 60 * minute, 60 * minute, 45 * minute]


# ── Distribution ─────────────────────────────────────────────────────────────


class TestDistributeAll:
    def test_nine_calls_seven_answered_over_nine_slots(self) -> None:
        metrics = MetricDistributor().distribute_all(_aggregate(), _equal_slots(9))
        assert [m.total_calls for m in metrics] == [1] * 9
        assert [m.answered for m in metrics] == [1] * 7 + [0, 0]
        assert [m.failed for m in metrics] == [0] * 7 + [1, 1]

    def test_counts_and_durations_are_conserved(self) -> None:
        aggregate = _aggregate(total_calls=23, answered_calls=17)
        metrics = MetricDistributor().distribute_all(aggregate, _example_slots())
        assert sum(m.total_calls for m in metrics) == 23
        assert sum(m.answered for m in metrics) == 17
        assert sum(m.wrap_up_time for m in metrics) == aggregate.wrap_up_time
        assert sum(m.hold_time for m in metrics) == aggregate.hold_time
        assert sum(m.on_call_time for m in metrics) == aggregate.on_call_time
        assert sum(m.not_available_time for m in metrics) == aggregate.not_available_time

    def test_single_call_is_not_lost(self) -> None:
        metrics = MetricDistributor().distribute_all(
            _aggregate(total_calls=1, answered_calls=1), _example_slots()
        )
        assert [m.total_calls for m in metrics] == [0, 1, 0, 0, 0]
        assert [m.answered for m in metrics] == [0, 1, 0, 0, 0]

    def test_answered_never_exceeds_total(self) -> None:
        aggregate = _aggregate(total_calls=5, answered_calls=4)
        for metric in MetricDistributor().distribute_all(aggregate, _example_slots()):
            assert metric.answered <= metric.total_calls
            assert metric.failed == metric.total_calls - metric.answered

    def test_aggregate_answered_above_total_is_clamped(self) -> None:
        aggregate = _aggregate(total_calls=5, answered_calls=8)
        metrics = MetricDistributor().distribute_all(aggregate, _example_slots())
        assert sum(m.answered for m in metrics) == 5
        assert all(m.failed == 0 for m in metrics)

    def test_zero_durations_stay_zero(self) -> None:
        aggregate = _aggregate(wrap_up_time=0, hold_time=0, not_available_breakdown={})
        metrics = MetricDistributor().distribute_all(aggregate, _example_slots())
        assert all(m.wrap_up_time == 0 and m.hold_time == 0 for m in metrics)

    def test_no_calls_means_empty_counts(self) -> None:
        aggregate = _aggregate(total_calls=0, answered_calls=0, talk_time=0)
        metrics = MetricDistributor().distribute_all(aggregate, _example_slots())
        assert all(m.total_calls == 0 and m.average_handle_time == 0 for m in metrics)

    def test_average_handle_time_repeated_from_aggregate(self) -> None:
        metrics = MetricDistributor().distribute_all(_aggregate(), _example_slots())
        assert {m.average_handle_time for m in metrics} == {240}

    def test_breakdown_is_apportioned_per_reason(self) -> None:
        metrics = MetricDistributor().distribute_all(_aggregate(), _example_slots())
        assert sum(m.not_available_breakdown["lunch"] for m in metrics) == 2700
        assert sum(m.not_available_breakdown["Tea Break"] for m in metrics) == 900
        assert metrics[1].not_available_breakdown["lunch"] == 2700 * 60 // 255

    def test_durations_follow_slot_weights(self) -> None:
        metrics = MetricDistributor().distribute_all(
            _aggregate(on_call_time=2550), _example_slots()
        )
        assert [m.on_call_time for m in metrics] == [300, 600, 600, 600, 450]

    def test_empty_partition(self) -> None:
        assert MetricDistributor().distribute_all(_aggregate(), []) == []


class TestDistributeOne:
    def test_matches_distribute_all(self) -> None:
        slots = _example_slots()
        distributor = MetricDistributor()
        every = distributor.distribute_all(_aggregate(), slots)
        assert [distributor.distribute(_aggregate(), s, slots) for s in slots] == every

    def test_foreign_slot_rejected(self) -> None:
        slots = _example_slots()
        foreign = _equal_slots(2)[0]
        with pytest.raises(ValueError):
            MetricDistributor().distribute(_aggregate(), foreign, slots)


# ── Conservation Checks ──────────────────────────────────────────────────────


class TestVerifyConservation:
    def test_drift_beyond_tolerance_raises(self) -> None:
        metrics = [SlotMetrics(total_calls=3, answered=3), SlotMetrics(total_calls=3, answered=3)]
        with pytest.raises(RoundingInconsistency) as excinfo:
            MetricDistributor().verify_conservation(_aggregate(), metrics)
        assert excinfo.value.field == "total_calls"

    def test_drift_within_tolerance_passes(self) -> None:
        aggregate = _aggregate(
            total_calls=2, answered_calls=1, wrap_up_time=0, hold_time=0,
            on_call_time=0, not_available_time=0,
        )
        metrics = [SlotMetrics(total_calls=3, answered=1)]
        MetricDistributor().verify_conservation(aggregate, metrics)

    def test_answered_above_total_in_a_slot_raises(self) -> None:
        aggregate = _aggregate(
            total_calls=2, answered_calls=2, wrap_up_time=0, hold_time=0,
            on_call_time=0, not_available_time=0,
        )
        metrics = [SlotMetrics(total_calls=0, answered=1), SlotMetrics(total_calls=2, answered=1)]
        with pytest.raises(RoundingInconsistency):
            MetricDistributor().verify_conservation(aggregate, metrics)

    def test_clamped_answered_is_replaced_in_spare_slot(self) -> None:
        assert MetricDistributor._apportion_answered(1, [0, 2], [1, 1]) == [0, 1]
