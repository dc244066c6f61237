"""End-to-end tests: raw feed payloads → ReportEngine → reports."""

from datetime import datetime, timedelta, timezone

import pytest

from agent_timeline.config import Settings
from agent_timeline.core.context import ReportContext
from agent_timeline.core.engine import ReportEngine
from agent_timeline.domain.errors import InvalidWindow
from agent_timeline.domain.event import AgentKey
from agent_timeline.foundation.clock import zone

# 10:40, 11:15 and 13:00 in Asia/Dubai on 14/08/2025.
_T_1040 = int(datetime(2025, 8, 14, 6, 40, tzinfo=timezone.utc).timestamp())
_T_1115 = int(datetime(2025, 8, 14, 7, 15, tzinfo=timezone.utc).timestamp())
_T_1300 = int(datetime(2025, 8, 14, 9, 0, tzinfo=timezone.utc).timestamp())

_ALICE = AgentKey(username="alice", extension="3139")


# ── Payloads ─────────────────────────────────────────────────────────────────


def _stats() -> dict:
    return {
        "3139": {
            "name": "alice",
            "total_calls": 9,
            "answered_calls": 7,
            "talked_time": 1800,
            "wrap_up_time": "00:04:30",
            "hold_time": 90,
            "on_call_time": 2550,
            "not_available_time": 2700,
            "not_available_detailed_report": {"lunch": 2700},
        },
        "5000": {"name": "bob", "total_calls": 2, "answered_calls": 2},
    }


def _activity_events() -> list[dict]:
    return [
        {"username": "alice", "ext": "3139", "state": "lunch", "enabled": True, "Timestamp": _T_1115},
        {"username": "alice", "ext": "3139", "state": "Login", "enabled": True, "Timestamp": _T_1040},
        {"username": "alice", "ext": "3139", "state": "Login", "enabled": True, "Timestamp": _T_1300},
        {"username": "alice", "ext": "3139", "state": "none", "enabled": True, "Timestamp": _T_1300},
        {"username": "alice", "ext": "3139", "state": "lunch", "enabled": False, "Timestamp": _T_1300},
        {"username": "alice", "ext": "3139", "state": "Login"},
    ]


def _slot_events() -> list[dict]:
    return [
        {"user_id": "alice", "extension": "3139", "event_type": "Login", "timestamp": _T_1040 * 1000},
        {"user_id": "alice", "extension": "3139", "event_type": "lunch", "timestamp": _T_1115 * 1000},
        {"user_id": "alice", "extension": "3139", "event_type": "Login", "timestamp": _T_1300 * 1000},
    ]


def _engine(**overrides) -> ReportEngine:
    def factory() -> ReportContext:
        return ReportContext(tz=zone("Asia/Dubai"), **overrides)

    return ReportEngine(context_factory=factory)


# ── Slot-wise Generation ─────────────────────────────────────────────────────


class TestGenerate:
    def test_reconstructs_example_timeline(self) -> None:
        report = _engine().generate(_stats(), _activity_events(), "2025-08-14T10:30", "2025-08-14T14:45")
        alice = [r for r in report.records if r.agent == _ALICE]
        assert [r.slot.label for r in alice] == [
            "10:30 AM - 11:00 AM",
            "11:00 AM - 12:00 PM",
            "12:00 PM - 01:00 PM",
            "01:00 PM - 02:00 PM",
            "02:00 PM - 02:45 PM",
        ]
        assert [[iv.state for iv in r.intervals] for r in alice] == [
            ["No Activity", "Login"],
            ["Login", "lunch"],
            ["lunch"],
            ["Login"],
            ["Login"],
        ]

    def test_millisecond_feed_gives_same_timelines(self) -> None:
        engine = _engine()
        seconds = engine.generate(_stats(), _activity_events(), "2025-08-14T10:30", "2025-08-14T14:45")
        millis = engine.generate(_stats(), _slot_events(), "2025-08-14T10:30", "2025-08-14T14:45")
        assert [r.intervals for r in seconds.records] == [r.intervals for r in millis.records]

    def test_day_month_year_bounds(self) -> None:
        report = _engine().generate(_stats(), _slot_events(), "14/08/2025, 10:30AM", "14/08/2025, 02:45PM")
        assert report.summary.total_slots == 5
        assert report.summary.window_start == datetime(2025, 8, 14, 6, 30, tzinfo=timezone.utc)

    def test_metrics_are_conserved(self) -> None:
        report = _engine().generate(_stats(), _slot_events(), "2025-08-14T10:30", "2025-08-14T14:45")
        alice = [r.metrics for r in report.records if r.agent == _ALICE]
        assert sum(m.total_calls for m in alice) == 9
        assert sum(m.answered for m in alice) == 7
        assert sum(m.wrap_up_time for m in alice) == 270
        assert [m.on_call_time for m in alice] == [300, 600, 600, 600, 450]
        assert sum(m.not_available_breakdown["lunch"] for m in alice) == 2700
        assert {m.average_handle_time for m in alice} == {240}

    def test_summary(self) -> None:
        report = _engine().generate(_stats(), _slot_events(), "2025-08-14T10:30", "2025-08-14T14:45")
        assert report.summary.total_agents == 2
        assert report.summary.total_calls == 11
        assert report.summary.total_answered == 9
        assert report.summary.total_failed == 2
        assert report.summary.answer_rate == 81.8

    def test_ingestion_counters(self) -> None:
        report = _engine().generate(_stats(), _activity_events(), "2025-08-14T10:30", "2025-08-14T14:45")
        assert report.ingestion["accepted"] == 3
        assert report.ingestion["stateless"] == 1
        assert report.ingestion["disabled"] == 1
        assert report.ingestion["malformed"] == 1

    def test_each_call_gets_fresh_counters(self) -> None:
        engine = _engine()
        first = engine.generate(_stats(), _activity_events(), "2025-08-14T10:30", "2025-08-14T14:45")
        second = engine.generate(_stats(), _activity_events(), "2025-08-14T10:30", "2025-08-14T14:45")
        assert first.ingestion == second.ingestion

    def test_filters(self) -> None:
        report = _engine().generate(
            _stats(), _slot_events(), "2025-08-14T10:30", "2025-08-14T14:45", agent_name="BOB"
        )
        assert {r.agent.username for r in report.records} == {"bob"}
        report = _engine().generate(
            _stats(), _slot_events(), "2025-08-14T10:30", "2025-08-14T14:45", extension="313"
        )
        assert {r.agent.username for r in report.records} == {"alice"}

    def test_empty_feeds(self) -> None:
        report = _engine().generate(None, None, "2025-08-14T10:30", "2025-08-14T14:45")
        assert report.records == []
        assert report.summary.total_slots == 5

    def test_tracked_states(self) -> None:
        engine = _engine(tracked_states=frozenset({"Login"}))
        report = engine.generate(_stats(), _slot_events(), "2025-08-14T10:30", "2025-08-14T14:45")
        alice = [r for r in report.records if r.agent == _ALICE]
        assert [[iv.state for iv in r.intervals] for r in alice][1] == ["Login"]
        assert report.ingestion["untracked"] == 1

    def test_non_finite_stats_row_does_not_abort_report(self) -> None:
        stats = {"3139": {"name": "alice", "total_calls": 4}, "3140": {"name": "bob", "total_calls": "inf"}}
        report = _engine().generate(stats, [], "2025-08-14T10:30", "2025-08-14T14:45")
        assert report.summary.total_agents == 2
        assert report.summary.total_calls == 4

    def test_half_hour_slots(self) -> None:
        report = _engine(alignment=timedelta(minutes=30)).generate(
            _stats(), _slot_events(), "2025-08-14T10:30", "2025-08-14T12:00"
        )
        assert report.summary.total_slots == 3


class TestInvalidWindow:
    @pytest.mark.parametrize(
        ("start", "end"),
        [
            ("2025-08-14T10:30", "2025-08-14T10:30"),
            ("2025-08-14T14:45", "2025-08-14T10:30"),
        ],
    )
    def test_empty_or_inverted(self, start: str, end: str) -> None:
        with pytest.raises(InvalidWindow):
            _engine().generate(_stats(), _slot_events(), start, end)

    def test_unparseable_bound(self) -> None:
        with pytest.raises(ValueError):
            _engine().generate(_stats(), _slot_events(), "soon", "2025-08-14T10:30")


# ── Overview ─────────────────────────────────────────────────────────────────


class TestEngineOverview:
    def test_overview(self) -> None:
        report = _engine().overview(_stats(), _slot_events(), "2025-08-14T08:00", "2025-08-14T18:00")
        alice = next(a for a in report.agents if a.agent == _ALICE)
        assert alice.total_calls == 9
        assert [iv.state for iv in alice.states] == ["Login", "lunch", "Login"]
        assert alice.states[-1].is_open
        assert alice.first_login is not None

    def test_overview_rejects_inverted_window(self) -> None:
        with pytest.raises(InvalidWindow):
            _engine().overview(_stats(), _slot_events(), "2025-08-14T18:00", "2025-08-14T08:00")


class TestSettingsWiring:
    def test_engine_from_settings(self) -> None:
        engine = ReportEngine(settings=Settings(timezone="Asia/Dubai", slot_minutes=60))
        report = engine.generate(_stats(), _slot_events(), "2025-08-14T10:30", "2025-08-14T14:45")
        assert report.summary.total_slots == 5

    def test_settings_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AGENT_TIMELINE_SLOT_MINUTES", "30")
        monkeypatch.setenv("AGENT_TIMELINE_NO_ACTIVITY_LABEL", "Idle")
        context = ReportContext.from_settings(Settings())
        assert context.alignment.total_seconds() == 1800
        assert context.no_activity_label == "Idle"


class TestCompositionRoot:
    def test_module_engine_is_wired(self) -> None:
        from agent_timeline import main

        report = main.engine.generate(
            _stats(), _slot_events(), "2025-08-14T10:30:00+04:00", "2025-08-14T14:45:00+04:00"
        )
        assert report.summary.total_calls == 11
