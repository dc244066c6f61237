from agent_timeline.domain.aggregate import AgentAggregate
from agent_timeline.domain.event import AgentKey, NormalizedEvent, RawEvent
from agent_timeline.domain.report import ReportRecord, SlotMetrics, SlotReport
from agent_timeline.domain.timeline import CarryState, SlotTimeline, StateInterval
from agent_timeline.domain.window import Slot

__all__ = [
    "AgentAggregate",
    "AgentKey",
    "CarryState",
    "NormalizedEvent",
    "RawEvent",
    "ReportRecord",
    "Slot",
    "SlotMetrics",
    "SlotReport",
    "SlotTimeline",
    "StateInterval",
]
