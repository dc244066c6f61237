"""ReportContext — explicit per-request state for one report invocation.

Nothing in the engine reads process-wide state: every tunable and every
ingestion counter for a request lives on the context handed down the
pipeline, and is discarded with the response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta, tzinfo

from agent_timeline.config import Settings
from agent_timeline.foundation.clock import EPOCH_MS_THRESHOLD, zone


class IngestionStats:
    """Counters for records accepted or dropped while normalising feeds."""

    __slots__ = (
        "accepted",
        "disabled",
        "stateless",
        "untracked",
        "malformed",
        "ambiguous_identities",
    )

    def __init__(self) -> None:
        self.accepted: int = 0
        self.disabled: int = 0
        self.stateless: int = 0
        self.untracked: int = 0
        self.malformed: int = 0
        self.ambiguous_identities: int = 0

    @property
    def dropped(self) -> int:
        return self.disabled + self.stateless + self.untracked + self.malformed

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.__slots__}


@dataclass
class ReportContext:
    """Configuration and counters for a single report request."""

    tz: tzinfo = field(default_factory=lambda: zone("Asia/Dubai"))
    alignment: timedelta = timedelta(hours=1)
    no_activity_label: str = "No Activity"
    tracked_states: frozenset[str] = frozenset()
    seed_carry_from_history: bool = True
    verify_conservation: bool = True
    count_tolerance: int = 1
    duration_tolerance: int = 1
    epoch_ms_threshold: int = EPOCH_MS_THRESHOLD
    stats: IngestionStats = field(default_factory=IngestionStats)

    @classmethod
    def from_settings(cls, settings: Settings) -> ReportContext:
        return cls(
            tz=zone(settings.timezone),
            alignment=timedelta(minutes=settings.slot_minutes),
            no_activity_label=settings.no_activity_label,
            tracked_states=frozenset(settings.tracked_states),
            seed_carry_from_history=settings.seed_carry_from_history,
            verify_conservation=settings.verify_conservation,
            count_tolerance=settings.count_tolerance,
            duration_tolerance=settings.duration_tolerance,
            epoch_ms_threshold=settings.epoch_ms_threshold,
        )

    def is_tracked(self, state: str) -> bool:
        """Every state is tracked unless an explicit list was configured."""
        return not self.tracked_states or state in self.tracked_states
