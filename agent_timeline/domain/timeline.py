"""Timeline models produced by the Timeline Reconstructor.

These are pure data structures.  A StateInterval whose ``end`` and
``duration`` are None is open-ended: the state was still in effect when
the observed data ran out, so its length is unknown (not zero).
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field


class StateInterval(BaseModel):
    """A span of time during which an agent was in one state."""

    state: str
    start: datetime
    end: Optional[datetime] = None
    duration: Optional[timedelta] = None
    merged_count: int = Field(default=1, ge=1, description="How many raw intervals were consolidated")

    model_config = {"frozen": True}

    @property
    def is_open(self) -> bool:
        return self.duration is None

    @classmethod
    def closed(cls, state: str, start: datetime, end: datetime) -> StateInterval:
        return cls(state=state, start=start, end=end, duration=end - start)

    @classmethod
    def open_ended(cls, state: str, start: datetime) -> StateInterval:
        return cls(state=state, start=start)


class CarryState(BaseModel):
    """The state still in effect at a slot boundary."""

    state: str
    at: datetime

    model_config = {"frozen": True}


class SlotTimeline(BaseModel):
    """Reconstruction result for one (agent, slot) pair."""

    intervals: list[StateInterval]
    carry_out: Optional[CarryState] = None

    model_config = {"frozen": True}

    @property
    def total_duration(self) -> timedelta:
        return sum(
            (iv.duration for iv in self.intervals if iv.duration is not None),
            timedelta(0),
        )
