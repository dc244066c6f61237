"""Slot — one contiguous piece of the reporting window.

Slots from a single partition are ordered, contiguous and non-overlapping,
and together cover exactly [window start, window end).
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, Field, model_validator


class Slot(BaseModel):
    """Immutable reporting slot."""

    index: int = Field(..., ge=0, description="0-based position within the partition")
    start: datetime
    end: datetime
    label: str = Field(default="", description="Local wall-clock label, e.g. '10:30 AM - 11:00 AM'")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def end_after_start(self) -> Slot:
        if self.end <= self.start:
            raise ValueError("slot end must be after slot start")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def number(self) -> int:
        """1-based ordinal, as shown to users."""
        return self.index + 1

    def contains(self, instant: datetime) -> bool:
        """Half-open membership: ``start <= instant < end``."""
        return self.start <= instant < self.end
