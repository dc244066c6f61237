"""Canonical event models — the contract between feed adapters and the engine.

A RawEvent is one state-change notification as the upstream feed reported
it, already mapped onto explicit fields.  A NormalizedEvent is what
survives the Event Normalizer: a real state, a resolved agent key and a
feed position used to keep ordering stable for identical instants.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

NO_STATE_SENTINEL = "none"


# ── Agent Key ────────────────────────────────────────────────────────────────

class AgentKey(BaseModel):
    """Identity of one agent: the (username, extension) pair.

    Either half may be empty when a feed only supplies the other.
    """

    username: str = ""
    extension: str = ""

    model_config = {"frozen": True}

    @field_validator("username", "extension", mode="before")
    @classmethod
    def coerce_to_text(cls, v: object) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @property
    def is_empty(self) -> bool:
        return not self.username and not self.extension

    def __str__(self) -> str:
        return f"{self.username}_{self.extension}"


# ── Raw Event ────────────────────────────────────────────────────────────────

class RawEvent(BaseModel):
    """One state-change notification from the event feed, mapped to fields."""

    username: Optional[str] = None
    extension: Optional[str] = None
    timestamp: datetime = Field(..., description="When the state change happened (UTC-aware)")
    state: Optional[str] = Field(default=None, description="Free-form state label")
    event: Optional[str] = Field(default=None, description="Upstream event type, e.g. agent_not_avail_state")
    enabled: bool = True

    model_config = {"frozen": True}

    @field_validator("username", "extension", mode="before")
    @classmethod
    def coerce_identity(cls, v: object) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return v

    @property
    def agent(self) -> AgentKey:
        return AgentKey(username=self.username or "", extension=self.extension or "")

    @property
    def has_state(self) -> bool:
        """False for empty labels and the upstream "none" sentinel."""
        if self.state is None:
            return False
        label = self.state.strip()
        return bool(label) and label.lower() != NO_STATE_SENTINEL


# ── Normalized Event ─────────────────────────────────────────────────────────

class NormalizedEvent(BaseModel):
    """A usable state change for one agent, ready for reconstruction."""

    agent: AgentKey
    at: datetime
    state: str = Field(..., min_length=1)
    sequence: int = Field(..., ge=0, description="Position in the original feed")

    model_config = {"frozen": True}
