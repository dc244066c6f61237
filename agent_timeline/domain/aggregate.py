"""AgentAggregate — whole-window statistics for one agent.

Produced by the stats feed adapter, which isolates all field-name
variance at the boundary.  Durations are whole seconds.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from agent_timeline.domain.event import AgentKey


class AgentAggregate(BaseModel):
    """Scalar statistics summed over the entire requested window.

    ``answered_calls <= total_calls`` is NOT assumed here; the Metric
    Distributor enforces it when apportioning.
    """

    username: str = ""
    extension: str = ""
    total_calls: int = Field(default=0, ge=0)
    answered_calls: int = Field(default=0, ge=0)
    talk_time: int = Field(default=0, ge=0, description="Seconds spent talking")
    wrap_up_time: int = Field(default=0, ge=0)
    hold_time: int = Field(default=0, ge=0)
    on_call_time: int = Field(default=0, ge=0)
    not_available_time: int = Field(default=0, ge=0)
    not_available_breakdown: dict[str, int] = Field(
        default_factory=dict,
        description="Not-available seconds per reason (Login, lunch, break, ...)",
    )

    model_config = {"frozen": True}

    @property
    def key(self) -> AgentKey:
        return AgentKey(username=self.username, extension=self.extension)

    @property
    def failed_calls(self) -> int:
        return max(0, self.total_calls - self.answered_calls)

    @property
    def average_handle_time(self) -> int:
        """``(talk + wrap-up + hold) / total calls`` in whole seconds, 0 without calls."""
        if self.total_calls <= 0:
            return 0
        return (self.talk_time + self.wrap_up_time + self.hold_time) // self.total_calls

    @classmethod
    def empty(cls, key: AgentKey) -> AgentAggregate:
        """Zero statistics for an agent that only appears in the event feed."""
        return cls(username=key.username, extension=key.extension)
