"""Controlled enumerations for the agent-timeline domain.

State labels are deliberately NOT an enum: the upstream event feed emits
tenant-defined labels ("lunch", "Tea Break", ...) that cannot be known
ahead of time.  Only classification fields owned by this package live here.
"""

from __future__ import annotations

from enum import Enum


class AgentSource(str, Enum):
    """Which feed(s) an agent in the report was discovered in."""

    STATS = "stats"
    EVENTS = "events"
    EVENTS_AND_STATS = "events+stats"


class IdentityMatch(str, Enum):
    """How an aggregate row was paired with an agent's event stream."""

    EXACT = "exact"
    USERNAME = "username"
    EXTENSION = "extension"
    NONE = "none"
