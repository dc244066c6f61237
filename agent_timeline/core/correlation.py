"""Agent identity resolution between the stats feed and the event feed.

The two feeds do not always agree on which extension belongs to a
username.  Pairing follows one ordered, best-effort policy:

    1. exact     — same (username, extension) pair.
    2. username  — same username, different extension.  The event feed's
                   extension is shown; the aggregate is still attached.
                   Counted as an ambiguous identity.
    3. extension — events carry only an extension, and it matches.

Each rule is applied to every aggregate before the next one is tried,
and each event group is claimed at most once, so an aggregate is never
attached to two agents.  Event groups nobody claims become event-only
agents with zero statistics.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from agent_timeline.core.context import ReportContext
from agent_timeline.domain.aggregate import AgentAggregate
from agent_timeline.domain.enums import AgentSource, IdentityMatch
from agent_timeline.domain.event import AgentKey, NormalizedEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedAgent:
    """One agent of the report with its aggregate and event stream."""

    key: AgentKey
    aggregate: AgentAggregate
    events: tuple[NormalizedEvent, ...]
    source: AgentSource
    match: IdentityMatch


def resolve_agents(
    aggregates: Iterable[AgentAggregate],
    events_by_agent: Mapping[AgentKey, list[NormalizedEvent]],
    context: ReportContext,
) -> list[ResolvedAgent]:
    """Pair every aggregate with its event stream; stats order first.

    Each rule runs over all aggregates before the next, looser rule is
    tried, so a username fallback never takes a group that another
    aggregate owns by exact key.
    """
    candidates = [a for a in aggregates if not a.key.is_empty]
    unclaimed: dict[AgentKey, list[NormalizedEvent]] = dict(events_by_agent)
    claims: dict[int, tuple[AgentKey, IdentityMatch]] = {}

    for match in (IdentityMatch.EXACT, IdentityMatch.USERNAME, IdentityMatch.EXTENSION):
        for position, aggregate in enumerate(candidates):
            if position in claims:
                continue
            group_key = _find_group(aggregate.key, unclaimed, match)
            if group_key is not None:
                claims[position] = (group_key, match)
                unclaimed.pop(group_key)

    resolved: list[ResolvedAgent] = []
    for position, aggregate in enumerate(candidates):
        key = aggregate.key
        if position not in claims:
            resolved.append(
                ResolvedAgent(key, aggregate, (), AgentSource.STATS, IdentityMatch.NONE)
            )
            continue

        group_key, match = claims[position]
        events = tuple(events_by_agent[group_key])
        display = group_key
        if match is IdentityMatch.USERNAME and not group_key.extension:
            display = key
        elif match is IdentityMatch.USERNAME and key.extension:
            context.stats.ambiguous_identities += 1
            logger.info(
                "Agent %s: stats extension %r, events extension %r; showing events",
                key.username,
                key.extension,
                group_key.extension,
            )
        elif match is IdentityMatch.EXTENSION:
            display = key

        resolved.append(
            ResolvedAgent(display, aggregate, events, AgentSource.EVENTS_AND_STATS, match)
        )

    for group_key, events in unclaimed.items():
        resolved.append(
            ResolvedAgent(
                group_key,
                AgentAggregate.empty(group_key),
                tuple(events),
                AgentSource.EVENTS,
                IdentityMatch.NONE,
            )
        )

    logger.debug("Resolved %d agent(s)", len(resolved))
    return resolved


def _find_group(
    key: AgentKey,
    groups: Mapping[AgentKey, list[NormalizedEvent]],
    match: IdentityMatch,
) -> AgentKey | None:
    if match is IdentityMatch.EXACT:
        return key if key in groups else None

    if match is IdentityMatch.USERNAME and key.username:
        for candidate in groups:
            if candidate.username == key.username:
                return candidate

    if match is IdentityMatch.EXTENSION and key.extension:
        for candidate in groups:
            if not candidate.username and candidate.extension == key.extension:
                return candidate

    return None
