"""agent-timeline — slot-wise agent occupancy timelines and metrics.

This is the composition root.  It configures logging and wires a
ReportEngine from the environment-driven settings, for use by whatever
outer layer (HTTP handler, exporter, scheduled job) calls into it.
"""

from __future__ import annotations

import logging

from agent_timeline.config import settings
from agent_timeline.core.context import ReportContext
from agent_timeline.core.engine import ReportEngine

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)

# ── Engine ───────────────────────────────────────────────────────────────────


def _context_from_settings() -> ReportContext:
    return ReportContext.from_settings(settings)


engine = ReportEngine(context_factory=_context_from_settings)

logger.info(
    "%s ready (timezone=%s, slot=%d min)",
    settings.app_name,
    settings.timezone,
    settings.slot_minutes,
)
