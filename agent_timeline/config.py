"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "agent-timeline"
    debug: bool = False
    log_level: str = "INFO"

    # Civil timezone used for parsing window bounds and formatting output
    timezone: str = "Asia/Dubai"

    # Slot partitioning
    slot_minutes: int = 60

    # Timeline reconstruction
    no_activity_label: str = "No Activity"
    tracked_states: list[str] = []
    seed_carry_from_history: bool = True

    # Metric distribution
    verify_conservation: bool = True
    count_tolerance: int = 1
    duration_tolerance: int = 1

    # Event feed timestamps below this are seconds, otherwise milliseconds
    epoch_ms_threshold: int = 10_000_000_000

    model_config = {"env_prefix": "AGENT_TIMELINE_"}


settings = Settings()
