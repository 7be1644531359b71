"""Pydantic request models for the StationPlay API"""

from typing import Any

from pydantic import BaseModel, Field

from stationplay.playout.edits import DEFAULT_MAX_INSERTS, DEFAULT_TEMPLATE_HOURS


class PlaybackFailureReport(BaseModel):
    program_id: int | str


class RescheduleRequest(BaseModel):
    channel_id: int | str  # A channel id, or "ALL" for apply-to-all
    day: str  # YYYY-MM-DD (UTC)
    time_of_day: str | None = None  # HH:MM[:SS]; defaults to the configured base time


class DraftKey(BaseModel):
    channel_id: int
    day: str


class DraftProgramIn(BaseModel):
    title: str = Field(min_length=1)
    media_reference: str = ""
    duration: int | float | str | None = None  # Seconds, "HH:MM:SS", "MM:SS" or "PT1H30M"
    poster_url: str | None = None
    sort_index: int | None = None


class DraftSaveRequest(DraftKey):
    base_instant: str | None = None  # Defaults to the day's base time
    programs: list[DraftProgramIn] = Field(default_factory=list)


class RollForwardRequest(BaseModel):
    channel_id: int
    start: str
    end: str
    add_days: int
    replace: bool = False


class ReorderRequest(BaseModel):
    channel_id: int
    program_ids: list[int]


class LoopScheduleRequest(BaseModel):
    channel_id: int
    blocks: int = Field(gt=0)  # Template repeats to append
    template_hours: int = Field(default=DEFAULT_TEMPLATE_HOURS, gt=0)
    max_inserts: int = Field(default=DEFAULT_MAX_INSERTS, gt=0)


def draft_rows(programs: list[DraftProgramIn]) -> list[dict[str, Any]]:
    """Draft rows as plain dicts for DraftPublishWorkflow.save_draft."""
    return [p.model_dump() for p in programs]
