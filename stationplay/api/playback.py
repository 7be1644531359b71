"""Viewer-facing playback API endpoints"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from stationplay.api.deps import get_clock, get_engine
from stationplay.api.schemas import PlaybackFailureReport
from stationplay.clock import Clock
from stationplay.playout.engine import PlayoutEngine
from stationplay.playout.fallback import StandbyReason
from stationplay.scheduling.timeutils import normalize_instant

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Playback"])


def _resolve_at(at: str | None, clock: Clock):
    """Explicit ?at= instant, or the clock's now."""
    if at is None:
        return clock.now()
    parsed = normalize_instant(at)
    if not parsed.valid:
        raise HTTPException(status_code=422, detail=f"Invalid instant: {at}")
    return parsed.instant


@router.get("/now")
def now_playing(
    at: str | None = None,
    engine: PlayoutEngine = Depends(get_engine),
    clock: Clock = Depends(get_clock),
) -> list[dict[str, Any]]:
    """What every channel is playing now (or at ?at=)."""
    return [r.to_dict() for r in engine.resolve_all(_resolve_at(at, clock))]


@router.get("/channels/{channel_id}/now")
def channel_now(
    channel_id: int,
    at: str | None = None,
    engine: PlayoutEngine = Depends(get_engine),
    clock: Clock = Depends(get_clock),
) -> dict[str, Any]:
    """
    What one channel is playing.

    Returns:
        dict: state, active and next program, media reference and offset
    """
    resolution = engine.resolve_now(channel_id, _resolve_at(at, clock))
    if resolution.reason == StandbyReason.CHANNEL_NOT_FOUND:
        raise HTTPException(status_code=404, detail=f"Channel not found: {channel_id}")
    return resolution.to_dict()


@router.post("/channels/{channel_id}/playback-failure", status_code=202)
def playback_failure(
    channel_id: int,
    report: PlaybackFailureReport,
    engine: PlayoutEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Player could not play a program; the channel falls back to standby."""
    engine.report_playback_failure(channel_id, report.program_id)
    return {"channel_id": channel_id, "program_id": report.program_id, "accepted": True}


@router.get("/guide")
def guide(
    at: str | None = None,
    engine: PlayoutEngine = Depends(get_engine),
    clock: Clock = Depends(get_clock),
) -> list[dict[str, Any]]:
    """Per-channel guide lines: live, on now, upcoming or standby."""
    return [row.to_dict() for row in engine.resolve_guide(_resolve_at(at, clock))]
