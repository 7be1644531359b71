"""Reschedule and draft/publish API endpoints"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from stationplay.api.deps import get_engine, to_http_error
from stationplay.api.schemas import DraftKey, DraftSaveRequest, RescheduleRequest, draft_rows
from stationplay.exceptions import StationPlayError
from stationplay.playout.engine import PlayoutEngine
from stationplay.playout.reschedule import resolve_base

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scheduler"])


@router.post("/reschedule/preview")
def preview_reschedule(
    body: RescheduleRequest,
    engine: PlayoutEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Would-be start times for a channel; nothing is written."""
    try:
        rows = engine.preview_reschedule(body.channel_id, body.day, body.time_of_day)
    except StationPlayError as e:
        raise to_http_error(e) from e
    return {
        "channel_id": body.channel_id,
        "day": body.day,
        "count": len(rows),
        "programs": [row.to_dict() for row in rows],
    }


@router.post("/reschedule/apply")
def apply_reschedule(
    body: RescheduleRequest,
    engine: PlayoutEngine = Depends(get_engine),
) -> dict[str, Any]:
    """
    Persist chained start times.

    channel_id "ALL" reschedules every channel independently and reports
    per channel; a failing channel does not fail the request.
    """
    try:
        result = engine.apply_reschedule(body.channel_id, body.day, body.time_of_day)
    except StationPlayError as e:
        raise to_http_error(e) from e

    if isinstance(result, int):
        return {"channel_id": body.channel_id, "day": body.day, "affected": result}
    return result.to_dict()


@router.get("/scheduler/draft")
def get_draft(
    channel_id: int,
    day: str,
    engine: PlayoutEngine = Depends(get_engine),
) -> dict[str, Any]:
    try:
        rows = engine.get_draft(channel_id, day)
    except StationPlayError as e:
        raise to_http_error(e) from e
    return {
        "channel_id": channel_id,
        "day": day,
        "count": len(rows),
        "programs": [row.to_dict() for row in rows],
    }


@router.post("/scheduler/draft")
def save_draft(
    body: DraftSaveRequest,
    engine: PlayoutEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Replace the draft; start times are chained from base_instant."""
    try:
        base = body.base_instant
        if base is None:
            _, base = resolve_base(body.day, None, engine.config.scheduling.default_base_time)
        saved = engine.save_draft(body.channel_id, body.day, base, draft_rows(body.programs))
    except StationPlayError as e:
        raise to_http_error(e) from e
    return {"channel_id": body.channel_id, "day": body.day, "saved": saved}


@router.post("/scheduler/load-from-published")
def load_from_published(
    body: DraftKey,
    engine: PlayoutEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Copy the live programs of the day into the draft."""
    try:
        copied = engine.load_draft(body.channel_id, body.day)
    except StationPlayError as e:
        raise to_http_error(e) from e
    return {"channel_id": body.channel_id, "day": body.day, "copied": copied}


@router.post("/scheduler/publish")
def publish(
    body: DraftKey,
    engine: PlayoutEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Swap the live day for the draft, all or nothing."""
    try:
        published = engine.publish_draft(body.channel_id, body.day)
    except StationPlayError as e:
        raise to_http_error(e) from e
    return {"channel_id": body.channel_id, "day": body.day, "published": published}
