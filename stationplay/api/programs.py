"""Live schedule edit API endpoints"""

from typing import Any

from fastapi import APIRouter, Depends

from stationplay.api.deps import get_engine, to_http_error
from stationplay.api.schemas import LoopScheduleRequest, ReorderRequest, RollForwardRequest
from stationplay.exceptions import StationPlayError
from stationplay.playout.engine import PlayoutEngine

router = APIRouter(prefix="/programs", tags=["Programs"])


@router.post("/roll-forward")
def roll_forward(
    body: RollForwardRequest,
    engine: PlayoutEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Copy programs starting in [start, end] forward by add_days."""
    try:
        inserted = engine.roll_forward(
            body.channel_id, body.start, body.end, body.add_days, body.replace
        )
    except StationPlayError as e:
        raise to_http_error(e) from e
    return {"inserted": len(inserted), "programs": [p.to_dict() for p in inserted]}


@router.post("/reorder")
def reorder(
    body: ReorderRequest,
    engine: PlayoutEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Play the channel's programs in the given order, re-chained."""
    try:
        programs = engine.reorder(body.channel_id, body.program_ids)
    except StationPlayError as e:
        raise to_http_error(e) from e
    return {"channel_id": body.channel_id, "programs": [p.to_dict() for p in programs]}


@router.post("/loop")
def loop(
    body: LoopScheduleRequest,
    engine: PlayoutEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Repeat the channel's opening template after the end of its schedule."""
    try:
        inserted = engine.loop_schedule(
            body.channel_id, body.blocks, body.template_hours, body.max_inserts
        )
    except StationPlayError as e:
        raise to_http_error(e) from e
    return {
        "channel_id": body.channel_id,
        "inserted": len(inserted),
        "programs": [p.to_dict() for p in inserted],
    }
