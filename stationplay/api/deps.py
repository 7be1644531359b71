"""Request dependencies shared by the StationPlay routers"""

from fastapi import HTTPException, Request

from stationplay.clock import Clock
from stationplay.exceptions import (
    ChannelNotFoundError,
    InvalidScheduleInputError,
    PublishError,
    StationPlayError,
)
from stationplay.playout.engine import PlayoutEngine


def get_engine(request: Request) -> PlayoutEngine:
    """The PlayoutEngine created at startup."""
    return request.app.state.engine


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def to_http_error(error: StationPlayError) -> HTTPException:
    """Map an engine error to the HTTP status the API reports."""
    if isinstance(error, ChannelNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidScheduleInputError):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, PublishError):
        return HTTPException(
            status_code=409,
            detail={
                "channel_id": error.channel_id,
                "day": error.day.isoformat(),
                "reason": error.reason,
            },
        )
    return HTTPException(status_code=500, detail=str(error))
