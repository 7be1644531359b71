"""Health check API endpoint for StationPlay"""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends

from stationplay import __version__
from stationplay.api.deps import get_engine
from stationplay.database.connection import check_db
from stationplay.playout.engine import PlayoutEngine

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check(engine: PlayoutEngine = Depends(get_engine)) -> dict[str, Any]:
    """
    Health check with database status.

    Returns:
        dict: Overall status, version and component status
    """
    database = check_db(engine.session_factory)
    return {
        "status": "healthy" if database["status"] == "ok" else "degraded",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {"database": database},
    }
