"""
StationPlay - Scheduled multi-channel playout engine

Keeps a set of channels on air from a timetable of programs:
- Normalizes timestamps and durations from any source
- Resolves what is playing now (and next) per channel
- Chains program start times from a base instant
- Draft/publish workflow for editing a day before it goes live
- Standby and live override fallback for viewers
"""

__version__ = "1.0.0"
__author__ = "StationPlay Contributors"
__license__ = "MIT"

from stationplay.config import get_config, load_config

__all__ = [
    "__version__",
    "get_config",
    "load_config",
]
