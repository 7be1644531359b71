"""Utility modules for StationPlay"""

from .locks import KeyedLock
from .logging_setup import setup_logging, setup_logging_from_config

__all__ = [
    "KeyedLock",
    "setup_logging",
    "setup_logging_from_config",
]
