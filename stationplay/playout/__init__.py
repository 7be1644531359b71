"""
StationPlay Playout Module

Stateful operations over the stored schedule.

Components:
- PlayoutEngine: entry point for resolution, reschedule, drafts and edits
- PlaybackFallbackPolicy: LIVE_OVERRIDE / PROGRAM_ACTIVE / STANDBY decision
- RescheduleOperation: chained reschedule preview and apply
- DraftPublishWorkflow: per-day drafts and atomic publish
"""

from .drafts import DraftPublishWorkflow, DraftRow
from .edits import loop_schedule, reorder_programs, roll_forward
from .engine import ALL_CHANNELS, GuideRow, GuideStatus, PlayoutEngine, guide_row
from .fallback import PlaybackFallbackPolicy, PlaybackState, Resolution, StandbyReason
from .reschedule import (
    ChannelOutcome,
    RescheduleOperation,
    RescheduleReport,
    RescheduleRow,
    plan_chain,
    resolve_base,
)

__all__ = [
    # Engine
    "ALL_CHANNELS",
    "GuideRow",
    "GuideStatus",
    "PlayoutEngine",
    "guide_row",
    # Fallback
    "PlaybackFallbackPolicy",
    "PlaybackState",
    "Resolution",
    "StandbyReason",
    # Reschedule
    "ChannelOutcome",
    "RescheduleOperation",
    "RescheduleReport",
    "RescheduleRow",
    "plan_chain",
    "resolve_base",
    # Drafts
    "DraftPublishWorkflow",
    "DraftRow",
    # Edits
    "loop_schedule",
    "reorder_programs",
    "roll_forward",
]
