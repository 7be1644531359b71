"""
Chained start time assignment.

chain() gives each item the start time at which its predecessor ends:
start[0] = base, start[i] = start[i-1] + duration[i-1]. It never reads the
clock, so identical inputs always produce identical schedules.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Generic, Sequence, TypeVar

from stationplay.scheduling.durations import resolve_duration
from stationplay.scheduling.index import read_field
from stationplay.scheduling.timeutils import normalize_instant

T = TypeVar("T")


@dataclass(frozen=True)
class ChainedItem(Generic[T]):
    """An item with its assigned slot in the chain."""

    item: T
    position: int
    start: datetime
    duration_seconds: int

    @property
    def end(self) -> datetime:
        return self.start + timedelta(seconds=self.duration_seconds)


def item_duration(item: Any) -> int:
    """Default duration reader: duration_seconds / duration in any encoding."""
    return resolve_duration(read_field(item, "duration"))


def chain(
    items: Sequence[T],
    base: Any,
    duration_of: Callable[[T], Any] = item_duration,
) -> list[ChainedItem[T]]:
    """
    Assign sequential start times to items from a base instant.

    Args:
        items: Items in play order.
        base: Start of the first item (any encoding normalize_instant accepts).
        duration_of: Returns an item's duration in any supported encoding.

    Returns:
        One ChainedItem per input item, in the same order.

    Raises:
        ValueError: If base is not a valid timestamp.
    """
    parsed = normalize_instant(base)
    if not parsed.valid:
        raise ValueError(f"Invalid chain base instant: {base!r}")

    chained: list[ChainedItem[T]] = []
    offset = 0
    for position, item in enumerate(items):
        duration = resolve_duration(duration_of(item))
        chained.append(
            ChainedItem(
                item=item,
                position=position,
                start=parsed.instant + timedelta(seconds=offset),
                duration_seconds=duration,
            )
        )
        offset += duration
    return chained
