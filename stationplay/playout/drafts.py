"""
Draft and publish workflow.

Each (channel, UTC day) has at most one draft: an ordered list of programs
that viewers never see. Editors load the live day into the draft, save
edited rows (start times are re-chained from a base instant on every save)
and finally publish, which swaps the live rows of that day for the draft
rows in a single transaction.

Publishing is all-or-nothing. Concurrent publishes of the same key are
serialized in-process by a keyed lock, and across processes by the
publication version check inside the transaction.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

from stationplay.database.connection import SessionFactory, session_scope
from stationplay.database.repositories import (
    SqlChannelRepository,
    SqlDraftRepository,
    SqlProgramRepository,
    SqlPublicationRepository,
)
from stationplay.exceptions import ChannelNotFoundError, InvalidScheduleInputError, PublishError
from stationplay.scheduling.chain import chain
from stationplay.scheduling.durations import resolve_duration
from stationplay.scheduling.index import read_field
from stationplay.scheduling.timeutils import day_bounds, normalize_instant, parse_day, to_iso
from stationplay.utils.locks import KeyedLock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DraftRow:
    """A stored draft program, detached from the session."""

    id: int
    channel_id: int
    day: date
    title: str
    media_reference: str
    start: datetime
    duration_seconds: int
    sort_index: int
    poster_url: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "channel_id": self.channel_id,
            "day": self.day.isoformat(),
            "title": self.title,
            "media_reference": self.media_reference,
            "start_instant": to_iso(self.start),
            "duration_seconds": self.duration_seconds,
            "sort_index": self.sort_index,
            "poster_url": self.poster_url,
        }


def _require_day(day: Any) -> date:
    parsed = parse_day(day)
    if parsed is None:
        raise InvalidScheduleInputError(f"Invalid day (expected YYYY-MM-DD): {day!r}")
    return parsed


def _draft_sort_key(indexed: tuple[int, Any]) -> tuple[int, int]:
    position, row = indexed
    sort_index = read_field(row, "sort_index")
    try:
        return (int(sort_index) if sort_index is not None else 0, position)
    except (TypeError, ValueError):
        return (0, position)


class DraftPublishWorkflow:
    """Load, save and publish per-day drafts."""

    def __init__(self, session_factory: SessionFactory, locks: Optional[KeyedLock] = None):
        self.session_factory = session_factory
        self.locks = locks or KeyedLock()

    def _check_channel(self, session, channel_id: Any) -> None:
        if SqlChannelRepository(session).get(channel_id) is None:
            raise ChannelNotFoundError(channel_id)

    def load_from_published(self, channel_id: Any, day: Any) -> int:
        """
        Copy the live programs of a day into the draft, replacing any draft.

        Returns:
            Number of programs copied.
        """
        day = _require_day(day)
        start, end = day_bounds(day)

        with session_scope(self.session_factory) as session:
            self._check_channel(session, channel_id)
            live = SqlProgramRepository(session).list_for_channel(channel_id, start, end)
            rows = [
                {
                    "title": p.title,
                    "media_reference": p.media_reference,
                    "poster_url": p.poster_url,
                    "start_instant": normalize_instant(p.start_instant).instant,
                    "duration_seconds": p.duration_seconds,
                    "sort_index": position,
                }
                for position, p in enumerate(live)
            ]
            copied = SqlDraftRepository(session).replace(channel_id, day, rows)

        logger.info(f"Loaded {copied} published programs into draft for channel {channel_id} on {day}")
        return copied

    def get_draft(self, channel_id: Any, day: Any) -> list[DraftRow]:
        """Draft rows of (channel, day) in play order."""
        day = _require_day(day)
        with session_scope(self.session_factory) as session:
            self._check_channel(session, channel_id)
            return [
                DraftRow(
                    id=d.id,
                    channel_id=d.channel_id,
                    day=d.day,
                    title=d.title,
                    media_reference=d.media_reference,
                    start=normalize_instant(d.start_instant).instant,
                    duration_seconds=d.duration_seconds,
                    sort_index=d.sort_index,
                    poster_url=d.poster_url,
                )
                for d in SqlDraftRepository(session).list_rows(channel_id, day)
            ]

    def save_draft(self, channel_id: Any, day: Any, base: Any, rows: Iterable[Any]) -> int:
        """
        Replace the draft with rows, chained from base.

        Rows are ordered by their sort_index (input order breaks ties) and
        renumbered 0..n-1. Durations may use any supported encoding.

        Returns:
            Number of rows stored.
        """
        day = _require_day(day)
        parsed_base = normalize_instant(base)
        if not parsed_base.valid:
            raise InvalidScheduleInputError(f"Invalid base instant: {base!r}")

        ordered = [row for _, row in sorted(enumerate(rows), key=_draft_sort_key)]
        for row in ordered:
            if not str(read_field(row, "title", "")).strip():
                raise InvalidScheduleInputError("Every draft row needs a title")

        chained = chain(ordered, parsed_base.instant)
        prepared = [
            {
                "title": str(read_field(slot.item, "title")),
                "media_reference": str(read_field(slot.item, "media_reference", "")),
                "poster_url": read_field(slot.item, "poster_url"),
                "start_instant": slot.start,
                "duration_seconds": slot.duration_seconds,
                "sort_index": slot.position,
            }
            for slot in chained
        ]

        with session_scope(self.session_factory) as session:
            self._check_channel(session, channel_id)
            saved = SqlDraftRepository(session).replace(channel_id, day, prepared)

        logger.info(
            f"Saved draft for channel {channel_id} on {day}: {saved} rows from {to_iso(parsed_base.instant)}"
        )
        return saved

    def publish(self, channel_id: Any, day: Any) -> int:
        """
        Make the draft the live schedule of (channel, day).

        Deletes the live rows starting inside the day and inserts the draft
        rows in one transaction. Either all of it commits or none of it.

        Returns:
            Number of programs published.

        Raises:
            ChannelNotFoundError: If the channel does not exist.
            PublishError: If the draft is empty or the swap failed; the live
                schedule is left exactly as it was.
        """
        day = _require_day(day)
        start, end = day_bounds(day)

        with self.locks.hold((str(channel_id), day)):
            try:
                with session_scope(self.session_factory) as session:
                    self._check_channel(session, channel_id)
                    publications = SqlPublicationRepository(session)
                    version = publications.current_version(channel_id, day)

                    drafts = SqlDraftRepository(session).list_rows(channel_id, day)
                    if not drafts:
                        raise PublishError(channel_id, day, "draft is empty")

                    rows = [
                        {
                            "channel_id": int(channel_id),
                            "title": d.title,
                            "media_reference": d.media_reference,
                            "poster_url": d.poster_url,
                            "start_instant": normalize_instant(d.start_instant).instant,
                            "duration_seconds": resolve_duration(d.duration_seconds),
                            "sort_index": d.sort_index,
                        }
                        for d in drafts
                    ]

                    programs = SqlProgramRepository(session)
                    removed = programs.delete_window(channel_id, start, end)
                    published = len(programs.insert(rows))
                    new_version = publications.advance(
                        channel_id, day, version, published, datetime.now(timezone.utc)
                    )
            except (ChannelNotFoundError, PublishError):
                raise
            except Exception as e:
                logger.exception(f"Publish failed for channel {channel_id} on {day}")
                raise PublishError(channel_id, day, f"{type(e).__name__}: {e}") from e

        logger.info(
            f"Published channel {channel_id} on {day} as version {new_version}: "
            f"{published} programs (replaced {removed})"
        )
        return published
