"""
Channel Database Model

A channel plays its scheduled programs, loops its standby media when
nothing is on, and can be switched to a live feed by an override signal.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stationplay.database.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from stationplay.database.models.program import Program


class Channel(Base, TimestampMixin):
    """
    Channel model.

    override_active is an independent signal (for example "the live feed
    is broadcasting right now"); it only takes effect on channels flagged
    is_special_override.
    """

    __tablename__ = "channels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Looped whenever no program is active
    standby_media_reference: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Live override
    is_special_override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    override_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    programs: Mapped[list["Program"]] = relationship(
        "Program",
        back_populates="channel",
        cascade="all, delete-orphan",
        order_by="Program.start_instant",
    )

    def __repr__(self) -> str:
        return f"<Channel {self.id}: {self.name}>"
