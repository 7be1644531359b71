"""
StationPlay Database Module

Provides SQLAlchemy models, session management and repositories.
"""

from stationplay.database.connection import (
    SessionFactory,
    check_db,
    close_db,
    create_db_engine,
    create_session_factory,
    get_session_factory,
    init_db,
    session_scope,
)
from stationplay.database.models import (
    Base,
    Channel,
    DraftProgram,
    Program,
    SchedulePublication,
)
from stationplay.database.repositories import (
    ChannelInfo,
    ChannelRepository,
    DraftRepository,
    ProgramRepository,
    PublicationRepository,
    SqlChannelRepository,
    SqlDraftRepository,
    SqlProgramRepository,
    SqlPublicationRepository,
    StaleVersionError,
    StartAssignment,
)

__all__ = [
    # Connection
    "SessionFactory",
    "check_db",
    "close_db",
    "create_db_engine",
    "create_session_factory",
    "get_session_factory",
    "init_db",
    "session_scope",
    # Models
    "Base",
    "Channel",
    "DraftProgram",
    "Program",
    "SchedulePublication",
    # Repositories
    "ChannelInfo",
    "ChannelRepository",
    "DraftRepository",
    "ProgramRepository",
    "PublicationRepository",
    "SqlChannelRepository",
    "SqlDraftRepository",
    "SqlProgramRepository",
    "SqlPublicationRepository",
    "StaleVersionError",
    "StartAssignment",
]
