"""Database layer."""

from vigil.db.engine import Database
from vigil.db.models import Base, UTCDateTime, WatchRecord

__all__ = [
    # Engine
    "Database",
    # Models
    "Base",
    "UTCDateTime",
    "WatchRecord",
]
