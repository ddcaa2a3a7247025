"""
Record store layer for access points.

This package provides:
- The SQLAlchemy model for the ``access_points`` table
- Engine, session-factory and session-scope builders
- ``RecordStore``, the envelope-returning store adapter
"""

from accesspoint_sync.database.base import Base, build_engine, build_session_factory, init_db
from accesspoint_sync.database.models import AccessPointRow
from accesspoint_sync.database.record_store import RecordStore
from accesspoint_sync.database.session import make_session_scope

__all__ = [
    "AccessPointRow",
    "Base",
    "RecordStore",
    "build_engine",
    "build_session_factory",
    "init_db",
    "make_session_scope",
]
