"""Database layer - engine, session scope and declarative base classes."""

from asset_kernel.db.base import Base, VersionedBase
from asset_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "VersionedBase",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
