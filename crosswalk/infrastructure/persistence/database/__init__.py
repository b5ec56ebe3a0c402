"""Database connection and models."""

from .db_connection import (
    create_db_engine,
    create_session_factory,
    get_engine,
    get_session,
    get_session_factory,
)
from .db_models import CrosswalkDBBase, DBMatchCacheEntry, init_db

__all__ = [
    "CrosswalkDBBase",
    "DBMatchCacheEntry",
    "create_db_engine",
    "create_session_factory",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
]
