"""Relational persistence for users and clips (SQLAlchemy)."""

from .client import Database, DatabaseConnectionError, create_database_engine
from .models import Base, UserRow, VideoClipRow
from .repositories import ClipRepository, UserRepository

__all__ = [
    "Base",
    "ClipRepository",
    "Database",
    "DatabaseConnectionError",
    "UserRepository",
    "UserRow",
    "VideoClipRow",
    "create_database_engine",
]
