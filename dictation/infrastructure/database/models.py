"""
SQLAlchemy ORM tables.

users holds accounts; video_clips holds clip metadata. Ids are opaque
strings generated by the application, so they never reveal row counts.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import declarative_base

from ...core.clips.models import CLIP_DURATION_SECONDS, DifficultyLevel

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRow(Base):
    """users table."""

    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_id)

    # Matched case-sensitively, exactly as submitted at signup
    email = Column(String(255), unique=True, index=True, nullable=False)

    password_hash = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class VideoClipRow(Base):
    """video_clips table."""

    __tablename__ = "video_clips"

    id = Column(String(32), primary_key=True, default=_new_id)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    # Public CDN URL of the object in storage
    clip_url = Column(String(1000), nullable=False)

    duration_seconds = Column(Integer, nullable=False, default=CLIP_DURATION_SECONDS)
    difficulty_level = Column(
        Enum(DifficultyLevel, name="difficulty_level"),
        nullable=False,
        index=True,
    )
    subtitle_text = Column(Text, nullable=False)

    # [{word, translation?, explanation?}, ...]
    difficulty_words = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
