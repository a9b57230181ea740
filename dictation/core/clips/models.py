"""
Domain models for video clips.

These models represent the core business concepts. They have no dependencies
on the web framework, the ORM or the storage SDK. Repositories translate
database rows into these objects and the API layer serializes them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from ..timestamps import isoformat_utc

# All clips are cut to exactly ten seconds.
CLIP_DURATION_SECONDS = 10


class DifficultyLevel(str, Enum):
    """How hard a clip is to transcribe for a learner."""
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


@dataclass
class NewVideoClip:
    """Fields needed to create a clip row. The store assigns id and timestamps."""
    title: str
    clip_url: str
    difficulty_level: DifficultyLevel
    subtitle_text: str
    description: Optional[str] = None
    difficulty_words: Optional[Any] = None
    duration_seconds: int = CLIP_DURATION_SECONDS


@dataclass
class VideoClip:
    """
    A persisted ten-second clip with its learning metadata.

    difficulty_words holds whatever JSON the uploader supplied, normally a
    list of {"word", "translation", "explanation"} objects.
    """
    id: str
    title: str
    clip_url: str
    difficulty_level: DifficultyLevel
    subtitle_text: str
    description: Optional[str] = None
    difficulty_words: Optional[Any] = None
    duration_seconds: int = CLIP_DURATION_SECONDS
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_public_dict(self) -> dict[str, Any]:
        """Wire representation with camelCase keys and ISO-8601 dates."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "clipUrl": self.clip_url,
            "durationSeconds": self.duration_seconds,
            "difficultyLevel": self.difficulty_level.value,
            "subtitleText": self.subtitle_text,
            "difficultyWords": self.difficulty_words,
            "createdAt": isoformat_utc(self.created_at),
            "updatedAt": isoformat_utc(self.updated_at),
        }


@dataclass(frozen=True)
class Pagination:
    """Pagination metadata for a list of clips."""
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "hasMore": self.has_more,
        }

