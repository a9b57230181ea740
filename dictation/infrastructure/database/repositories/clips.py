"""
Repository for video clips.

The repository:
1. Translates between VideoClipRow and the VideoClip domain model
2. Encapsulates every query against video_clips
3. Gives the application a clean interface in domain terms
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ....core.clips.models import DifficultyLevel, NewVideoClip, VideoClip
from ..models import VideoClipRow

logger = logging.getLogger(__name__)


class ClipRepository:
    """
    Repository for clip persistence.

    - create: insert a clip after its file is in storage
    - get: load one clip by id
    - list: one page of clips, newest first, plus the total match count
    - list_urls: every stored clip URL, for storage reconciliation
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, clip: NewVideoClip) -> VideoClip:
        row = VideoClipRow(
            title=clip.title,
            description=clip.description,
            clip_url=clip.clip_url,
            duration_seconds=clip.duration_seconds,
            difficulty_level=clip.difficulty_level,
            subtitle_text=clip.subtitle_text,
            difficulty_words=clip.difficulty_words,
        )
        self._session.add(row)

        try:
            self._session.commit()
        except Exception as e:
            self._session.rollback()
            logger.error(
                "Failed to create clip",
                extra={"clip_url": clip.clip_url, "error": str(e)}
            )
            raise

        return self._to_domain(row)

    def get(self, clip_id: str) -> Optional[VideoClip]:
        row = self._session.get(VideoClipRow, clip_id)
        return self._to_domain(row) if row else None

    def list_urls(self) -> list[str]:
        return list(self._session.execute(select(VideoClipRow.clip_url)).scalars().all())

    def list(
        self,
        limit: int,
        offset: int,
        difficulty: Optional[DifficultyLevel] = None,
    ) -> tuple[list[VideoClip], int]:
        """
        Return (page, total) ordered by created_at descending.

        total counts every clip matching the filter, not just this page.
        Order among clips with identical created_at is unspecified.
        """
        query = select(VideoClipRow)
        count_query = select(func.count()).select_from(VideoClipRow)

        if difficulty is not None:
            query = query.where(VideoClipRow.difficulty_level == difficulty)
            count_query = count_query.where(VideoClipRow.difficulty_level == difficulty)

        rows = self._session.execute(
            query.order_by(VideoClipRow.created_at.desc()).limit(limit).offset(offset)
        ).scalars().all()
        total = self._session.execute(count_query).scalar_one()

        return [self._to_domain(row) for row in rows], total

    @staticmethod
    def _to_domain(row: VideoClipRow) -> VideoClip:
        return VideoClip(
            id=row.id,
            title=row.title,
            description=row.description,
            clip_url=row.clip_url,
            duration_seconds=row.duration_seconds,
            difficulty_level=row.difficulty_level,
            subtitle_text=row.subtitle_text,
            difficulty_words=row.difficulty_words,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
