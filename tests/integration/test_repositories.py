"""
Integration tests for the SQLAlchemy repositories.

Runs against in-memory SQLite with the real schema.
"""

from datetime import datetime, timedelta, timezone

import pytest

from dictation.core.auth.service import EmailAlreadyExistsError
from dictation.core.clips.models import DifficultyLevel
from dictation.infrastructure.database import (
    ClipRepository,
    Database,
    DatabaseConnectionError,
    UserRepository,
    VideoClipRow,
)


@pytest.fixture
def session(database):
    with database.session() as session:
        yield session


def add_clip_row(session, title: str, created_at: datetime, level=DifficultyLevel.BEGINNER):
    session.add(VideoClipRow(
        title=title,
        clip_url=f"mock://storage/{title}.mp4",
        difficulty_level=level,
        subtitle_text=f"{title} subtitles",
        created_at=created_at,
        updated_at=created_at,
    ))
    session.commit()


class TestDatabase:

    def test_schema_ready_after_create_all(self, database):
        assert database.schema_ready is True

    def test_create_all_failure_can_be_retried(self, tmp_path):
        directory = tmp_path / "missing"
        db = Database(f"sqlite:///{directory / 'dictation.db'}")

        with pytest.raises(DatabaseConnectionError):
            db.create_all()
        assert db.schema_ready is False

        directory.mkdir()
        db.create_all()

        assert db.schema_ready is True
        db.dispose()


class TestUserRepository:

    def test_create_and_find_by_email(self, session):
        users = UserRepository(session)

        created = users.create("joey@centralperk.com", "hash")
        found = users.get_by_email("joey@centralperk.com")

        assert found.id == created.id
        assert found.password_hash == "hash"
        assert len(created.id) == 32

    def test_lookup_is_case_sensitive(self, session):
        users = UserRepository(session)
        users.create("joey@centralperk.com", "hash")

        assert users.get_by_email("Joey@centralperk.com") is None

    def test_duplicate_email_raises_domain_error(self, session):
        users = UserRepository(session)
        users.create("joey@centralperk.com", "hash")

        with pytest.raises(EmailAlreadyExistsError):
            users.create("joey@centralperk.com", "other-hash")

        # Session is still usable after the rollback
        assert users.get_by_email("joey@centralperk.com").password_hash == "hash"


class TestClipRepository:

    def test_create_assigns_id_and_timestamps(self, session, new_clip):
        clip = ClipRepository(session).create(new_clip(difficulty_words=[{"word": "pivot"}]))

        assert clip.id
        assert clip.duration_seconds == 10
        assert clip.difficulty_words == [{"word": "pivot"}]
        assert clip.created_at is not None

        fetched = ClipRepository(session).get(clip.id)
        assert fetched.title == clip.title
        assert fetched.difficulty_level == DifficultyLevel.BEGINNER

    def test_get_unknown_id(self, session):
        assert ClipRepository(session).get("nope") is None

    def test_list_is_newest_first_with_total(self, session):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i in range(5):
            add_clip_row(session, f"clip{i}", base + timedelta(minutes=i))

        items, total = ClipRepository(session).list(limit=2, offset=1)

        assert total == 5
        assert [clip.title for clip in items] == ["clip3", "clip2"]

    def test_list_filters_by_difficulty(self, session):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        add_clip_row(session, "easy", base, DifficultyLevel.BEGINNER)
        add_clip_row(session, "hard", base + timedelta(minutes=1), DifficultyLevel.ADVANCED)

        items, total = ClipRepository(session).list(
            limit=10, offset=0, difficulty=DifficultyLevel.ADVANCED
        )

        assert total == 1
        assert [clip.title for clip in items] == ["hard"]

    def test_list_urls(self, session, new_clip):
        repo = ClipRepository(session)
        repo.create(new_clip("One"))
        repo.create(new_clip("Two"))

        assert sorted(repo.list_urls()) == ["mock://storage/one.mp4", "mock://storage/two.mp4"]
