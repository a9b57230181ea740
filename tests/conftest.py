"""
Shared pytest fixtures.

Unit tests build core objects directly. Integration tests run the real
FastAPI app against in-memory SQLite and the in-memory storage client;
nothing leaves the process.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from dictation.api.dependencies import get_database, get_storage_client
from dictation.config.settings import Settings
from dictation.core.auth.models import SessionUser
from dictation.core.auth.sessions import SessionManager
from dictation.core.clips.models import DifficultyLevel, NewVideoClip, VideoClip
from dictation.infrastructure.database import Database
from dictation.infrastructure.storage.client import MockStorageClient
from dictation.main import create_app

TEST_SECRET = "test-secret-key"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeClipStore:
    """In-memory ClipStore. Set fail_with to make create() raise."""

    def __init__(self, fail_with: Optional[Exception] = None) -> None:
        self.fail_with = fail_with
        self.created: list[VideoClip] = []

    def create(self, clip: NewVideoClip) -> VideoClip:
        if self.fail_with is not None:
            raise self.fail_with
        now = datetime.now(timezone.utc)
        record = VideoClip(
            id=f"clip-{len(self.created) + 1}",
            title=clip.title,
            description=clip.description,
            clip_url=clip.clip_url,
            duration_seconds=clip.duration_seconds,
            difficulty_level=clip.difficulty_level,
            subtitle_text=clip.subtitle_text,
            difficulty_words=clip.difficulty_words,
            created_at=now,
            updated_at=now,
        )
        self.created.append(record)
        return record


def make_new_clip(title: str = "The One Where Ross Says Pivot", **overrides) -> NewVideoClip:
    fields = {
        "title": title,
        "clip_url": f"mock://storage/{title.lower().replace(' ', '-')}.mp4",
        "difficulty_level": DifficultyLevel.BEGINNER,
        "subtitle_text": "Pivot! Pivot! Pivot!",
    }
    fields.update(overrides)
    return NewVideoClip(**fields)


@pytest.fixture
def clip_store() -> FakeClipStore:
    return FakeClipStore()


@pytest.fixture
def failing_clip_store() -> FakeClipStore:
    return FakeClipStore(fail_with=RuntimeError("disk full"))


@pytest.fixture
def new_clip():
    """Factory for NewVideoClip values with sensible defaults."""
    return make_new_clip

# ---------------------------------------------------------------------------
# Application Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        database_url="sqlite://",
        jwt_secret_key=TEST_SECRET,
        bcrypt_rounds=4,
        r2_mock_mode=True,
        r2_public_url="mock://storage",
        cors_origins="http://localhost:3000",
    )


@pytest.fixture
def database(settings: Settings):
    db = Database(settings.database_url)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture
def app(settings, database, storage):
    app = create_app(settings)
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_storage_client] = lambda: storage
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Bearer header for a signed-in user, without touching the database."""
    sessions = SessionManager(secret_key=TEST_SECRET)
    token = sessions.issue(SessionUser(id="user-1", email="monica@centralperk.com")).token
    return {"Authorization": f"Bearer {token}"}
