"""
Unit tests for the clip upload workflow.

Storage is the in-memory MockStorageClient and the clip store is a fake,
so the tests can observe exactly which remote calls were made.
"""

import asyncio
import re

import pytest

from dictation.core.clips.models import CLIP_DURATION_SECONDS, DifficultyLevel
from dictation.core.clips.upload import (
    UploadError,
    UploadErrorCode,
    UploadRequest,
    UploadWorkflow,
    file_extension,
    generate_storage_key,
)
from dictation.infrastructure.storage.client import MockStorageClient

VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 1024


def make_request(**overrides) -> UploadRequest:
    fields = {
        "data": VIDEO_BYTES,
        "filename": "test.mp4",
        "content_type": "video/mp4",
        "title": "The One with the Embryos",
        "description": "Quiz scene",
        "difficulty_level": "INTERMEDIATE",
        "subtitle_text": "Her favourite movie is Weekend at Bernie's!",
        "difficulty_words": None,
    }
    fields.update(overrides)
    return UploadRequest(**fields)


def run(workflow: UploadWorkflow, request: UploadRequest):
    return asyncio.run(workflow.execute(request))


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture
def workflow(storage, clip_store) -> UploadWorkflow:
    return UploadWorkflow(storage=storage, clips=clip_store)


# ---------------------------------------------------------------------------
# Happy Path
# ---------------------------------------------------------------------------

class TestSuccessfulUpload:

    def test_stores_file_and_creates_clip(self, workflow, storage, clip_store):
        clip = run(workflow, make_request())

        assert clip.duration_seconds == CLIP_DURATION_SECONDS
        assert clip.difficulty_level == DifficultyLevel.INTERMEDIATE
        assert clip.clip_url.endswith(".mp4")
        assert clip_store.created == [clip]

        key = clip.clip_url.rsplit("/", 1)[1]
        assert storage.get_object(key) == (VIDEO_BYTES, "video/mp4")

    def test_difficulty_words_are_stored_parsed(self, workflow):
        words = '[{"word": "embryo", "translation": "embrión"}]'

        clip = run(workflow, make_request(difficulty_words=words))

        assert clip.difficulty_words == [{"word": "embryo", "translation": "embrión"}]

    def test_blank_description_becomes_none(self, workflow):
        clip = run(workflow, make_request(description=""))
        assert clip.description is None

    def test_webm_keeps_its_extension(self, workflow):
        clip = run(workflow, make_request(filename="Clip.WEBM", content_type="video/webm"))
        assert clip.clip_url.endswith(".webm")


# ---------------------------------------------------------------------------
# Validation (nothing remote is touched)
# ---------------------------------------------------------------------------

class TestValidation:

    def assert_rejected(self, workflow, storage, request, code):
        with pytest.raises(UploadError) as exc_info:
            run(workflow, request)
        assert exc_info.value.code == code
        assert storage.upload_calls == 0
        return exc_info.value

    def test_missing_file(self, workflow, storage):
        error = self.assert_rejected(
            workflow, storage, make_request(data=None), UploadErrorCode.MISSING_FILE
        )
        assert error.message == "No video file provided"

    def test_unsupported_mime_type_never_reaches_storage(self, workflow, storage):
        error = self.assert_rejected(
            workflow, storage,
            make_request(content_type="video/quicktime", filename="test.mov"),
            UploadErrorCode.INVALID_FORMAT,
        )
        assert error.message.startswith("Invalid file format")

    def test_extension_must_match_allowed_list(self, workflow, storage):
        error = self.assert_rejected(
            workflow, storage,
            make_request(filename="test.avi"),
            UploadErrorCode.INVALID_FORMAT,
        )
        assert error.message.startswith("Invalid file extension")

    def test_file_too_large(self, storage, clip_store):
        workflow = UploadWorkflow(storage=storage, clips=clip_store, max_size_bytes=100)

        error = self.assert_rejected(
            workflow, storage,
            make_request(data=b"\x00" * 101),
            UploadErrorCode.FILE_TOO_LARGE,
        )
        assert "exceeds maximum allowed size" in error.message

    def test_file_at_size_limit_is_accepted(self, storage, clip_store):
        workflow = UploadWorkflow(storage=storage, clips=clip_store, max_size_bytes=100)
        run(workflow, make_request(data=b"\x00" * 100))
        assert storage.upload_calls == 1

    def test_metadata_errors_keyed_by_form_field(self, workflow, storage):
        error = self.assert_rejected(
            workflow, storage,
            make_request(title="", subtitle_text=None),
            UploadErrorCode.INVALID_METADATA,
        )

        field_errors = error.details["fieldErrors"]
        assert field_errors["title"] == ["Title is required"]
        assert field_errors["subtitleText"] == ["Subtitle text is required"]

    def test_title_longer_than_200_characters(self, workflow, storage):
        error = self.assert_rejected(
            workflow, storage,
            make_request(title="x" * 201),
            UploadErrorCode.INVALID_METADATA,
        )
        assert error.details["fieldErrors"]["title"] == ["Title too long"]

    def test_unknown_difficulty_level(self, workflow, storage):
        error = self.assert_rejected(
            workflow, storage,
            make_request(difficulty_level="EXPERT"),
            UploadErrorCode.INVALID_METADATA,
        )
        assert error.details["fieldErrors"]["difficultyLevel"] == [
            "Difficulty level must be one of: BEGINNER, INTERMEDIATE, ADVANCED"
        ]

    def test_malformed_difficulty_words(self, workflow, storage):
        error = self.assert_rejected(
            workflow, storage,
            make_request(difficulty_words="[{word: embryo}"),
            UploadErrorCode.INVALID_DIFFICULTY_WORDS,
        )
        assert error.message == "Invalid JSON format for difficulty words"


# ---------------------------------------------------------------------------
# Remote Failures
# ---------------------------------------------------------------------------

class TestRemoteFailures:

    def test_storage_failure_persists_nothing(self, workflow, storage, clip_store):
        storage.fail_uploads = True

        with pytest.raises(UploadError) as exc_info:
            run(workflow, make_request())

        assert exc_info.value.code == UploadErrorCode.STORAGE_FAILED
        assert not exc_info.value.code.is_client_error
        assert clip_store.created == []

    def test_database_failure_deletes_object_exactly_once(self, storage, failing_clip_store):
        workflow = UploadWorkflow(storage=storage, clips=failing_clip_store)

        with pytest.raises(UploadError) as exc_info:
            run(workflow, make_request())

        assert exc_info.value.code == UploadErrorCode.DATABASE_FAILED
        assert exc_info.value.details == "disk full"
        assert storage.delete_calls == 1
        assert asyncio.run(storage.list_keys()) == []

    def test_failed_cleanup_still_reports_database_failure(self, storage, failing_clip_store):
        storage.fail_deletes = True
        workflow = UploadWorkflow(storage=storage, clips=failing_clip_store)

        with pytest.raises(UploadError) as exc_info:
            run(workflow, make_request())

        assert exc_info.value.code == UploadErrorCode.DATABASE_FAILED
        assert storage.delete_calls == 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestStorageKeys:

    def test_key_format(self):
        key = generate_storage_key(".mp4")
        assert re.fullmatch(r"\d{13}-[a-z0-9]{8}\.mp4", key)

    def test_keys_are_unique(self):
        keys = {generate_storage_key(".mp4") for _ in range(100)}
        assert len(keys) == 100

    @pytest.mark.parametrize("filename,expected", [
        ("test.mp4", ".mp4"),
        ("Friends.S01E01.WEBM", ".webm"),
        ("no_extension", ""),
    ])
    def test_file_extension(self, filename, expected):
        assert file_extension(filename) == expected
