"""
Clip upload workflow.

An upload touches two systems that share no transaction:
1. Validate the payload and its metadata (cheap, local)
2. Write the video to object storage
3. Write the clip row to the database
4. If step 3 fails, delete the object written in step 2

Step 4 is best effort. If the delete itself fails the object is orphaned;
scripts/reconcile_storage.py finds such objects later.

The workflow is framework-agnostic. Storage and persistence are injected,
so tests can hand in fakes and the HTTP layer only maps error codes to
status codes.
"""

import json
import logging
import secrets
import string
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from .models import DifficultyLevel, NewVideoClip, VideoClip
from ..validation import collect_field_errors

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024
ALLOWED_MIME_TYPES = ("video/mp4", "video/webm")
ALLOWED_EXTENSIONS = (".mp4", ".webm")

_KEY_ALPHABET = string.ascii_lowercase + string.digits


class UploadErrorCode(str, Enum):
    """Why an upload was rejected. Values are the wire error codes."""
    MISSING_FILE = "CLIP_UPLOAD_MISSING_FILE"
    INVALID_FORMAT = "CLIP_UPLOAD_INVALID_FORMAT"
    FILE_TOO_LARGE = "CLIP_UPLOAD_FILE_TOO_LARGE"
    INVALID_METADATA = "CLIP_UPLOAD_INVALID_METADATA"
    INVALID_DIFFICULTY_WORDS = "CLIP_UPLOAD_INVALID_DIFFICULTY_WORDS"
    STORAGE_FAILED = "CLIP_UPLOAD_STORAGE_FAILED"
    DATABASE_FAILED = "CLIP_UPLOAD_DATABASE_FAILED"

    @property
    def is_client_error(self) -> bool:
        return self not in (UploadErrorCode.STORAGE_FAILED, UploadErrorCode.DATABASE_FAILED)


class UploadError(Exception):
    """Raised when an upload cannot be completed."""

    def __init__(
        self,
        code: UploadErrorCode,
        message: str,
        details: Optional[Any] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"{code.value}: {message}")


class ObjectStorage(Protocol):
    """The slice of the storage client the workflow needs."""

    async def upload_object(self, data: bytes, key: str, content_type: str) -> str:
        """Store data under key and return its public URL."""
        ...

    async def delete_object(self, key: str) -> None:
        ...


class ClipStore(Protocol):
    """The slice of the clip repository the workflow needs."""

    def create(self, clip: NewVideoClip) -> VideoClip:
        ...


@dataclass
class UploadRequest:
    """
    A clip upload as received from the client.

    data is None when no file part was sent. Metadata fields are the raw
    form values; validation happens inside the workflow.
    """
    data: Optional[bytes]
    filename: str = ""
    content_type: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    difficulty_level: Optional[str] = None
    subtitle_text: Optional[str] = None
    difficulty_words: Optional[str] = None


class ClipMetadata(BaseModel):
    """Upload metadata, validated with the messages shown to uploaders."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(alias="title")
    description: Optional[str] = Field(default=None, alias="description")
    difficulty_level: DifficultyLevel = Field(alias="difficultyLevel")
    subtitle_text: str = Field(alias="subtitleText")

    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, value: Any) -> str:
        if not isinstance(value, str) or len(value) < 1:
            raise PydanticCustomError("title_required", "Title is required")
        if len(value) > 200:
            raise PydanticCustomError("title_too_long", "Title too long")
        return value

    @field_validator("difficulty_level", mode="before")
    @classmethod
    def _check_difficulty(cls, value: Any) -> Any:
        allowed = [level.value for level in DifficultyLevel]
        if value not in allowed:
            raise PydanticCustomError(
                "invalid_difficulty",
                "Difficulty level must be one of: {allowed}",
                {"allowed": ", ".join(allowed)},
            )
        return value

    @field_validator("subtitle_text", mode="before")
    @classmethod
    def _check_subtitle(cls, value: Any) -> str:
        if not isinstance(value, str) or len(value) < 1:
            raise PydanticCustomError("subtitle_required", "Subtitle text is required")
        return value


@dataclass
class ValidatedUpload:
    """An upload that passed every local check."""
    data: bytes
    content_type: str
    extension: str
    metadata: ClipMetadata
    difficulty_words: Optional[Any] = None


def file_extension(filename: str) -> str:
    """Lower-cased extension including the dot, or "" if there is none."""
    index = filename.rfind(".")
    if index == -1:
        return ""
    return filename[index:].lower()


def generate_storage_key(extension: str) -> str:
    """
    Build a collision-resistant object key.

    Format: {epoch milliseconds}-{8 random base36 chars}{extension}
    """
    timestamp = int(time.time() * 1000)
    token = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(8))
    return f"{timestamp}-{token}{extension}"


class UploadWorkflow:
    """
    Validates an upload, stores the file, then persists the clip row.

    Validation order matters: the cheapest checks run first and nothing
    remote is touched until every check has passed.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        clips: ClipStore,
        max_size_bytes: int = MAX_FILE_SIZE_BYTES,
    ) -> None:
        self._storage = storage
        self._clips = clips
        self._max_size_bytes = max_size_bytes

    def validate(self, request: UploadRequest) -> ValidatedUpload:
        """
        Run every local check.

        Raises UploadError on the first failing check.
        """
        if request.data is None:
            raise UploadError(UploadErrorCode.MISSING_FILE, "No video file provided")

        if request.content_type not in ALLOWED_MIME_TYPES:
            raise UploadError(
                UploadErrorCode.INVALID_FORMAT,
                f"Invalid file format. Allowed formats: {', '.join(ALLOWED_MIME_TYPES)}",
            )

        extension = file_extension(request.filename)
        if extension not in ALLOWED_EXTENSIONS:
            raise UploadError(
                UploadErrorCode.INVALID_FORMAT,
                f"Invalid file extension. Allowed extensions: {', '.join(ALLOWED_EXTENSIONS)}",
            )

        if len(request.data) > self._max_size_bytes:
            max_mb = self._max_size_bytes / 1024 / 1024
            raise UploadError(
                UploadErrorCode.FILE_TOO_LARGE,
                f"File size exceeds maximum allowed size of {max_mb:g}MB",
            )

        try:
            metadata = ClipMetadata.model_validate({
                "title": request.title,
                "description": request.description or None,
                "difficultyLevel": request.difficulty_level,
                "subtitleText": request.subtitle_text,
            })
        except ValidationError as exc:
            raise UploadError(
                UploadErrorCode.INVALID_METADATA,
                "Invalid metadata provided",
                details={"fieldErrors": collect_field_errors(exc)},
            ) from exc

        difficulty_words = None
        if request.difficulty_words:
            try:
                difficulty_words = json.loads(request.difficulty_words)
            except json.JSONDecodeError as exc:
                raise UploadError(
                    UploadErrorCode.INVALID_DIFFICULTY_WORDS,
                    "Invalid JSON format for difficulty words",
                ) from exc

        return ValidatedUpload(
            data=request.data,
            content_type=request.content_type,
            extension=extension,
            metadata=metadata,
            difficulty_words=difficulty_words,
        )

    async def execute(self, request: UploadRequest) -> VideoClip:
        """Upload a clip end to end and return the persisted record."""
        upload = self.validate(request)
        metadata = upload.metadata

        key = generate_storage_key(upload.extension)

        try:
            clip_url = await self._storage.upload_object(
                upload.data, key, upload.content_type
            )
        except Exception as e:
            logger.error(
                "Clip storage upload failed",
                extra={"storage_key": key, "error": str(e)},
            )
            raise UploadError(
                UploadErrorCode.STORAGE_FAILED,
                "Failed to upload video to storage",
                details=str(e),
            ) from e

        try:
            clip = self._clips.create(NewVideoClip(
                title=metadata.title,
                description=metadata.description,
                clip_url=clip_url,
                difficulty_level=metadata.difficulty_level,
                subtitle_text=metadata.subtitle_text,
                difficulty_words=upload.difficulty_words,
            ))
        except Exception as e:
            logger.error(
                "Clip insert failed, removing uploaded object",
                extra={"storage_key": key, "error": str(e)},
            )
            await self._compensate(key)
            raise UploadError(
                UploadErrorCode.DATABASE_FAILED,
                "Failed to save video metadata",
                details=str(e),
            ) from e

        logger.info(
            "Clip uploaded",
            extra={
                "clip_id": clip.id,
                "storage_key": key,
                "size_bytes": len(upload.data),
                "difficulty": clip.difficulty_level.value,
            },
        )
        return clip

    async def _compensate(self, key: str) -> None:
        """Delete an orphaned object. Failures are logged, never raised."""
        try:
            await self._storage.delete_object(key)
        except Exception as e:
            logger.error(
                "Failed to clean up storage object after database error",
                extra={"storage_key": key, "error": str(e)},
            )
