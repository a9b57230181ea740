"""
Video clip logic.

Contains the clip domain models, list query validation, the upload
workflow and storage reconciliation.
"""

from .models import (
    CLIP_DURATION_SECONDS,
    DifficultyLevel,
    NewVideoClip,
    Pagination,
    VideoClip,
)
from .queries import ClipQuery, InvalidQueryError
from .reconciliation import find_orphaned_keys, reconcile_storage
from .upload import UploadError, UploadErrorCode, UploadRequest, UploadWorkflow

__all__ = [
    "CLIP_DURATION_SECONDS",
    "DifficultyLevel",
    "NewVideoClip",
    "Pagination",
    "VideoClip",
    "ClipQuery",
    "InvalidQueryError",
    "UploadError",
    "UploadErrorCode",
    "UploadRequest",
    "UploadWorkflow",
    "find_orphaned_keys",
    "reconcile_storage",
]
