"""
Video clip endpoints.

- GET  /          Paginated clip list, newest first, optional difficulty filter
- GET  /{clip_id} A single clip
- POST /upload    Multipart upload of a ten-second clip (signed-in users)

Reads are public. Query parameters are validated by hand so bad input gets
the CLIP_LIST_INVALID_PARAMS envelope instead of FastAPI's default 422.
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from ...core.clips.models import Pagination
from ...core.clips.queries import ClipQuery, InvalidQueryError
from ...core.clips.upload import UploadError, UploadRequest
from ..dependencies import ClipRepositoryDep, CurrentUser, UploadWorkflowDep
from ..errors import ApiError, success_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="List clips")
async def list_clips(request: Request, clips: ClipRepositoryDep) -> JSONResponse:
    try:
        query = ClipQuery.from_query_params(request.query_params)
    except InvalidQueryError as e:
        raise ApiError(
            400,
            "CLIP_LIST_INVALID_PARAMS",
            "Invalid query parameters",
            details=e.field_errors,
        )

    try:
        items, total = await run_in_threadpool(
            clips.list, query.limit, query.offset, query.difficulty
        )
    except Exception as e:
        logger.error("Failed to list clips", extra={"error": str(e)})
        raise ApiError(
            500,
            "CLIP_LIST_FAILED",
            "Failed to retrieve video clips",
            debug=str(e),
        )

    pagination = Pagination(total=total, limit=query.limit, offset=query.offset)
    return success_response({
        "clips": [clip.to_public_dict() for clip in items],
        "pagination": pagination.to_dict(),
    })


@router.post(
    "/upload",
    status_code=status.HTTP_201_CREATED,
    summary="Upload a clip",
)
async def upload_clip(
    request: Request,
    user: CurrentUser,
    workflow: UploadWorkflowDep,
) -> JSONResponse:
    """
    Accepts multipart/form-data with a `file` part and the fields title,
    description, difficultyLevel, subtitleText and difficultyWords (JSON).
    """
    try:
        form = await request.form()
        upload = form.get("file")

        if isinstance(upload, UploadFile):
            data = await upload.read()
            filename = upload.filename or ""
            content_type = upload.content_type or ""
        else:
            data, filename, content_type = None, "", ""

        def field(name: str):
            value = form.get(name)
            return value if isinstance(value, str) else None

        clip = await workflow.execute(UploadRequest(
            data=data,
            filename=filename,
            content_type=content_type,
            title=field("title"),
            description=field("description"),
            difficulty_level=field("difficultyLevel"),
            subtitle_text=field("subtitleText"),
            difficulty_words=field("difficultyWords"),
        ))
    except UploadError as e:
        if e.code.is_client_error:
            raise ApiError(400, e.code.value, e.message, details=e.details)
        raise ApiError(500, e.code.value, e.message, debug=e.details)
    except Exception as e:
        logger.error(
            "Unexpected error during upload",
            extra={"user_id": user.id, "error": str(e)},
        )
        raise ApiError(
            500,
            "CLIP_UPLOAD_FAILED",
            "Unexpected error during upload",
            debug=str(e),
        )

    return success_response(clip.to_public_dict(), status_code=status.HTTP_201_CREATED)


@router.get("/{clip_id}", summary="Get one clip")
async def get_clip(clip_id: str, clips: ClipRepositoryDep) -> JSONResponse:
    if not clip_id.strip():
        raise ApiError(400, "CLIP_INVALID_ID", "Invalid clip ID provided")

    try:
        clip = await run_in_threadpool(clips.get, clip_id)
    except Exception as e:
        logger.error(
            "Failed to retrieve clip",
            extra={"clip_id": clip_id, "error": str(e)},
        )
        raise ApiError(
            500,
            "CLIP_RETRIEVAL_FAILED",
            "Failed to retrieve video clip",
            debug=str(e),
        )

    if clip is None:
        raise ApiError(404, "CLIP_NOT_FOUND", "Video clip not found")

    return success_response(clip.to_public_dict())
