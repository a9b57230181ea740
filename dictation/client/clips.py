"""
Python client for the public clip API.

Wraps GET /api/clips and GET /api/clips/{id}, unwraps the response
envelope, and caches results under query keys:

    ("clips", "list", params)
    ("clips", "detail", clip_id)

A cached result is served until it is stale_seconds old. invalidate()
drops every key under a prefix, e.g. ("clips",) after an upload.
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ..core.clips.models import DifficultyLevel

logger = logging.getLogger(__name__)

DEFAULT_STALE_SECONDS = 300.0

QueryKey = tuple


class ApiError(Exception):
    """An error envelope from the API, or NETWORK_ERROR if none arrived."""

    def __init__(self, code: str, message: str, details: Optional[Any] = None) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"{code}: {message}")


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class Clip(BaseModel):
    """A clip as served by the API."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: Optional[str] = None
    clip_url: str = Field(alias="clipUrl")
    duration_seconds: int = Field(alias="durationSeconds")
    difficulty_level: DifficultyLevel = Field(alias="difficultyLevel")
    subtitle_text: str = Field(alias="subtitleText")
    difficulty_words: Optional[Any] = Field(default=None, alias="difficultyWords")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class PaginationInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    limit: int
    offset: int
    has_more: bool = Field(alias="hasMore")


class ClipListData(BaseModel):
    clips: list[Clip]
    pagination: PaginationInfo


# ---------------------------------------------------------------------------
# Query Keys
# ---------------------------------------------------------------------------

def clips_list_key(params: dict[str, Any]) -> QueryKey:
    return ("clips", "list", tuple(sorted(params.items())))


def clip_detail_key(clip_id: str) -> QueryKey:
    return ("clips", "detail", clip_id)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class ClipsClient:
    """
    Fetches clips and keeps a small in-process cache.

    Pass a base URL, or an httpx.Client for custom transports (tests use
    httpx.MockTransport). The clock is injectable so staleness can be
    tested without sleeping.
    """

    def __init__(
        self,
        base_url_or_client: Union[str, httpx.Client],
        stale_seconds: float = DEFAULT_STALE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(base_url_or_client, httpx.Client):
            self._http = base_url_or_client
            self._owns_http = False
        else:
            self._http = httpx.Client(base_url=base_url_or_client)
            self._owns_http = True

        self._stale_seconds = stale_seconds
        self._clock = clock
        # {query key: (fetched_at, value)}
        self._cache: dict[QueryKey, tuple[float, Any]] = {}

    def fetch_clips(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        difficulty: Optional[Union[DifficultyLevel, str]] = None,
    ) -> ClipListData:
        """One page of clips. Unset parameters take the server defaults."""
        params: dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        if difficulty is not None:
            params["difficulty"] = (
                difficulty.value if isinstance(difficulty, DifficultyLevel) else difficulty
            )

        key = clips_list_key(params)
        cached = self._cached(key)
        if cached is not None:
            return cached

        data = self._get("/api/clips", params=params)
        result = ClipListData.model_validate(data)
        self._store(key, result)
        return result

    def fetch_clip(self, clip_id: str) -> Clip:
        """A single clip. Raises ApiError("CLIP_INVALID_ID") for a blank id."""
        if not clip_id or not clip_id.strip():
            raise ApiError("CLIP_INVALID_ID", "Invalid clip ID provided")

        key = clip_detail_key(clip_id)
        cached = self._cached(key)
        if cached is not None:
            return cached

        data = self._get(f"/api/clips/{quote(clip_id, safe='')}")
        result = Clip.model_validate(data)
        self._store(key, result)
        return result

    def invalidate(self, prefix: QueryKey = ("clips",)) -> int:
        """Drop cached entries whose key starts with prefix. Returns how many."""
        doomed = [key for key in self._cache if key[:len(prefix)] == prefix]
        for key in doomed:
            del self._cache[key]
        return len(doomed)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "ClipsClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _cached(self, key: QueryKey) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        fetched_at, value = entry
        if self._clock() - fetched_at >= self._stale_seconds:
            del self._cache[key]
            return None
        return value

    def _store(self, key: QueryKey, value: Any) -> None:
        self._cache[key] = (self._clock(), value)

    def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """GET path and return the envelope's data, raising ApiError on failure."""
        try:
            response = self._http.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("Clip API request failed", extra={"path": path, "error": str(e)})
            raise ApiError("NETWORK_ERROR", str(e) or "Network request failed") from e

        try:
            body = response.json()
        except ValueError as e:
            raise ApiError(
                "NETWORK_ERROR",
                f"Unexpected response (HTTP {response.status_code})",
            ) from e

        if not isinstance(body, dict):
            raise ApiError("NETWORK_ERROR", f"Unexpected response (HTTP {response.status_code})")

        if response.is_success and body.get("success"):
            return body.get("data")

        error = body.get("error") or {}
        raise ApiError(
            error.get("code", "UNKNOWN_ERROR"),
            error.get("message", f"Request failed with HTTP {response.status_code}"),
            error.get("details"),
        )
