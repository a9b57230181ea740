"""Client data layer for consumers of the clip API."""

from .clips import ApiError, Clip, ClipListData, ClipsClient, PaginationInfo

__all__ = ["ApiError", "Clip", "ClipListData", "ClipsClient", "PaginationInfo"]
