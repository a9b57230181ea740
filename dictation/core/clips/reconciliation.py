"""
Detect storage objects that no clip row points at.

The upload workflow deletes the object when the database write fails, but
a crash (or a failed delete) between the two writes still leaves an
orphan behind. This module compares the bucket listing with the clip URLs
in the database.

An upload writes the object before its row, so a young unreferenced key
may belong to an upload that is still in flight. Keys carry their upload
time as an epoch-millisecond prefix; keys younger than min_age_seconds
are never reported.
"""

import logging
import time
from typing import Iterable, Optional, Protocol

logger = logging.getLogger(__name__)

# Grace period for uploads whose row is not written yet.
DEFAULT_MIN_AGE_SECONDS = 3600


class ListableStorage(Protocol):
    """The slice of the storage client reconciliation needs."""

    async def list_keys(self, prefix: str = "") -> list[str]:
        ...

    async def delete_object(self, key: str) -> None:
        ...

    def public_url(self, key: str) -> str:
        ...


def key_uploaded_at(key: str) -> Optional[float]:
    """
    Upload time (epoch seconds) encoded in a key, or None.

    Keys not produced by the upload workflow have no timestamp prefix.
    """
    prefix, sep, _ = key.partition("-")
    if not sep or not prefix.isdigit():
        return None
    return int(prefix) / 1000


def find_orphaned_keys(
    storage_keys: Iterable[str],
    clip_urls: Iterable[str],
    public_url: str,
    min_age_seconds: float = DEFAULT_MIN_AGE_SECONDS,
    now: Optional[float] = None,
) -> list[str]:
    """
    Return storage keys whose public URL is not referenced by any clip.

    Keys uploaded less than min_age_seconds before now are skipped. Keys
    without a timestamp prefix count as old. Keys are returned sorted so
    repeated runs produce stable output.
    """
    if now is None:
        now = time.time()
    base = public_url.rstrip("/")
    referenced = set(clip_urls)

    orphans = []
    for key in storage_keys:
        if f"{base}/{key}" in referenced:
            continue
        uploaded_at = key_uploaded_at(key)
        if uploaded_at is not None and now - uploaded_at < min_age_seconds:
            continue
        orphans.append(key)
    return sorted(orphans)


async def reconcile_storage(
    storage: ListableStorage,
    clip_urls: Iterable[str],
    delete: bool = False,
    min_age_seconds: float = DEFAULT_MIN_AGE_SECONDS,
) -> list[str]:
    """
    Find orphaned objects and optionally delete them.

    Returns the orphaned keys. With delete=True a key that fails to delete
    is logged and left for the next run.
    """
    keys = await storage.list_keys()
    orphans = find_orphaned_keys(
        keys,
        clip_urls,
        storage.public_url(""),
        min_age_seconds=min_age_seconds,
    )

    logger.info(
        "Storage reconciliation scanned bucket",
        extra={
            "objects": len(keys),
            "orphans": len(orphans),
            "min_age_seconds": min_age_seconds,
        },
    )

    if delete:
        for key in orphans:
            try:
                await storage.delete_object(key)
            except Exception as e:
                logger.error(
                    "Failed to delete orphaned object",
                    extra={"storage_key": key, "error": str(e)},
                )

    return orphans
