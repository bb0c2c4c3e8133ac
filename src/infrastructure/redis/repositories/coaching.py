"""
Redis repository for cached coaching messages.

Entries are stored as flat JSON objects:
    {"message", "createdAtEpochMillis", "pace", "heartRate",
     "distance", "modelSelector"}

The repository is the only place that knows this shape; the coach
works with CachedCoachingEntry throughout.
"""

import logging
from typing import AbstractSet, Any, Optional

from src.core.coaching.models import CachedCoachingEntry

from ..client import KeyValueStore

logger = logging.getLogger(__name__)


def entry_to_document(entry: CachedCoachingEntry) -> dict[str, Any]:
    return {
        "message": entry.message,
        "createdAtEpochMillis": entry.created_at_epoch_millis,
        "pace": entry.pace,
        "heartRate": entry.heart_rate,
        "distance": entry.distance,
        "modelSelector": entry.model_selector,
    }


def document_to_entry(document: dict[str, Any]) -> CachedCoachingEntry:
    return CachedCoachingEntry(
        message=document["message"],
        created_at_epoch_millis=int(document["createdAtEpochMillis"]),
        pace=float(document["pace"]),
        heart_rate=document.get("heartRate"),
        distance=float(document["distance"]),
        model_selector=document.get("modelSelector"),
    )


class CoachingCacheRepository:
    """
    Coaching-entry cache over a KeyValueStore.

    Store failures surface as CacheUnavailableError; the coach decides
    what to do about them.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self, key: str) -> Optional[CachedCoachingEntry]:
        document = await self._store.get_json(key)
        if document is None:
            return None

        try:
            return document_to_entry(document)
        except (KeyError, TypeError, ValueError) as e:
            # Written by an older version or corrupted; regenerate.
            logger.warning(
                "Ignoring malformed coaching entry",
                extra={"key": key, "error": str(e)},
            )
            return None

    async def set(self, key: str, entry: CachedCoachingEntry, ttl_seconds: int) -> None:
        await self._store.set_json(key, entry_to_document(entry), ttl_seconds)
        logger.debug("Cached coaching message", extra={"key": key, "ttl": ttl_seconds})

    async def delete(self, keys: AbstractSet[str]) -> int:
        return await self._store.delete(keys)

    async def find_keys(self, pattern: str) -> list[str]:
        return await self._store.scan_keys(pattern)
