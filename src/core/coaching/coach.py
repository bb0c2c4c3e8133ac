"""
Running coach service: cache lookup, freshness check, generation.

This module contains the request-level flow that turns a telemetry sample
into a coaching message. It's framework-agnostic and doesn't know about
HTTP, Redis or Anthropic; those are reached through the protocols below.

Every failure path still produces something the runner can hear. A cache
outage means we regenerate, a model outage means we fall back to a
canned message.
"""

import logging
import time
from typing import AbstractSet, Callable, Optional, Protocol

from .cache_keys import DISTANCE_BUCKET_METERS, cache_key_for_sample, device_key_pattern
from .errors import CacheUnavailableError, GenerationError
from .freshness import TTL_MINUTES, Freshness, evaluate_freshness
from .models import CachedCoachingEntry, CoachingResult, PromptContext, TelemetrySample


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class GenerationClient(Protocol):
    """
    Interface for whatever produces coaching text.

    Implementations raise GenerationError on timeout, upstream errors
    or empty content. Anything else is a bug.
    """

    async def generate(
        self,
        sample: TelemetrySample,
        context: Optional[PromptContext] = None,
    ) -> str:
        ...


class CoachingCache(Protocol):
    """Interface for the coaching-entry cache. Raises CacheUnavailableError."""

    async def get(self, key: str) -> Optional[CachedCoachingEntry]:
        ...

    async def set(self, key: str, entry: CachedCoachingEntry, ttl_seconds: int) -> None:
        ...

    async def delete(self, keys: AbstractSet[str]) -> int:
        ...

    async def find_keys(self, pattern: str) -> list[str]:
        ...


# ---------------------------------------------------------------------------
# Fallback messages
# ---------------------------------------------------------------------------

FALLBACK_MESSAGES = (
    "Keep up the great work! You're doing awesome.",
    "Stay strong and maintain your rhythm.",
    "Focus on your breathing and stay relaxed.",
    "You've got this! Keep pushing forward.",
    "Great pace! Stay consistent.",
    "Listen to your body and keep it up.",
    "One step at a time, you're making progress!",
    "Stay focused and trust your training.",
)


def fallback_message(distance: float) -> str:
    """
    Pick a canned message for when the model is unavailable.

    Keyed on the 100 m segment so repeated failures at the same point in
    the run say the same thing instead of cycling randomly.
    """
    index = int(distance // DISTANCE_BUCKET_METERS) % len(FALLBACK_MESSAGES)
    return FALLBACK_MESSAGES[index]


def _epoch_millis() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Coach Service
# ---------------------------------------------------------------------------

class RunningCoach:
    """
    Resolves a telemetry sample to a coaching message.

    Stateless between calls: every decision is made from the sample and
    the one cache entry fetched for it. Concurrent requests for the same
    key may both regenerate; the later write wins.
    """

    def __init__(
        self,
        cache: CoachingCache,
        generator: GenerationClient,
        cache_ttl_seconds: int = 300,
        clock: Callable[[], int] = _epoch_millis,
    ) -> None:
        if cache_ttl_seconds <= TTL_MINUTES * 60:
            raise ValueError(
                "cache_ttl_seconds must be longer than the freshness window"
            )
        self._cache = cache
        self._generator = generator
        self._cache_ttl_seconds = cache_ttl_seconds
        self._clock = clock

    async def resolve_coaching_message(
        self,
        sample: TelemetrySample,
        context: Optional[PromptContext] = None,
    ) -> CoachingResult:
        """
        Return a cached message if it is still fresh, otherwise a new one.

        Never raises for cache or model failures. The caller only needs
        to handle TelemetryValidationError, which happens before this
        point when the sample is built.
        """
        key = cache_key_for_sample(sample)
        now = self._clock()

        entry = await self._read_entry(key)
        freshness = evaluate_freshness(sample, entry, now)

        if freshness is Freshness.FRESH:
            logger.info(
                "Reusing cached coaching message",
                extra={"cache_key": key, "device_id": sample.device_id},
            )
            return CoachingResult(message=entry.message, was_cached=True, cache_key=key)

        try:
            message = await self._generator.generate(sample, context)
        except GenerationError as e:
            logger.warning(
                "Generation failed, using fallback message",
                extra={"cache_key": key, "device_id": sample.device_id, "error": str(e)},
            )
            return CoachingResult(
                message=fallback_message(sample.distance),
                was_cached=False,
                cache_key=key,
                is_fallback=True,
            )

        new_entry = CachedCoachingEntry(
            message=message,
            created_at_epoch_millis=now,
            pace=sample.avg_pace,
            heart_rate=sample.avg_heart_rate,
            distance=sample.distance,
            model_selector=sample.model_selector,
        )
        await self._write_entry(key, new_entry)

        return CoachingResult(message=message, was_cached=False, cache_key=key)

    async def invalidate_device(self, device_id: str) -> int:
        """
        Drop every cached message for a device.

        Maintenance operation for when something outside the telemetry
        (the training goal) changes what a good message looks like.
        Returns the number of entries removed.
        """
        keys = await self._cache.find_keys(device_key_pattern(device_id))
        if not keys:
            return 0

        deleted = await self._cache.delete(set(keys))
        logger.info(
            "Invalidated cached coaching messages",
            extra={"device_id": device_id, "count": deleted},
        )
        return deleted

    async def _read_entry(self, key: str) -> Optional[CachedCoachingEntry]:
        # An unreachable cache is treated as a miss.
        try:
            return await self._cache.get(key)
        except CacheUnavailableError as e:
            logger.warning(
                "Cache read failed, regenerating",
                extra={"cache_key": key, "error": str(e)},
            )
            return None

    async def _write_entry(self, key: str, entry: CachedCoachingEntry) -> None:
        try:
            await self._cache.set(key, entry, self._cache_ttl_seconds)
        except CacheUnavailableError as e:
            logger.warning(
                "Cache write failed, message not cached",
                extra={"cache_key": key, "error": str(e)},
            )
