"""
Freshness gate: decide whether a cached coaching message can be reused.

Two samples that share a cache key can still be different moments in a run
(same pace bucket, but the runner looped back a kilometre later). The key
narrows the candidates; this gate decides whether the one candidate is
still appropriate. It holds no state and never raises.
"""

from enum import Enum
from typing import Optional

from .models import CachedCoachingEntry, TelemetrySample


TTL_MINUTES = 1
MIN_DISTANCE_METERS = 200

MILLIS_PER_MINUTE = 60_000


class Freshness(Enum):
    FRESH = "fresh"  # reuse the cached message
    STALE = "stale"  # call the model and overwrite the entry


def evaluate_freshness(
    sample: TelemetrySample,
    entry: Optional[CachedCoachingEntry],
    now_millis: int,
) -> Freshness:
    """
    Evaluate the cached entry for sample's key, in order:

    1. No entry -> STALE.
    2. Older than TTL_MINUTES -> STALE.
    3. Runner has moved MIN_DISTANCE_METERS or more since it was
       generated -> STALE.
    4. Otherwise FRESH.

    Heart rate is not compared. Its bucket is part of the key, so an entry
    found under this key has the same heart-rate presence as the sample.
    """
    if entry is None:
        return Freshness.STALE

    age_minutes = (now_millis - entry.created_at_epoch_millis) / MILLIS_PER_MINUTE
    if age_minutes > TTL_MINUTES:
        return Freshness.STALE

    distance_delta = abs(sample.distance - entry.distance)
    if distance_delta >= MIN_DISTANCE_METERS:
        return Freshness.STALE

    return Freshness.FRESH
