"""
Cache-key derivation for coaching messages.

Telemetry arrives every few seconds and jitters constantly, so raw values
would never produce a cache hit. We round pace, heart rate and distance onto
coarse grids and build the key from the buckets instead.

Key format:
    coaching:<device_id>:<pace_bucket>:<hr_bucket>:<distance_bucket>:<model>

The device-scoped pattern coaching:<device_id>:* is how the profile
endpoint finds every cached message for a device.
"""

import math
from typing import Optional, Union

from .models import RESERVED_MODEL_SELECTOR, TelemetrySample


KEY_PREFIX = "coaching"
KEY_DELIMITER = ":"

PACE_BUCKET_SECONDS = 10  # sec/km
HEART_RATE_BUCKET_BPM = 5
DISTANCE_BUCKET_METERS = 100

# Non-numeric so it can never equal a rounded heart rate.
NO_HEART_RATE = "no-hr"
# Absent selector, reserved so no real selector maps here. "" stays "".
DEFAULT_MODEL_TOKEN = RESERVED_MODEL_SELECTOR


HeartRateBucket = Union[int, str]


def quantize(value: float, bucket_size: int) -> int:
    """
    Round value to the nearest multiple of bucket_size.

    Halves round up (1005 -> 1100 for 100 m buckets) rather than to even,
    so every .5 boundary lands in the same bucket on every request.
    """
    return int(math.floor(value / bucket_size + 0.5)) * bucket_size


def pace_bucket(avg_pace: float) -> int:
    return quantize(avg_pace, PACE_BUCKET_SECONDS)


def heart_rate_bucket(heart_rate: Optional[float]) -> HeartRateBucket:
    if heart_rate is None:
        return NO_HEART_RATE
    return quantize(heart_rate, HEART_RATE_BUCKET_BPM)


def distance_bucket(distance: float) -> int:
    return quantize(distance, DISTANCE_BUCKET_METERS)


def build_cache_key(
    device_id: str,
    pace: int,
    heart_rate: HeartRateBucket,
    distance: int,
    model_selector: Optional[str],
) -> str:
    """
    Join already-quantized fields into a cache key.

    Callers are expected to pass validated identity fields; TelemetrySample
    rejects device ids and selectors containing the delimiter.
    """
    model_token = DEFAULT_MODEL_TOKEN if model_selector is None else model_selector
    return KEY_DELIMITER.join(
        [KEY_PREFIX, device_id, str(pace), str(heart_rate), str(distance), model_token]
    )


def cache_key_for_sample(sample: TelemetrySample) -> str:
    """Quantize a sample and build its cache key."""
    return build_cache_key(
        device_id=sample.device_id,
        pace=pace_bucket(sample.avg_pace),
        heart_rate=heart_rate_bucket(sample.avg_heart_rate),
        distance=distance_bucket(sample.distance),
        model_selector=sample.model_selector,
    )


def device_key_pattern(device_id: str) -> str:
    """Glob pattern matching every coaching key for one device."""
    return KEY_DELIMITER.join([KEY_PREFIX, device_id, "*"])
