"""
Unit tests for cache-key derivation.

Quantization decides which telemetry samples share a cached message,
so the rounding boundaries matter more than anything else here.
"""

import pytest

from src.core.coaching.cache_keys import (
    NO_HEART_RATE,
    build_cache_key,
    cache_key_for_sample,
    device_key_pattern,
    distance_bucket,
    heart_rate_bucket,
    pace_bucket,
    quantize,
)
from src.core.coaching.models import TelemetrySample


class TestQuantize:
    """Tests for round-to-nearest-bucket."""

    @pytest.mark.parametrize(
        "value,bucket,expected",
        [
            (0, 100, 0),
            (49.9, 100, 0),
            (50, 100, 100),  # halves round up
            (1005, 100, 1000),
            (1050, 100, 1100),
            (1520, 100, 1500),
            (314, 10, 310),
            (315, 10, 320),
            (152, 5, 150),
            (153, 5, 155),
        ],
    )
    def test_rounds_to_nearest_multiple(self, value, bucket, expected):
        assert quantize(value, bucket) == expected

    def test_result_is_always_a_multiple(self):
        for value in range(0, 1000, 7):
            assert quantize(value, 10) % 10 == 0

    def test_bucket_helpers_use_their_grid(self):
        assert pace_bucket(317.2) == 320
        assert heart_rate_bucket(161) == 160
        assert distance_bucket(2349) == 2300

    def test_missing_heart_rate_gets_sentinel(self):
        assert heart_rate_bucket(None) == NO_HEART_RATE


class TestBuildCacheKey:
    """Tests for the key layout."""

    def test_key_layout(self):
        key = build_cache_key("pixel-7", 310, 150, 1500, "claude-haiku-4-5")
        assert key == "coaching:pixel-7:310:150:1500:claude-haiku-4-5"

    def test_absent_selector_uses_default_token(self):
        key = build_cache_key("pixel-7", 310, 150, 1500, None)
        assert key.endswith(":default")

    def test_empty_selector_differs_from_absent(self):
        empty = build_cache_key("pixel-7", 310, 150, 1500, "")
        absent = build_cache_key("pixel-7", 310, 150, 1500, None)
        assert empty != absent
        assert empty.endswith(":")

    def test_sample_key_example(self):
        sample = TelemetrySample(
            device_id="pixel-7",
            distance=1520.0,
            duration=480_000,
            avg_pace=314.0,
            avg_heart_rate=152,
        )
        assert cache_key_for_sample(sample) == "coaching:pixel-7:310:150:1500:default"

    def test_sample_without_heart_rate(self):
        sample = TelemetrySample(
            device_id="pixel-7",
            distance=1520.0,
            duration=480_000,
            avg_pace=314.0,
        )
        assert cache_key_for_sample(sample) == "coaching:pixel-7:310:no-hr:1500:default"

    def test_nearby_samples_share_a_key(self):
        """Jitter inside one bucket must not change the key."""
        base = dict(device_id="pixel-7", duration=480_000, model_selector="m")
        a = TelemetrySample(distance=1480.0, avg_pace=312.0, avg_heart_rate=151, **base)
        b = TelemetrySample(distance=1540.0, avg_pace=308.0, avg_heart_rate=149, **base)
        assert cache_key_for_sample(a) == cache_key_for_sample(b)

    def test_heart_rate_presence_changes_the_key(self):
        base = dict(device_id="pixel-7", distance=1500.0, duration=1, avg_pace=300.0)
        with_hr = TelemetrySample(avg_heart_rate=150, **base)
        without_hr = TelemetrySample(**base)
        assert cache_key_for_sample(with_hr) != cache_key_for_sample(without_hr)


class TestDeviceKeyPattern:

    def test_pattern_covers_device_keys(self):
        assert device_key_pattern("pixel-7") == "coaching:pixel-7:*"

    def test_pattern_is_prefix_of_every_key(self):
        key = build_cache_key("pixel-7", 300, NO_HEART_RATE, 0, None)
        assert key.startswith(device_key_pattern("pixel-7")[:-1])


class TestKeyDistinctness:
    """Distinct buckets must never share a cache slot."""

    def test_distinct_bucket_tuples_never_collide(self):
        paces = [240, 250, 300, 310, 600]
        heart_rates = [NO_HEART_RATE, 0, 5, 150, 155, 200]
        distances = [0, 100, 1000, 1500, 21100]

        keys = {
            (pace, hr, dist): build_cache_key("pixel-7", pace, hr, dist, None)
            for pace in paces
            for hr in heart_rates
            for dist in distances
        }

        assert len(set(keys.values())) == len(keys)

    def test_model_selector_separates_keys(self):
        selectors = [None, "", "claude-haiku-4-5", "claude-sonnet-4-20250514"]
        keys = {build_cache_key("pixel-7", 310, 150, 1500, s) for s in selectors}
        assert len(keys) == len(selectors)

    @pytest.mark.parametrize("heart_rate", [1, 2, 3, 60, 152, 199.9, 240])
    def test_sentinel_never_equals_a_real_bucket(self, heart_rate):
        bucket = heart_rate_bucket(heart_rate)
        assert bucket != NO_HEART_RATE
        assert str(bucket) != NO_HEART_RATE

    def test_lowest_readings_round_to_zero_not_sentinel(self):
        """1 and 2 bpm both land in the 0 bucket, which is still numeric."""
        assert heart_rate_bucket(1) == 0
        assert heart_rate_bucket(2) == 0

        zero = build_cache_key("pixel-7", 310, heart_rate_bucket(1), 1500, None)
        absent = build_cache_key("pixel-7", 310, heart_rate_bucket(None), 1500, None)
        assert zero != absent

    def test_present_default_selector_is_rejected_before_keying(self):
        """A sample can't claim the token used for an absent selector."""
        with pytest.raises(ValueError, match="reserved"):
            TelemetrySample(
                device_id="pixel-7",
                distance=1500.0,
                duration=1,
                avg_pace=310.0,
                model_selector="default",
            )
