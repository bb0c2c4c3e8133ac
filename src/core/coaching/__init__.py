"""
Running coaching logic.

Contains the coaching service, cache-key derivation, the freshness gate,
domain models and prompt construction.
"""

from .cache_keys import build_cache_key, cache_key_for_sample, device_key_pattern, quantize
from .coach import RunningCoach, fallback_message
from .errors import (
    CacheUnavailableError,
    CoachingError,
    GenerationError,
    TelemetryValidationError,
)
from .freshness import Freshness, evaluate_freshness
from .models import (
    CachedCoachingEntry,
    CoachingResult,
    IntervalSummary,
    PromptContext,
    RunHistory,
    TelemetrySample,
    TrainingGoal,
    UserProfile,
    validate_device_id,
)

__all__ = [
    "build_cache_key",
    "cache_key_for_sample",
    "device_key_pattern",
    "quantize",
    "RunningCoach",
    "fallback_message",
    "CacheUnavailableError",
    "CoachingError",
    "GenerationError",
    "TelemetryValidationError",
    "Freshness",
    "evaluate_freshness",
    "CachedCoachingEntry",
    "CoachingResult",
    "IntervalSummary",
    "PromptContext",
    "RunHistory",
    "TelemetrySample",
    "TrainingGoal",
    "UserProfile",
    "validate_device_id",
]
