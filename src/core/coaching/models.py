"""
Domain models for real-time running coaching.

These models represent the core business concepts. They have no dependencies
on external frameworks, databases, or APIs. Validation lives here so that
anything reaching the cache-key and freshness logic is already well formed.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .errors import TelemetryValidationError


# Characters that may not appear in identity fields that end up in cache
# keys. ":" is the key delimiter, the rest are Redis glob metacharacters
# that would widen a device-scoped invalidation pattern.
RESERVED_KEY_CHARACTERS = frozenset(":*?[]\\")

RESERVED_MODEL_SELECTOR = "default"


def _require_finite(name: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TelemetryValidationError(f"{name} must be a number")
    if not math.isfinite(value):
        raise TelemetryValidationError(f"{name} must be finite")


def _require_key_safe(name: str, value: str) -> None:
    bad = RESERVED_KEY_CHARACTERS.intersection(value)
    if bad:
        raise TelemetryValidationError(
            f"{name} contains reserved characters: {''.join(sorted(bad))}"
        )


def validate_device_id(device_id: str) -> str:
    """Reject device ids that are blank or would break key patterns."""
    if not isinstance(device_id, str) or not device_id.strip():
        raise TelemetryValidationError("device_id is required")
    _require_key_safe("device_id", device_id)
    return device_id


@dataclass(frozen=True)
class TelemetrySample:
    """
    One coaching request's worth of run telemetry.

    Frozen because a sample is a value: it is built per request,
    validated once, and never mutated or persisted directly.
    """
    device_id: str
    distance: float  # meters covered so far
    duration: int  # milliseconds elapsed
    avg_pace: float  # seconds per km
    avg_heart_rate: Optional[int] = None  # bpm, None when no sensor
    model_selector: Optional[str] = None

    def __post_init__(self) -> None:
        validate_device_id(self.device_id)

        _require_finite("distance", self.distance)
        _require_finite("duration", self.duration)
        _require_finite("avg_pace", self.avg_pace)

        if self.distance < 0:
            raise TelemetryValidationError("distance cannot be negative")
        if self.duration < 0:
            raise TelemetryValidationError("duration cannot be negative")
        if self.avg_pace <= 0:
            raise TelemetryValidationError("avg_pace must be positive")

        if self.avg_heart_rate is not None:
            _require_finite("avg_heart_rate", self.avg_heart_rate)
            if self.avg_heart_rate <= 0:
                raise TelemetryValidationError("avg_heart_rate must be positive")

        if self.model_selector is not None:
            if not isinstance(self.model_selector, str):
                raise TelemetryValidationError("model_selector must be a string")
            _require_key_safe("model_selector", self.model_selector)
            # Stands for an absent selector in cache keys.
            if self.model_selector == RESERVED_MODEL_SELECTOR:
                raise TelemetryValidationError(
                    f"model_selector '{RESERVED_MODEL_SELECTOR}' is reserved; omit it instead"
                )


@dataclass(frozen=True)
class CachedCoachingEntry:
    """
    A coaching message as stored in the cache.

    Carries the telemetry it was generated for so the freshness gate
    can compare the current sample against it.
    """
    message: str
    created_at_epoch_millis: int
    pace: float
    distance: float
    heart_rate: Optional[int] = None
    model_selector: Optional[str] = None


@dataclass(frozen=True)
class TrainingGoal:
    """The race a runner is preparing for."""
    race_type: str  # "5k", "10k", "half_marathon", "marathon"
    target_time: int  # seconds
    race_date: str  # ISO date

    def __post_init__(self) -> None:
        if not self.race_type.strip():
            raise ValueError("race_type cannot be empty")
        if self.target_time <= 0:
            raise ValueError("target_time must be positive")


@dataclass(frozen=True)
class IntervalSummary:
    """Pace over the most recent interval of the run."""
    last_interval_pace: float  # seconds per km
    pace_pattern: Optional[str] = None  # "consistent", "speeding_up", "slowing_down"


@dataclass(frozen=True)
class PromptContext:
    """
    Request context that shapes the prompt but not the cache key.

    Kept apart from TelemetrySample so it's obvious which fields
    affect cache reuse and which are only flavour for the model.
    """
    current_speed: Optional[float] = None  # m/s from the latest GPS segment
    interval: Optional[IntervalSummary] = None
    training_goal: Optional[TrainingGoal] = None


@dataclass
class RunHistory:
    """A completed run as reported by the app."""
    date: str  # ISO date
    distance: float  # meters
    duration: int  # seconds
    avg_pace: float  # seconds per km

    def __post_init__(self) -> None:
        if not self.date:
            raise ValueError("date is required")
        if self.distance <= 0:
            raise ValueError("distance must be positive")
        if self.duration <= 0:
            raise ValueError("duration must be positive")


@dataclass
class UserProfile:
    """A device's profile: its training goal and recent runs."""
    device_id: str
    training_goal: Optional[TrainingGoal] = None
    recent_runs: list[RunHistory] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self) -> None:
        validate_device_id(self.device_id)

    def touch(self) -> None:
        """Stamp the profile as updated now."""
        self.updated_at = datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class CoachingResult:
    """What the coach hands back for a single request."""
    message: str
    was_cached: bool
    cache_key: str
    is_fallback: bool = False
