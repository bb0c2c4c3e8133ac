"""
Coaching API endpoints.

The app posts telemetry every few seconds during a run and reads the
returned message aloud. The expensive part (the model call) is skipped
whenever a recent message for the same moment of the run is cached.

A model failure is not an HTTP error here: the runner still gets a
message, flagged with isFallback.
"""

import logging
import math
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import Field

from ...core.coaching.catalog import AI_MODELS
from ...core.coaching.errors import CacheUnavailableError, TelemetryValidationError
from ...core.coaching.models import (
    IntervalSummary,
    PromptContext,
    TelemetrySample,
    TrainingGoal,
)
from ...infrastructure.redis.repositories import ProfileRepository
from ..dependencies import ProfileRepositoryDep, RunningCoachDep, SettingsDep
from ..schemas import CamelModel, TrainingGoalPayload

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class CurrentSegment(CamelModel):
    """Latest GPS fix from the phone."""
    latitude: float
    longitude: float
    timestamp: int = Field(description="Epoch millis of the fix")
    heart_rate: Optional[float] = None
    speed: float = Field(default=0.0, description="m/s")
    elevation: Optional[float] = None
    accuracy: float = Field(default=0.0, description="Horizontal accuracy in meters")
    bearing: Optional[float] = None


class RunTotals(CamelModel):
    """Cumulative figures for the run so far."""
    distance: float = Field(description="Meters")
    duration: int = Field(description="Milliseconds")
    avg_pace: float = Field(description="Seconds per km")
    avg_heart_rate: Optional[float] = Field(
        default=None,
        description="bpm. 0 means no sensor and is treated as absent.",
    )


class IntervalData(CamelModel):
    """Split data for the most recent interval."""
    last_interval_distance: float = Field(description="Meters")
    last_interval_time: int = Field(description="Milliseconds")
    last_interval_pace: float = Field(description="Seconds per km")
    recent_paces: list[float] = Field(default_factory=list)
    pace_pattern: Optional[str] = Field(
        default=None,
        description='"consistent", "speeding_up", "slowing_down"',
    )


class CoachingRequest(CamelModel):
    device_id: str = Field(description="Stable per-install device identifier")
    current_segment: CurrentSegment
    run_totals: RunTotals
    interval_data: Optional[IntervalData] = None
    training_goal: Optional[TrainingGoalPayload] = None
    model: Optional[str] = Field(default=None, description="Model id; see /models")

    def to_sample(self) -> TelemetrySample:
        """Build the validated telemetry sample. Raises TelemetryValidationError."""
        heart_rate = self.run_totals.avg_heart_rate
        if not heart_rate:
            heart_rate = None
        elif math.isfinite(heart_rate):
            heart_rate = int(round(heart_rate))
        return TelemetrySample(
            device_id=self.device_id,
            distance=self.run_totals.distance,
            duration=self.run_totals.duration,
            avg_pace=self.run_totals.avg_pace,
            avg_heart_rate=heart_rate,
            model_selector=self.model,
        )

    def to_context(self, training_goal: Optional[TrainingGoal]) -> PromptContext:
        interval = None
        if self.interval_data is not None:
            interval = IntervalSummary(
                last_interval_pace=self.interval_data.last_interval_pace,
                pace_pattern=self.interval_data.pace_pattern,
            )
        return PromptContext(
            current_speed=self.current_segment.speed,
            interval=interval,
            training_goal=training_goal,
        )


class CoachingResponse(CamelModel):
    message: str = Field(description="Coaching message to read to the runner")
    was_cached: bool = Field(description="True if reused from cache")
    cache_key: Optional[str] = Field(
        default=None,
        description='"cached" when the message was reused',
    )
    is_fallback: bool = Field(default=False, description="True if the model was unavailable")


class ModelInfo(CamelModel):
    display_name: str
    api_value: str
    max_tokens: int
    is_default: bool


class ModelsResponse(CamelModel):
    models: list[ModelInfo]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _resolve_training_goal(
    request: CoachingRequest,
    profiles: ProfileRepository,
) -> Optional[TrainingGoal]:
    """Use the goal in the request, else the one on the stored profile."""
    if request.training_goal is not None:
        try:
            return request.training_goal.to_domain()
        except ValueError as e:
            raise TelemetryValidationError(str(e))

    try:
        profile = await profiles.get(request.device_id)
    except (CacheUnavailableError, KeyError, TypeError, ValueError) as e:
        # Goal is prompt flavour only; carry on without it.
        logger.warning(
            "Could not load profile for coaching",
            extra={"device_id": request.device_id, "error": str(e)},
        )
        return None

    return profile.training_goal if profile else None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=CoachingResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a coaching message",
    description="Return a short motivational message for the runner's current state",
)
async def get_coaching_message(
    request: CoachingRequest,
    coach: RunningCoachDep,
    profiles: ProfileRepositoryDep,
) -> CoachingResponse:
    """
    Resolve a coaching message for the current telemetry.

    1. Validate telemetry (400 if malformed)
    2. Look up a cached message for the quantized telemetry
    3. Reuse it if still fresh, otherwise ask the model and cache the result
    """
    try:
        sample = request.to_sample()
        training_goal = await _resolve_training_goal(request, profiles)
    except TelemetryValidationError as e:
        logger.warning(
            "Rejected coaching request",
            extra={"device_id": request.device_id, "error": str(e)},
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    logger.info(
        "Coaching request",
        extra={
            "device_id": sample.device_id,
            "model": sample.model_selector or "default",
            "distance_m": sample.distance,
            "avg_pace": sample.avg_pace,
        },
    )

    result = await coach.resolve_coaching_message(
        sample,
        request.to_context(training_goal),
    )

    return CoachingResponse(
        message=result.message,
        was_cached=result.was_cached,
        cache_key="cached" if result.was_cached else None,
        is_fallback=result.is_fallback,
    )


@router.get(
    "/models",
    response_model=ModelsResponse,
    status_code=status.HTTP_200_OK,
    summary="List coaching models",
    description="Models the app can offer in its settings screen",
)
async def list_models(settings: SettingsDep) -> ModelsResponse:
    return ModelsResponse(
        models=[
            ModelInfo(
                display_name=model.display_name,
                api_value=model.api_value,
                max_tokens=model.max_tokens,
                is_default=model.api_value == settings.anthropic_model,
            )
            for model in AI_MODELS.values()
        ]
    )
