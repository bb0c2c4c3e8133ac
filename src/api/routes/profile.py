"""
Device profile endpoints.

A profile carries the runner's training goal, which is woven into the
coaching prompt. Changing the goal makes every cached message for the
device obsolete, so saving a goal also clears the device's coaching cache.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import Field

from ...core.coaching.errors import CacheUnavailableError
from ...core.coaching.models import UserProfile, validate_device_id
from ..dependencies import ProfileRepositoryDep, RunningCoachDep
from ..schemas import CamelModel, RunHistoryPayload, TrainingGoalPayload

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class ProfilePayload(CamelModel):
    """Profile as sent by and returned to the app."""
    device_id: str = Field(description="Device identifier")
    created_at: Optional[str] = None
    training_goal: Optional[TrainingGoalPayload] = None
    recent_runs: list[RunHistoryPayload] = Field(default_factory=list)
    updated_at: Optional[str] = None

    def to_domain(self) -> UserProfile:
        return UserProfile(
            device_id=self.device_id,
            training_goal=self.training_goal.to_domain() if self.training_goal else None,
            recent_runs=[run.to_domain() for run in self.recent_runs],
            created_at=self.created_at,
        )

    @classmethod
    def from_domain(cls, profile: UserProfile) -> "ProfilePayload":
        return cls(
            device_id=profile.device_id,
            created_at=profile.created_at,
            training_goal=(
                TrainingGoalPayload.from_domain(profile.training_goal)
                if profile.training_goal else None
            ),
            recent_runs=[RunHistoryPayload.from_domain(run) for run in profile.recent_runs],
            updated_at=profile.updated_at,
        )


class ProfileUpdateResponse(CamelModel):
    success: bool
    invalidated_entries: int = Field(
        default=0,
        description="Cached coaching messages cleared because the goal changed",
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=ProfileUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Create or update a profile",
)
async def update_profile(
    payload: ProfilePayload,
    profiles: ProfileRepositoryDep,
    coach: RunningCoachDep,
) -> ProfileUpdateResponse:
    """
    Store the profile, and if it carries a training goal, drop the
    device's cached coaching messages so the next ones reflect it.
    """
    try:
        profile = payload.to_domain()
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    invalidated = 0
    try:
        await profiles.save(profile)

        if profile.training_goal is not None:
            logger.info(
                "Training goal updated",
                extra={
                    "device_id": profile.device_id,
                    "race_type": profile.training_goal.race_type,
                    "target_time": profile.training_goal.target_time,
                },
            )
            invalidated = await coach.invalidate_device(profile.device_id)

    except CacheUnavailableError as e:
        logger.error(
            "Failed to update profile",
            extra={"device_id": profile.device_id, "error": str(e)},
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile storage unavailable",
        )

    return ProfileUpdateResponse(success=True, invalidated_entries=invalidated)


@router.get(
    "",
    response_model=ProfilePayload,
    status_code=status.HTTP_200_OK,
    summary="Get a profile",
    responses={404: {"description": "Profile not found"}},
)
async def get_profile(
    profiles: ProfileRepositoryDep,
    device_id: str = Query(alias="deviceId"),
) -> ProfilePayload:
    try:
        validate_device_id(device_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        profile = await profiles.get(device_id)
    except CacheUnavailableError as e:
        logger.error(
            "Failed to load profile",
            extra={"device_id": device_id, "error": str(e)},
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile storage unavailable",
        )

    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )

    return ProfilePayload.from_domain(profile)
