"""
Redis repository for device profiles.

Profiles live under profile:<device_id> and expire after a period of
inactivity (30 days by default). Every save refreshes the expiry.
"""

import logging
from typing import Any, Optional

from src.core.coaching.models import RunHistory, TrainingGoal, UserProfile

from ..client import KeyValueStore

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def goal_to_document(goal: TrainingGoal) -> dict[str, Any]:
    return {
        "raceType": goal.race_type,
        "targetTime": goal.target_time,
        "raceDate": goal.race_date,
    }


def document_to_goal(document: dict[str, Any]) -> TrainingGoal:
    return TrainingGoal(
        race_type=document["raceType"],
        target_time=int(document["targetTime"]),
        race_date=document["raceDate"],
    )


def run_to_document(run: RunHistory) -> dict[str, Any]:
    return {
        "date": run.date,
        "distance": run.distance,
        "duration": run.duration,
        "avgPace": run.avg_pace,
    }


def document_to_run(document: dict[str, Any]) -> RunHistory:
    return RunHistory(
        date=document["date"],
        distance=float(document["distance"]),
        duration=int(document["duration"]),
        avg_pace=float(document["avgPace"]),
    )


class ProfileRepository:
    """Device profile persistence."""

    def __init__(self, store: KeyValueStore, ttl_days: int = 30) -> None:
        self._store = store
        self._ttl_seconds = ttl_days * SECONDS_PER_DAY

    @staticmethod
    def _key(device_id: str) -> str:
        return f"profile:{device_id}"

    async def save(self, profile: UserProfile) -> UserProfile:
        """Stamp and persist a profile. Overwrites any existing one."""
        profile.touch()

        document = {
            "deviceId": profile.device_id,
            "createdAt": profile.created_at,
            "trainingGoal": goal_to_document(profile.training_goal) if profile.training_goal else None,
            "recentRuns": [run_to_document(run) for run in profile.recent_runs],
            "updatedAt": profile.updated_at,
        }
        await self._store.set_json(self._key(profile.device_id), document, self._ttl_seconds)

        logger.info("Saved profile", extra={"device_id": profile.device_id})
        return profile

    async def get(self, device_id: str) -> Optional[UserProfile]:
        document = await self._store.get_json(self._key(device_id))
        if document is None:
            return None

        goal = document.get("trainingGoal")
        return UserProfile(
            device_id=document.get("deviceId", device_id),
            training_goal=document_to_goal(goal) if goal else None,
            recent_runs=[document_to_run(run) for run in document.get("recentRuns") or []],
            created_at=document.get("createdAt"),
            updated_at=document.get("updatedAt"),
        )
