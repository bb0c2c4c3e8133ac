"""
Request/response payloads shared by several routes.

The Android app speaks camelCase JSON; the alias generator maps it onto
snake_case fields so the Python side reads naturally. Responses are
serialized by alias, so clients get camelCase back.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.coaching.models import RunHistory, TrainingGoal


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TrainingGoalPayload(CamelModel):
    race_type: str = Field(min_length=1, description='"5k", "10k", "half_marathon", "marathon"')
    target_time: int = Field(gt=0, description="Target finish time in seconds")
    race_date: str = Field(description="ISO date of the race")

    def to_domain(self) -> TrainingGoal:
        return TrainingGoal(
            race_type=self.race_type,
            target_time=self.target_time,
            race_date=self.race_date,
        )

    @classmethod
    def from_domain(cls, goal: TrainingGoal) -> "TrainingGoalPayload":
        return cls(race_type=goal.race_type, target_time=goal.target_time, race_date=goal.race_date)


class RunHistoryPayload(CamelModel):
    date: str = Field(min_length=1, description="ISO date of the run")
    distance: float = Field(gt=0, description="Meters")
    duration: int = Field(gt=0, description="Seconds")
    avg_pace: float = Field(gt=0, description="Seconds per km")

    def to_domain(self) -> RunHistory:
        return RunHistory(
            date=self.date,
            distance=self.distance,
            duration=self.duration,
            avg_pace=self.avg_pace,
        )

    @classmethod
    def from_domain(cls, run: RunHistory) -> "RunHistoryPayload":
        return cls(date=run.date, distance=run.distance, duration=run.duration, avg_pace=run.avg_pace)
