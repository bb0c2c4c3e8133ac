"""
Unit tests for prompt construction.
"""

from src.core.coaching.models import (
    IntervalSummary,
    PromptContext,
    TelemetrySample,
    TrainingGoal,
)
from src.core.coaching.prompts import (
    SYSTEM_PROMPT,
    build_system_prompt,
    build_user_prompt,
    format_pace,
    format_time,
)


SAMPLE = TelemetrySample(
    device_id="pixel-7",
    distance=5230.0,
    duration=1_725_000,
    avg_pace=330.0,
    avg_heart_rate=158,
)


class TestFormatting:

    def test_format_time_under_an_hour(self):
        assert format_time(1725) == "28:45"

    def test_format_time_over_an_hour(self):
        assert format_time(5400) == "1:30:00"

    def test_format_pace(self):
        assert format_pace(330.0) == "5:30"

    def test_format_pace_rounds_to_whole_seconds(self):
        assert format_pace(299.6) == "5:00"


class TestSystemPrompt:

    def test_without_goal_is_base_prompt(self):
        assert build_system_prompt(None) == SYSTEM_PROMPT

    def test_goal_is_appended(self):
        goal = TrainingGoal(race_type="half_marathon", target_time=6300, race_date="2026-11-01")
        prompt = build_system_prompt(goal)
        assert prompt.startswith(SYSTEM_PROMPT)
        assert "half_marathon in 1:45:00 on 2026-11-01" in prompt


class TestUserPrompt:

    def test_includes_run_totals(self):
        prompt = build_user_prompt(SAMPLE)
        assert "- Distance: 5.23km" in prompt
        assert "- Duration: 28:45" in prompt
        assert "- Average pace: 5:30/km" in prompt
        assert "- Heart rate: 158 bpm" in prompt

    def test_omits_missing_heart_rate(self):
        sample = TelemetrySample(device_id="pixel-7", distance=100.0, duration=30_000, avg_pace=300.0)
        assert "Heart rate" not in build_user_prompt(sample)

    def test_includes_context(self):
        context = PromptContext(
            current_speed=3.0,
            interval=IntervalSummary(last_interval_pace=320.0, pace_pattern="speeding_up"),
        )
        prompt = build_user_prompt(SAMPLE, context)
        assert "- Current speed: 10.8 km/h" in prompt
        assert "- Recent interval pace: 5:20/km" in prompt
        assert "- Pace trend: speeding_up" in prompt

    def test_skips_zero_speed(self):
        prompt = build_user_prompt(SAMPLE, PromptContext(current_speed=0.0))
        assert "Current speed" not in prompt

    def test_ends_with_instruction(self):
        assert build_user_prompt(SAMPLE).endswith("based on this data.")
