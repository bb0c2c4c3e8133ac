"""
Prompt construction for mid-run coaching messages.

The prompts are here, not in config, because they're core business logic.
Changing them changes what the runner hears in their ear. They should be
version controlled and reviewed like code.
"""

from typing import Optional

from .models import PromptContext, TelemetrySample, TrainingGoal


SYSTEM_PROMPT = """You are an expert AI running coach providing real-time guidance during runs. Give concise, motivational coaching messages (1-2 sentences max) based on the runner's current performance data.

Key guidelines:
- Be encouraging and specific to their current situation
- Mention pace, heart rate, or distance when relevant
- Keep messages under 50 words
- Focus on form, breathing, pacing, or mental strategies
- Be supportive but honest about performance"""


TRAINING_GOAL_TEMPLATE = """

Runner's Training Goal: {race_type} in {target_time} on {race_date}. Tailor advice to help them achieve this specific goal."""


USER_PROMPT_CLOSING = "\n\nProvide a motivational coaching message based on this data."


def format_time(seconds: int) -> str:
    """Format seconds as M:SS, or H:MM:SS once past the hour."""
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_pace(seconds_per_km: float) -> str:
    """Format a pace as M:SS (per km)."""
    minutes, secs = divmod(int(round(seconds_per_km)), 60)
    return f"{minutes}:{secs:02d}"


def build_system_prompt(training_goal: Optional[TrainingGoal] = None) -> str:
    prompt = SYSTEM_PROMPT
    if training_goal:
        prompt += TRAINING_GOAL_TEMPLATE.format(
            race_type=training_goal.race_type,
            target_time=format_time(training_goal.target_time),
            race_date=training_goal.race_date,
        )
    return prompt


def build_user_prompt(
    sample: TelemetrySample,
    context: Optional[PromptContext] = None,
) -> str:
    """
    Describe the runner's current state in plain language.

    Raw units are converted to what a runner would say out loud:
    km instead of meters, min:sec pace instead of sec/km.
    """
    lines = [
        "Current run status:",
        f"- Distance: {sample.distance / 1000:.2f}km",
        f"- Duration: {format_time(sample.duration // 1000)}",
        f"- Average pace: {format_pace(sample.avg_pace)}/km",
    ]

    if sample.avg_heart_rate:
        lines.append(f"- Heart rate: {sample.avg_heart_rate} bpm")

    if context is not None:
        if context.current_speed and context.current_speed > 0:
            lines.append(f"- Current speed: {context.current_speed * 3.6:.1f} km/h")

        if context.interval is not None:
            lines.append(
                f"- Recent interval pace: {format_pace(context.interval.last_interval_pace)}/km"
            )
            if context.interval.pace_pattern:
                lines.append(f"- Pace trend: {context.interval.pace_pattern}")

    return "\n".join(lines) + USER_PROMPT_CLOSING
