"""
Models the app can ask for by name.

The Android settings screen shows this list; any other model id is still
passed through to the API, it just gets the standard token budget.
"""

from dataclasses import dataclass


STANDARD_MAX_TOKENS = 150


@dataclass(frozen=True)
class AIModel:
    display_name: str
    api_value: str
    max_tokens: int = STANDARD_MAX_TOKENS


AI_MODELS: dict[str, AIModel] = {
    model.api_value: model
    for model in (
        AIModel("Claude 3.5 Haiku", "claude-3-5-haiku-20241022"),
        AIModel("Claude 3 Haiku", "claude-3-haiku-20240307"),
        AIModel("Claude Haiku 4.5", "claude-haiku-4-5"),
        # Larger models ramble; give them a little more headroom
        AIModel("Claude Sonnet 4", "claude-sonnet-4-20250514", max_tokens=300),
    )
}


def max_tokens_for_model(model: str) -> int:
    known = AI_MODELS.get(model)
    if known is not None:
        return known.max_tokens
    return STANDARD_MAX_TOKENS
