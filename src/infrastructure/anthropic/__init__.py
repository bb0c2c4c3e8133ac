"""
Anthropic Claude API client wrapper.

Implements the GenerationClient protocol from core.coaching.coach.
"""

from .client import (
    AnthropicCoachingClient,
    AnthropicConfig,
    UnconfiguredCoachingClient,
    create_coaching_client,
)

__all__ = [
    "AnthropicCoachingClient",
    "AnthropicConfig",
    "UnconfiguredCoachingClient",
    "create_coaching_client",
]
