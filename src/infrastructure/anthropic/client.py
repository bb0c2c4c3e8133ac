"""
Anthropic Claude API client wrapper.

This module provides a thin wrapper around the Anthropic SDK that:
1. Implements our GenerationClient protocol
2. Builds the coaching prompts and picks a token budget per model
3. Bounds every call with a timeout
4. Turns every upstream failure into GenerationError

The wrapper is intentionally thin. It knows about Anthropic's API format
and the coaching prompts, but not about caching or fallbacks.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

import anthropic
from anthropic import APIConnectionError, APIError, APIStatusError, APITimeoutError

from src.core.coaching.catalog import max_tokens_for_model
from src.core.coaching.errors import GenerationError
from src.core.coaching.models import PromptContext, TelemetrySample
from src.core.coaching.prompts import build_system_prompt, build_user_prompt


logger = logging.getLogger(__name__)


@dataclass
class AnthropicConfig:
    """
    Configuration for the Anthropic client.

    timeout_seconds bounds the whole call, including any retries the SDK
    makes, so max_retries stays at 0 by default.
    """
    api_key: str
    model: str = "claude-3-5-haiku-20241022"
    temperature: float = 0.8  # Slightly creative but consistent
    timeout_seconds: float = 30.0
    max_retries: int = 0

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("API key is required")
        if not 0 <= self.temperature <= 1:
            raise ValueError("temperature must be between 0 and 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")


class AnthropicCoachingClient:
    """
    Implementation of GenerationClient using Claude.

    The sample's model selector picks the model; without one we use the
    configured default.
    """

    def __init__(
        self,
        config: AnthropicConfig,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ) -> None:
        self._config = config
        self._client = client or anthropic.AsyncAnthropic(
            api_key=config.api_key,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
        )

    async def generate(
        self,
        sample: TelemetrySample,
        context: Optional[PromptContext] = None,
    ) -> str:
        """
        Ask Claude for one short coaching message.

        Raises GenerationError on timeout, connection failure, any
        non-2xx status, any other SDK error, or a response with no text in it.
        """
        model = sample.model_selector or self._config.model
        max_tokens = max_tokens_for_model(model)
        training_goal = context.training_goal if context else None

        started = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(
                    model=model,
                    max_tokens=max_tokens,
                    temperature=self._config.temperature,
                    system=build_system_prompt(training_goal),
                    messages=[
                        {"role": "user", "content": build_user_prompt(sample, context)}
                    ],
                ),
                timeout=self._config.timeout_seconds,
            )
        except (APITimeoutError, asyncio.TimeoutError) as e:
            logger.warning(
                "Coaching request timed out",
                extra={"model": model, "timeout": self._config.timeout_seconds},
            )
            raise GenerationError(f"Upstream timeout after {self._config.timeout_seconds}s") from e
        except APIStatusError as e:
            logger.error(
                "API error",
                extra={"model": model, "status": e.status_code, "error": str(e)},
            )
            raise GenerationError(f"Upstream returned {e.status_code}: {e.message}") from e
        except APIConnectionError as e:
            logger.error("API connection error", extra={"model": model, "error": str(e)})
            raise GenerationError(f"Upstream connection failed: {e}") from e
        except APIError as e:
            logger.error("Unexpected API error", extra={"model": model, "error": str(e)})
            raise GenerationError(f"Upstream error: {e}") from e

        message = self._extract_text_response(response)
        if not message:
            logger.error("Empty response from API", extra={"model": model})
            raise GenerationError("Empty response from upstream model")

        usage = getattr(response, "usage", None)
        logger.info(
            "Generated coaching message",
            extra={
                "model": model,
                "max_tokens": max_tokens,
                "input_tokens": getattr(usage, "input_tokens", None),
                "output_tokens": getattr(usage, "output_tokens", None),
                "latency_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return message

    async def close(self) -> None:
        await self._client.close()

    def _extract_text_response(self, response) -> str:
        """Extract text content from API response."""
        if not response.content:
            return ""

        # Response content is a list of blocks
        text_blocks = [
            block.text
            for block in response.content
            if hasattr(block, 'text')
        ]

        return "\n".join(text_blocks).strip()


class UnconfiguredCoachingClient:
    """
    Stand-in used when no API key is configured.

    Every call fails with GenerationError, so the service still answers
    with fallback messages instead of refusing requests.
    """

    async def generate(
        self,
        sample: TelemetrySample,
        context: Optional[PromptContext] = None,
    ) -> str:
        raise GenerationError("Anthropic API key is not configured")

    async def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_coaching_client(config: Optional[AnthropicConfig]):
    """
    Create the generation client.

    Returns the unconfigured stand-in when config is None (no API key).
    """
    if config is None:
        logger.warning("No Anthropic API key configured; all messages will be fallbacks")
        return UnconfiguredCoachingClient()
    return AnthropicCoachingClient(config)
