"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests
- Configuration is centralized

Long-lived handles (the key-value store and the Anthropic client) are
built once in the application lifespan and kept on app.state. The
dependencies here only hand them out and wrap them in per-request
services.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from ..config.settings import Settings, get_settings
from ..core.coaching.coach import GenerationClient, RunningCoach
from ..infrastructure.anthropic.client import AnthropicConfig, create_coaching_client
from ..infrastructure.redis.client import KeyValueStore, RedisConfig, create_key_value_store
from ..infrastructure.redis.repositories import (
    CoachingCacheRepository,
    ProfileRepository,
    RunRepository,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Resource Construction (called from the lifespan)
# ---------------------------------------------------------------------------

def build_key_value_store(settings: Settings) -> KeyValueStore:
    """Create the store described by settings. Connects lazily."""
    if settings.redis_mock_mode:
        return create_key_value_store(mock_mode=True)

    config = RedisConfig(
        url=settings.redis_url,
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password,
        socket_timeout=settings.redis_socket_timeout,
    )
    return create_key_value_store(config=config)


def build_generation_client(settings: Settings) -> GenerationClient:
    """Create the Anthropic client, or the fallback-only stand-in without a key."""
    if not settings.anthropic_api_key:
        return create_coaching_client(None)

    config = AnthropicConfig(
        api_key=settings.anthropic_api_key,
        model=settings.anthropic_model,
        temperature=settings.anthropic_temperature,
        timeout_seconds=settings.anthropic_timeout_seconds,
        max_retries=settings.anthropic_max_retries,
    )
    return create_coaching_client(config)


# ---------------------------------------------------------------------------
# Shared Resources
# ---------------------------------------------------------------------------

def get_key_value_store(request: Request) -> KeyValueStore:
    return request.app.state.kv_store


def get_generation_client(request: Request) -> GenerationClient:
    return request.app.state.generation_client


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_coaching_cache(
    store: Annotated[KeyValueStore, Depends(get_key_value_store)],
) -> CoachingCacheRepository:
    return CoachingCacheRepository(store)


def get_running_coach(
    settings: Annotated[Settings, Depends(get_settings)],
    cache: Annotated[CoachingCacheRepository, Depends(get_coaching_cache)],
    generator: Annotated[GenerationClient, Depends(get_generation_client)],
) -> RunningCoach:
    """
    Provide a RunningCoach wired to the shared cache and model client.

    The coach is stateless, so a new instance per request costs nothing.
    """
    return RunningCoach(
        cache=cache,
        generator=generator,
        cache_ttl_seconds=settings.coaching_cache_ttl_seconds,
    )


def get_profile_repository(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[KeyValueStore, Depends(get_key_value_store)],
) -> ProfileRepository:
    return ProfileRepository(store, ttl_days=settings.profile_ttl_days)


def get_run_repository(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[KeyValueStore, Depends(get_key_value_store)],
) -> RunRepository:
    return RunRepository(
        store,
        ttl_days=settings.run_history_ttl_days,
        recent_limit=settings.recent_runs_limit,
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
KeyValueStoreDep = Annotated[KeyValueStore, Depends(get_key_value_store)]
RunningCoachDep = Annotated[RunningCoach, Depends(get_running_coach)]
ProfileRepositoryDep = Annotated[ProfileRepository, Depends(get_profile_repository)]
RunRepositoryDep = Annotated[RunRepository, Depends(get_run_repository)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
