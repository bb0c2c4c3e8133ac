"""
Health check endpoints.

Health checks are essential for:
- Load balancers to know if the service is alive
- Monitoring systems to track availability
- Deployment systems to verify rollouts

We provide two endpoints:
- /api/health/live: Basic liveness check (is the process running?)
- /api/health: Full check (is Redis reachable, is the model configured?)
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ..dependencies import KeyValueStoreDep, SettingsDep
from ..schemas import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter()

_started_at = time.monotonic()


class RedisStatus(CamelModel):
    status: str  # "up" or "down"
    response_time: Optional[int] = None  # ms


class AnthropicStatus(CamelModel):
    status: str  # "configured" or "missing"


class ServiceStatuses(CamelModel):
    redis: RedisStatus
    anthropic: AnthropicStatus


class HealthResponse(CamelModel):
    """Health check response."""
    status: str  # "healthy" or "unhealthy"
    timestamp: str
    services: ServiceStatuses
    version: str
    uptime: int  # seconds


class LivenessResponse(CamelModel):
    status: str
    version: str


@router.get(
    "/live",
    response_model=LivenessResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
async def liveness_check(settings: SettingsDep) -> LivenessResponse:
    return LivenessResponse(status="ok", version=settings.api_version)


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Checks Redis connectivity and model configuration.",
    responses={
        503: {
            "description": "Service unhealthy",
            "model": HealthResponse,
        }
    },
)
async def health_check(settings: SettingsDep, store: KeyValueStoreDep):
    """
    Full health check.

    Returns 503 if Redis is down or no Anthropic key is configured, which
    tells load balancers not to route traffic here. Note that the service
    still answers coaching requests in both cases, just with cache misses
    or fallback messages.
    """
    redis_started = time.monotonic()
    redis_up = await store.ping()
    redis_ms = int((time.monotonic() - redis_started) * 1000)

    anthropic_configured = bool(settings.anthropic_api_key)
    healthy = redis_up and anthropic_configured

    response = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        services=ServiceStatuses(
            redis=RedisStatus(status="up" if redis_up else "down", response_time=redis_ms),
            anthropic=AnthropicStatus(status="configured" if anthropic_configured else "missing"),
        ),
        version=settings.api_version,
        uptime=int(time.monotonic() - _started_at),
    )

    if not healthy:
        logger.warning(
            "Health check failed",
            extra={"redis": response.services.redis.status, "anthropic": response.services.anthropic.status},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(by_alias=True),
        )

    return response
