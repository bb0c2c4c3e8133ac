"""
Run history endpoints.

The app logs each finished run here; history is read back for the
progress screen.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import Field

from ...core.coaching.errors import CacheUnavailableError
from ...core.coaching.models import validate_device_id
from ..dependencies import RunRepositoryDep
from ..schemas import CamelModel, RunHistoryPayload

logger = logging.getLogger(__name__)

router = APIRouter()


class RunLogRequest(RunHistoryPayload):
    device_id: str = Field(description="Device the run belongs to")


class RunLogResponse(CamelModel):
    success: bool
    run_id: str


@router.post(
    "",
    response_model=RunLogResponse,
    status_code=status.HTTP_200_OK,
    summary="Log a completed run",
)
async def log_run(request: RunLogRequest, runs: RunRepositoryDep) -> RunLogResponse:
    try:
        device_id = validate_device_id(request.device_id)
        run = request.to_domain()
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        run_id = await runs.log_run(device_id, run)
    except CacheUnavailableError as e:
        logger.error("Failed to log run", extra={"device_id": device_id, "error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Run storage unavailable",
        )

    return RunLogResponse(success=True, run_id=run_id)


@router.get(
    "",
    response_model=list[RunHistoryPayload],
    status_code=status.HTTP_200_OK,
    summary="Get recent runs",
)
async def get_runs(
    runs: RunRepositoryDep,
    device_id: str = Query(alias="deviceId"),
    limit: int = Query(default=20, ge=1, le=50),
) -> list[RunHistoryPayload]:
    try:
        validate_device_id(device_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        recent = await runs.recent(device_id, limit=limit)
    except CacheUnavailableError as e:
        logger.error("Failed to load runs", extra={"device_id": device_id, "error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Run storage unavailable",
        )

    return [RunHistoryPayload.from_domain(run) for run in recent]
