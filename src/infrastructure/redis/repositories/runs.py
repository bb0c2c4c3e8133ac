"""
Redis repository for completed runs.

Each run is stored individually under run:<device_id>:<run_id>, and a
newest-first list of the most recent runs is kept under
recent_runs:<device_id> so history reads are a single GET.

The read-modify-write on the recent list is not atomic. Two runs logged
for the same device at the same instant can drop one from the list (the
individual run record is still written).
"""

import logging
import secrets
import time
from datetime import datetime, timezone

from src.core.coaching.models import RunHistory

from ..client import KeyValueStore
from .profiles import SECONDS_PER_DAY, document_to_run, run_to_document

logger = logging.getLogger(__name__)


def new_run_id() -> str:
    """Millisecond timestamp plus a random suffix, e.g. 1718030000000-k3j9x0a1q"""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(5)[:9]}"


class RunRepository:
    """Run history persistence."""

    def __init__(
        self,
        store: KeyValueStore,
        ttl_days: int = 365,
        recent_limit: int = 50,
    ) -> None:
        self._store = store
        self._ttl_seconds = ttl_days * SECONDS_PER_DAY
        self._recent_limit = recent_limit

    async def log_run(self, device_id: str, run: RunHistory) -> str:
        """Store a run and push it onto the device's recent list. Returns run id."""
        run_id = new_run_id()

        record = run_to_document(run)
        record.update({
            "id": run_id,
            "deviceId": device_id,
            "loggedAt": datetime.now(timezone.utc).isoformat(),
        })
        await self._store.set_json(f"run:{device_id}:{run_id}", record, self._ttl_seconds)

        recent_key = f"recent_runs:{device_id}"
        recent = await self._store.get_json(recent_key) or []
        recent.insert(0, run_to_document(run))
        await self._store.set_json(recent_key, recent[: self._recent_limit], self._ttl_seconds)

        logger.info(
            "Logged run",
            extra={
                "device_id": device_id,
                "run_id": run_id,
                "distance_km": round(run.distance / 1000, 2),
            },
        )
        return run_id

    async def recent(self, device_id: str, limit: int = 20) -> list[RunHistory]:
        """Most recent runs for a device, newest first."""
        recent = await self._store.get_json(f"recent_runs:{device_id}") or []
        return [document_to_run(run) for run in recent[: max(limit, 0)]]
