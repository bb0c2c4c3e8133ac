"""
Key-value store client backed by Redis.

Redis holds everything this service persists: cached coaching messages,
device profiles and run history. Every value is a JSON document with its
own expiry, so the store needs nothing beyond get/set-with-TTL, delete
and key enumeration.

Mock mode keeps values in memory, enabling API testing without running
a Redis server.
"""

import fnmatch
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.core.coaching.errors import CacheUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class RedisConfig:
    """
    Configuration for the Redis connection.

    url wins when set; otherwise host/port/db are used.
    """
    url: Optional[str] = None
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    socket_timeout: float = 2.0
    socket_connect_timeout: float = 5.0

    def __post_init__(self) -> None:
        if self.port < 1:
            raise ValueError("port must be positive")
        if self.socket_timeout <= 0:
            raise ValueError("socket_timeout must be positive")

    @property
    def connection_url(self) -> str:
        if self.url:
            return self.url
        return f"redis://{self.host}:{self.port}/{self.db}"


def mask_credentials(url: str) -> str:
    """Hide user:password in a redis:// URL before logging it."""
    return re.sub(r"//[^@/]*@", "//***:***@", url)


class KeyValueStore(Protocol):
    """
    Protocol for JSON key-value storage with per-key expiry.

    Implementations raise CacheUnavailableError when the backend cannot
    be reached. A missing or expired key is not an error.
    """

    async def get_json(self, key: str) -> Optional[Any]:
        """Return the decoded value, or None if absent."""
        ...

    async def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store value under key, expiring after ttl_seconds."""
        ...

    async def delete(self, keys: Iterable[str]) -> int:
        """Delete keys. Returns count deleted."""
        ...

    async def scan_keys(self, pattern: str) -> list[str]:
        """List keys matching a glob pattern."""
        ...

    async def ping(self) -> bool:
        """True if the backend answers."""
        ...

    async def close(self) -> None:
        ...


def _decode(key: str, raw: Optional[str]) -> Optional[Any]:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Discarding undecodable value", extra={"key": key})
        return None


class RedisKeyValueStore:
    """
    Redis-backed key-value store.

    The connection is opened on first use rather than at construction,
    so creating the store at startup never blocks on Redis being up.

    Uses the redis.asyncio client, so a slow or unreachable server only
    delays the request waiting on it, never the event loop.
    """

    def __init__(self, config: RedisConfig) -> None:
        self._config = config
        self._client: Optional[aioredis.Redis] = None

    @property
    def client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.Redis.from_url(
                self._config.connection_url,
                password=self._config.password or None,
                decode_responses=True,
                socket_timeout=self._config.socket_timeout,
                socket_connect_timeout=self._config.socket_connect_timeout,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            logger.info(
                "Initialized Redis client",
                extra={"url": mask_credentials(self._config.connection_url)},
            )
        return self._client

    async def get_json(self, key: str) -> Optional[Any]:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.error("Redis read failed", extra={"key": key, "error": str(e)})
            raise CacheUnavailableError(f"Redis read failed: {e}")
        return _decode(key, raw)

    async def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self.client.setex(key, ttl_seconds, json.dumps(value))
        except RedisError as e:
            logger.error("Redis write failed", extra={"key": key, "error": str(e)})
            raise CacheUnavailableError(f"Redis write failed: {e}")

    async def delete(self, keys: Iterable[str]) -> int:
        keys = list(keys)
        if not keys:
            return 0
        try:
            return await self.client.delete(*keys)
        except RedisError as e:
            logger.error("Redis delete failed", extra={"count": len(keys), "error": str(e)})
            raise CacheUnavailableError(f"Redis delete failed: {e}")

    async def scan_keys(self, pattern: str) -> list[str]:
        # SCAN rather than KEYS so a large keyspace doesn't block the server.
        try:
            return [key async for key in self.client.scan_iter(match=pattern, count=100)]
        except RedisError as e:
            logger.error("Redis scan failed", extra={"pattern": pattern, "error": str(e)})
            raise CacheUnavailableError(f"Redis scan failed: {e}")

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.error("Redis health check failed", extra={"error": str(e)})
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Closed Redis client")


# ---------------------------------------------------------------------------
# Mock Store for Local Development
# ---------------------------------------------------------------------------

class MockKeyValueStore:
    """
    In-memory key-value store for local development and tests.

    Values are kept JSON-encoded so the mock round-trips exactly like
    Redis does, and expiry is checked lazily on read.
    """

    def __init__(self, clock=time.monotonic) -> None:
        # {key: (json_text, expires_at)}
        self._data: dict[str, tuple[str, float]] = {}
        self._clock = clock
        logger.info("Initialized mock key-value store (in-memory)")

    def _live(self, key: str) -> Optional[str]:
        item = self._data.get(key)
        if item is None:
            return None
        raw, expires_at = item
        if self._clock() >= expires_at:
            del self._data[key]
            return None
        return raw

    async def get_json(self, key: str) -> Optional[Any]:
        return _decode(key, self._live(key))

    async def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._data[key] = (json.dumps(value), self._clock() + ttl_seconds)

    async def delete(self, keys: Iterable[str]) -> int:
        count = 0
        for key in keys:
            if self._live(key) is not None:
                del self._data[key]
                count += 1
        return count

    async def scan_keys(self, pattern: str) -> list[str]:
        return [
            key for key in list(self._data)
            if fnmatch.fnmatchcase(key, pattern) and self._live(key) is not None
        ]

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._data.clear()


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_key_value_store(
    config: Optional[RedisConfig] = None,
    mock_mode: bool = False,
) -> KeyValueStore:
    """
    Create the key-value store based on configuration.

    Args:
        config: Redis configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory store

    Returns:
        KeyValueStore implementation (Redis or Mock)
    """
    if mock_mode:
        return MockKeyValueStore()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return RedisKeyValueStore(config)
