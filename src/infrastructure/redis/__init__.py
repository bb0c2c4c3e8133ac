"""
Redis key-value storage.

Wraps redis-py behind the KeyValueStore protocol and includes an in-memory
mock for local development without a Redis server.
"""

from .client import (
    KeyValueStore,
    MockKeyValueStore,
    RedisConfig,
    RedisKeyValueStore,
    create_key_value_store,
)

__all__ = [
    "KeyValueStore",
    "MockKeyValueStore",
    "RedisConfig",
    "RedisKeyValueStore",
    "create_key_value_store",
]
