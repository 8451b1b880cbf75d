"""
Redis Key/Value Store
=====================

Durable Redis/Valkey implementation of KeyValueStore, so session state and
memory survive a process restart.

Design Principles:
------------------
1. **Connection Pooling**: one redis.asyncio client shared by all sessions
2. **Result Values**: backend failures come back as Err(message), never raised
3. **Namespacing**: every key is prefixed with RedisConfig.key_prefix
4. **Expiry**: optional TTL applied on every write

Values are stored as codec frames (JSON, LZ4-compressed above 1 KiB) under
plain Redis string keys. The client runs with decode_responses=False.

Example:
    >>> store = RedisKeyValueStore(RedisConfig.from_env())
    >>> await store.connect()
    >>> await store.put("state:s1", {"theme": "dark"})
    >>> await store.close()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import redis.asyncio as aioredis

from agentcore.core.types import Err, Ok, Result
from agentcore.storage.codec import decode_value, encode_value
from agentcore.storage.config import RedisConfig

logger = logging.getLogger(__name__)

# Redis SCAN count hint
SCAN_COUNT: int = 500


class RedisKeyValueStore:
    """
    KeyValueStore backed by Redis.

    A pre-built client may be injected (tests pass a fake); otherwise
    `connect()` creates one from the configuration.
    """

    __slots__ = ("_config", "_client", "_connected")

    def __init__(
        self,
        config: Optional[RedisConfig] = None,
        client: Optional[Any] = None,
    ) -> None:
        self._config = config or RedisConfig()
        self._client = client
        self._connected = client is not None

    @property
    def connected(self) -> bool:
        return self._connected

    # -------------------------------------------------------------------------
    # CONNECTION MANAGEMENT
    # -------------------------------------------------------------------------

    async def connect(self) -> Result[None, str]:
        """
        Create the client (if none was injected) and verify it with PING.

        Returns:
            Ok(None) on success, Err with message on failure.
        """
        try:
            if self._client is None:
                self._client = aioredis.Redis(**self._config.get_connection_kwargs())
            await self._client.ping()
        except Exception as e:
            self._connected = False
            return Err(f"Redis connection failed: {e}")

        self._connected = True
        logger.info(f"Connected to Redis at {self._config.host}:{self._config.port}")
        return Ok(None)

    async def close(self) -> None:
        """Close the client. Safe to call multiple times."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._connected = False

    # -------------------------------------------------------------------------
    # KEY/VALUE OPERATIONS
    # -------------------------------------------------------------------------

    def _full_key(self, key: str) -> str:
        return f"{self._config.key_prefix}{key}"

    async def get(self, key: str) -> Result[Optional[Any], str]:
        if not self._connected:
            return Err("Not connected")
        try:
            raw = await self._client.get(self._full_key(key))
        except asyncio.TimeoutError:
            return Err("Redis timeout")
        except Exception as e:
            return Err(f"Redis error: {e}")

        if raw is None:
            return Ok(None)
        decoded = decode_value(raw)
        if decoded.is_err():
            return Err(f"Corrupt value at {key}: {decoded.error}")
        return decoded

    async def put(self, key: str, value: Any) -> Result[None, str]:
        if not self._connected:
            return Err("Not connected")
        encoded = encode_value(value)
        if encoded.is_err():
            return encoded
        try:
            await self._client.set(
                self._full_key(key),
                encoded.unwrap(),
                ex=self._config.key_ttl_seconds,
            )
        except asyncio.TimeoutError:
            return Err("Redis timeout")
        except Exception as e:
            return Err(f"Redis error: {e}")
        return Ok(None)

    async def delete(self, key: str) -> Result[bool, str]:
        if not self._connected:
            return Err("Not connected")
        try:
            removed = await self._client.delete(self._full_key(key))
        except Exception as e:
            return Err(f"Redis error: {e}")
        return Ok(removed > 0)

    async def keys(self, prefix: str = "") -> Result[list[str], str]:
        """Non-blocking SCAN over the namespace; the key prefix is stripped."""
        if not self._connected:
            return Err("Not connected")
        pattern = f"{self._config.key_prefix}{prefix}*"
        cut = len(self._config.key_prefix)
        try:
            found = [
                _key_text(k)[cut:]
                async for k in self._client.scan_iter(match=pattern, count=SCAN_COUNT)
            ]
        except Exception as e:
            return Err(f"Redis error: {e}")
        return Ok(sorted(set(found)))


def _key_text(key: Any) -> str:
    return key.decode("utf-8") if isinstance(key, bytes) else key
