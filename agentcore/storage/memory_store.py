"""
In-Process Key/Value Store

Dict-backed implementation of KeyValueStore for development, tests and
single-process deployments. Values are deep-copied on the way in and out so
callers never share mutable state with the store.

Known limitation: nothing expires; memory grows with the number of sessions.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Optional

from agentcore.core.types import Ok, Result


class InMemoryKeyValueStore:
    """
    Example:
        >>> store = InMemoryKeyValueStore()
        >>> await store.put("state:s1", {"theme": "dark"})
        >>> (await store.get("state:s1")).unwrap()
        {'theme': 'dark'}
    """

    __slots__ = ("_data", "_lock")

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Result[Optional[Any], str]:
        async with self._lock:
            value = self._data.get(key)
        return Ok(copy.deepcopy(value))

    async def put(self, key: str, value: Any) -> Result[None, str]:
        stored = copy.deepcopy(value)
        async with self._lock:
            self._data[key] = stored
        return Ok(None)

    async def delete(self, key: str) -> Result[bool, str]:
        async with self._lock:
            existed = self._data.pop(key, None) is not None
        return Ok(existed)

    async def keys(self, prefix: str = "") -> Result[list[str], str]:
        async with self._lock:
            matched = [k for k in self._data if k.startswith(prefix)]
        return Ok(sorted(matched))

    def __len__(self) -> int:
        return len(self._data)
