"""
Storage Protocol Definitions

Structural subtyping protocol (PEP 544) for the key/value backends that hold
session state and memory.

Design Principles:
    - Zero-exception control flow via Result[T, str]
    - Async-first so a networked backend never blocks the event loop
    - Values are JSON-compatible (dict/list/str/int/float/bool/None)

Key layout used by the engine:
    state:<session_id>    application state map
    memory:<session_id>   short-term history, long-term entries, summary
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from agentcore.core.types import Result

JsonValue = Any

STATE_NAMESPACE = "state"
MEMORY_NAMESPACE = "memory"


def state_key(session_id: str) -> str:
    return f"{STATE_NAMESPACE}:{session_id}"


def memory_key(session_id: str) -> str:
    return f"{MEMORY_NAMESPACE}:{session_id}"


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Async key/value store keyed by plain strings.

    Implementations must be safe for concurrent use from one event loop and
    must return copies: mutating a value returned by `get` never changes
    what is stored.
    """

    async def get(self, key: str) -> Result[Optional[JsonValue], str]:
        """Ok(value), Ok(None) when absent, Err(message) on backend failure."""
        ...

    async def put(self, key: str, value: JsonValue) -> Result[None, str]:
        """Insert or replace."""
        ...

    async def delete(self, key: str) -> Result[bool, str]:
        """Ok(True) if the key existed."""
        ...

    async def keys(self, prefix: str = "") -> Result[list[str], str]:
        """All keys starting with prefix, sorted."""
        ...
