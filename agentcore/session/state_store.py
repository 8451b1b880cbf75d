"""
Session State Store

Open key/value application state per session, held in a KeyValueStore under
``state:<session_id>``.

Semantics:
    - An unseen session reads as an empty map
    - update() shallow-merges the partial map over the current one
    - Every backend failure surfaces as a MEMORY_STORAGE AgentError
"""

from __future__ import annotations

from typing import Any, Mapping

from agentcore.core.errors import AgentError
from agentcore.core.types import Err, Ok, Result, SessionId
from agentcore.storage.protocols import KeyValueStore, state_key

ApplicationState = dict[str, Any]


class SessionStateStore:
    """
    Usage:
        store = SessionStateStore(InMemoryKeyValueStore())
        await store.update("s1", {"theme": "dark"})
        state = (await store.get("s1")).unwrap()
    """

    __slots__ = ("_store",)

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self, session_id: SessionId) -> Result[ApplicationState, AgentError]:
        result = await self._store.get(state_key(session_id))
        if result.is_err():
            return Err(AgentError.memory_storage("retrieve state", result.error))

        value = result.unwrap()
        if value is None:
            return Ok({})
        if not isinstance(value, dict):
            return Err(AgentError.memory_storage(
                "retrieve state", f"stored state is {type(value).__name__}, expected a map",
            ))
        return Ok(value)

    async def update(
        self,
        session_id: SessionId,
        partial: Mapping[str, Any],
    ) -> Result[ApplicationState, AgentError]:
        """Shallow-merge `partial` into the session state; returns the merged map."""
        current = await self.get(session_id)
        if current.is_err():
            return Err(current.error.with_context(operation="update state"))

        merged = {**current.unwrap(), **partial}
        written = await self._store.put(state_key(session_id), merged)
        if written.is_err():
            return Err(AgentError.memory_storage("update state", written.error))
        return Ok(merged)

    async def clear(self, session_id: SessionId) -> Result[bool, AgentError]:
        result = await self._store.delete(state_key(session_id))
        if result.is_err():
            return Err(AgentError.memory_storage("clear state", result.error))
        return Ok(result.unwrap())
