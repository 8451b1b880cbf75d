"""
Per-Session Request Serialization

Requests for the same session run one at a time so the read-modify-write of
state and memory never interleaves; different sessions proceed in parallel.

Locks are created on first use and dropped once no request holds or waits
on them, so the table does not grow with the number of sessions ever seen.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from agentcore.core.types import SessionId


class SessionLockTable:
    """
    Usage:
        locks = SessionLockTable()
        async with locks.hold(session_id):
            ...
    """

    __slots__ = ("_locks", "_waiters")

    def __init__(self) -> None:
        self._locks: dict[SessionId, asyncio.Lock] = {}
        self._waiters: dict[SessionId, int] = {}

    @asynccontextmanager
    async def hold(self, session_id: SessionId) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._waiters[session_id] = self._waiters.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._waiters[session_id] - 1
            if remaining == 0:
                del self._waiters[session_id]
                del self._locks[session_id]
            else:
                self._waiters[session_id] = remaining

    def active_sessions(self) -> int:
        """Sessions with a request running or queued."""
        return len(self._locks)

    def is_locked(self, session_id: SessionId) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()
