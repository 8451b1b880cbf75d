"""
Hybrid Memory Manager: Short-Term History + Long-Term Relevance Memory

Provides:
- Bounded short-term history per session (FIFO eviction)
- Importance-scored long-term entries with keyword retrieval
- Periodic conversation summaries
- Context budgeting for prompt assembly
- Export/import for external persistence

Design:
    Each session's memory is one MemorySnapshot stored in a KeyValueStore
    under ``memory:<session_id>``. Every operation loads the snapshot,
    changes it and writes it back; callers serialize same-session requests
    (see SessionLockTable) when interleaving matters.

Usage:
    manager = HybridMemoryManager(InMemoryKeyValueStore(), MemoryConfig())
    await manager.store_interaction("s1", Interaction("My name is Alex.", "Hi Alex!"))
    context = (await manager.get_context("s1", "What's my name?")).unwrap()
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from agentcore.core.config import MemoryConfig
from agentcore.core.errors import AgentError
from agentcore.core.types import Err, Ok, Result, SessionId, Timestamp
from agentcore.memory import budget
from agentcore.memory.models import (
    Interaction,
    MemoryContext,
    MemorySnapshot,
    derive_entries,
)
from agentcore.memory.retrieval import rank_entries
from agentcore.memory.summarizer import ExtractiveSummarizer, Summarizer
from agentcore.storage.protocols import KeyValueStore, memory_key

logger = logging.getLogger(__name__)


class HybridMemoryManager:
    """
    Short-/long-term memory for every session, backed by a KeyValueStore.

    All public coroutines return Result[..., AgentError]; storage problems
    are reported as MEMORY_STORAGE.
    """

    __slots__ = ("_store", "_config", "_summarizer")

    def __init__(
        self,
        store: KeyValueStore,
        config: Optional[MemoryConfig] = None,
        summarizer: Optional[Summarizer] = None,
    ) -> None:
        self._store = store
        self._config = config or MemoryConfig()
        self._summarizer = summarizer or ExtractiveSummarizer()

    @property
    def config(self) -> MemoryConfig:
        return self._config

    # -------------------------------------------------------------------------
    # PERSISTENCE
    # -------------------------------------------------------------------------

    async def _load(self, session_id: SessionId, operation: str) -> Result[MemorySnapshot, AgentError]:
        raw = await self._store.get(memory_key(session_id))
        if raw.is_err():
            return Err(AgentError.memory_storage(operation, raw.error))
        value = raw.unwrap()
        if value is None:
            return Ok(MemorySnapshot())
        parsed = MemorySnapshot.from_dict(value)
        if parsed.is_err():
            return Err(AgentError.memory_storage(operation, parsed.error))
        return parsed

    async def _save(
        self,
        session_id: SessionId,
        snapshot: MemorySnapshot,
        operation: str,
    ) -> Result[None, AgentError]:
        written = await self._store.put(memory_key(session_id), snapshot.to_dict())
        if written.is_err():
            return Err(AgentError.memory_storage(operation, written.error))
        return Ok(None)

    # -------------------------------------------------------------------------
    # READ PATH
    # -------------------------------------------------------------------------

    async def get_context(self, session_id: SessionId, query: str) -> Result[MemoryContext, AgentError]:
        """
        History, the top-K relevant memories for `query`, and the summary.

        Only the returned entries have their access statistics updated.
        """
        loaded = await self._load(session_id, "retrieve memory context")
        if loaded.is_err():
            return loaded
        snapshot = loaded.unwrap()

        selected = rank_entries(query, snapshot.long_term, self._config.max_relevant_memories)
        memories = tuple(snapshot.long_term[i].content for i in selected)

        if selected:
            now = Timestamp.now()
            for index in selected:
                snapshot.long_term[index].mark_accessed(now)
            saved = await self._save(session_id, snapshot, "retrieve memory context")
            if saved.is_err():
                return saved

        return Ok(MemoryContext(
            history=tuple(snapshot.short_term),
            memories=memories,
            summary=snapshot.summary,
        ))

    # -------------------------------------------------------------------------
    # WRITE PATH
    # -------------------------------------------------------------------------

    async def store_interaction(
        self,
        session_id: SessionId,
        interaction: Interaction,
    ) -> Result[None, AgentError]:
        loaded = await self._load(session_id, "store interaction")
        if loaded.is_err():
            return loaded
        snapshot = loaded.unwrap()

        snapshot.turn_count += 1
        snapshot.short_term.append(interaction)
        snapshot.short_term = snapshot.short_term[-self._config.max_short_term_turns:]

        snapshot.long_term.extend(derive_entries(interaction))
        self._evict_long_term(snapshot)

        if self._should_summarize(snapshot.turn_count):
            await self._refresh_summary(session_id, snapshot)

        return await self._save(session_id, snapshot, "store interaction")

    def _evict_long_term(self, snapshot: MemorySnapshot) -> None:
        cap = self._config.max_long_term_memories
        if len(snapshot.long_term) > cap:
            snapshot.long_term.sort(key=lambda entry: entry.importance, reverse=True)
            del snapshot.long_term[cap:]

    def _should_summarize(self, turn_count: int) -> bool:
        interval = self._config.summarize_after_turns
        return self._config.enable_summarization and turn_count > 0 and turn_count % interval == 0

    async def _refresh_summary(self, session_id: SessionId, snapshot: MemorySnapshot) -> None:
        window = snapshot.short_term[-self._config.summarize_after_turns:]
        try:
            snapshot.summary = await self._summarizer.summarize(window)
        except Exception as e:
            logger.warning(f"Failed to generate summary for session {session_id}: {e}")
            return
        logger.info(f"Generated summary for session {session_id} after {snapshot.turn_count} turns")

    async def clear_memory(self, session_id: SessionId) -> Result[None, AgentError]:
        removed = await self._store.delete(memory_key(session_id))
        if removed.is_err():
            return Err(AgentError.memory_storage("clear memory", removed.error))
        logger.info(f"Cleared memory for session {session_id}")
        return Ok(None)

    # -------------------------------------------------------------------------
    # EXPORT / IMPORT
    # -------------------------------------------------------------------------

    async def export_memory(self, session_id: SessionId) -> Result[dict[str, Any], AgentError]:
        """JSON-compatible copy of the session's memory for a persistence collaborator."""
        loaded = await self._load(session_id, "export memory")
        return loaded.map(MemorySnapshot.to_dict)

    async def import_memory(
        self,
        session_id: SessionId,
        data: Mapping[str, Any],
    ) -> Result[None, AgentError]:
        """
        Restore exported memory.

        Sections missing from `data` keep their current contents. Imported
        lists are cut back to the configured caps.
        """
        parsed = MemorySnapshot.from_dict(data)
        if parsed.is_err():
            return Err(AgentError.memory_storage("import memory", parsed.error))
        incoming = parsed.unwrap()

        loaded = await self._load(session_id, "import memory")
        if loaded.is_err():
            return loaded
        snapshot = loaded.unwrap()

        if isinstance(data.get("short_term"), list):
            snapshot.short_term = incoming.short_term[-self._config.max_short_term_turns:]
            snapshot.turn_count = max(incoming.turn_count, len(snapshot.short_term))
        if isinstance(data.get("long_term"), list):
            snapshot.long_term = incoming.long_term
            self._evict_long_term(snapshot)
        if incoming.summary:
            snapshot.summary = incoming.summary

        saved = await self._save(session_id, snapshot, "import memory")
        if saved.is_ok():
            logger.info(f"Imported memory for session {session_id}")
        return saved

    # -------------------------------------------------------------------------
    # CONTEXT BUDGET
    # -------------------------------------------------------------------------

    def estimate_tokens(self, context: MemoryContext) -> int:
        return budget.estimate_tokens(context)

    def optimize_context(
        self,
        context: MemoryContext,
        max_tokens: int,
    ) -> Result[MemoryContext, AgentError]:
        return budget.optimize_context(context, max_tokens)
