"""
Unit Tests: Hybrid Memory

Tests:
    - Importance heuristics for derived entries
    - Snapshot dict parsing
    - Keyword relevance scoring and ranking
    - Context budget estimation and degradation order
    - Backend-delegating summaries
    - HybridMemoryManager bounds, retrieval, summaries, export/import
"""

import asyncio

import pytest

from agentcore.agent.backend import BackendError
from agentcore.core.config import MemoryConfig
from agentcore.core.errors import ErrorCategory
from agentcore.core.types import Err, Timestamp
from agentcore.memory.budget import estimate_tokens, optimize_context
from agentcore.memory.manager import HybridMemoryManager
from agentcore.memory.models import (
    Interaction,
    MemoryContext,
    MemoryEntry,
    MemorySnapshot,
    derive_entries,
)
from agentcore.memory.retrieval import query_keywords, rank_entries, relevance_score
from agentcore.memory.summarizer import BackendSummarizer
from agentcore.storage.memory_store import InMemoryKeyValueStore


class BrokenStore:
    async def get(self, key):
        return Err("disk on fire")

    async def put(self, key, value):
        return Err("disk on fire")

    async def delete(self, key):
        return Err("disk on fire")

    async def keys(self, prefix=""):
        return Err("disk on fire")


class FailingSummarizer:
    async def summarize(self, interactions):
        raise RuntimeError("summarizer offline")


class ScriptedBackend:
    """Returns a fixed reply and records every prompt."""

    def __init__(self, reply):
        self.reply = reply
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        return self.reply


class FailingBackend:
    async def complete(self, prompt):
        raise BackendError("service unavailable", status_code=503)


def entry(content, importance=1.0, access_count=0):
    return MemoryEntry(
        content=content,
        timestamp=Timestamp.now(),
        importance=importance,
        access_count=access_count,
    )


def turn(text, size=20):
    """Interaction whose input and response are each `size` characters."""
    return Interaction(input=text.ljust(size, "."), response="r".ljust(size, "."))


class TestDeriveEntries:
    """Tests for importance heuristics."""

    def test_plain_turn(self):
        user, assistant = derive_entries(Interaction("Hello", "Hi"))
        assert user.content == "User: Hello"
        assert assistant.content == "Assistant: Hi"
        assert user.importance == pytest.approx(1.0)
        assert assistant.importance == pytest.approx(1.0)
        assert user.tags == frozenset({"user_input"})

    def test_question_boosts_both(self):
        user, assistant = derive_entries(Interaction("What's my name?", "Alex"))
        assert user.importance == pytest.approx(1.3)
        assert assistant.importance == pytest.approx(1.3)

    def test_long_input_and_response(self):
        user, assistant = derive_entries(Interaction("x" * 101, "y" * 201))
        assert user.importance == pytest.approx(1.2)
        assert assistant.importance == pytest.approx(1.2)


class TestSnapshot:
    """Tests for MemorySnapshot parsing."""

    def test_dict_round_trip(self):
        history = [Interaction("question", "answer") for _ in range(3)]
        snapshot = MemorySnapshot(short_term=history, summary="recap", turn_count=12)
        decoded = MemorySnapshot.from_dict(snapshot.to_dict()).unwrap()
        assert decoded.to_dict() == snapshot.to_dict()

    def test_from_dict_rejects_bad_sections(self):
        assert MemorySnapshot.from_dict({"long_term": "nope"}).is_err()
        assert MemorySnapshot.from_dict({"short_term": [{"input": 1}]}).is_err()

    def test_turn_count_defaults_to_history(self):
        snapshot = MemorySnapshot.from_dict({
            "short_term": [{"input": "a", "response": "b"}],
        }).unwrap()
        assert snapshot.turn_count == 1
        assert snapshot.summary is None


class TestRetrieval:
    """Tests for keyword relevance."""

    def test_keywords(self):
        assert query_keywords("What's my name?") == frozenset({"what's", "name"})
        assert query_keywords("a an the") == frozenset()

    def test_score(self):
        keywords = query_keywords("name")
        assert relevance_score(keywords, entry("User: My name is Alex.")) == pytest.approx(1.0)
        assert relevance_score(keywords, entry("User: My name is Alex.", 1.3)) == pytest.approx(1.3)
        assert relevance_score(keywords, entry("nothing", access_count=3)) == pytest.approx(0.3)

    def test_access_boost_is_capped(self):
        keywords = query_keywords("unrelated")
        assert relevance_score(keywords, entry("other", access_count=50)) == pytest.approx(0.5)

    def test_repeated_query_words_count_once(self):
        keywords = query_keywords("name name name")
        assert relevance_score(keywords, entry("name")) == pytest.approx(1.0)

    def test_rank_is_stable(self):
        entries = [entry("alpha"), entry("beta"), entry("gamma name"), entry("delta")]
        assert rank_entries("name?", entries, 3) == [2, 0, 1]

    def test_rank_limits(self):
        entries = [entry("alpha")]
        assert rank_entries("alpha", entries, 0) == []
        assert rank_entries("alpha", [], 5) == []


class TestBudget:
    """Tests for token estimation and optimize_context."""

    def _context(self):
        return MemoryContext(
            history=tuple(turn(f"t{i}") for i in range(5)),
            memories=("m" * 40, "n" * 40),
            summary="s" * 40,
        )

    def test_estimate(self):
        context = MemoryContext(
            history=(Interaction("abcd", "efgh"),),
            memories=("1234",),
            summary="xy",
        )
        assert estimate_tokens(context) == 4

    def test_fitting_context_is_untouched(self):
        context = self._context()
        assert optimize_context(context, 1000).unwrap() is context

    def test_drops_oldest_history_first(self):
        fitted = optimize_context(self._context(), 60).unwrap()
        assert [i.input[:2] for i in fitted.history] == ["t2", "t3", "t4"]
        assert len(fitted.memories) == 2
        assert fitted.summary is not None
        assert estimate_tokens(fitted) <= 60

    def test_then_memories_then_summary(self):
        fitted = optimize_context(self._context(), 25).unwrap()
        assert [i.input[:2] for i in fitted.history] == ["t3", "t4"]
        assert fitted.memories == ()
        assert fitted.summary is None

    def test_collapses_to_last_turn(self):
        fitted = optimize_context(self._context(), 12).unwrap()
        assert [i.input[:2] for i in fitted.history] == ["t4"]

    def test_drops_memories_from_the_end(self):
        context = MemoryContext(memories=("a" * 40, "b" * 40, "c" * 40))
        fitted = optimize_context(context, 20).unwrap()
        assert fitted.memories == ("a" * 40, "b" * 40)

    def test_fails_when_one_turn_is_too_big(self):
        result = optimize_context(self._context(), 5)
        assert result.error.category == ErrorCategory.CONTEXT_WINDOW_EXCEEDED
        assert result.error.context == {"token_count": 10, "max_tokens": 5}

    def test_idempotent(self):
        fitted = optimize_context(self._context(), 25).unwrap()
        assert optimize_context(fitted, 25).unwrap() is fitted


class TestBackendSummarizer:
    """Tests for BackendSummarizer."""

    def test_prompt_contains_transcript(self):
        backend = ScriptedBackend("  Alex asked about Paris.  ")
        summarizer = BackendSummarizer(backend)

        summary = asyncio.run(summarizer.summarize([
            Interaction("My name is Alex.", "Nice to meet you!"),
            Interaction("Weather in Paris?", "Sunny."),
        ]))

        assert summary == "Alex asked about Paris."
        prompt = backend.prompts[0]
        assert prompt.startswith(BackendSummarizer.PROMPT_HEADER)
        assert prompt.endswith(
            "User: My name is Alex.\nAssistant: Nice to meet you!\n"
            "User: Weather in Paris?\nAssistant: Sunny."
        )

    def test_summary_is_truncated(self):
        summarizer = BackendSummarizer(ScriptedBackend("x" * 50), max_chars=10)
        assert asyncio.run(summarizer.summarize([Interaction("a", "b")])) == "x" * 10

    def test_empty_reply_is_rejected(self):
        summarizer = BackendSummarizer(ScriptedBackend("   "))
        with pytest.raises(ValueError, match="empty summary"):
            asyncio.run(summarizer.summarize([Interaction("a", "b")]))

    def test_nothing_to_summarize(self):
        backend = ScriptedBackend("unused")
        with pytest.raises(ValueError, match="Nothing to summarize"):
            asyncio.run(BackendSummarizer(backend).summarize([]))
        assert backend.prompts == []

    def test_backend_error_propagates(self):
        summarizer = BackendSummarizer(FailingBackend())
        with pytest.raises(BackendError):
            asyncio.run(summarizer.summarize([Interaction("a", "b")]))

    def test_manager_stores_backend_summary(self):
        backend = ScriptedBackend("Two greetings.")
        manager = HybridMemoryManager(
            InMemoryKeyValueStore(),
            MemoryConfig(summarize_after_turns=2),
            BackendSummarizer(backend),
        )

        async def scenario():
            await manager.store_interaction("s1", Interaction("hi", "hello"))
            await manager.store_interaction("s1", Interaction("hey", "hello again"))
            return (await manager.get_context("s1", "greetings")).unwrap()

        assert asyncio.run(scenario()).summary == "Two greetings."
        assert len(backend.prompts) == 1

    def test_manager_ignores_backend_failure(self):
        manager = HybridMemoryManager(
            InMemoryKeyValueStore(),
            MemoryConfig(summarize_after_turns=1),
            BackendSummarizer(FailingBackend()),
        )

        async def scenario():
            stored = await manager.store_interaction("s1", Interaction("one", "ok"))
            return stored, (await manager.export_memory("s1")).unwrap()

        stored, exported = asyncio.run(scenario())
        assert stored.is_ok()
        assert exported["summary"] is None
        assert exported["turn_count"] == 1


class TestHybridMemoryManager:
    """Tests for HybridMemoryManager."""

    def _manager(self, **overrides):
        return HybridMemoryManager(InMemoryKeyValueStore(), MemoryConfig(**overrides))

    @pytest.mark.parametrize("overrides", [
        {"max_short_term_turns": 0},
        {"summarize_after_turns": 0},
    ])
    def test_invalid_limits_are_rejected(self, overrides):
        with pytest.raises(ValueError):
            self._manager(**overrides)

    def test_short_term_is_bounded(self):
        manager = self._manager(max_short_term_turns=3)

        async def scenario():
            for i in range(5):
                await manager.store_interaction("s1", Interaction(f"turn {i}", "ok"))
            return (await manager.export_memory("s1")).unwrap()

        exported = asyncio.run(scenario())
        assert [i["input"] for i in exported["short_term"]] == ["turn 2", "turn 3", "turn 4"]
        assert exported["turn_count"] == 5

    def test_long_term_keeps_most_important(self):
        manager = self._manager(max_long_term_memories=4)

        async def scenario():
            await manager.store_interaction("s1", Interaction("first", "ok"))
            await manager.store_interaction("s1", Interaction("Is this important?", "yes"))
            for i in range(3):
                await manager.store_interaction("s1", Interaction(f"filler {i}", "ok"))
            return (await manager.export_memory("s1")).unwrap()

        long_term = asyncio.run(scenario())["long_term"]
        contents = [m["content"] for m in long_term]
        assert len(long_term) == 4
        assert "User: Is this important?" in contents
        assert "Assistant: yes" in contents

    def test_recalls_name(self):
        manager = self._manager(max_relevant_memories=1)

        async def scenario():
            await manager.store_interaction("s1", Interaction("My name is Alex.", "Nice to meet you, Alex!"))
            await manager.store_interaction("s1", Interaction("The weather is nice today", "Indeed."))
            context = (await manager.get_context("s1", "What's my name?")).unwrap()
            exported = (await manager.export_memory("s1")).unwrap()
            return context, exported

        context, exported = asyncio.run(scenario())
        assert context.memories == ("User: My name is Alex.",)
        assert len(context.history) == 2

        counts = {m["content"]: m["access_count"] for m in exported["long_term"]}
        assert counts["User: My name is Alex."] == 1
        assert sum(counts.values()) == 1

    def test_empty_session(self):
        manager = self._manager()
        context = asyncio.run(manager.get_context("nobody", "hello there")).unwrap()
        assert context.is_empty

    def test_sessions_are_isolated(self):
        manager = self._manager()

        async def scenario():
            await manager.store_interaction("s1", Interaction("secret plan", "noted"))
            return (await manager.get_context("s2", "secret plan")).unwrap()

        assert asyncio.run(scenario()).is_empty

    def test_summary_after_interval(self):
        manager = self._manager(summarize_after_turns=3)

        async def scenario():
            summaries = []
            for text in ("one", "two", "Tell me about the weather in Paris please"):
                await manager.store_interaction("s1", Interaction(text, "ok"))
                summaries.append((await manager.export_memory("s1")).unwrap()["summary"])
            return summaries

        summaries = asyncio.run(scenario())
        assert summaries[:2] == [None, None]
        assert summaries[2] == (
            "Conversation included 3 turns. Most recent topic: Tell me about the weather in P..."
        )

    def test_summary_counts_evicted_turns(self):
        manager = self._manager(max_short_term_turns=2, summarize_after_turns=4)

        async def scenario():
            for i in range(4):
                await manager.store_interaction("s1", Interaction(f"turn {i}", "ok"))
            return (await manager.get_context("s1", "turn")).unwrap()

        context = asyncio.run(scenario())
        assert context.summary == "Conversation included 2 turns. Most recent topic: turn 3..."

    def test_summary_disabled(self):
        manager = self._manager(summarize_after_turns=1, enable_summarization=False)

        async def scenario():
            await manager.store_interaction("s1", Interaction("one", "ok"))
            return (await manager.export_memory("s1")).unwrap()

        assert asyncio.run(scenario())["summary"] is None

    def test_summarizer_failure_is_ignored(self):
        manager = HybridMemoryManager(
            InMemoryKeyValueStore(),
            MemoryConfig(summarize_after_turns=1),
            FailingSummarizer(),
        )

        async def scenario():
            stored = await manager.store_interaction("s1", Interaction("one", "ok"))
            exported = (await manager.export_memory("s1")).unwrap()
            return stored, exported

        stored, exported = asyncio.run(scenario())
        assert stored.is_ok()
        assert exported["summary"] is None
        assert len(exported["short_term"]) == 1

    def test_export_import(self):
        manager = self._manager()

        async def scenario():
            await manager.store_interaction("s1", Interaction("My name is Alex.", "Hi Alex"))
            exported = (await manager.export_memory("s1")).unwrap()
            imported = await manager.import_memory("s2", exported)
            copied = (await manager.export_memory("s2")).unwrap()
            return exported, imported, copied

        exported, imported, copied = asyncio.run(scenario())
        assert imported.is_ok()
        assert copied == exported

    def test_import_keeps_missing_sections(self):
        manager = self._manager()

        async def scenario():
            await manager.store_interaction("s1", Interaction("hello", "hi"))
            await manager.import_memory("s1", {"summary": "Earlier chat"})
            return (await manager.export_memory("s1")).unwrap()

        exported = asyncio.run(scenario())
        assert exported["summary"] == "Earlier chat"
        assert [i["input"] for i in exported["short_term"]] == ["hello"]

    def test_import_applies_caps(self):
        manager = self._manager(max_short_term_turns=2)
        data = {"short_term": [{"input": f"t{i}", "response": "ok"} for i in range(5)]}

        async def scenario():
            await manager.import_memory("s1", data)
            return (await manager.export_memory("s1")).unwrap()

        exported = asyncio.run(scenario())
        assert [i["input"] for i in exported["short_term"]] == ["t3", "t4"]

    def test_import_rejects_malformed(self):
        manager = self._manager()
        result = asyncio.run(manager.import_memory("s1", {"short_term": "nope"}))
        assert result.error.category == ErrorCategory.MEMORY_STORAGE

    def test_clear(self):
        manager = self._manager()

        async def scenario():
            await manager.store_interaction("s1", Interaction("hello", "hi"))
            await manager.clear_memory("s1")
            return (await manager.get_context("s1", "hello")).unwrap()

        assert asyncio.run(scenario()).is_empty

    def test_storage_failure(self):
        manager = HybridMemoryManager(BrokenStore())

        result = asyncio.run(manager.get_context("s1", "hello"))
        assert result.error.category == ErrorCategory.MEMORY_STORAGE
        assert result.error.message == "Failed to retrieve memory context: disk on fire"

        stored = asyncio.run(manager.store_interaction("s1", Interaction("a", "b")))
        assert stored.error.category == ErrorCategory.MEMORY_STORAGE
