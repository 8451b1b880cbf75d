"""
Conversation Summarizers

A summarizer turns the most recent window of turns into one short string that
is kept per session and placed at the top of later prompts.

Provides:
- ExtractiveSummarizer: deterministic, no external calls (default)
- BackendSummarizer: asks the generation backend to write the summary
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from agentcore.memory.models import Interaction

TOPIC_PREVIEW_CHARS = 30


@runtime_checkable
class Summarizer(Protocol):
    async def summarize(self, interactions: Sequence[Interaction]) -> str:
        ...


@runtime_checkable
class _CompletionBackend(Protocol):
    async def complete(self, prompt: str) -> str:
        ...


class ExtractiveSummarizer:
    """Counts the turns and previews the most recent topic."""

    __slots__ = ()

    async def summarize(self, interactions: Sequence[Interaction]) -> str:
        if not interactions:
            raise ValueError("Nothing to summarize")
        topic = interactions[-1].input[:TOPIC_PREVIEW_CHARS]
        return f"Conversation included {len(interactions)} turns. Most recent topic: {topic}..."


class BackendSummarizer:
    """
    Delegates to a generation backend.

    Any backend error propagates; the memory manager logs and ignores it.
    """

    __slots__ = ("_backend", "_max_chars")

    PROMPT_HEADER = (
        "Summarize the following conversation in two or three sentences. "
        "Keep names, preferences and open questions.\n\n"
    )

    def __init__(self, backend: _CompletionBackend, max_chars: int = 1000) -> None:
        self._backend = backend
        self._max_chars = max_chars

    async def summarize(self, interactions: Sequence[Interaction]) -> str:
        if not interactions:
            raise ValueError("Nothing to summarize")
        transcript = "\n".join(
            f"User: {i.input}\nAssistant: {i.response}" for i in interactions
        )
        summary = (await self._backend.complete(self.PROMPT_HEADER + transcript)).strip()
        if not summary:
            raise ValueError("Backend returned an empty summary")
        return summary[: self._max_chars]
