"""
Context Budget: Token Estimation and Degradation

Token estimate is ceil(characters / 4) over history inputs and responses,
retrieved memories and the summary.

optimize_context degrades an over-budget context in a fixed order:
    (a) drop oldest history turns while more than two remain
    (b) drop memories from the end of the ranked list
    (c) drop the summary
    (d) collapse history to the most recent turn
and fails with CONTEXT_WINDOW_EXCEEDED if that is still not enough.
"""

from __future__ import annotations

import math
from dataclasses import replace

from agentcore.core import constants as C
from agentcore.core.errors import AgentError
from agentcore.core.types import Err, Ok, Result
from agentcore.memory.models import MemoryContext


def estimate_chars(context: MemoryContext) -> int:
    total = sum(len(i.input) + len(i.response) for i in context.history)
    total += sum(len(m) for m in context.memories)
    if context.summary:
        total += len(context.summary)
    return total


def estimate_tokens(context: MemoryContext) -> int:
    return math.ceil(estimate_chars(context) / C.CHARS_PER_TOKEN)


def estimate_text_tokens(text: str) -> int:
    return math.ceil(len(text) / C.CHARS_PER_TOKEN)


def optimize_context(
    context: MemoryContext,
    max_tokens: int,
) -> Result[MemoryContext, AgentError]:
    """Fit `context` into `max_tokens`; an already-fitting context is returned as is."""
    if estimate_tokens(context) <= max_tokens:
        return Ok(context)

    history = list(context.history)
    memories = list(context.memories)
    summary = context.summary

    def tokens() -> int:
        return estimate_tokens(MemoryContext(tuple(history), tuple(memories), summary))

    while len(history) > C.MIN_HISTORY_BEFORE_MEMORY_TRIM and tokens() > max_tokens:
        history.pop(0)

    while memories and tokens() > max_tokens:
        memories.pop()

    if tokens() > max_tokens:
        summary = None

    if tokens() > max_tokens and history:
        history = history[-1:]

    final = tokens()
    if final > max_tokens:
        return Err(AgentError.context_window_exceeded(
            "Context is too large even after optimization",
            token_count=final,
            max_tokens=max_tokens,
        ))

    return Ok(replace(
        context,
        history=tuple(history),
        memories=tuple(memories),
        summary=summary,
    ))
