"""
Generation Backend Interface

The engine treats the text generator as an opaque async dependency:

    complete(prompt) -> text

It may raise anything; the circuit breaker turns failures into LLM_API
errors. An exception carrying a `status_code` attribute keeps that code.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

PREVIEW_CHARS = 50


@runtime_checkable
class GenerationBackend(Protocol):
    async def complete(self, prompt: str) -> str:
        ...


class BackendError(Exception):
    """Convenience error for backend adapters that know an HTTP-like status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EchoBackend:
    """
    Development backend that answers without any model.

    Replies with a fixed acknowledgement quoting the start of the current
    user turn (the last ``User:`` line of the prompt).
    """

    __slots__ = ("calls",)

    def __init__(self) -> None:
        self.calls = 0

    async def complete(self, prompt: str) -> str:
        self.calls += 1
        turn = _last_user_turn(prompt)
        preview = turn[:PREVIEW_CHARS]
        suffix = "..." if len(turn) > PREVIEW_CHARS else ""
        return f'I understood your request. Here\'s my response to: "{preview}{suffix}"'


def _last_user_turn(prompt: str) -> str:
    for line in reversed(prompt.splitlines()):
        if line.startswith("User: "):
            return line[len("User: "):]
    return prompt.strip()
