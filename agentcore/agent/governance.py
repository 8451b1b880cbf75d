"""
Decision Records for Governance Observers

After every completed turn the orchestrator hands a DecisionRecord to the
configured DecisionObserver together with the model id. Observers are
purely observational: their failures are logged and never change the reply.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional, Protocol, Union, runtime_checkable

from agentcore.core.types import Timestamp


@dataclass(frozen=True, slots=True)
class DecisionRecord:
    request_id: str
    session_id: str
    input: str
    output: str
    prompt_tokens: int
    tools_invoked: tuple[str, ...] = ()
    timestamp: Timestamp = field(default_factory=Timestamp.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "session_id": self.session_id,
            "input": self.input,
            "output": self.output,
            "prompt_tokens": self.prompt_tokens,
            "tools_invoked": list(self.tools_invoked),
            "timestamp": self.timestamp.to_iso(),
        }


@runtime_checkable
class DecisionObserver(Protocol):
    def observe(self, model_id: str, record: DecisionRecord) -> Union[None, Awaitable[None]]:
        ...


class RecordingObserver:
    """Keeps the most recent decision records in memory."""

    __slots__ = ("_records",)

    def __init__(self, max_records: Optional[int] = 1000) -> None:
        self._records: deque[tuple[str, DecisionRecord]] = deque(maxlen=max_records)

    def observe(self, model_id: str, record: DecisionRecord) -> None:
        self._records.append((model_id, record))

    @property
    def records(self) -> list[tuple[str, DecisionRecord]]:
        return list(self._records)

    def for_session(self, session_id: str) -> list[DecisionRecord]:
        return [r for _, r in self._records if r.session_id == session_id]

    def __len__(self) -> int:
        return len(self._records)
