"""
Memory Data Model

Provides:
- Interaction: one completed user/assistant turn (immutable)
- MemoryEntry: importance-scored long-term record derived from a turn
- MemoryContext: history + retrieved memories + summary handed to prompting
- MemorySnapshot: a session's full memory as a storable dict
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from agentcore.core import constants as C
from agentcore.core.types import Err, Ok, Result, Timestamp

USER_INPUT_TAG = "user_input"
ASSISTANT_RESPONSE_TAG = "assistant_response"
CONVERSATION_SOURCE = "conversation"


# =============================================================================
# INTERACTION
# =============================================================================
@dataclass(frozen=True, slots=True)
class Interaction:
    """One completed turn."""
    input: str
    response: str
    timestamp: Timestamp = field(default_factory=Timestamp.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": self.input,
            "response": self.response,
            "timestamp": self.timestamp.to_iso(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Result[Interaction, str]:
        if not isinstance(data.get("input"), str) or not isinstance(data.get("response"), str):
            return Err("Interaction requires string 'input' and 'response'")
        ts = _parse_timestamp(data.get("timestamp"))
        if ts.is_err():
            return ts
        return Ok(cls(input=data["input"], response=data["response"], timestamp=ts.unwrap()))


# =============================================================================
# MEMORY ENTRY
# =============================================================================
@dataclass(slots=True)
class MemoryEntry:
    """
    Long-term memory record.

    Only `access_count` and `last_accessed` change after creation.
    """
    content: str
    timestamp: Timestamp
    tags: frozenset[str] = frozenset()
    source: str = CONVERSATION_SOURCE
    importance: float = C.BASE_IMPORTANCE
    access_count: int = 0
    last_accessed: Optional[Timestamp] = None

    def mark_accessed(self, when: Optional[Timestamp] = None) -> None:
        self.access_count += 1
        self.last_accessed = when or Timestamp.now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "timestamp": self.timestamp.to_iso(),
            "tags": sorted(self.tags),
            "source": self.source,
            "importance": self.importance,
            "access_count": self.access_count,
            "last_accessed": self.last_accessed.to_iso() if self.last_accessed else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Result[MemoryEntry, str]:
        if not isinstance(data.get("content"), str):
            return Err("Memory entry requires string 'content'")
        ts = _parse_timestamp(data.get("timestamp"))
        if ts.is_err():
            return ts
        last = None
        if data.get("last_accessed"):
            parsed = Timestamp.from_iso(data["last_accessed"])
            if parsed.is_err():
                return parsed
            last = parsed.unwrap()
        try:
            importance = float(data.get("importance", C.BASE_IMPORTANCE))
            access_count = int(data.get("access_count", 0))
        except (TypeError, ValueError) as e:
            return Err(f"Invalid memory entry counters: {e}")
        return Ok(cls(
            content=data["content"],
            timestamp=ts.unwrap(),
            tags=frozenset(data.get("tags") or ()),
            source=str(data.get("source", CONVERSATION_SOURCE)),
            importance=importance,
            access_count=access_count,
            last_accessed=last,
        ))


def derive_entries(interaction: Interaction) -> tuple[MemoryEntry, MemoryEntry]:
    """
    Split a turn into its input and response entries with importance heuristics.

    Long inputs and long responses get a small boost; a question mark in the
    input marks both entries as more important.
    """
    user = MemoryEntry(
        content=f"User: {interaction.input}",
        timestamp=interaction.timestamp,
        tags=frozenset({USER_INPUT_TAG}),
    )
    assistant = MemoryEntry(
        content=f"Assistant: {interaction.response}",
        timestamp=interaction.timestamp,
        tags=frozenset({ASSISTANT_RESPONSE_TAG}),
    )

    if len(interaction.input) > C.LONG_INPUT_CHARS:
        user.importance += C.LONG_INPUT_BOOST
    if "?" in interaction.input:
        user.importance += C.QUESTION_BOOST
        assistant.importance += C.QUESTION_BOOST
    if len(interaction.response) > C.LONG_RESPONSE_CHARS:
        assistant.importance += C.LONG_RESPONSE_BOOST

    return user, assistant


# =============================================================================
# MEMORY CONTEXT
# =============================================================================
@dataclass(frozen=True, slots=True)
class MemoryContext:
    """Context bundle for one prompt; memories are ranked most relevant first."""
    history: tuple[Interaction, ...] = ()
    memories: tuple[str, ...] = ()
    summary: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.history and not self.memories and not self.summary


# =============================================================================
# SNAPSHOT
# =============================================================================
@dataclass(slots=True)
class MemorySnapshot:
    """
    Everything the manager keeps for one session.

    `turn_count` counts every turn ever stored, including those evicted from
    short-term history; summaries are scheduled from it.
    """
    short_term: list[Interaction] = field(default_factory=list)
    long_term: list[MemoryEntry] = field(default_factory=list)
    summary: Optional[str] = None
    turn_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "short_term": [i.to_dict() for i in self.short_term],
            "long_term": [m.to_dict() for m in self.long_term],
            "summary": self.summary,
            "turn_count": self.turn_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Result[MemorySnapshot, str]:
        if not isinstance(data, Mapping):
            return Err(f"Memory snapshot must be a map, got {type(data).__name__}")

        short_term = _parse_list(data.get("short_term"), Interaction.from_dict, "short_term")
        if short_term.is_err():
            return short_term
        long_term = _parse_list(data.get("long_term"), MemoryEntry.from_dict, "long_term")
        if long_term.is_err():
            return long_term

        summary = data.get("summary")
        if summary is not None and not isinstance(summary, str):
            return Err("Memory snapshot 'summary' must be a string")

        history = short_term.unwrap()
        try:
            turn_count = int(data.get("turn_count", len(history)))
        except (TypeError, ValueError) as e:
            return Err(f"Invalid turn_count: {e}")

        return Ok(cls(
            short_term=history,
            long_term=long_term.unwrap(),
            summary=summary or None,
            turn_count=max(turn_count, len(history)),
        ))


def _parse_timestamp(value: Any) -> Result[Timestamp, str]:
    if value is None:
        return Ok(Timestamp.now())
    if isinstance(value, Timestamp):
        return Ok(value)
    if isinstance(value, str):
        return Timestamp.from_iso(value)
    return Err(f"Unsupported timestamp {value!r}")


def _parse_list(raw: Any, parse: Any, name: str) -> Result[list, str]:
    if raw is None:
        return Ok([])
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        return Err(f"Memory snapshot '{name}' must be a list")
    items = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            return Err(f"{name}[{index}] must be a map")
        parsed = parse(item)
        if parsed.is_err():
            return Err(f"{name}[{index}]: {parsed.error}")
        items.append(parsed.unwrap())
    return Ok(items)
