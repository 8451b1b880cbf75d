"""
Core Type Definitions for the Agent Engine

Implements Result/Either containers for explicit error propagation between
pipeline stages, plus the small value types shared by every subsystem.

Design Principles:
- Internal operations return Result[T, AgentError] instead of raising
- Session identifiers are opaque caller-supplied strings
- Timestamps are timezone-aware and serialize to ISO-8601
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import (
    Any,
    Callable,
    Generic,
    Literal,
    TypeVar,
    Union,
)

# =============================================================================
# TYPE VARIABLES FOR GENERIC CONTAINERS
# =============================================================================
T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type
U = TypeVar("U")  # Transform result type


# =============================================================================
# RESULT: EXPLICIT ERROR PROPAGATION
# =============================================================================
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """
    Success variant of Result.

    Immutable container for the value produced by a pipeline stage.
    """

    value: T

    def is_ok(self) -> Literal[True]:
        return True

    def is_err(self) -> Literal[False]:
        return False

    def unwrap(self) -> T:
        """Extract value. Safe to call after is_ok() check."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Return value, ignoring default."""
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        """Apply transformation to success value."""
        return Ok(fn(self.value))

    def flat_map(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain another fallible operation."""
        return fn(self.value)

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """
    Failure variant of Result.

    Carries the error value unchanged through map/flat_map chains.
    """

    error: E

    def is_ok(self) -> Literal[False]:
        return False

    def is_err(self) -> Literal[True]:
        return True

    def unwrap(self) -> Any:
        """
        Unwrapping an error is a programming error.

        Raises:
            RuntimeError: Always, with error context
        """
        raise RuntimeError(f"Called unwrap() on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        """Return default value on error."""
        return default

    def map(self, fn: Callable[[Any], U]) -> Err[E]:
        return self

    def flat_map(self, fn: Callable[[Any], Result[U, E]]) -> Err[E]:
        return self

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


# Union type for pattern matching
Result = Union[Ok[T], Err[E]]


# =============================================================================
# SESSION IDENTIFIERS
# =============================================================================
SessionId = str

MAX_SESSION_ID_LENGTH = 256


def validate_session_id(raw: Any) -> Result[SessionId, str]:
    """
    Check that a caller-supplied session id is usable as a storage key.

    Ids are opaque; only emptiness, type and length are checked.
    """
    if not isinstance(raw, str):
        return Err(f"Session id must be a string, got {type(raw).__name__}")
    value = raw.strip()
    if not value:
        return Err("Session id is empty")
    if len(value) > MAX_SESSION_ID_LENGTH:
        return Err(f"Session id exceeds {MAX_SESSION_ID_LENGTH} characters")
    return Ok(value)


# =============================================================================
# TIMESTAMP
# =============================================================================
@dataclass(frozen=True, slots=True, order=True)
class Timestamp:
    """
    Wall-clock timestamp used for interactions and memory entries.

    Stores nanoseconds since the Unix epoch; serializes to ISO-8601 UTC so
    exported memory stays readable by other persistence collaborators.
    """

    nanos: int

    NANOS_PER_SECOND = 1_000_000_000
    NANOS_PER_MILLI = 1_000_000

    @classmethod
    def now(cls) -> Timestamp:
        return cls(nanos=time.time_ns())

    @classmethod
    def from_seconds(cls, seconds: float) -> Timestamp:
        return cls(nanos=int(seconds * cls.NANOS_PER_SECOND))

    @classmethod
    def from_iso(cls, value: str) -> Result[Timestamp, str]:
        """Parse an ISO-8601 string; naive values are read as UTC."""
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except (ValueError, AttributeError) as e:
            return Err(f"Invalid timestamp {value!r}: {e}")
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return Ok(cls.from_seconds(parsed.timestamp()))

    @property
    def seconds(self) -> float:
        return self.nanos / self.NANOS_PER_SECOND

    @property
    def millis(self) -> int:
        return self.nanos // self.NANOS_PER_MILLI

    def elapsed_millis(self) -> float:
        """Milliseconds elapsed since this timestamp."""
        return (time.time_ns() - self.nanos) / self.NANOS_PER_MILLI

    def to_iso(self) -> str:
        return datetime.fromtimestamp(self.seconds, tz=timezone.utc).isoformat()

    def __repr__(self) -> str:
        return f"Timestamp({self.to_iso()})"
