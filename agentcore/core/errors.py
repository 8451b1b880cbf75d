"""
Error Taxonomy for the Agent Engine

Design Principles:
- One exception type, tagged by category, instead of a class per failure
- Internal stages return Err(AgentError) rather than raising
- Carry full internal context for logging; user-facing text is produced
  separately by the error handler and never includes these details

Each error includes:
- Category for programmatic handling
- Human-readable message for logging
- Optional cause for root cause analysis
- Per-category payload in `context` (token counts, tool name, status code)

Usage:
    result = await memory.get_context(session_id, query)
    match result:
        case Ok(context):
            build_prompt(context)
        case Err(AgentError(category=ErrorCategory.MEMORY_STORAGE)):
            abort_turn()
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from agentcore.core.types import Timestamp


# =============================================================================
# ERROR CATEGORIES
# =============================================================================
class ErrorCategory(Enum):
    """
    Failure categories recognized by the error handler.

    Values are stable strings so they can be used as metric labels.
    """

    INPUT_VALIDATION = "input_validation"
    LLM_API = "llm_api"
    MEMORY_STORAGE = "memory_storage"
    CONTEXT_WINDOW_EXCEEDED = "context_window_exceeded"
    TOOL_EXECUTION = "tool_execution"
    UNAUTHORIZED = "unauthorized"
    CIRCUIT_OPEN = "circuit_open"
    INTERNAL = "internal"


class ErrorSeverity(Enum):
    """Severity assigned to a category by the error handler."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# =============================================================================
# AGENT ERROR
# =============================================================================
@dataclass
class AgentError(Exception):
    """
    Tagged error carried through Result values.

    Also an Exception so collaborators (tools, backends, storage) may raise
    it directly; the pipeline converts any exception it catches into one.
    """

    category: ErrorCategory
    message: str
    error_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: Timestamp = field(default_factory=Timestamp.now)
    cause: Optional[BaseException] = None
    context: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    # -------------------------------------------------------------------------
    # FACTORIES
    # -------------------------------------------------------------------------

    @classmethod
    def input_validation(cls, message: str, field_name: str = "input") -> AgentError:
        return cls(
            category=ErrorCategory.INPUT_VALIDATION,
            message=message,
            context={"field": field_name},
        )

    @classmethod
    def llm_api(
        cls,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ) -> AgentError:
        """Generation backend call failed."""
        return cls(
            category=ErrorCategory.LLM_API,
            message=f"LLM API call failed: {message}",
            cause=cause,
            context={"status_code": status_code},
        )

    @classmethod
    def memory_storage(
        cls,
        operation: str,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> AgentError:
        """State or memory storage failed."""
        return cls(
            category=ErrorCategory.MEMORY_STORAGE,
            message=f"Failed to {operation}: {message}",
            cause=cause,
            context={"operation": operation},
        )

    @classmethod
    def context_window_exceeded(
        cls,
        message: str,
        token_count: int,
        max_tokens: int,
    ) -> AgentError:
        return cls(
            category=ErrorCategory.CONTEXT_WINDOW_EXCEEDED,
            message=(
                f"Context window exceeded: {message}. "
                f"Token count: {token_count}, Max allowed: {max_tokens}"
            ),
            context={"token_count": token_count, "max_tokens": max_tokens},
        )

    @classmethod
    def tool_execution(
        cls,
        tool_name: str,
        message: str,
        cause: Optional[BaseException] = None,
    ) -> AgentError:
        return cls(
            category=ErrorCategory.TOOL_EXECUTION,
            message=f"Error executing tool {tool_name}: {message}",
            cause=cause,
            context={"tool_name": tool_name},
        )

    @classmethod
    def unauthorized(cls, reason: str) -> AgentError:
        return cls(
            category=ErrorCategory.UNAUTHORIZED,
            message=f"Unauthorized: {reason}",
            context={"reason": reason},
        )

    @classmethod
    def circuit_open(
        cls,
        operation: str,
        failure_count: int,
        retry_after_seconds: float,
    ) -> AgentError:
        """Circuit breaker is open, failing fast."""
        return cls(
            category=ErrorCategory.CIRCUIT_OPEN,
            message=f"Circuit is open for {operation}",
            context={
                "operation": operation,
                "failure_count": failure_count,
                "retry_after_seconds": round(retry_after_seconds, 3),
            },
        )

    @classmethod
    def internal(cls, message: str, cause: Optional[BaseException] = None) -> AgentError:
        return cls(category=ErrorCategory.INTERNAL, message=message, cause=cause)

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        category: ErrorCategory = ErrorCategory.INTERNAL,
    ) -> AgentError:
        """
        Normalize an arbitrary exception.

        AgentError instances pass through untouched. Anything carrying a
        `status_code` attribute keeps it when mapped to LLM_API.
        """
        if isinstance(exc, AgentError):
            return exc
        text = str(exc) or exc.__class__.__name__
        if category == ErrorCategory.LLM_API:
            return cls.llm_api(text, status_code=getattr(exc, "status_code", None), cause=exc)
        return cls(category=category, message=text, cause=exc)

    # -------------------------------------------------------------------------
    # ACCESSORS
    # -------------------------------------------------------------------------

    @property
    def status_code(self) -> Optional[int]:
        return self.context.get("status_code")

    @property
    def tool_name(self) -> Optional[str]:
        return self.context.get("tool_name")

    def with_context(self, **kwargs: Any) -> AgentError:
        """Return a copy with extra context fields."""
        return AgentError(
            category=self.category,
            message=self.message,
            error_id=self.error_id,
            timestamp=self.timestamp,
            cause=self.cause,
            context={**self.context, **kwargs},
        )

    def cause_traceback(self) -> Optional[str]:
        if self.cause is None:
            return None
        return "".join(
            traceback.format_exception(type(self.cause), self.cause, self.cause.__traceback__)
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging; never sent to callers."""
        data: dict[str, Any] = {
            "error_id": self.error_id,
            "category": self.category.value,
            "message": self.message,
            "timestamp": self.timestamp.to_iso(),
            "context": self.context,
        }
        if self.cause is not None:
            data["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return data

    def __str__(self) -> str:
        return f"[{self.category.name}] {self.message} (id={self.error_id[:8]})"

    def __repr__(self) -> str:
        return (
            f"AgentError(category={self.category.name}, "
            f"message={self.message!r}, error_id={self.error_id!r})"
        )
