"""
Categorized Error Handling

Turns any failure into a MonitoredError: a severity, internal details for
logs, and a user-facing message that never leaks internals.

Provides:
- MonitoredError: normalized failure handed back to the orchestrator
- ErrorHandler: category -> severity/message mapping, logging, reporting
- ErrorReporter: optional external sink (Sentry-like) returning a reference id
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from agentcore.core.errors import AgentError, ErrorCategory, ErrorSeverity
from agentcore.observability.logging import StructuredLogger

# Receives the normalized error and request context; may return a reference id.
ErrorReporter = Callable[[AgentError, Mapping[str, Any]], Optional[str]]

GENERIC_MESSAGE = "Sorry, I encountered an unexpected error while processing your request."

SEVERITY_BY_CATEGORY: dict[ErrorCategory, ErrorSeverity] = {
    ErrorCategory.INPUT_VALIDATION: ErrorSeverity.LOW,
    ErrorCategory.TOOL_EXECUTION: ErrorSeverity.MEDIUM,
    ErrorCategory.CONTEXT_WINDOW_EXCEEDED: ErrorSeverity.MEDIUM,
    ErrorCategory.UNAUTHORIZED: ErrorSeverity.MEDIUM,
    ErrorCategory.CIRCUIT_OPEN: ErrorSeverity.MEDIUM,
    ErrorCategory.LLM_API: ErrorSeverity.HIGH,
    ErrorCategory.MEMORY_STORAGE: ErrorSeverity.HIGH,
    ErrorCategory.INTERNAL: ErrorSeverity.CRITICAL,
}


@dataclass(frozen=True, slots=True)
class MonitoredError:
    """A handled failure; only user_facing_message ever reaches the caller."""
    category: ErrorCategory
    severity: ErrorSeverity
    internal_details: str
    user_facing_message: str
    error_id: str
    report_id: Optional[str] = None


def user_message_for(error: AgentError) -> str:
    category = error.category
    if category == ErrorCategory.INPUT_VALIDATION:
        return f"Input validation error: {error.message}"
    if category == ErrorCategory.TOOL_EXECUTION:
        return (
            "Sorry, I encountered an issue while performing an operation "
            f"({error.tool_name or 'unknown tool'})."
        )
    if category == ErrorCategory.LLM_API:
        return "Sorry, there was an issue connecting to the AI service. Please try again in a moment."
    if category == ErrorCategory.CIRCUIT_OPEN:
        return "Sorry, the AI service is temporarily unavailable. Please try again shortly."
    if category == ErrorCategory.CONTEXT_WINDOW_EXCEEDED:
        return (
            "Sorry, the conversation has grown too long for me to process. "
            "Try starting a new conversation or summarizing the current topic."
        )
    if category == ErrorCategory.MEMORY_STORAGE:
        return "Sorry, I encountered an issue accessing conversation history."
    if category == ErrorCategory.UNAUTHORIZED:
        return "Sorry, you are not authorized to perform this action."
    return GENERIC_MESSAGE


class ErrorHandler:
    """
    Usage:
        handler = ErrorHandler(reporter=sentry_capture)
        monitored = handler.handle(exc, {"session_id": session_id})
        return monitored.user_facing_message
    """

    __slots__ = ("_reporter", "_logger")

    def __init__(
        self,
        reporter: Optional[ErrorReporter] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self._reporter = reporter
        self._logger = logger or StructuredLogger(__name__)

    def handle(
        self,
        error: BaseException,
        context: Optional[Mapping[str, Any]] = None,
    ) -> MonitoredError:
        """Normalize, log and optionally report `error`. Never raises."""
        ctx = dict(context or {})
        agent_error = AgentError.from_exception(error)
        severity = SEVERITY_BY_CATEGORY.get(agent_error.category, ErrorSeverity.CRITICAL)
        details = self._internal_details(agent_error, ctx)

        log = self._logger.warning if severity == ErrorSeverity.LOW else self._logger.error
        log(
            f"{agent_error.category.value} error: {agent_error.message}",
            error_id=agent_error.error_id,
            category=agent_error.category.value,
            severity=severity.value,
            details=details,
        )

        report_id = self._report(agent_error, ctx)
        message = user_message_for(agent_error)
        if report_id:
            message = f"{message} (Ref: {report_id[:8]})"

        return MonitoredError(
            category=agent_error.category,
            severity=severity,
            internal_details=details,
            user_facing_message=message,
            error_id=agent_error.error_id,
            report_id=report_id,
        )

    def _report(self, error: AgentError, context: Mapping[str, Any]) -> Optional[str]:
        if self._reporter is None:
            return None
        try:
            report_id = self._reporter(error, context)
        except Exception as e:
            self._logger.warning(f"Error reporter failed: {e}", error_id=error.error_id)
            return None
        return str(report_id) if report_id else None

    @staticmethod
    def _internal_details(error: AgentError, context: Mapping[str, Any]) -> str:
        lines = [
            f"{error.category.value}: {error.message}",
            f"Payload: {json.dumps(error.context, default=str)}",
            f"Context: {json.dumps(dict(context), default=str)}",
        ]
        trace = error.cause_traceback()
        if trace:
            lines.append(f"Cause:\n{trace}")
        return "\n".join(lines)
