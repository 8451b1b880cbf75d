"""
Core module: Type definitions, error taxonomy, and configuration.

This module provides the foundational abstractions for the engine:
- Result containers for explicit error propagation
- A single category-tagged error type
- Configuration management with validation
"""

from agentcore.core.types import (
    Result,
    Ok,
    Err,
    SessionId,
    Timestamp,
    validate_session_id,
)
from agentcore.core.errors import (
    AgentError,
    ErrorCategory,
    ErrorSeverity,
)
from agentcore.core.config import (
    AgentConfig,
    CircuitBreakerConfig,
    MemoryConfig,
    ObservabilityConfig,
    PromptConfig,
    StorageConfig,
    ToolConfig,
)

__all__ = [
    "Result",
    "Ok",
    "Err",
    "SessionId",
    "Timestamp",
    "validate_session_id",
    "AgentError",
    "ErrorCategory",
    "ErrorSeverity",
    "AgentConfig",
    "CircuitBreakerConfig",
    "MemoryConfig",
    "ObservabilityConfig",
    "PromptConfig",
    "StorageConfig",
    "ToolConfig",
]
