"""
agentcore: Conversational Request-Orchestration Engine

Turns one user utterance into a reply by coordinating:
- Session state: open key/value map per session
- Hybrid memory: bounded recent history + importance-scored long-term entries
- Tools: embedded [[name(key=value)]] calls resolved in backend output
- Resilience: circuit breaker around the generation backend and
  categorized, non-leaking error messages

Single process, asyncio, sessions partitioned by id.
"""

__version__ = "0.1.0"

# =============================================================================
# PUBLIC API EXPORTS
# =============================================================================
from agentcore.core.types import Result, Ok, Err, SessionId, Timestamp
from agentcore.core.errors import AgentError, ErrorCategory, ErrorSeverity
from agentcore.core.config import AgentConfig

from agentcore.storage import (
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
)
from agentcore.session import SessionStateStore, SessionLockTable
from agentcore.memory import (
    HybridMemoryManager,
    Interaction,
    MemoryContext,
    MemoryEntry,
)
from agentcore.tools import Tool, ToolExecutor, ToolRegistry, ToolResult
from agentcore.reliability import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitState,
    ErrorHandler,
    MonitoredError,
)
from agentcore.agent import (
    AgentOrchestrator,
    EchoBackend,
    GenerationBackend,
    build_agent,
    running_agent,
)

__all__ = [
    "__version__",
    # Result type
    "Result",
    "Ok",
    "Err",
    "SessionId",
    "Timestamp",
    # Errors
    "AgentError",
    "ErrorCategory",
    "ErrorSeverity",
    # Config
    "AgentConfig",
    # Storage
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "RedisKeyValueStore",
    # Session
    "SessionStateStore",
    "SessionLockTable",
    # Memory
    "HybridMemoryManager",
    "Interaction",
    "MemoryContext",
    "MemoryEntry",
    # Tools
    "Tool",
    "ToolExecutor",
    "ToolRegistry",
    "ToolResult",
    # Reliability
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitState",
    "ErrorHandler",
    "MonitoredError",
    # Agent
    "AgentOrchestrator",
    "EchoBackend",
    "GenerationBackend",
    "build_agent",
    "running_agent",
]
