"""
Reliability module: circuit breakers and categorized error handling.
"""

from agentcore.reliability.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRecord,
    CircuitBreakerRegistry,
    CircuitState,
)
from agentcore.reliability.error_handler import (
    ErrorHandler,
    ErrorReporter,
    MonitoredError,
)

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerRecord",
    "CircuitBreakerRegistry",
    "CircuitState",
    "ErrorHandler",
    "ErrorReporter",
    "MonitoredError",
]
