"""
Observability module: Metrics, request telemetry, and structured logging.
"""

from agentcore.observability.metrics import MetricsCollector, Counter, Gauge, Histogram
from agentcore.observability.logging import StructuredLogger, LogLevel, setup_logging
from agentcore.observability.telemetry import PerformanceMonitor, RequestMetrics

__all__ = [
    "MetricsCollector",
    "Counter",
    "Gauge",
    "Histogram",
    "StructuredLogger",
    "LogLevel",
    "setup_logging",
    "PerformanceMonitor",
    "RequestMetrics",
]
