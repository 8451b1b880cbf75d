"""
Per-Request Telemetry

Tracks request timing and error rates for the orchestrator.

Provides:
- RequestMetrics: mutable record opened at request start, closed at end
- PerformanceMonitor: bounded history, counters and a latency histogram
  in a MetricsCollector, slow-request warnings
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4

from agentcore.core import constants as C
from agentcore.core.errors import ErrorCategory
from agentcore.observability.metrics import MetricsCollector

logger = logging.getLogger(__name__)

REQUESTS_TOTAL = "agent_requests_total"
REQUEST_ERRORS_TOTAL = "agent_request_errors_total"
REQUEST_DURATION_MS = "agent_request_duration_ms"
REQUESTS_IN_FLIGHT = "agent_requests_in_flight"


@dataclass(slots=True)
class RequestMetrics:
    """Timing and outcome of one handle_request call."""
    session_id: str
    request_id: str = field(default_factory=lambda: f"req-{uuid4().hex[:12]}")
    start_time: float = field(default_factory=time.time)
    start_perf: float = field(default_factory=time.perf_counter)
    end_time: Optional[float] = None
    duration_ms: Optional[float] = None
    error_occurred: bool = False
    error_category: Optional[ErrorCategory] = None
    response_tokens: Optional[int] = None

    @property
    def finished(self) -> bool:
        return self.end_time is not None


class PerformanceMonitor:
    """
    Request timing and error-rate tracker.

    Usage:
        metrics = monitor.start_request(session_id)
        ...
        monitor.end_request(metrics, response=text)
    """

    __slots__ = (
        "_collector", "_history", "_lock", "_slow_request_ms",
        "_requests", "_errors", "_latency", "_in_flight",
    )

    def __init__(
        self,
        collector: Optional[MetricsCollector] = None,
        slow_request_ms: float = C.SLOW_REQUEST_MS,
        max_entries: int = 100,
    ) -> None:
        self._collector = collector or MetricsCollector()
        self._history: deque[RequestMetrics] = deque(maxlen=max_entries)
        self._lock = threading.Lock()
        self._slow_request_ms = slow_request_ms

        self._requests = self._collector.counter(
            REQUESTS_TOTAL, ["status"], "Completed requests by outcome",
        )
        self._errors = self._collector.counter(
            REQUEST_ERRORS_TOTAL, ["category"], "Failed requests by error category",
        )
        self._latency = self._collector.histogram(
            REQUEST_DURATION_MS, help_text="End-to-end request latency in milliseconds",
        )
        self._in_flight = self._collector.gauge(
            REQUESTS_IN_FLIGHT, help_text="Requests currently being handled",
        )

    @property
    def collector(self) -> MetricsCollector:
        return self._collector

    def start_request(self, session_id: str) -> RequestMetrics:
        self._in_flight.inc()
        return RequestMetrics(session_id=session_id)

    def end_request(
        self,
        metrics: RequestMetrics,
        response: Optional[str] = None,
        error_category: Optional[ErrorCategory] = None,
    ) -> RequestMetrics:
        """Close the record, update counters and keep it in the bounded history."""
        if metrics.finished:
            return metrics

        metrics.end_time = time.time()
        metrics.duration_ms = (time.perf_counter() - metrics.start_perf) * C.SECOND_MS
        if response is not None:
            metrics.response_tokens = math.ceil(len(response) / C.CHARS_PER_TOKEN)
        if error_category is not None:
            metrics.error_occurred = True
            metrics.error_category = error_category

        self._in_flight.dec()
        self._latency.observe(metrics.duration_ms)
        if metrics.error_occurred:
            self._requests.inc(status="error")
            self._errors.inc(category=metrics.error_category.value)
        else:
            self._requests.inc(status="success")

        with self._lock:
            self._history.append(metrics)

        if metrics.duration_ms > self._slow_request_ms:
            logger.warning(
                f"Slow request {metrics.request_id}: {metrics.duration_ms:.0f}ms "
                f"(threshold {self._slow_request_ms:.0f}ms)"
            )
        else:
            logger.debug(
                f"Request {metrics.request_id} finished in {metrics.duration_ms:.1f}ms "
                f"error={metrics.error_occurred}"
            )
        return metrics

    def recent(self, limit: int = 10) -> list[RequestMetrics]:
        """Most recent finished requests, newest first."""
        with self._lock:
            items = list(self._history)[-limit:]
        return sorted(items, key=lambda m: m.start_time, reverse=True)

    def average_duration_ms(self, session_id: Optional[str] = None) -> float:
        selected = self._select(session_id)
        if not selected:
            return 0.0
        return sum(m.duration_ms or 0.0 for m in selected) / len(selected)

    def error_rate(self, session_id: Optional[str] = None) -> float:
        """Percentage of finished requests that failed."""
        selected = self._select(session_id)
        if not selected:
            return 0.0
        failed = sum(1 for m in selected if m.error_occurred)
        return failed / len(selected) * 100.0

    def _select(self, session_id: Optional[str]) -> list[RequestMetrics]:
        with self._lock:
            items = list(self._history)
        if session_id is None:
            return items
        return [m for m in items if m.session_id == session_id]
