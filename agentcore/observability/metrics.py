"""
Metrics Collector: Prometheus-Compatible Request Telemetry

Provides:
- Labelled counters and gauges
- Latency histograms with cumulative buckets
- Prometheus text exposition

The collector is an explicit instance owned by whoever builds the agent;
there is no process-wide singleton.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Sequence


@dataclass(frozen=True)
class MetricLabels:
    """Immutable label set for metric dimensions."""
    labels: tuple[tuple[str, str], ...]

    @classmethod
    def from_dict(cls, d: dict[str, str]) -> MetricLabels:
        return cls(labels=tuple(sorted(d.items())))

    def to_dict(self) -> dict[str, str]:
        return dict(self.labels)


class _LabelledMetric:
    """Shared label handling for every metric kind."""

    __slots__ = ("_name", "_help", "_label_names", "_lock")

    def __init__(self, name: str, label_names: Sequence[str], help_text: str) -> None:
        self._name = name
        self._help = help_text
        self._label_names = tuple(label_names)
        self._lock = threading.Lock()

    def _make_key(self, labels: dict[str, str]) -> MetricLabels:
        filtered = {k: str(labels.get(k, "")) for k in self._label_names}
        return MetricLabels.from_dict(filtered)

    @property
    def name(self) -> str:
        return self._name

    @property
    def help_text(self) -> str:
        return self._help


class Counter(_LabelledMetric):
    """
    Monotonically increasing counter metric.

    Usage:
        requests = Counter("agent_requests_total", ["status"])
        requests.inc(status="success")
    """

    __slots__ = ("_values",)

    def __init__(
        self,
        name: str,
        label_names: Sequence[str] = (),
        help_text: str = "",
    ) -> None:
        super().__init__(name, label_names, help_text)
        self._values: dict[MetricLabels, float] = defaultdict(float)

    def inc(self, value: float = 1.0, **labels: str) -> None:
        if value < 0:
            raise ValueError("Counter can only increase")
        key = self._make_key(labels)
        with self._lock:
            self._values[key] += value

    def get(self, **labels: str) -> float:
        key = self._make_key(labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def collect(self) -> Iterator[tuple[dict[str, str], float]]:
        """Iterate all label combinations."""
        with self._lock:
            items = list(self._values.items())
        for key, value in items:
            yield (key.to_dict(), value)


class Gauge(_LabelledMetric):
    """Gauge metric that can go up and down."""

    __slots__ = ("_values",)

    def __init__(
        self,
        name: str,
        label_names: Sequence[str] = (),
        help_text: str = "",
    ) -> None:
        super().__init__(name, label_names, help_text)
        self._values: dict[MetricLabels, float] = {}

    def set(self, value: float, **labels: str) -> None:
        key = self._make_key(labels)
        with self._lock:
            self._values[key] = value

    def inc(self, value: float = 1.0, **labels: str) -> None:
        key = self._make_key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + value

    def dec(self, value: float = 1.0, **labels: str) -> None:
        self.inc(-value, **labels)

    def get(self, **labels: str) -> float:
        key = self._make_key(labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def collect(self) -> Iterator[tuple[dict[str, str], float]]:
        with self._lock:
            items = list(self._values.items())
        for key, value in items:
            yield (key.to_dict(), value)


class Histogram(_LabelledMetric):
    """
    Histogram with configurable buckets.

    Buckets are cumulative, Prometheus style; a +Inf bucket is always present.

    Usage:
        latency = Histogram("agent_request_duration_ms", buckets=[50, 250, 1000])
        latency.observe(132.5)
    """

    __slots__ = ("_buckets", "_bucket_counts", "_sums", "_counts")

    DEFAULT_BUCKETS = (
        5.0, 10.0, 25.0, 50.0, 100.0, 250.0, 500.0,
        1000.0, 2000.0, 5000.0, 10000.0, 30000.0, float("inf"),
    )

    def __init__(
        self,
        name: str,
        label_names: Sequence[str] = (),
        help_text: str = "",
        buckets: Optional[Sequence[float]] = None,
    ) -> None:
        super().__init__(name, label_names, help_text)
        self._buckets = tuple(sorted(buckets or self.DEFAULT_BUCKETS))
        if self._buckets[-1] != float("inf"):
            self._buckets = self._buckets + (float("inf"),)

        self._bucket_counts: dict[MetricLabels, list[int]] = {}
        self._sums: dict[MetricLabels, float] = defaultdict(float)
        self._counts: dict[MetricLabels, int] = defaultdict(int)

    def observe(self, value: float, **labels: str) -> None:
        key = self._make_key(labels)

        with self._lock:
            counts = self._bucket_counts.setdefault(key, [0] * len(self._buckets))
            for i, bound in enumerate(self._buckets):
                if value <= bound:
                    counts[i] += 1
            self._sums[key] += value
            self._counts[key] += 1

    def count(self, **labels: str) -> int:
        key = self._make_key(labels)
        with self._lock:
            return self._counts.get(key, 0)

    def total(self, **labels: str) -> float:
        key = self._make_key(labels)
        with self._lock:
            return self._sums.get(key, 0.0)

    def get_percentile(self, percentile: float, **labels: str) -> Optional[float]:
        """
        Estimate percentile from histogram buckets.

        Note: Approximation based on bucket boundaries.
        """
        key = self._make_key(labels)

        with self._lock:
            total = self._counts.get(key, 0)
            if total == 0:
                return None

            target_count = total * (percentile / 100.0)
            for i, count in enumerate(self._bucket_counts[key]):
                if count >= target_count:
                    return self._buckets[i]

        return None

    def collect(self) -> Iterator[dict[str, Any]]:
        with self._lock:
            snapshot = [
                {
                    "labels": key.to_dict(),
                    "buckets": list(zip(self._buckets, counts)),
                    "sum": self._sums.get(key, 0.0),
                    "count": self._counts.get(key, 0),
                }
                for key, counts in self._bucket_counts.items()
            ]
        yield from snapshot


class MetricsCollector:
    """
    Registry for all metrics of one agent instance.

    Usage:
        collector = MetricsCollector()
        requests = collector.counter("agent_requests_total", ["status"])
        output = collector.export_prometheus()
    """

    __slots__ = ("_counters", "_gauges", "_histograms", "_lock")

    def __init__(self) -> None:
        self._counters: dict[str, Counter] = {}
        self._gauges: dict[str, Gauge] = {}
        self._histograms: dict[str, Histogram] = {}
        self._lock = threading.Lock()

    def counter(
        self,
        name: str,
        label_names: Sequence[str] = (),
        help_text: str = "",
    ) -> Counter:
        """Get or create counter."""
        with self._lock:
            if name not in self._counters:
                self._counters[name] = Counter(name, label_names, help_text)
            return self._counters[name]

    def gauge(
        self,
        name: str,
        label_names: Sequence[str] = (),
        help_text: str = "",
    ) -> Gauge:
        """Get or create gauge."""
        with self._lock:
            if name not in self._gauges:
                self._gauges[name] = Gauge(name, label_names, help_text)
            return self._gauges[name]

    def histogram(
        self,
        name: str,
        label_names: Sequence[str] = (),
        help_text: str = "",
        buckets: Optional[Sequence[float]] = None,
    ) -> Histogram:
        """Get or create histogram."""
        with self._lock:
            if name not in self._histograms:
                self._histograms[name] = Histogram(name, label_names, help_text, buckets)
            return self._histograms[name]

    def export_prometheus(self) -> str:
        """Export all metrics in Prometheus text format."""
        lines: list[str] = []

        for name, metric in sorted(self._counters.items()):
            self._append_header(lines, metric, "counter")
            for labels, value in metric.collect():
                lines.append(f"{name}{self._format_labels(labels)} {value}")

        for name, metric in sorted(self._gauges.items()):
            self._append_header(lines, metric, "gauge")
            for labels, value in metric.collect():
                lines.append(f"{name}{self._format_labels(labels)} {value}")

        for name, histogram in sorted(self._histograms.items()):
            self._append_header(lines, histogram, "histogram")
            for data in histogram.collect():
                labels = data["labels"]
                for bound, count in data["buckets"]:
                    bound_str = "+Inf" if bound == float("inf") else str(bound)
                    bucket_labels = self._format_labels({**labels, "le": bound_str})
                    lines.append(f"{name}_bucket{bucket_labels} {count}")
                label_str = self._format_labels(labels)
                lines.append(f'{name}_sum{label_str} {data["sum"]}')
                lines.append(f'{name}_count{label_str} {data["count"]}')

        return "\n".join(lines)

    @staticmethod
    def _append_header(lines: list[str], metric: _LabelledMetric, kind: str) -> None:
        if metric.help_text:
            lines.append(f"# HELP {metric.name} {metric.help_text}")
        lines.append(f"# TYPE {metric.name} {kind}")

    @staticmethod
    def _format_labels(labels: dict[str, str]) -> str:
        if not labels:
            return ""
        pairs = [f'{k}="{v}"' for k, v in sorted(labels.items())]
        return "{" + ",".join(pairs) + "}"
