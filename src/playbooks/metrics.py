"""Metrics collection and export for action and playbook executions."""

import time
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock
from typing import Any, Dict, List, Optional

HISTOGRAM_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


class MetricType(Enum):
    """Type of metric."""

    COUNTER = "counter"
    HISTOGRAM = "histogram"


@dataclass
class MetricValue:
    """A single histogram observation with labels."""

    value: float
    labels: Dict[str, str] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class MetricsCollector:
    """
    Collect counters and histograms for playbook runs.

    Safe to share between concurrent runs; all access goes through a lock.

    Example:
        metrics = MetricsCollector()
        engine = PlaybookEngine(metrics=metrics)
        await engine.execute_playbook(playbook, options)
        metrics.get_counter("playbook_executions_total", {"playbook": "build", "status": "success"})
    """

    def __init__(self, retention_seconds: int = 3600) -> None:
        """
        Initialize metrics collector.

        Args:
            retention_seconds: How long to retain histogram observations
        """
        self.retention_seconds = retention_seconds
        self._lock = Lock()
        self._counters: Dict[str, Dict[str, float]] = defaultdict(
            lambda: defaultdict(float)
        )
        self._histograms: Dict[str, List[MetricValue]] = defaultdict(list)
        self._metric_types: Dict[str, MetricType] = {}
        self._metric_help: Dict[str, str] = {}

    def increment_counter(
        self,
        name: str,
        labels: Optional[Dict[str, str]] = None,
        value: float = 1.0,
        help_text: Optional[str] = None,
    ) -> None:
        """Increment a counter for the given label combination."""
        label_key = self._make_label_key(labels or {})

        with self._lock:
            self._metric_types[name] = MetricType.COUNTER
            if help_text and name not in self._metric_help:
                self._metric_help[name] = help_text
            self._counters[name][label_key] += value

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None,
        help_text: Optional[str] = None,
    ) -> None:
        """Record a histogram observation, dropping observations past retention."""
        with self._lock:
            self._metric_types[name] = MetricType.HISTOGRAM
            if help_text and name not in self._metric_help:
                self._metric_help[name] = help_text

            self._histograms[name].append(MetricValue(value=value, labels=labels or {}))
            cutoff = time.time() - self.retention_seconds
            self._histograms[name] = [
                v for v in self._histograms[name] if v.timestamp >= cutoff
            ]

    def get_counter(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """
        Get counter value.

        Args:
            name: Metric name
            labels: Label key-value pairs (if None, returns sum over all labels)
        """
        with self._lock:
            if name not in self._counters:
                return 0.0
            if labels is None:
                return sum(self._counters[name].values())
            return self._counters[name].get(self._make_label_key(labels), 0.0)

    def get_histogram_values(
        self, name: str, labels: Optional[Dict[str, str]] = None
    ) -> List[float]:
        """Get observed values, optionally filtered to a label subset."""
        with self._lock:
            values = list(self._histograms.get(name, []))

        if labels is None:
            return [v.value for v in values]
        return [
            v.value
            for v in values
            if all(v.labels.get(k) == val for k, val in labels.items())
        ]

    def get_histogram_stats(
        self, name: str, labels: Optional[Dict[str, str]] = None
    ) -> Dict[str, float]:
        """Get count, sum, min, max, avg and p50/p95/p99 for a histogram."""
        values = sorted(self.get_histogram_values(name, labels))

        if not values:
            return {
                "count": 0,
                "sum": 0.0,
                "min": 0.0,
                "max": 0.0,
                "avg": 0.0,
                "p50": 0.0,
                "p95": 0.0,
                "p99": 0.0,
            }

        count = len(values)
        return {
            "count": count,
            "sum": sum(values),
            "min": values[0],
            "max": values[-1],
            "avg": sum(values) / count,
            "p50": self._percentile(values, 0.50),
            "p95": self._percentile(values, 0.95),
            "p99": self._percentile(values, 0.99),
        }

    def get_all_metrics(self) -> Dict[str, Any]:
        """Get all metrics as a dictionary keyed by metric name."""
        with self._lock:
            types = dict(self._metric_types)
            help_texts = dict(self._metric_help)
            counters = {name: dict(values) for name, values in self._counters.items()}

        result: Dict[str, Any] = {}
        for name, metric_type in types.items():
            if metric_type == MetricType.COUNTER:
                result[name] = {
                    "type": "counter",
                    "help": help_texts.get(name, ""),
                    "values": counters.get(name, {}),
                }
            else:
                result[name] = {
                    "type": "histogram",
                    "help": help_texts.get(name, ""),
                    "stats": self.get_histogram_stats(name),
                }
        return result

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self._counters.clear()
            self._histograms.clear()
            self._metric_types.clear()
            self._metric_help.clear()

    def _make_label_key(self, labels: Dict[str, str]) -> str:
        """Create a stable key for a label combination."""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def _percentile(self, sorted_values: List[float], p: float) -> float:
        """Linearly interpolated percentile of already-sorted values."""
        k = (len(sorted_values) - 1) * p
        f = int(k)
        c = min(f + 1, len(sorted_values) - 1)
        if f == c:
            return sorted_values[f]
        return sorted_values[f] + (k - f) * (sorted_values[c] - sorted_values[f])


class PrometheusExporter:
    """Export collected metrics in Prometheus text format."""

    def __init__(self, metrics: MetricsCollector) -> None:
        self.metrics = metrics

    def export(self) -> str:
        """Render all metrics as Prometheus exposition text."""
        lines: List[str] = []

        for name, metric_data in sorted(self.metrics.get_all_metrics().items()):
            if metric_data["help"]:
                lines.append(f"# HELP {name} {metric_data['help']}")
            lines.append(f"# TYPE {name} {metric_data['type']}")

            if metric_data["type"] == "counter":
                for label_str, value in sorted(metric_data["values"].items()):
                    lines.append(f"{name}{self._format_labels(label_str)} {value}")
            else:
                stats = metric_data["stats"]
                values = self.metrics.get_histogram_values(name)
                for le in HISTOGRAM_BUCKETS:
                    count = sum(1 for v in values if v <= le)
                    lines.append(f'{name}_bucket{{le="{le}"}} {count}')
                lines.append(f'{name}_bucket{{le="+Inf"}} {stats["count"]}')
                lines.append(f"{name}_sum {stats['sum']}")
                lines.append(f"{name}_count {stats['count']}")

            lines.append("")

        return "\n".join(lines)

    def _format_labels(self, label_str: str) -> str:
        if not label_str:
            return ""
        pairs = [part.split("=", 1) for part in label_str.split(",")]
        return "{" + ",".join(f'{k}="{v}"' for k, v in pairs) + "}"
