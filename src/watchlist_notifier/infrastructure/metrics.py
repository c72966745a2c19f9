"""
Application Metrics.

Provides Prometheus-compatible metrics for monitoring.
"""

import time
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, Iterator, List, Optional, Tuple

from flask import Flask, Response, g, request


@dataclass
class MetricValue:
    """A single metric value with labels."""
    value: float
    labels: Dict[str, str] = field(default_factory=dict)


LabelKey = Tuple[Tuple[str, str], ...]


def _labels_key(labels: Dict[str, str]) -> LabelKey:
    return tuple(sorted((k, str(v)) for k, v in labels.items()))


def _format_labels(labels: Dict[str, str]) -> str:
    if not labels:
        return ""
    body = ",".join(f'{k}="{v}"' for k, v in labels.items())
    return f"{{{body}}}"


class _Metric:
    """Shared storage for label-keyed metric values."""

    metric_type = "untyped"

    def __init__(self, name: str, description: str) -> None:
        self.name = name
        self.description = description
        self._values: Dict[LabelKey, float] = defaultdict(float)
        self._lock = Lock()

    def collect(self) -> List[MetricValue]:
        """Collect all values."""
        with self._lock:
            return [
                MetricValue(value=v, labels=dict(k))
                for k, v in self._values.items()
            ]

    def value(self, **labels: str) -> float:
        """Current value for a label set (0 if never touched)."""
        with self._lock:
            return self._values.get(_labels_key(labels), 0.0)

    def exposition(self) -> Iterator[str]:
        yield f"# HELP {self.name} {self.description}"
        yield f"# TYPE {self.name} {self.metric_type}"
        for mv in self.collect():
            yield f"{self.name}{_format_labels(mv.labels)} {mv.value}"


class Counter(_Metric):
    """A monotonically increasing counter metric."""

    metric_type = "counter"

    def inc(self, value: float = 1.0, **labels: str) -> None:
        if value < 0:
            raise ValueError("Counters can only increase")
        with self._lock:
            self._values[_labels_key(labels)] += value


class Gauge(_Metric):
    """A gauge metric that can go up and down."""

    metric_type = "gauge"

    def set(self, value: float, **labels: str) -> None:
        with self._lock:
            self._values[_labels_key(labels)] = value

    def inc(self, value: float = 1.0, **labels: str) -> None:
        with self._lock:
            self._values[_labels_key(labels)] += value

    def dec(self, value: float = 1.0, **labels: str) -> None:
        with self._lock:
            self._values[_labels_key(labels)] -= value


class MetricsRegistry:
    """Registry for all application metrics."""

    def __init__(self) -> None:
        # HTTP metrics
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total number of HTTP requests",
        )
        self.http_request_duration_seconds_sum = Counter(
            "http_request_duration_seconds_sum",
            "Cumulative HTTP request latency in seconds",
        )
        self.http_requests_in_progress = Gauge(
            "http_requests_in_progress",
            "Number of HTTP requests currently being processed",
        )

        # Business metrics
        self.welcome_emails_sent_total = Counter(
            "welcome_emails_sent_total",
            "Total number of welcome emails sent",
        )
        self.digest_runs_total = Counter(
            "digest_runs_total",
            "Total number of daily digest runs",
        )
        self.digest_emails_total = Counter(
            "digest_emails_total",
            "Daily digest emails by outcome (sent, skipped, failed)",
        )

        # External service metrics
        self.external_requests_total = Counter(
            "external_requests_total",
            "Total number of external service requests",
        )
        self.circuit_breaker_state = Gauge(
            "circuit_breaker_state",
            "Current state of circuit breakers (0=closed, 1=half-open, 2=open)",
        )

    def all_metrics(self) -> List[_Metric]:
        return [m for m in vars(self).values() if isinstance(m, _Metric)]

    def to_prometheus_format(self) -> str:
        """Export metrics in Prometheus text format."""
        lines: List[str] = []
        for metric in self.all_metrics():
            lines.extend(metric.exposition())
        return "\n".join(lines) + "\n"


# Global metrics registry
_metrics: Optional[MetricsRegistry] = None


def get_metrics() -> MetricsRegistry:
    """Get global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics


def reset_metrics() -> None:
    """Drop all collected values (for testing)."""
    global _metrics
    _metrics = None


def setup_metrics_middleware(app: Flask) -> None:
    """
    Setup Flask middleware for automatic HTTP metrics collection.

    Args:
        app: Flask application instance.
    """
    @app.before_request
    def before_request() -> None:
        g.metrics_start_time = time.time()
        get_metrics().http_requests_in_progress.inc(
            endpoint=request.endpoint or "unknown",
        )

    @app.after_request
    def after_request(response):
        metrics = get_metrics()
        duration = time.time() - getattr(g, "metrics_start_time", time.time())
        endpoint = request.endpoint or "unknown"

        metrics.http_requests_total.inc(
            method=request.method,
            endpoint=endpoint,
            status=str(response.status_code),
        )
        metrics.http_request_duration_seconds_sum.inc(duration, endpoint=endpoint)
        metrics.http_requests_in_progress.dec(endpoint=endpoint)

        return response


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint handler."""
    return Response(
        get_metrics().to_prometheus_format(),
        mimetype="text/plain; charset=utf-8",
    )
