"""
Prometheus request instruments.

One `MetricsRecorder` is built per application and passed to whatever needs
it (the middleware and the `/metrics` endpoint). It owns its own
`CollectorRegistry`, so separate apps (and tests) never share counters.
"""

from __future__ import annotations

import logging

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

logger = logging.getLogger(__name__)

REQUEST_LABELS = ["path", "method"]
STATUS_LABELS = ["path", "method", "status_code"]
DURATION_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class MetricsRecorder:
    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.requests = Counter(
            "http_requests_total",
            "Total number of http requests",
            REQUEST_LABELS,
            registry=self.registry,
        )
        self.duration = Histogram(
            "http_requests_duration_seconds",
            "Duration of http requests in seconds",
            REQUEST_LABELS,
            registry=self.registry,
            buckets=DURATION_BUCKETS,
        )
        self.statuses = Counter(
            "http_response_status_total",
            "Total number of http responses by status code",
            STATUS_LABELS,
            registry=self.registry,
        )

    def record(self, path: str, method: str, status_code: int, duration_s: float) -> None:
        """
        Update all three instruments. Never raises into the request path.
        """
        try:
            self.requests.labels(path=path, method=method).inc()
            self.duration.labels(path=path, method=method).observe(max(duration_s, 0.0))
            self.statuses.labels(path=path, method=method, status_code=str(status_code)).inc()
        except Exception:
            logger.exception("metrics_record_failed path=%s method=%s status=%s", path, method, status_code)

    def request_count(self, path: str, method: str) -> float:
        value = self.registry.get_sample_value("http_requests_total", {"path": path, "method": method})
        return value or 0.0

    def status_count(self, path: str, method: str, status_code: int) -> float:
        value = self.registry.get_sample_value(
            "http_response_status_total",
            {"path": path, "method": method, "status_code": str(status_code)},
        )
        return value or 0.0

    def render(self) -> tuple[bytes, str]:
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
