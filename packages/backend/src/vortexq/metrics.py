"""Prometheus metrics.

Learn: Each app instance owns a CollectorRegistry instead of using the
global default one. Tests build many apps in one process, and a custom
registry keeps /metrics free of the process/platform collectors.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


class BrokerMetrics:
    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()

        # HTTP API
        self.http_requests = Counter(
            "api_http_request_total",
            "Total number of requests processed by the API",
            ["path", "status"],
            registry=self.registry,
        )
        self.http_errors = Counter(
            "api_http_request_error_total",
            "Total number of errors returned by the API",
            ["path", "status"],
            registry=self.registry,
        )

        # Dispatch
        self.deliveries = Counter(
            "vortexq_deliveries_total",
            "Webhook delivery attempts by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.cycles = Counter(
            "vortexq_dispatch_cycles_total",
            "Completed dispatch cycles",
            registry=self.registry,
        )
        self.cycle_duration = Histogram(
            "vortexq_dispatch_cycle_seconds",
            "Wall-clock duration of a dispatch cycle",
            buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self.registry,
        )

    def observe_request(self, path: str, status: int) -> None:
        counter = self.http_requests if status < 400 else self.http_errors
        counter.labels(path=path, status=str(status)).inc()

    def render(self) -> tuple[bytes, str]:
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
