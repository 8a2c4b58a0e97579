from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Histogram, generate_latest


class RequestMetrics:
    """Per-app Prometheus registry with the request duration histogram."""

    def __init__(self) -> None:
        self.registry = CollectorRegistry()
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "Endpoint response time histogram",
            ["path", "code", "method"],
            registry=self.registry,
        )

    def observe(self, path: str, code: int, method: str, seconds: float) -> None:
        self.request_duration.labels(path=path, code=str(code), method=method).observe(seconds)

    def exposition(self) -> tuple[bytes, str]:
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
