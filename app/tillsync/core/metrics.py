from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.tillsync.core.config import settings


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    def __init__(self) -> None:
        self.enabled = bool(settings.METRICS_ENABLED)
        self._registry = None
        self._http_requests_total = None
        self._http_request_duration_ms = None
        self._validations_total = None
        self._invariants_violation_total = None
        self._conflicts_detected_total = None
        self._resolutions_total = None
        self._repairs_total = None
        self._engine_errors_total = None
        if self.enabled:
            self._initialize_registry()

    def _initialize_registry(self) -> None:
        self._registry = CollectorRegistry()
        self._http_requests_total = Counter(
            "http_requests_total",
            "HTTP requests by route/method/status.",
            ["route", "method", "status"],
            registry=self._registry,
        )
        self._http_request_duration_ms = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            ["route", "method", "status"],
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
            registry=self._registry,
        )
        self._validations_total = Counter(
            "validations_total",
            "Entity validations by kind and outcome.",
            ["kind", "result"],
            registry=self._registry,
        )
        self._invariants_violation_total = Counter(
            "invariants_violation_total",
            "Integrity invariant violations by entity kind.",
            ["kind"],
            registry=self._registry,
        )
        self._conflicts_detected_total = Counter(
            "conflicts_detected_total",
            "Field conflicts detected between local and remote snapshots.",
            ["kind"],
            registry=self._registry,
        )
        self._resolutions_total = Counter(
            "resolutions_total",
            "Conflict resolutions by kind and strategy.",
            ["kind", "strategy"],
            registry=self._registry,
        )
        self._repairs_total = Counter(
            "repairs_total",
            "Records repaired by kind.",
            ["kind"],
            registry=self._registry,
        )
        self._engine_errors_total = Counter(
            "engine_errors_total",
            "Unexpected errors reported by the integrity engine.",
            ["context"],
            registry=self._registry,
        )

    def reset(self) -> None:
        if not self.enabled:
            return
        self._initialize_registry()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        labels = {"route": route, "method": method, "status": str(status_code)}
        self._http_requests_total.labels(**labels).inc()
        self._http_request_duration_ms.labels(**labels).observe(latency_ms)

    def record_validation(self, kind: str, *, valid: bool, integrity_errors: int = 0) -> None:
        if not self.enabled:
            return
        self._validations_total.labels(kind=kind, result="valid" if valid else "invalid").inc()
        if integrity_errors:
            self._invariants_violation_total.labels(kind=kind).inc(integrity_errors)

    def increment_conflicts_detected(self, kind: str, count: int = 1) -> None:
        if not self.enabled or count <= 0:
            return
        self._conflicts_detected_total.labels(kind=kind).inc(count)

    def increment_resolution(self, kind: str, strategy: str) -> None:
        if not self.enabled:
            return
        self._resolutions_total.labels(kind=kind, strategy=strategy).inc()

    def increment_repair(self, kind: str) -> None:
        if not self.enabled:
            return
        self._repairs_total.labels(kind=kind).inc()

    def increment_engine_error(self, context: str) -> None:
        if not self.enabled:
            return
        self._engine_errors_total.labels(context=context).inc()

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
