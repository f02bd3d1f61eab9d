from __future__ import annotations

from collections import defaultdict

from prometheus_client import CollectorRegistry, Gauge, generate_latest


class InMemoryFetchMetricsCollector:
    def __init__(self) -> None:
        self.latest_duration_ms: dict[str, float] = {}
        self.fetch_total: dict[tuple[str, str], int] = defaultdict(int)

    def increment(self, kind: str, outcome: str) -> None:
        self.fetch_total[(kind, outcome)] += 1

    def observe_duration(self, kind: str, duration_ms: float) -> None:
        self.latest_duration_ms[kind] = duration_ms

    def count(self, kind: str, outcome: str) -> int:
        return self.fetch_total.get((kind, outcome), 0)


class FetchPrometheusExporter:
    def __init__(self) -> None:
        self._registry = CollectorRegistry()
        self._fetch_total = Gauge(
            "hospital_capacity_fetch_total",
            "Fetches grouped by kind and outcome",
            labelnames=("kind", "outcome"),
            registry=self._registry,
        )
        self._fetch_duration = Gauge(
            "hospital_capacity_fetch_duration_ms",
            "Latest fetch duration in milliseconds",
            labelnames=("kind",),
            registry=self._registry,
        )

    def render(self, metrics: InMemoryFetchMetricsCollector) -> str:
        for (kind, outcome), count in metrics.fetch_total.items():
            self._fetch_total.labels(kind=kind, outcome=outcome).set(count)
        for kind, duration in metrics.latest_duration_ms.items():
            self._fetch_duration.labels(kind=kind).set(duration)
        return generate_latest(self._registry).decode("utf-8")
