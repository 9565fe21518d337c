"""
Prometheus metrics collector implementation.

Exposes tracker metrics through prometheus_client for scraping.
"""

from typing import Any

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

from .base import MetricsCollector


class PrometheusMetrics(MetricsCollector):
    """
    Prometheus metrics collector.

    Lazily creates one Counter, Histogram or Gauge per metric name. Label
    names are fixed by the first call for a given metric.

    Example:
        >>> from prometheus_client import CollectorRegistry
        >>> metrics = PrometheusMetrics(registry=CollectorRegistry())
        >>> metrics.increment('video_tracker.events.delivered', labels={'event_type': 'AD_START'})
    """

    def __init__(self, registry: Any | None = None) -> None:
        """
        Initialize Prometheus metrics collector.

        Args:
            registry: Optional CollectorRegistry; defaults to the global REGISTRY.
        """
        self._registry = registry or REGISTRY
        self._counters: dict[str, Counter] = {}
        self._histograms: dict[str, Histogram] = {}
        self._gauges: dict[str, Gauge] = {}

    @staticmethod
    def _sanitize_metric_name(metric: str) -> str:
        """Convert dotted names to valid Prometheus names."""
        return metric.replace(".", "_").replace("-", "_")

    def _get_metric(self, cache: dict[str, Any], factory: Any, metric: str, labels: dict[str, str]):
        metric_name = self._sanitize_metric_name(metric)
        if metric_name not in cache:
            cache[metric_name] = factory(
                metric_name,
                f"{factory.__name__} for {metric}",
                list(labels.keys()),
                registry=self._registry,
            )
        instrument = cache[metric_name]
        return instrument.labels(**labels) if labels else instrument

    def increment(
        self, metric: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        """Increment a counter."""
        self._get_metric(self._counters, Counter, metric, labels or {}).inc(value)

    def histogram(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        """Observe a histogram value."""
        self._get_metric(self._histograms, Histogram, metric, labels or {}).observe(value)

    def gauge(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        """Set a gauge value."""
        self._get_metric(self._gauges, Gauge, metric, labels or {}).set(value)


__all__ = ["PrometheusMetrics"]
