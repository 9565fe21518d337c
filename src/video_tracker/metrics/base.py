"""
Abstract base class for metrics collection.

Backends (Prometheus, StatsD, ...) plug in behind this interface; the
default implementation does nothing.
"""

from abc import ABC, abstractmethod


class MetricsCollector(ABC):
    """Interface for recording tracker metrics."""

    @abstractmethod
    def increment(
        self, metric: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        """
        Increment a counter metric.

        Args:
            metric: Metric name (e.g., 'video_tracker.events.delivered')
            value: Amount to increment (default: 1)
            labels: Optional labels (e.g., {'event_type': 'CONTENT_START'})
        """

    @abstractmethod
    def histogram(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        """
        Record a histogram/timing observation.

        Args:
            metric: Metric name
            value: Observed value (e.g., latency in milliseconds)
            labels: Optional labels
        """

    @abstractmethod
    def gauge(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        """
        Set a gauge to an absolute value.

        Args:
            metric: Metric name
            value: New gauge value
            labels: Optional labels
        """

    def timing(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        """Record a duration in milliseconds (alias for histogram)."""
        self.histogram(metric, value, labels)


class NoOpMetrics(MetricsCollector):
    """Metrics collector that records nothing."""

    def increment(
        self, metric: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        """No-op increment."""

    def histogram(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        """No-op histogram."""

    def gauge(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        """No-op gauge."""


__all__ = ["MetricsCollector", "NoOpMetrics"]
