"""
Metrics collection for video trackers.

Provides a pluggable metrics interface with a zero-overhead default.

Example:
    >>> from video_tracker.metrics import NoOpMetrics, PrometheusMetrics, TrackerMetrics
    >>>
    >>> metrics = NoOpMetrics()
    >>> metrics.increment(TrackerMetrics.EVENTS_DELIVERED)  # No-op
    >>>
    >>> metrics = PrometheusMetrics()
    >>> metrics.increment(TrackerMetrics.EVENTS_DELIVERED, labels={'event_type': 'CONTENT_START'})
"""

from .base import MetricsCollector, NoOpMetrics
from .constants import MetricLabels, TrackerMetrics
from .prometheus import PrometheusMetrics

__all__ = [
    "MetricsCollector",
    "NoOpMetrics",
    "PrometheusMetrics",
    "TrackerMetrics",
    "MetricLabels",
]
