"""
Metric name constants for video tracking.

Keeps metric names consistent between the core and the backends.
"""


class TrackerMetrics:
    """Metric name constants for tracker operations."""

    # Core
    EVENTS_DELIVERED = "video_tracker.events.delivered"
    EVENTS_DROPPED = "video_tracker.events.dropped"
    TRACKERS_ACTIVE = "video_tracker.trackers.active"

    # HTTP backend
    BACKEND_POST_SENT = "video_tracker.backend.post.sent"
    BACKEND_POST_FAILED = "video_tracker.backend.post.failed"
    BACKEND_POST_DURATION_MS = "video_tracker.backend.post.duration"


class MetricLabels:
    """Standard label names for metrics."""

    EVENT_TYPE = "event_type"  # CONTENT_START, AD_QUARTILE, ...
    TRACKER = "tracker"  # tracker name
    ERROR_TYPE = "error_type"  # timeout, http_500, exception


__all__ = ["TrackerMetrics", "MetricLabels"]
