"""
Tracker registry and event sink.

Core subscribes to every event of the trackers added to it and hands
each (event name, attributes) pair to its Backend. Add only top-level
trackers: ad trackers attached with set_ads_tracker already reach the
core through their parent.
"""

from typing import Any

from .backend import Backend, MemoryBackend
from .emitter import TrackerEvent
from .exceptions import BackendError
from .log_config import get_context_logger
from .metrics import MetricLabels, MetricsCollector, NoOpMetrics, TrackerMetrics
from .tracker import Tracker


class Core:
    """
    Routes tracker events to a backend.

    Examples:
        >>> backend = MemoryBackend()
        >>> core = Core(backend=backend)
        >>> tracker = VideoTracker()
        >>> core.add_tracker(tracker)
        >>> tracker.send_request()
        True
        >>> backend.event_names
        ['CONTENT_REQUEST']
    """

    def __init__(
        self,
        backend: Backend | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize core.

        Args:
            backend: Event destination; defaults to a MemoryBackend
            metrics: Metrics collector; defaults to NoOpMetrics
        """
        self._backend = backend or MemoryBackend()
        self.metrics = metrics or NoOpMetrics()
        self.logger = get_context_logger("core")
        self._trackers: list[Tracker] = []

    @property
    def backend(self) -> Backend:
        return self._backend

    @backend.setter
    def backend(self, backend: Backend) -> None:
        self._backend = backend

    @property
    def trackers(self) -> list[Tracker]:
        """Registered trackers (a copy)."""
        return list(self._trackers)

    def add_tracker(self, tracker: Tracker) -> None:
        """Start delivering every event the tracker emits."""
        if tracker in self._trackers:
            return
        tracker.subscribe_all(self._on_tracker_event)
        self._trackers.append(tracker)
        self.metrics.gauge(TrackerMetrics.TRACKERS_ACTIVE, len(self._trackers))
        self.logger.debug("Tracker added", tracker=tracker.get_tracker_name())

    def remove_tracker(self, tracker: Tracker) -> None:
        """Stop delivering the tracker's events and dispose it."""
        if tracker not in self._trackers:
            return
        tracker.unsubscribe_all(self._on_tracker_event)
        self._trackers.remove(tracker)
        tracker.dispose()
        self.metrics.gauge(TrackerMetrics.TRACKERS_ACTIVE, len(self._trackers))
        self.logger.debug("Tracker removed", tracker=tracker.get_tracker_name())

    def _on_tracker_event(self, event: TrackerEvent) -> None:
        self.deliver(event.target, event.type, event.data)

    def deliver(self, tracker: Any, event_name: str, attributes: dict[str, Any]) -> None:
        """
        Hand one event to the backend.

        Backend errors are logged and counted; they never reach the tracker.

        Args:
            tracker: Tracker that produced the event
            event_name: Event name
            attributes: Attribute bag
        """
        tracker_name = tracker.get_tracker_name() if tracker is not None else None
        labels = {MetricLabels.EVENT_TYPE: event_name}
        try:
            self._backend.send(event_name, attributes)
        except BackendError as e:
            self.metrics.increment(TrackerMetrics.EVENTS_DROPPED, labels=labels)
            self.logger.warning(
                "Event dropped by backend",
                event_name=event_name,
                tracker=tracker_name,
                error=str(e),
            )
            return

        self.metrics.increment(TrackerMetrics.EVENTS_DELIVERED, labels=labels)
        self.logger.debug("Event delivered", event_name=event_name, tracker=tracker_name)


_core: Core | None = None


def get_core() -> Core:
    """Get the process-wide default Core, creating it on first use."""
    global _core
    if _core is None:
        _core = Core()
    return _core


def reset_core() -> None:
    """Drop the default Core, disposing its trackers."""
    global _core
    if _core is not None:
        for tracker in _core.trackers:
            _core.remove_tracker(tracker)
    _core = None


__all__ = ["Core", "get_core", "reset_core"]
