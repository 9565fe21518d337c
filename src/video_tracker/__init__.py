"""
Video Tracker Package

Instruments media playback (content and ad breaks) and emits a well-defined
sequence of lifecycle events, each with an attribute bag, to an analytics
backend.

This package provides:
- VideoTracker: Content/ad tracker with one send_* method per lifecycle event
- TrackerState: The state machine deciding which events may be emitted
- PlayerBinding: Accessors the tracker reads player values from
- Core: Tracker registry routing events to a Backend
- Backends: MemoryBackend, HttpBackend (httpx)

Usage:
    from video_tracker import Core, HttpBackend, VideoTracker

    core = Core(backend=HttpBackend("https://collector.example.com/events"))
    tracker = VideoTracker(binding, {"custom_data": {"app": "demo"}})
    tracker.set_ads_tracker(VideoTracker())
    core.add_tracker(tracker)

    tracker.send_request()
    tracker.send_start()
"""

from .backend import Backend, HttpBackend, MemoryBackend
from .binding import MediaElementBinding, PlayerBinding
from .chrono import Chrono
from .config import TrackerOptions
from .core import Core, get_core, reset_core
from .emitter import EventEmitter, TrackerEvent
from .events import VideoEvents
from .exceptions import (
    BackendDeliveryError,
    BackendError,
    TrackerConfigError,
    VideoTrackerError,
)
from .settings import TrackerSettings, get_settings, reload_settings
from .state import BufferType, PlaybackPhase, RenditionShift, TrackerState
from .tracker import CORE_VERSION, Tracker
from .video import VideoTracker

__version__ = CORE_VERSION

__all__ = [
    # Trackers
    "Tracker",
    "VideoTracker",
    "TrackerState",
    "PlaybackPhase",
    "BufferType",
    "RenditionShift",
    "Chrono",
    "VideoEvents",
    # Event bus
    "EventEmitter",
    "TrackerEvent",
    # Player bindings
    "PlayerBinding",
    "MediaElementBinding",
    # Core and backends
    "Core",
    "get_core",
    "reset_core",
    "Backend",
    "MemoryBackend",
    "HttpBackend",
    # Configuration
    "TrackerOptions",
    "TrackerSettings",
    "get_settings",
    "reload_settings",
    # Exceptions
    "VideoTrackerError",
    "TrackerConfigError",
    "BackendError",
    "BackendDeliveryError",
    # Package metadata
    "__version__",
]
