"""Pytest configuration and shared fixtures for video tracker tests."""

import sys
from pathlib import Path
from typing import Any

import pytest


sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from video_tracker.backend import MemoryBackend
from video_tracker.binding import PlayerBinding
from video_tracker.core import Core, reset_core
from video_tracker.settings import TrackerSettings, get_settings
from video_tracker.video import VideoTracker


# ==================== Helpers ====================


class FakeClock:
    """Manually advanced clock (seconds), injectable wherever a Clock is accepted."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms / 1000


class StaticBinding(PlayerBinding):
    """
    PlayerBinding answering getters from a dict keyed by getter name.

    Values can be changed between calls; an Exception value is raised
    when the getter is called.
    """

    def __init__(self, **values: Any):
        self.values = dict(values)
        self.registered: list[Any] = []

    def __getattribute__(self, name: str) -> Any:
        values = object.__getattribute__(self, "values")
        if name in values:

            def getter():
                value = values[name]
                if isinstance(value, Exception):
                    raise value
                return value

            return getter
        return object.__getattribute__(self, name)

    def register_listeners(self, tracker) -> None:
        self.registered.append(tracker)

    def unregister_listeners(self, tracker) -> None:
        self.registered.remove(tracker)


# ==================== Global State ====================


@pytest.fixture(autouse=True)
def reset_globals():
    """Isolate cached settings and the default core between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    reset_core()


# ==================== Fixtures ====================


@pytest.fixture
def clock() -> FakeClock:
    """Deterministic clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def settings() -> TrackerSettings:
    """Default settings, independent of the environment."""
    return TrackerSettings(heartbeat_interval_ms=30000, initial_buffering_threshold_ms=100)


@pytest.fixture
def backend() -> MemoryBackend:
    """Collecting sink."""
    return MemoryBackend()


@pytest.fixture
def core(backend) -> Core:
    return Core(backend=backend)


@pytest.fixture
def binding() -> StaticBinding:
    return StaticBinding()


@pytest.fixture
def content_tracker(clock, settings, core, binding):
    """Content tracker registered in the core, driven by the fake clock."""
    tracker = VideoTracker(binding, clock=clock, settings=settings)
    core.add_tracker(tracker)
    yield tracker
    tracker.dispose()


@pytest.fixture
def ads_tracker(clock, settings, content_tracker) -> VideoTracker:
    """Ad tracker attached to content_tracker."""
    tracker = VideoTracker(clock=clock, settings=settings)
    content_tracker.set_ads_tracker(tracker)
    return tracker


def events_named(backend: MemoryBackend, name: str) -> list[dict[str, Any]]:
    """Attribute bags of every delivered event with the given name."""
    return [att for event_name, att in backend.events if event_name == name]
