"""
Base Tracker

Common capability of every tracker: an event emitter carrying custom
data, a heartbeat scheduled on the running asyncio loop, parent linkage
and idempotent disposal. VideoTracker builds the playback lifecycle on
top of it.
"""

import asyncio
import functools
from typing import Any, Callable, TypeVar

from .chrono import Chrono, Clock
from .config import TrackerOptions
from .emitter import EventEmitter
from .exceptions import TrackerConfigError
from .log_config import ViewLogContext, get_context_logger
from .settings import TrackerSettings, get_settings


CORE_VERSION = "1.0.0"

F = TypeVar("F", bound=Callable[..., Any])


def ignore_when_disposed(method: F) -> F:
    """Turn a tracker method into a no-op returning False once disposed."""

    @functools.wraps(method)
    def wrapper(self: "Tracker", *args: Any, **kwargs: Any) -> Any:
        if self.is_disposed:
            self.logger.debug(
                "Call ignored on disposed tracker",
                method=method.__name__,
                tracker=self.get_tracker_name(),
            )
            return False
        return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class Tracker(EventEmitter):
    """
    Base tracker.

    Emits (event name, attributes) pairs through its EventEmitter. A sink
    such as Core subscribes to all of them.

    Examples:
        >>> tracker = Tracker({"custom_data": {"app": "demo"}})
        >>> tracker.get_attributes()["app"]
        'demo'
    """

    def __init__(
        self,
        options: TrackerOptions | dict[str, Any] | None = None,
        *,
        clock: Clock | None = None,
        settings: TrackerSettings | None = None,
    ):
        super().__init__()
        self.logger = get_context_logger("tracker")
        self.settings = settings or get_settings()
        self.clock = clock

        self.custom_data: dict[str, Any] = {}
        self.heartbeat_interval_ms: int | None = None
        self.parent_tracker: Tracker | None = None

        self._heartbeat_handle: asyncio.TimerHandle | None = None
        self._heartbeat_running_interval: int | None = None
        self._disposed = False

        self.time_since_tracker_ready = Chrono(clock)
        self.time_since_tracker_ready.mark()

        if options:
            self.set_options(options)

    # ===== Options =====

    def set_options(self, options: TrackerOptions | dict[str, Any]) -> None:
        """
        Apply options; fields left as None keep their current value.

        Raises:
            TrackerConfigError: On unknown keys, a non-positive heartbeat
                interval or a parent link that would form a cycle
        """
        if isinstance(options, dict):
            options = TrackerOptions.from_dict(options)

        if options.heartbeat_interval_ms is not None:
            self.heartbeat_interval_ms = options.heartbeat_interval_ms
        if options.custom_data is not None:
            self.custom_data = dict(options.custom_data)
        if options.parent_tracker is not None:
            self.set_parent_tracker(options.parent_tracker)

    def set_parent_tracker(self, parent: "Tracker | None") -> None:
        """Link this tracker under ``parent``.

        Raises:
            TrackerConfigError: If this tracker is already an ancestor of parent
        """
        self.check_parent_tracker(parent)
        self.parent_tracker = parent

    def check_parent_tracker(self, parent: "Tracker | None") -> None:
        """Raise TrackerConfigError if linking under ``parent`` would form a cycle."""
        ancestor = parent
        while ancestor is not None:
            if ancestor is self:
                raise TrackerConfigError(
                    "Tracker cannot be its own ancestor",
                    option="parent_tracker",
                    context={"tracker": self.get_tracker_name()},
                )
            ancestor = ancestor.parent_tracker

    # ===== Identity =====

    def get_tracker_name(self) -> str:
        return "base-tracker"

    def get_tracker_version(self) -> str:
        return CORE_VERSION

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    # ===== Heartbeat =====

    def get_heartbeat_interval(self) -> int:
        """Own interval, else the parent's, else the configured default (ms)."""
        if self.heartbeat_interval_ms:
            return self.heartbeat_interval_ms
        if self.parent_tracker is not None:
            return self.parent_tracker.get_heartbeat_interval()
        return self.settings.heartbeat_interval_ms

    @property
    def is_heartbeat_running(self) -> bool:
        return self._heartbeat_handle is not None

    def start_heartbeat(self, interval_ms: int | None = None) -> None:
        """
        Schedule send_heartbeat every interval on the running event loop.

        Restarts the timer if already running. Without a running loop the
        heartbeat is skipped with a warning.

        Args:
            interval_ms: Period in milliseconds; defaults to get_heartbeat_interval()
        """
        if self._disposed:
            return
        interval = interval_ms if interval_ms is not None else self.get_heartbeat_interval()
        if interval <= 0:
            raise TrackerConfigError(
                "Heartbeat interval must be positive",
                option="heartbeat_interval_ms",
                context={"value": interval},
            )

        self.stop_heartbeat()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.warning(
                "No running event loop, heartbeat not scheduled",
                tracker=self.get_tracker_name(),
            )
            return

        self._heartbeat_running_interval = interval
        self._heartbeat_handle = loop.call_later(interval / 1000, self._on_heartbeat_tick)

    def stop_heartbeat(self) -> None:
        """Cancel the heartbeat timer. Safe to call when not running."""
        if self._heartbeat_handle is not None:
            self._heartbeat_handle.cancel()
        self._heartbeat_handle = None
        self._heartbeat_running_interval = None

    def _on_heartbeat_tick(self) -> None:
        self._heartbeat_handle = None
        if self._disposed or self._heartbeat_running_interval is None:
            return
        interval = self._heartbeat_running_interval

        self.send_heartbeat()

        # send_heartbeat may have stopped or restarted the timer
        if (
            not self._disposed
            and self._heartbeat_handle is None
            and self._heartbeat_running_interval == interval
        ):
            loop = asyncio.get_running_loop()
            self._heartbeat_handle = loop.call_later(interval / 1000, self._on_heartbeat_tick)

    def send_heartbeat(self) -> bool:
        """Heartbeat hook. The base tracker sends nothing."""
        return False

    # ===== Listeners =====

    def register_listeners(self) -> None:
        """Attach to the player. No-op in the base tracker."""

    def unregister_listeners(self) -> None:
        """Detach from the player. No-op in the base tracker."""

    # ===== Lifecycle =====

    def dispose(self) -> None:
        """
        Release the tracker. Idempotent.

        The disposed flag is set first so signals arriving during teardown
        are ignored.
        """
        if self._disposed:
            return
        self._disposed = True
        self.stop_heartbeat()
        self.unregister_listeners()
        self.logger.debug("Tracker disposed", tracker=self.get_tracker_name())
        self.parent_tracker = None
        self.clear_handlers()

    # ===== Attributes and sending =====

    def get_attributes(
        self, att: dict[str, Any] | None = None, event_name: str | None = None
    ) -> dict[str, Any]:
        """
        Build the attribute bag for an event.

        Custom data is merged last and overrides computed values.

        Args:
            att: Event-specific attributes to start from
            event_name: Event being built, if any

        Returns:
            New attribute dict
        """
        att = dict(att) if att else {}
        self._fill_attributes(att, event_name)
        att.update(self.custom_data)
        return att

    def _fill_attributes(self, att: dict[str, Any], event_name: str | None) -> None:
        att["trackerName"] = self.get_tracker_name()
        att["trackerVersion"] = self.get_tracker_version()
        att["coreVersion"] = CORE_VERSION
        att["timeSinceTrackerReady"] = self.time_since_tracker_ready.elapsed()

    def _log_context(self) -> dict[str, Any]:
        return {"tracker": self.get_tracker_name()}

    @ignore_when_disposed
    def send(self, event_name: str, att: dict[str, Any] | None = None) -> bool:
        """Emit ``event_name`` with the full attribute bag.

        Returns:
            True once the event was emitted
        """
        attributes = self.get_attributes(att, event_name)
        with ViewLogContext(**self._log_context()):
            self.logger.debug("video_tracker.event", event_name=event_name)
            self.emit(event_name, attributes)
        return True


__all__ = ["CORE_VERSION", "Tracker", "ignore_when_disposed"]
