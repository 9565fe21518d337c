"""
Video Tracker

Tracks one playback role (content or ad) through a TrackerState and
emits the VideoEvents catalogue with a fully assembled attribute bag.

A content tracker may own an ad tracker. Every event of the ad tracker
is funneled unchanged through the content tracker, so a sink subscribed
to the content tracker sees both streams.

Usage:
    >>> core = Core(backend=MemoryBackend())
    >>> tracker = VideoTracker(MediaElementBinding(element))
    >>> tracker.set_ads_tracker(VideoTracker())
    >>> core.add_tracker(tracker)
    >>> tracker.send_request()
    True
"""

from typing import Any

from .binding import PlayerBinding
from .chrono import Chrono, Clock
from .config import TrackerOptions
from .emitter import TrackerEvent
from .events import VideoEvents, role_event
from .settings import TrackerSettings, get_settings
from .state import RenditionShift, TrackerState
from .tracker import Tracker, ignore_when_disposed


UNKNOWN = "unknown"

# (attribute, binding getter); bitrate and ad position are computed by the tracker
CONTENT_FIELDS: tuple[tuple[str, str], ...] = (
    ("contentId", "get_video_id"),
    ("contentTitle", "get_title"),
    ("contentIsLive", "is_live"),
    ("contentRenditionName", "get_rendition_name"),
    ("contentRenditionBitrate", "get_rendition_bitrate"),
    ("contentRenditionHeight", "get_rendition_height"),
    ("contentRenditionWidth", "get_rendition_width"),
    ("contentDuration", "get_duration"),
    ("contentPlayhead", "get_playhead"),
    ("contentLanguage", "get_language"),
    ("contentSrc", "get_src"),
    ("contentPlayrate", "get_playrate"),
    ("contentIsFullscreen", "is_fullscreen"),
    ("contentIsMuted", "is_muted"),
    ("contentCdn", "get_cdn"),
    ("contentIsAutoplayed", "is_autoplayed"),
    ("contentPreload", "get_preload"),
    ("contentFps", "get_fps"),
)

AD_FIELDS: tuple[tuple[str, str], ...] = (
    ("adId", "get_video_id"),
    ("adTitle", "get_title"),
    ("adRenditionName", "get_rendition_name"),
    ("adRenditionBitrate", "get_rendition_bitrate"),
    ("adRenditionHeight", "get_rendition_height"),
    ("adRenditionWidth", "get_rendition_width"),
    ("adDuration", "get_duration"),
    ("adPlayhead", "get_playhead"),
    ("adLanguage", "get_language"),
    ("adSrc", "get_src"),
    ("adCdn", "get_cdn"),
    ("adIsMuted", "is_muted"),
    ("adFps", "get_fps"),
    ("adQuartile", "get_ad_quartile"),
    ("adCreativeId", "get_ad_creative_id"),
    ("adPartner", "get_ad_partner"),
)


class VideoTracker(Tracker):
    """
    Tracker for one video role, content or ad.

    Every send_* method returns True when it emitted its event. Methods
    tied to a phase (request, start, pause...) go through the matching
    TrackerState guard and emit nothing when the transition is invalid.
    Side-channel methods (download, error, rendition change) always emit.

    get_attributes is final: subclasses that override it are rejected
    at class creation. Customize through the PlayerBinding instead.
    """

    def __init_subclass__(cls, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        if "get_attributes" in cls.__dict__:
            raise TypeError(
                f"{cls.__name__} cannot override VideoTracker.get_attributes; "
                "supply values through a PlayerBinding"
            )

    def __init__(
        self,
        binding: PlayerBinding | None = None,
        options: TrackerOptions | dict[str, Any] | None = None,
        *,
        clock: Clock | None = None,
        settings: TrackerSettings | None = None,
    ):
        """
        Initialize video tracker.

        Args:
            binding: Host player accessors; defaults to a binding that knows nothing
            options: TrackerOptions or an options dict
            clock: Time source (seconds) for every timeSince* attribute
            settings: Process settings; defaults to get_settings()
        """
        settings = settings or get_settings()
        self.binding: PlayerBinding | None = binding or PlayerBinding()
        self.ads_tracker: VideoTracker | None = None
        self.state = TrackerState(
            clock=clock,
            initial_buffering_threshold_ms=settings.initial_buffering_threshold_ms,
        )
        self._last_decoded_bytes: int | None = None
        self._decoded_bytes_chrono = Chrono(clock)

        super().__init__(options, clock=clock, settings=settings)
        self.register_listeners()

    # ===== Options and composition =====

    def set_options(self, options: TrackerOptions | dict[str, Any]) -> None:
        if isinstance(options, dict):
            options = TrackerOptions.from_dict(options)
        super().set_options(options)
        if options.is_ad is not None:
            self.set_is_ad(options.is_ad)
        if options.ads_tracker is not None:
            self.set_ads_tracker(options.ads_tracker)

    @property
    def is_ad(self) -> bool:
        return self.state.is_ad

    def set_is_ad(self, is_ad: bool) -> None:
        """Select the role. Raises TrackerConfigError once a view was requested."""
        self.state.set_is_ad(is_ad)

    def set_ads_tracker(self, tracker: "VideoTracker | None") -> None:
        """
        Attach a child ad tracker, replacing (and disposing) any previous one.

        The child is forced into the ad role, linked to this tracker and all
        its events are re-dispatched unchanged through this tracker.

        The candidate is validated before anything changes, so a rejected
        link leaves the current child and the candidate untouched.

        Raises:
            TrackerConfigError: If the link would make a tracker its own ancestor,
                or the child already tracked content
        """
        if tracker is None:
            self.dispose_ads_tracker()
            return
        if tracker is self.ads_tracker:
            return

        tracker.check_parent_tracker(self)
        tracker.state.check_is_ad(True)

        self.dispose_ads_tracker()
        tracker.set_is_ad(True)
        tracker.set_parent_tracker(self)
        tracker.subscribe_all(self._funnel_ad_event)
        self.ads_tracker = tracker
        self.logger.debug(
            "Ads tracker attached",
            tracker=self.get_tracker_name(),
            ads_tracker=tracker.get_tracker_name(),
        )

    def dispose_ads_tracker(self) -> None:
        if self.ads_tracker is None:
            return
        self.ads_tracker.unsubscribe_all(self._funnel_ad_event)
        self.ads_tracker.dispose()
        self.ads_tracker = None

    def _funnel_ad_event(self, event: TrackerEvent) -> None:
        if self.is_disposed:
            return
        self.dispatch(event)

    def _parent_video_tracker(self) -> "VideoTracker | None":
        parent = self.parent_tracker
        return parent if isinstance(parent, VideoTracker) else None

    # ===== Binding =====

    def set_binding(self, binding: PlayerBinding | None) -> None:
        """Swap the player binding, moving the host listeners to the new one."""
        if self.is_disposed:
            return
        self.unregister_listeners()
        self.binding = binding or PlayerBinding()
        self.register_listeners()

    def register_listeners(self) -> None:
        if self.binding is not None:
            self.binding.register_listeners(self)

    def unregister_listeners(self) -> None:
        if self.binding is not None:
            self.binding.unregister_listeners(self)

    def dispose(self) -> None:
        if self.is_disposed:
            return
        self.dispose_ads_tracker()
        super().dispose()
        self.binding = None

    def _read(self, getter: str) -> Any:
        """Call a binding getter; failures are logged and read as None."""
        if self.binding is None:
            return None
        try:
            return getattr(self.binding, getter)()
        except Exception as e:
            self.logger.debug(
                "Player binding getter failed",
                getter=getter,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    # ===== Identity =====

    def get_tracker_name(self) -> str:
        return "video-tracker"

    def get_view_session(self) -> str:
        parent = self._parent_video_tracker()
        if parent is not None:
            return parent.get_view_session()
        return self.state.get_view_session()

    def get_view_id(self) -> str:
        parent = self._parent_video_tracker()
        if parent is not None:
            return parent.get_view_id()
        return self.state.get_view_id()

    def get_player_name(self) -> str:
        return self._read("get_player_name") or self.get_tracker_name()

    def get_ad_position(self) -> str | None:
        """Return "pre" before the parent content started, "mid" after, None without a parent."""
        parent = self._parent_video_tracker()
        if parent is None:
            return None
        return "mid" if parent.state.is_started else "pre"

    # ===== Derived values =====

    def get_bitrate(self) -> int | None:
        """Bitrate from the binding, else estimated from decoded bytes."""
        return self._read("get_bitrate") or self._get_decoded_bitrate()

    def _get_decoded_bitrate(self) -> int | None:
        decoded = self._read("get_decoded_byte_count")
        if not decoded:
            return None

        bitrate = None
        if self._last_decoded_bytes:
            seconds = self._decoded_bytes_chrono.elapsed() / 1000
            if seconds > 0:
                bitrate = round((decoded - self._last_decoded_bytes) / seconds * 8)
        self._last_decoded_bytes = decoded
        self._decoded_bytes_chrono.mark()
        return bitrate or None

    def get_rendition_shift(self, save_snapshot: bool = False) -> RenditionShift | None:
        return self.state.get_rendition_shift(self._read("get_rendition_bitrate"), save_snapshot)

    def _role_key(self, key: str) -> str:
        """Ad-role name of a timeSince* attribute (timeSinceStarted -> timeSinceAdStarted)."""
        if not self.is_ad:
            return key
        if key.startswith("timeSinceLast"):
            return "timeSinceLastAd" + key[len("timeSinceLast"):]
        return "timeSinceAd" + key[len("timeSince"):]

    def _event(self, action: str) -> str:
        return role_event(action, self.is_ad)

    # ===== Attributes =====

    def get_attributes(
        self, att: dict[str, Any] | None = None, event_name: str | None = None
    ) -> dict[str, Any]:
        """
        Assemble the attribute bag of an event.

        Merge order: event attributes, tracker fields, identity, role
        namespace, state timings and counters, then custom data last.

        Args:
            att: Event-specific attributes
            event_name: Event being built, if any

        Returns:
            New attribute dict
        """
        att = dict(att) if att else {}
        Tracker._fill_attributes(self, att, event_name)

        att.setdefault("isAd", self.is_ad)
        att["viewSession"] = self.get_view_session()
        att["viewId"] = self.get_view_id()
        att["playerName"] = self.get_player_name()
        att["playerVersion"] = self._or_unknown(self._read("get_player_version"))

        page_url = self._read("get_page_url")
        if page_url is not None:
            att["pageUrl"] = page_url

        if self.is_ad:
            att["adBitrate"] = self._or_unknown(self.get_bitrate())
            for name, getter in AD_FIELDS:
                att[name] = self._or_unknown(self._read(getter))
            att["adPosition"] = self._or_unknown(self.get_ad_position())
        else:
            att["contentBitrate"] = self._or_unknown(self.get_bitrate())
            for name, getter in CONTENT_FIELDS:
                att[name] = self._or_unknown(self._read(getter))
            if self.ads_tracker is not None and self.ads_tracker.state.total_ad_playtime > 0:
                att["totalAdPlaytime"] = self.ads_tracker.state.total_ad_playtime

        self.state.get_state_attributes(att)
        att.update(self.custom_data)
        return att

    @staticmethod
    def _or_unknown(value: Any) -> Any:
        return UNKNOWN if value is None else value

    def _log_context(self) -> dict[str, Any]:
        return {
            "tracker": self.get_tracker_name(),
            "view_id": self.get_view_id(),
            "is_ad": self.is_ad,
        }

    # ===== Lifecycle events =====

    @ignore_when_disposed
    def send_player_ready(self, att: dict[str, Any] | None = None) -> bool:
        if not self.state.go_player_ready():
            return False
        return self.send(VideoEvents.PLAYER_READY.value, att)

    @ignore_when_disposed
    def send_request(self, att: dict[str, Any] | None = None) -> bool:
        """Open a view, emit *_REQUEST and start the heartbeat."""
        if not self.state.go_request():
            return False
        self.send(self._event("REQUEST"), att)
        self.start_heartbeat()
        self.state.go_heartbeat()
        return True

    @ignore_when_disposed
    def send_start(self, att: dict[str, Any] | None = None) -> bool:
        """Emit *_START. An ad start suspends the parent's playing flag."""
        if not self.state.go_start():
            return False
        parent = self._parent_video_tracker()
        if self.is_ad and parent is not None:
            parent.state.suspend_playback()
        return self.send(self._event("START"), att)

    @ignore_when_disposed
    def send_end(self, att: dict[str, Any] | None = None) -> bool:
        """
        Emit *_END and close the view.

        The event still carries the ending view id; the next view id is
        issued right after it is emitted.
        """
        if not self.state.go_end():
            return False

        att = dict(att) if att else {}
        att[self._role_key("timeSinceRequested")] = self.state.time_since_requested.elapsed()
        if self.state.view_started:
            att[self._role_key("timeSinceStarted")] = self.state.time_since_started.elapsed()

        parent = self._parent_video_tracker()
        if self.is_ad and parent is not None:
            parent.state.resume_playback()

        self.stop_heartbeat()
        self.send(self._event("END"), att)

        if self.is_ad and parent is not None and self.state.in_ad_break:
            parent.state.go_last_ad()
        self.state.go_view_count_up()
        return True

    @ignore_when_disposed
    def send_pause(self, att: dict[str, Any] | None = None) -> bool:
        if not self.state.go_pause():
            return False
        return self.send(self._event("PAUSE"), att)

    @ignore_when_disposed
    def send_resume(self, att: dict[str, Any] | None = None) -> bool:
        if not self.state.go_resume():
            return False
        att = dict(att) if att else {}
        att[self._role_key("timeSincePaused")] = self.state.time_since_paused.elapsed()
        return self.send(self._event("RESUME"), att)

    def _buffer_attributes(self, att: dict[str, Any]) -> dict[str, Any]:
        buffer_type = self.state.buffer_type
        att["isInitialBuffering"] = self.state.initial_buffering
        att["bufferType"] = buffer_type.value if buffer_type is not None else None
        att["timeSinceResumed"] = self.state.time_since_resumed.elapsed()
        att["timeSinceSeekEnd"] = self.state.time_since_seek_end.elapsed()
        return att

    @ignore_when_disposed
    def send_buffer_start(self, att: dict[str, Any] | None = None) -> bool:
        """Emit *_BUFFER_START with the episode's buffer classification."""
        if not self.state.go_buffer_start():
            return False
        att = self._buffer_attributes(dict(att) if att else {})
        return self.send(self._event("BUFFER_START"), att)

    @ignore_when_disposed
    def send_buffer_end(self, att: dict[str, Any] | None = None) -> bool:
        """Emit *_BUFFER_END, repeating the classification made at buffer start."""
        if not self.state.go_buffer_end():
            return False
        att = dict(att) if att else {}
        att[self._role_key("timeSinceBufferBegin")] = self.state.time_since_buffer_begin.elapsed()
        att = self._buffer_attributes(att)
        return self.send(self._event("BUFFER_END"), att)

    @ignore_when_disposed
    def send_seek_start(self, att: dict[str, Any] | None = None) -> bool:
        if not self.state.go_seek_start():
            return False
        return self.send(self._event("SEEK_START"), att)

    @ignore_when_disposed
    def send_seek_end(self, att: dict[str, Any] | None = None) -> bool:
        if not self.state.go_seek_end():
            return False
        att = dict(att) if att else {}
        att[self._role_key("timeSinceSeekBegin")] = self.state.time_since_seek_begin.elapsed()
        return self.send(self._event("SEEK_END"), att)

    # ===== Side-channel events =====

    @ignore_when_disposed
    def send_rendition_changed(self, att: dict[str, Any] | None = None) -> bool:
        """Emit *_RENDITION_CHANGE with the shift direction and save the new baseline."""
        att = dict(att) if att else {}
        att[self._role_key("timeSinceLastRenditionChange")] = (
            self.state.time_since_last_rendition_change.elapsed()
        )
        shift = self.get_rendition_shift(save_snapshot=True)
        att["shift"] = shift.value if shift is not None else None
        self.send(self._event("RENDITION_CHANGE"), att)
        self.state.go_rendition_change()
        return True

    @ignore_when_disposed
    def send_heartbeat(self, att: dict[str, Any] | None = None) -> bool:
        """Emit *_HEARTBEAT while a view is open. Called by the heartbeat timer."""
        if not self.state.is_requested:
            return False
        self.send(self._event("HEARTBEAT"), att)
        self.state.go_heartbeat()
        return True

    @ignore_when_disposed
    def send_download(self, att: dict[str, Any] | None = None) -> bool:
        att = dict(att) if att else {}
        if not att.get("state"):
            self.logger.warning("send_download called without a 'state' attribute")
        self.send(VideoEvents.DOWNLOAD.value, att)
        self.state.go_download()
        return True

    @ignore_when_disposed
    def send_error(self, att: dict[str, Any] | None = None) -> bool:
        """Emit *_ERROR. Errors never change the playback phase."""
        att = dict(att) if att else {}
        att["isAd"] = self.is_ad
        self.state.go_error()
        return self.send(self._event("ERROR"), att)

    @ignore_when_disposed
    def send_custom(
        self,
        action_name: str,
        time_since_att_name: str | None = None,
        att: dict[str, Any] | None = None,
    ) -> bool:
        """
        Emit a custom action.

        Args:
            action_name: Event name to emit
            time_since_att_name: If given, later events report the time since
                this action under that attribute name
            att: Event attributes
        """
        self.send(action_name, att)
        if time_since_att_name:
            self.state.set_time_since_attribute(time_since_att_name)
        return True

    # ===== Ad-only events =====

    def _require_ad(self, method: str) -> bool:
        if self.is_ad:
            return True
        self.logger.debug("Ad-only call ignored on content tracker", method=method)
        return False

    @ignore_when_disposed
    def send_ad_break_start(self, att: dict[str, Any] | None = None) -> bool:
        """Enter an ad break: zero total ad playtime and suspend the parent."""
        if not self._require_ad("send_ad_break_start") or not self.state.go_ad_break_start():
            return False
        parent = self._parent_video_tracker()
        if parent is not None:
            parent.state.suspend_playback()
        return self.send(VideoEvents.AD_BREAK_START.value, att)

    @ignore_when_disposed
    def send_ad_break_end(self, att: dict[str, Any] | None = None) -> bool:
        """Leave the ad break and hand playback back to the parent."""
        if not self._require_ad("send_ad_break_end") or not self.state.go_ad_break_end():
            return False
        att = dict(att) if att else {}
        att["timeSinceAdBreakBegin"] = self.state.time_since_ad_break_start.elapsed()
        self.send(VideoEvents.AD_BREAK_END.value, att)

        # AD_END may never arrive, e.g. after an AD_ERROR
        parent = self._parent_video_tracker()
        if parent is not None:
            parent.state.resume_playback()
            parent.state.go_last_ad()
        self.stop_heartbeat()
        return True

    @ignore_when_disposed
    def send_ad_quartile(self, att: dict[str, Any] | None = None) -> bool:
        if not self._require_ad("send_ad_quartile"):
            return False
        att = dict(att) if att else {}
        if att.get("quartile") is None:
            self.logger.warning("send_ad_quartile called without a 'quartile' attribute")
        att["timeSinceLastAdQuartile"] = self.state.time_since_last_ad_quartile.elapsed()
        self.send(VideoEvents.AD_QUARTILE.value, att)
        self.state.go_ad_quartile()
        return True

    @ignore_when_disposed
    def send_ad_click(self, att: dict[str, Any] | None = None) -> bool:
        if not self._require_ad("send_ad_click"):
            return False
        att = dict(att) if att else {}
        if not att.get("url"):
            self.logger.warning("send_ad_click called without a 'url' attribute")
        return self.send(VideoEvents.AD_CLICK.value, att)


__all__ = ["VideoTracker", "UNKNOWN", "CONTENT_FIELDS", "AD_FIELDS"]
