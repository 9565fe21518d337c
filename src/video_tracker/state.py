"""
Tracker State Machine

Guards every lifecycle transition of one tracked role (content or ad),
derives per-event timing and classification attributes, and issues view
and session identifiers.

Phases:
    IDLE -> READY -> REQUESTED -> {PLAYING, PAUSED, BUFFERING, SEEKING} -> ENDED

Buffering and seeking are interruptions: they are stacked on top of the
phase that was active when they began and ending them lands back there.
Pausing or resuming while interrupted rewrites the phase underneath, so
e.g. PLAYING -> BUFFERING -> (pause) -> (buffer end) lands in PAUSED.
"""

import secrets
import time
from enum import Enum
from typing import Any

from .chrono import Chrono, Clock
from .exceptions import TrackerConfigError
from .log_config import get_context_logger


class PlaybackPhase(str, Enum):
    """Main phase of a tracked view."""

    IDLE = "idle"
    READY = "ready"
    REQUESTED = "requested"
    PLAYING = "playing"
    PAUSED = "paused"
    BUFFERING = "buffering"
    SEEKING = "seeking"
    ENDED = "ended"


class BufferType(str, Enum):
    """Cause of a buffering episode."""

    INITIAL = "initial"
    SEEK = "seek"
    OTHER = "other"


class RenditionShift(str, Enum):
    """Direction of a rendition bitrate change."""

    UP = "up"
    DOWN = "down"


_P = PlaybackPhase

# Phases each guarded transition may fire from. Structural conditions
# (already started, buffering underneath a seek, ...) are checked by the guards.
TRANSITIONS: dict[str, frozenset[PlaybackPhase]] = {
    "player_ready": frozenset({_P.IDLE}),
    "request": frozenset({_P.IDLE, _P.READY, _P.ENDED}),
    "start": frozenset({_P.REQUESTED, _P.BUFFERING}),
    "pause": frozenset({_P.PLAYING, _P.BUFFERING, _P.SEEKING}),
    "resume": frozenset({_P.PAUSED, _P.BUFFERING, _P.SEEKING}),
    "buffer_start": frozenset({_P.REQUESTED, _P.PLAYING, _P.PAUSED, _P.SEEKING}),
    "buffer_end": frozenset({_P.BUFFERING, _P.SEEKING}),
    "seek_start": frozenset({_P.PLAYING, _P.PAUSED, _P.BUFFERING}),
    "seek_end": frozenset({_P.SEEKING, _P.BUFFERING}),
    "end": frozenset({_P.REQUESTED, _P.PLAYING, _P.PAUSED, _P.BUFFERING, _P.SEEKING}),
}

_INACTIVE = frozenset({_P.IDLE, _P.READY, _P.ENDED})


class TrackerState:
    """
    Finite state machine behind a VideoTracker.

    Every go_* method is a guard: it returns True and applies the
    transition and its side effects only when the current phase permits
    it, and returns False otherwise (a duplicate or out-of-order signal).

    Examples:
        >>> state = TrackerState()
        >>> state.go_request()
        True
        >>> state.go_request()
        False
        >>> state.go_start()
        True
        >>> state.phase
        <PlaybackPhase.PLAYING: 'playing'>
    """

    def __init__(self, clock: Clock | None = None, initial_buffering_threshold_ms: int = 100):
        """
        Initialize an idle state.

        Args:
            clock: Time source (seconds) shared by every Chrono
            initial_buffering_threshold_ms: Buffering that begins this soon after
                start, before any buffering completed, is classified as initial
        """
        self.logger = get_context_logger("tracker_state")
        self.initial_buffering_threshold_ms = initial_buffering_threshold_ms

        self._is_ad = False
        self._used = False
        self._phase = PlaybackPhase.IDLE
        self._interrupted: list[PlaybackPhase] = []
        self._suspended = False

        self._view_session: str | None = None
        self._view_id: str | None = None
        self._view_count = 0

        self.in_ad_break = False
        # Whether the current (or just ended) view reached start
        self.view_started = False
        self.initial_buffering_happened = False
        self.initial_buffering = False
        self.buffer_type: BufferType | None = None

        self.number_of_videos = 0
        self.number_of_ads = 0
        self.number_of_errors = 0
        self.total_playtime = 0
        self.total_ad_playtime = 0
        self._playtime_since_last_event = 0

        # Last rendition bitrate, keyed by is_ad
        self._last_rendition_bitrate: dict[bool, Any] = {False: None, True: None}

        self._clock = clock
        self.time_since_requested = Chrono(clock)
        self.time_since_started = Chrono(clock)
        self.time_since_paused = Chrono(clock)
        self.time_since_resumed = Chrono(clock)
        self.time_since_buffer_begin = Chrono(clock)
        self.time_since_seek_begin = Chrono(clock)
        self.time_since_seek_end = Chrono(clock)
        self.time_since_last_heartbeat = Chrono(clock)
        self.time_since_last_rendition_change = Chrono(clock)
        self.time_since_last_download = Chrono(clock)
        self.time_since_last_error = Chrono(clock)
        self.time_since_last_ad = Chrono(clock)
        self.time_since_ad_break_start = Chrono(clock)
        self.time_since_last_ad_quartile = Chrono(clock)
        self._playtime_chrono = Chrono(clock)
        self._custom_chronos: dict[str, Chrono] = {}

    # ===== Role =====

    @property
    def is_ad(self) -> bool:
        """True when this state tracks an ad."""
        return self._is_ad

    def check_is_ad(self, is_ad: bool) -> None:
        """Raise TrackerConfigError if the role cannot be set to ``is_ad``."""
        if is_ad != self._is_ad and self._used:
            raise TrackerConfigError(
                "Cannot change the ad role after a view was requested",
                option="is_ad",
                context={"is_ad": self._is_ad, "phase": self._phase.value},
            )

    def set_is_ad(self, is_ad: bool) -> None:
        """Select the ad or content role.

        Raises:
            TrackerConfigError: If the role changes after a view was requested
        """
        self.check_is_ad(is_ad)
        self._is_ad = is_ad

    # ===== Predicates =====

    @property
    def phase(self) -> PlaybackPhase:
        """Phase currently in effect."""
        return self._phase

    @property
    def _base(self) -> PlaybackPhase:
        return self._interrupted[0] if self._interrupted else self._phase

    @_base.setter
    def _base(self, phase: PlaybackPhase) -> None:
        if self._interrupted:
            self._interrupted[0] = phase
        else:
            self._phase = phase

    def _in_chain(self, phase: PlaybackPhase) -> bool:
        return self._phase is phase or phase in self._interrupted

    @property
    def is_requested(self) -> bool:
        """True between a request and the end of the view."""
        return self._phase not in _INACTIVE

    @property
    def is_started(self) -> bool:
        """True once the view started and until it ends."""
        return self._base in (_P.PLAYING, _P.PAUSED)

    @property
    def is_paused(self) -> bool:
        return self._in_chain(_P.PAUSED)

    @property
    def is_buffering(self) -> bool:
        return self._in_chain(_P.BUFFERING)

    @property
    def is_seeking(self) -> bool:
        return self._in_chain(_P.SEEKING)

    @property
    def is_playing(self) -> bool:
        """True while media is actually advancing (not suspended by an ad)."""
        return self._phase is _P.PLAYING and not self._suspended

    # ===== Identity =====

    def get_view_session(self) -> str:
        """Session id, generated on first use and stable afterwards."""
        if self._view_session is None:
            self._view_session = f"{int(time.time() * 1000)}-{secrets.token_hex(8)}"
        return self._view_session

    def get_view_id(self) -> str:
        """Id of the current view; changes only on go_view_count_up."""
        if self._view_id is None:
            self._view_id = f"{self.get_view_session()}-{self._view_count}"
        return self._view_id

    # ===== Internals =====

    def _permits(self, transition: str, condition: bool = True) -> bool:
        if self._phase in TRANSITIONS[transition] and condition:
            return True
        self.logger.debug(
            "Transition rejected",
            transition=transition,
            phase=self._phase.value,
            is_ad=self._is_ad,
        )
        return False

    def _push(self, phase: PlaybackPhase) -> None:
        self._interrupted.append(self._phase)
        self._phase = phase

    def _remove(self, phase: PlaybackPhase) -> None:
        if self._phase is phase:
            self._phase = self._interrupted.pop()
        else:
            self._interrupted.remove(phase)

    def _close_view(self) -> None:
        self._accumulate_playtime()
        self._phase = _P.ENDED
        self._interrupted.clear()

    def _accumulate_playtime(self) -> None:
        if self.is_playing:
            delta = self._playtime_chrono.elapsed()
            self.total_playtime += delta
            self._playtime_since_last_event += delta
            if self._is_ad:
                self.total_ad_playtime += delta
        self._playtime_chrono.mark()

    # ===== Guards =====

    def go_player_ready(self) -> bool:
        if not self._permits("player_ready"):
            return False
        self._phase = _P.READY
        return True

    def go_request(self) -> bool:
        """Open a new view: issue its id and mark the request time."""
        if not self._permits("request"):
            return False
        self._phase = _P.REQUESTED
        self._interrupted.clear()
        self._used = True
        self.view_started = False
        self.initial_buffering_happened = False
        self.initial_buffering = False
        self.buffer_type = None
        self.get_view_id()
        self.time_since_requested.mark()
        return True

    def go_start(self) -> bool:
        """First frame of the view. Valid once per view."""
        if not self._permits("start", self._base is _P.REQUESTED):
            return False
        self._accumulate_playtime()
        self._base = _P.PLAYING
        if self._is_ad:
            self.number_of_ads += 1
        else:
            self.number_of_videos += 1
        self.view_started = True
        self.time_since_started.mark()
        return True

    def go_pause(self) -> bool:
        if not self._permits("pause", self._in_chain(_P.PLAYING)):
            return False
        self._accumulate_playtime()
        self._base = _P.PAUSED
        self.time_since_paused.mark()
        return True

    def go_resume(self) -> bool:
        if not self._permits("resume", self._in_chain(_P.PAUSED)):
            return False
        self._accumulate_playtime()
        self._base = _P.PLAYING
        self.time_since_resumed.mark()
        return True

    def go_buffer_start(self) -> bool:
        """Enter buffering, classifying the episode before it begins."""
        if not self._permits("buffer_start", not self.is_buffering):
            return False
        self._accumulate_playtime()
        self.initial_buffering = self.is_initial_buffering()
        self.buffer_type = self.calculate_buffer_type(self.initial_buffering)
        self._push(_P.BUFFERING)
        self.time_since_buffer_begin.mark()
        return True

    def go_buffer_end(self) -> bool:
        if not self._permits("buffer_end", self.is_buffering):
            return False
        self._accumulate_playtime()
        self._remove(_P.BUFFERING)
        self.initial_buffering_happened = True
        return True

    def go_seek_start(self) -> bool:
        if not self._permits("seek_start", self.is_started and not self.is_seeking):
            return False
        self._accumulate_playtime()
        self._push(_P.SEEKING)
        self.time_since_seek_begin.mark()
        return True

    def go_seek_end(self) -> bool:
        if not self._permits("seek_end", self.is_seeking):
            return False
        self._accumulate_playtime()
        self._remove(_P.SEEKING)
        self.time_since_seek_end.mark()
        return True

    def go_end(self) -> bool:
        """Close the view. Call go_view_count_up once the END event is out."""
        if not self._permits("end"):
            return False
        self._close_view()
        return True

    def go_view_count_up(self) -> None:
        """Retire the current view id and reset per-view accumulators."""
        self._view_count += 1
        self._view_id = None
        self.total_playtime = 0
        self._playtime_since_last_event = 0
        self.number_of_errors = 0

    def go_ad_break_start(self) -> bool:
        if not self._is_ad or self.in_ad_break:
            return False
        self.in_ad_break = True
        self.total_ad_playtime = 0
        self.time_since_ad_break_start.mark()
        return True

    def go_ad_break_end(self) -> bool:
        """Leave the ad break, closing an ad view that never reported its end."""
        if not self._is_ad or not self.in_ad_break:
            return False
        self.in_ad_break = False
        if self.is_requested:
            self._close_view()
            self.go_view_count_up()
        return True

    def go_heartbeat(self) -> bool:
        if not self.is_requested:
            return False
        self.time_since_last_heartbeat.mark()
        return True

    def go_error(self) -> bool:
        self.number_of_errors += 1
        self.time_since_last_error.mark()
        return True

    def go_download(self) -> bool:
        self.time_since_last_download.mark()
        return True

    def go_rendition_change(self) -> bool:
        self.time_since_last_rendition_change.mark()
        return True

    def go_ad_quartile(self) -> bool:
        self.time_since_last_ad_quartile.mark()
        return True

    def go_last_ad(self) -> bool:
        self.time_since_last_ad.mark()
        return True

    # ===== Parent side effects =====

    def suspend_playback(self) -> None:
        """Clear the playing flag while an ad plays over this view."""
        self._accumulate_playtime()
        self._suspended = True

    def resume_playback(self) -> None:
        """Restore the playing flag after an ad or ad break."""
        self._accumulate_playtime()
        self._suspended = False

    # ===== Derived values =====

    def is_initial_buffering(self) -> bool:
        """True if buffering now would be the view's initial buffering."""
        if self.initial_buffering_happened:
            return False
        if not self.is_started:
            return True
        return self.time_since_started.elapsed() < self.initial_buffering_threshold_ms

    def calculate_buffer_type(self, is_initial_buffering: bool) -> BufferType:
        """Classify a buffering episode as initial, seek-induced or other."""
        if is_initial_buffering:
            return BufferType.INITIAL
        if self.is_seeking:
            return BufferType.SEEK
        return BufferType.OTHER

    def get_rendition_shift(
        self, current_bitrate: Any, save_snapshot: bool = False
    ) -> RenditionShift | None:
        """
        Compare a rendition bitrate with the last one saved for this role.

        Args:
            current_bitrate: Bitrate of the rendition now playing
            save_snapshot: Store current_bitrate as the new baseline

        Returns:
            UP or DOWN, or None when unchanged or either value is missing
        """
        last = self._last_rendition_bitrate[self._is_ad]
        if save_snapshot:
            self._last_rendition_bitrate[self._is_ad] = current_bitrate

        if not current_bitrate or not last:
            return None
        if current_bitrate > last:
            return RenditionShift.UP
        if current_bitrate < last:
            return RenditionShift.DOWN
        return None

    def set_time_since_attribute(self, name: str) -> None:
        """Start (or restart) a custom timeSince attribute reported as ``name``."""
        chrono = self._custom_chronos.setdefault(name, Chrono(self._clock))
        chrono.mark()

    def get_state_attributes(self, att: dict[str, Any]) -> dict[str, Any]:
        """
        Add timing and counter attributes for the current role.

        Keys already present in ``att`` are left untouched so event-specific
        values win.

        Args:
            att: Attribute bag to fill

        Returns:
            The same attribute bag
        """
        self._accumulate_playtime()

        # (chrono, content key, ad key)
        reported: list[tuple[Chrono, str, str]] = [
            (self.time_since_last_heartbeat, "timeSinceLastHeartbeat", "timeSinceLastAdHeartbeat"),
            (
                self.time_since_last_rendition_change,
                "timeSinceLastRenditionChange",
                "timeSinceLastAdRenditionChange",
            ),
            (self.time_since_last_download, "timeSinceLastDownload", "timeSinceLastAdDownload"),
            (self.time_since_last_error, "timeSinceLastError", "timeSinceLastAdError"),
        ]
        if self.is_requested:
            reported.append(
                (self.time_since_requested, "timeSinceRequested", "timeSinceAdRequested")
            )
        if self.is_started:
            reported.append((self.time_since_started, "timeSinceStarted", "timeSinceAdStarted"))
        if self.is_paused:
            reported.append((self.time_since_paused, "timeSincePaused", "timeSinceAdPaused"))
        if self.is_buffering:
            reported.append(
                (self.time_since_buffer_begin, "timeSinceBufferBegin", "timeSinceAdBufferBegin")
            )
        if self.is_seeking:
            reported.append(
                (self.time_since_seek_begin, "timeSinceSeekBegin", "timeSinceAdSeekBegin")
            )

        for chrono, content_key, ad_key in reported:
            if chrono.marked:
                att.setdefault(ad_key if self._is_ad else content_key, chrono.elapsed())

        if self._is_ad:
            if self.in_ad_break:
                att.setdefault("timeSinceAdBreakBegin", self.time_since_ad_break_start.elapsed())
            if self.time_since_last_ad_quartile.marked:
                att.setdefault(
                    "timeSinceLastAdQuartile", self.time_since_last_ad_quartile.elapsed()
                )
            att.setdefault("numberOfAds", self.number_of_ads)
            att.setdefault("totalAdPlaytime", self.total_ad_playtime)
        else:
            if self.time_since_last_ad.marked:
                att.setdefault("timeSinceLastAd", self.time_since_last_ad.elapsed())
            att.setdefault("numberOfVideos", self.number_of_videos)

        for name, chrono in self._custom_chronos.items():
            att.setdefault(name, chrono.elapsed())

        att.setdefault("numberOfErrors", self.number_of_errors)
        att.setdefault("totalPlaytime", self.total_playtime)
        att.setdefault("playtimeSinceLastEvent", self._playtime_since_last_event)
        self._playtime_since_last_event = 0
        return att

    def __repr__(self) -> str:
        return (
            f"TrackerState(phase={self._phase.value}, is_ad={self._is_ad}, "
            f"interrupted={[p.value for p in self._interrupted]}, "
            f"in_ad_break={self.in_ad_break})"
        )


__all__ = [
    "PlaybackPhase",
    "BufferType",
    "RenditionShift",
    "TRANSITIONS",
    "TrackerState",
]
