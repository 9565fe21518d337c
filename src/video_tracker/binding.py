"""
Player Bindings

A PlayerBinding is the only way a tracker learns about the host player.
Every accessor may return None when the player cannot supply the value;
the tracker then reports "unknown". Bindings also own the host event
wiring through register_listeners / unregister_listeners.
"""

import math
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .video import VideoTracker


class PlayerBinding:
    """
    Read-only accessors over a host player.

    Subclass and override what your player can report. Values are used
    as-is, except durations and playheads which are in milliseconds.
    """

    # ===== Listeners =====

    def register_listeners(self, tracker: "VideoTracker") -> None:
        """Wire host player callbacks to tracker.send_* methods."""

    def unregister_listeners(self, tracker: "VideoTracker") -> None:
        """Remove everything register_listeners attached."""

    # ===== Identity =====

    def get_player_name(self) -> str | None:
        return None

    def get_player_version(self) -> str | None:
        return None

    def get_page_url(self) -> str | None:
        """URL of the page or screen hosting the player."""
        return None

    # ===== Media =====

    def get_video_id(self) -> str | None:
        return None

    def get_title(self) -> str | None:
        return None

    def is_live(self) -> bool | None:
        return None

    def get_bitrate(self) -> int | None:
        """Consumed bitrate in bits per second."""
        return None

    def get_rendition_name(self) -> str | None:
        return None

    def get_rendition_bitrate(self) -> int | None:
        """Target bitrate of the current rendition."""
        return None

    def get_rendition_height(self) -> int | None:
        return None

    def get_rendition_width(self) -> int | None:
        return None

    def get_duration(self) -> int | None:
        """Duration in milliseconds."""
        return None

    def get_playhead(self) -> int | None:
        """Playhead position in milliseconds."""
        return None

    def get_language(self) -> str | None:
        return None

    def get_src(self) -> str | None:
        return None

    def get_playrate(self) -> float | None:
        return None

    def is_muted(self) -> bool | None:
        return None

    def is_fullscreen(self) -> bool | None:
        return None

    def get_cdn(self) -> str | None:
        return None

    def get_fps(self) -> float | None:
        return None

    def is_autoplayed(self) -> bool | None:
        return None

    def get_preload(self) -> str | None:
        return None

    def get_decoded_byte_count(self) -> int | None:
        """Total bytes decoded so far, used to estimate bitrate."""
        return None

    # ===== Ads =====

    def get_ad_quartile(self) -> int | None:
        """0 before the first quartile, 1-3 after each, 4 once completed."""
        return None

    def get_ad_partner(self) -> str | None:
        return None

    def get_ad_creative_id(self) -> str | None:
        return None


def _seconds_to_ms(value: Any) -> int | None:
    if value is None:
        return None
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        return None
    return int(round(value * 1000))


class MediaElementBinding(PlayerBinding):
    """
    Binding over an object shaped like an HTML5 media element.

    Reads duration, current_time, current_src, playback_rate, muted,
    autoplay, preload, video_height, video_width and decoded_byte_count.
    Missing attributes report None. Times are given in seconds by the
    element and converted to milliseconds.

    Examples:
        >>> from types import SimpleNamespace
        >>> element = SimpleNamespace(duration=12.5, current_time=3.0)
        >>> MediaElementBinding(element).get_duration()
        12500
    """

    def __init__(self, element: Any):
        self.element = element

    def _attr(self, name: str) -> Any:
        if self.element is None:
            return None
        return getattr(self.element, name, None)

    def get_duration(self) -> int | None:
        return _seconds_to_ms(self._attr("duration"))

    def get_playhead(self) -> int | None:
        return _seconds_to_ms(self._attr("current_time"))

    def get_src(self) -> str | None:
        return self._attr("current_src")

    def get_playrate(self) -> float | None:
        return self._attr("playback_rate")

    def is_muted(self) -> bool | None:
        return self._attr("muted")

    def is_autoplayed(self) -> bool | None:
        return self._attr("autoplay")

    def get_preload(self) -> str | None:
        return self._attr("preload")

    def get_rendition_height(self) -> int | None:
        return self._attr("video_height")

    def get_rendition_width(self) -> int | None:
        return self._attr("video_width")

    def get_decoded_byte_count(self) -> int | None:
        return self._attr("decoded_byte_count")


__all__ = ["PlayerBinding", "MediaElementBinding"]
