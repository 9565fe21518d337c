"""Video tracker event catalogue."""

from enum import Enum


class VideoEvents(str, Enum):
    """Event names consumed unchanged by the sink."""

    # Player
    PLAYER_READY = "PLAYER_READY"
    DOWNLOAD = "DOWNLOAD"
    ERROR = "ERROR"

    # Content
    CONTENT_REQUEST = "CONTENT_REQUEST"
    CONTENT_START = "CONTENT_START"
    CONTENT_END = "CONTENT_END"
    CONTENT_PAUSE = "CONTENT_PAUSE"
    CONTENT_RESUME = "CONTENT_RESUME"
    CONTENT_SEEK_START = "CONTENT_SEEK_START"
    CONTENT_SEEK_END = "CONTENT_SEEK_END"
    CONTENT_BUFFER_START = "CONTENT_BUFFER_START"
    CONTENT_BUFFER_END = "CONTENT_BUFFER_END"
    CONTENT_HEARTBEAT = "CONTENT_HEARTBEAT"
    CONTENT_RENDITION_CHANGE = "CONTENT_RENDITION_CHANGE"
    CONTENT_ERROR = "CONTENT_ERROR"

    # Ads
    AD_REQUEST = "AD_REQUEST"
    AD_START = "AD_START"
    AD_END = "AD_END"
    AD_PAUSE = "AD_PAUSE"
    AD_RESUME = "AD_RESUME"
    AD_SEEK_START = "AD_SEEK_START"
    AD_SEEK_END = "AD_SEEK_END"
    AD_BUFFER_START = "AD_BUFFER_START"
    AD_BUFFER_END = "AD_BUFFER_END"
    AD_HEARTBEAT = "AD_HEARTBEAT"
    AD_RENDITION_CHANGE = "AD_RENDITION_CHANGE"
    AD_ERROR = "AD_ERROR"
    AD_BREAK_START = "AD_BREAK_START"
    AD_BREAK_END = "AD_BREAK_END"
    AD_QUARTILE = "AD_QUARTILE"
    AD_CLICK = "AD_CLICK"


# action -> (content event, ad event)
ROLE_EVENTS: dict[str, tuple[VideoEvents, VideoEvents]] = {
    "REQUEST": (VideoEvents.CONTENT_REQUEST, VideoEvents.AD_REQUEST),
    "START": (VideoEvents.CONTENT_START, VideoEvents.AD_START),
    "END": (VideoEvents.CONTENT_END, VideoEvents.AD_END),
    "PAUSE": (VideoEvents.CONTENT_PAUSE, VideoEvents.AD_PAUSE),
    "RESUME": (VideoEvents.CONTENT_RESUME, VideoEvents.AD_RESUME),
    "SEEK_START": (VideoEvents.CONTENT_SEEK_START, VideoEvents.AD_SEEK_START),
    "SEEK_END": (VideoEvents.CONTENT_SEEK_END, VideoEvents.AD_SEEK_END),
    "BUFFER_START": (VideoEvents.CONTENT_BUFFER_START, VideoEvents.AD_BUFFER_START),
    "BUFFER_END": (VideoEvents.CONTENT_BUFFER_END, VideoEvents.AD_BUFFER_END),
    "HEARTBEAT": (VideoEvents.CONTENT_HEARTBEAT, VideoEvents.AD_HEARTBEAT),
    "RENDITION_CHANGE": (VideoEvents.CONTENT_RENDITION_CHANGE, VideoEvents.AD_RENDITION_CHANGE),
    "ERROR": (VideoEvents.CONTENT_ERROR, VideoEvents.AD_ERROR),
}


def role_event(action: str, is_ad: bool) -> str:
    """Resolve a role-neutral action to the event name for content or ads.

    Args:
        action: Key of ROLE_EVENTS, e.g. "START"
        is_ad: Select the AD_* name instead of CONTENT_*

    Returns:
        Event name string
    """
    content_event, ad_event = ROLE_EVENTS[action]
    return (ad_event if is_ad else content_event).value


__all__ = ["VideoEvents", "ROLE_EVENTS", "role_event"]
