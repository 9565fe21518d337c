"""
Per-tracker options.

Process-wide defaults live in settings.TrackerSettings; TrackerOptions
carries what differs between tracker instances.
"""

from dataclasses import dataclass, fields
from typing import Any

from .exceptions import TrackerConfigError


_CAMEL_CASE_KEYS = {
    "isAd": "is_ad",
    "heartbeat": "heartbeat_interval_ms",
    "heartbeatInterval": "heartbeat_interval_ms",
    "heartbeatIntervalMs": "heartbeat_interval_ms",
    "customData": "custom_data",
    "parentTracker": "parent_tracker",
    "adsTracker": "ads_tracker",
}


@dataclass
class TrackerOptions:
    """
    Options accepted by Tracker.set_options.

    Attributes:
        is_ad: Track the ad role instead of content
        heartbeat_interval_ms: Heartbeat period; None falls back to the parent
            tracker, then to TrackerSettings.heartbeat_interval_ms
        custom_data: Attributes appended to every event (override computed ones)
        parent_tracker: Content tracker this ad tracker belongs to
        ads_tracker: Child ad tracker to attach (VideoTracker only)

    Examples:
        >>> options = TrackerOptions.from_dict({"isAd": True, "heartbeat": 5000})
        >>> options.heartbeat_interval_ms
        5000
    """

    is_ad: bool | None = None
    heartbeat_interval_ms: int | None = None
    custom_data: dict[str, Any] | None = None
    parent_tracker: Any = None
    ads_tracker: Any = None

    def __post_init__(self):
        if self.heartbeat_interval_ms is not None and self.heartbeat_interval_ms <= 0:
            raise TrackerConfigError(
                "Heartbeat interval must be positive",
                option="heartbeat_interval_ms",
                context={"value": self.heartbeat_interval_ms},
            )

    @classmethod
    def from_dict(cls, options: dict[str, Any]) -> "TrackerOptions":
        """
        Build options from a dict with snake_case or camelCase keys.

        Raises:
            TrackerConfigError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in options.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                raise TrackerConfigError("Unknown tracker option", option=key)
            values[name] = value
        return cls(**values)


__all__ = ["TrackerOptions"]
