"""Video tracker exception hierarchy.

Invalid playback transitions are not errors: guards simply return False.
These exceptions cover setup-time misuse and sink failures.

Exception Hierarchy:
    VideoTrackerError (base)
    ├── TrackerConfigError
    └── BackendError
        └── BackendDeliveryError
"""

from typing import Optional


class VideoTrackerError(Exception):
    """Base exception for all video tracker errors."""

    def __init__(self, message: str, context: Optional[dict] = None):
        """Initialize tracker exception.

        Args:
            message: Error message
            context: Optional context dictionary for debugging
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation with context."""
        if self.context:
            context_str = "; ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class TrackerConfigError(VideoTrackerError):
    """Raised when a tracker is configured in an invalid way.

    Covers unknown option keys, non-positive heartbeat intervals, cyclic
    parent/ads links and changing the ad role after a view was requested.

    Attributes:
        option: Name of the offending option, if any
    """

    def __init__(
        self,
        message: str,
        option: Optional[str] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if option:
            context["option"] = option
        super().__init__(message, context)
        self.option = option


class BackendError(VideoTrackerError):
    """Base exception for sink/backend failures."""

    pass


class BackendDeliveryError(BackendError):
    """Raised when a backend cannot hand an event over for delivery.

    Attributes:
        event_type: Event name that could not be delivered
    """

    def __init__(
        self,
        message: str,
        event_type: Optional[str] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if event_type:
            context["event_type"] = event_type
        super().__init__(message, context)
        self.event_type = event_type


__all__ = [
    "VideoTrackerError",
    "TrackerConfigError",
    "BackendError",
    "BackendDeliveryError",
]
