"""Event sinks that receive (event name, attributes) pairs from Core."""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from .exceptions import BackendDeliveryError
from .log_config import get_context_logger
from .metrics import MetricLabels, MetricsCollector, NoOpMetrics, TrackerMetrics
from .settings import get_settings


class Backend(ABC):
    """Destination of tracked events. Delivery is fire-and-forget."""

    @abstractmethod
    def send(self, event_name: str, attributes: dict[str, Any]) -> None:
        """Hand one event over for delivery.

        Raises:
            BackendError: If the event cannot even be handed over
        """


class MemoryBackend(Backend):
    """Keeps every event in memory. Useful for tests and debugging."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def send(self, event_name: str, attributes: dict[str, Any]) -> None:
        self.events.append((event_name, dict(attributes)))

    @property
    def event_names(self) -> list[str]:
        return [name for name, _ in self.events]

    def clear(self) -> None:
        self.events.clear()


class HttpBackend(Backend):
    """
    Posts each event as JSON to an HTTP collector.

    Posts are scheduled on the running asyncio loop and not awaited by the
    tracker. Failures are logged and counted, never raised to the caller.

    Examples:
        >>> backend = HttpBackend("https://collector.example.com/events")
        >>> core = Core(backend=backend)
        >>> ...
        >>> await backend.aclose()
    """

    def __init__(
        self,
        url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize HTTP backend.

        Args:
            url: Collector URL; defaults to TrackerSettings.backend_url
            client: HTTP client to reuse; one is created (and owned) otherwise
            timeout: Request timeout in seconds; defaults to settings
            headers: Extra request headers, merged over settings.backend_headers
            metrics: Metrics collector for post counts and latency
        """
        settings = get_settings()
        self.url = url or settings.backend_url
        if not self.url:
            raise BackendDeliveryError("HttpBackend requires a collector URL")

        self.timeout = timeout if timeout is not None else settings.backend_timeout
        self.headers = {**settings.backend_headers, **(headers or {})}
        self.metrics = metrics or NoOpMetrics()
        self.logger = get_context_logger("http_backend")

        self._client = client
        self._owns_client = client is None
        self._pending: set[asyncio.Task] = set()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                limits=httpx.Limits(max_keepalive_connections=20, max_connections=50),
            )
        return self._client

    @property
    def pending(self) -> int:
        """Number of posts still in flight."""
        return len(self._pending)

    def send(self, event_name: str, attributes: dict[str, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise BackendDeliveryError(
                "No running event loop to post the event on",
                event_type=event_name,
                context={"url": self.url},
            ) from None

        task = loop.create_task(self._post(event_name, attributes))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _post(self, event_name: str, attributes: dict[str, Any]) -> bool:
        """POST one event. Returns True on a 2xx response."""
        payload = {"eventType": event_name, **attributes}
        labels = {MetricLabels.EVENT_TYPE: event_name}

        self.logger.debug("video_tracker.backend.request", event_type=event_name, url=self.url)

        start_time = time.time()
        success = False
        error_type = None
        status_code = None

        try:
            response = await self.client.post(
                self.url, json=payload, headers=self.headers, timeout=self.timeout
            )
            response.raise_for_status()
            success = True
            status_code = response.status_code

        except httpx.TimeoutException:
            error_type = "timeout"
        except httpx.HTTPStatusError as e:
            error_type = f"http_{e.response.status_code}"
            status_code = e.response.status_code
        except httpx.HTTPError as e:
            error_type = type(e).__name__

        finally:
            duration_ms = (time.time() - start_time) * 1000
            self.metrics.histogram(TrackerMetrics.BACKEND_POST_DURATION_MS, duration_ms, labels)

            if success:
                self.metrics.increment(TrackerMetrics.BACKEND_POST_SENT, labels=labels)
                self.logger.debug(
                    "video_tracker.backend.response",
                    event_type=event_name,
                    status_code=status_code,
                    response_time_ms=round(duration_ms, 1),
                )
            else:
                self.metrics.increment(
                    TrackerMetrics.BACKEND_POST_FAILED,
                    labels={**labels, MetricLabels.ERROR_TYPE: error_type or "unknown"},
                )
                self.logger.warning(
                    "video_tracker.backend.response",
                    event_type=event_name,
                    error_type=error_type,
                    status_code=status_code,
                    response_time_ms=round(duration_ms, 1),
                )

        return success

    async def aclose(self) -> None:
        """Wait for pending posts, then close the client if this backend created it."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["Backend", "MemoryBackend", "HttpBackend"]
