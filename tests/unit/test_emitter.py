"""Unit tests for the event bus."""

from video_tracker.emitter import EventEmitter, TrackerEvent


class TestEventEmitter:
    """Test handler registration and dispatch."""

    def test_on_receives_matching_events(self):
        """Test per-event handlers."""
        emitter = EventEmitter()
        received = []
        emitter.on("CONTENT_START", received.append)

        emitter.emit("CONTENT_START", {"a": 1})
        emitter.emit("CONTENT_END")

        assert len(received) == 1
        assert received[0].type == "CONTENT_START"
        assert received[0].data == {"a": 1}
        assert received[0].target is emitter

    def test_off_removes_handler(self):
        """Test removing a per-event handler."""
        emitter = EventEmitter()
        received = []
        emitter.on("CONTENT_START", received.append)
        emitter.off("CONTENT_START", received.append)

        emitter.emit("CONTENT_START")

        assert received == []

    def test_off_unknown_handler_is_ignored(self):
        """Test that removing a handler that was never added does not raise."""
        emitter = EventEmitter()
        emitter.off("CONTENT_START", print)

    def test_subscribe_all_receives_everything(self):
        """Test catch-all handlers."""
        emitter = EventEmitter()
        received = []
        emitter.subscribe_all(received.append)

        emitter.emit("AD_START")
        emitter.emit("CUSTOM_ACTION")

        assert [event.type for event in received] == ["AD_START", "CUSTOM_ACTION"]

    def test_subscribe_all_is_idempotent(self):
        """Test that a catch-all handler is registered once."""
        emitter = EventEmitter()
        received = []
        emitter.subscribe_all(received.append)
        emitter.subscribe_all(received.append)

        emitter.emit("AD_START")

        assert len(received) == 1

    def test_unsubscribe_all(self):
        """Test removing a catch-all handler."""
        emitter = EventEmitter()
        received = []
        emitter.subscribe_all(received.append)
        emitter.unsubscribe_all(received.append)

        emitter.emit("AD_START")

        assert received == []

    def test_dispatch_forwards_event_unchanged(self):
        """Test that dispatch keeps the event target and data."""
        source = EventEmitter()
        relay = EventEmitter()
        received = []
        relay.subscribe_all(received.append)
        source.subscribe_all(relay.dispatch)

        event = source.emit("AD_END", {"adId": "x"})

        assert received == [event]
        assert received[0] is event
        assert received[0].target is source

    def test_handlers_run_in_registration_order(self):
        """Test handler ordering."""
        emitter = EventEmitter()
        calls = []
        emitter.on("AD_START", lambda event: calls.append("first"))
        emitter.subscribe_all(lambda event: calls.append("all"))
        emitter.on("AD_START", lambda event: calls.append("second"))

        emitter.emit("AD_START")

        assert calls == ["first", "second", "all"]

    def test_handler_may_unsubscribe_during_dispatch(self):
        """Test unsubscribing from inside a handler."""
        emitter = EventEmitter()
        calls = []

        def once(event: TrackerEvent) -> None:
            calls.append(event.type)
            emitter.unsubscribe_all(once)

        emitter.subscribe_all(once)
        emitter.emit("A")
        emitter.emit("B")

        assert calls == ["A"]

    def test_clear_handlers(self):
        """Test dropping every handler."""
        emitter = EventEmitter()
        received = []
        emitter.on("A", received.append)
        emitter.subscribe_all(received.append)

        emitter.clear_handlers()
        emitter.emit("A")

        assert received == []
