"""Integration tests: content tracker with an ad tracker, delivered through Core."""

import asyncio
import time

import pytest

from conftest import events_named
from video_tracker.backend import MemoryBackend
from video_tracker.core import Core
from video_tracker.exceptions import TrackerConfigError
from video_tracker.video import VideoTracker


class TestPlaybackSession:
    """Test a full content view with a mid-roll ad break."""

    def test_event_sequence(self, content_tracker, ads_tracker, backend, clock):
        """Test the event order of a view with an ad break."""
        content_tracker.send_request()
        content_tracker.send_start()
        clock.advance(1000)
        ads_tracker.send_ad_break_start()
        ads_tracker.send_request()
        ads_tracker.send_start()
        clock.advance(500)
        ads_tracker.send_end()
        ads_tracker.send_ad_break_end()
        clock.advance(2000)
        content_tracker.send_end()

        assert backend.event_names == [
            "CONTENT_REQUEST",
            "CONTENT_START",
            "AD_BREAK_START",
            "AD_REQUEST",
            "AD_START",
            "AD_END",
            "AD_BREAK_END",
            "CONTENT_END",
        ]

    def test_real_time_elapsed(self, settings):
        """Test timeSinceStarted against real elapsed time."""
        backend = MemoryBackend()
        core = Core(backend=backend)
        tracker = VideoTracker(settings=settings)
        core.add_tracker(tracker)

        tracker.send_request()
        t0 = time.monotonic()
        tracker.send_start()
        time.sleep(0.05)
        t1 = time.monotonic()
        tracker.send_end()

        end = events_named(backend, "CONTENT_END")[0]
        assert end["timeSinceStarted"] >= int((t1 - t0) * 1000) - 1
        assert end["timeSinceRequested"] >= end["timeSinceStarted"]
        tracker.dispose()

    def test_funneled_events_are_the_child_events(self, content_tracker, ads_tracker):
        """Test that ad events reach the parent unchanged."""
        seen_by_parent = []
        seen_by_child = []
        content_tracker.subscribe_all(seen_by_parent.append)
        ads_tracker.subscribe_all(seen_by_child.append)

        ads_tracker.send_request()
        ads_tracker.send_start()

        assert len(seen_by_child) == 2
        assert seen_by_parent == seen_by_child
        assert all(a is b for a, b in zip(seen_by_parent, seen_by_child))
        assert seen_by_parent[0].target is ads_tracker

    def test_ad_events_share_parent_view(self, content_tracker, ads_tracker, backend):
        """Test that ad events carry the parent's view."""
        content_tracker.send_request()
        ads_tracker.send_request()

        content_request = events_named(backend, "CONTENT_REQUEST")[0]
        ad_request = events_named(backend, "AD_REQUEST")[0]
        assert ad_request["viewId"] == content_request["viewId"]
        assert ad_request["viewSession"] == content_request["viewSession"]
        assert ad_request["isAd"] is True


class TestAdBreak:
    """Test ad break side effects on the parent."""

    def test_break_suspends_parent(self, content_tracker, ads_tracker, clock):
        """Test that a break start suspends the parent."""
        content_tracker.send_request()
        content_tracker.send_start()
        assert content_tracker.state.is_playing

        ads_tracker.send_ad_break_start()

        assert not content_tracker.state.is_playing
        assert ads_tracker.state.total_ad_playtime == 0

    def test_break_end_restores_parent(self, content_tracker, ads_tracker, backend, clock):
        """Test that a break end restores the parent."""
        content_tracker.send_request()
        content_tracker.send_start()
        ads_tracker.send_ad_break_start()
        clock.advance(200)
        ads_tracker.send_request()
        ads_tracker.send_start()
        clock.advance(500)
        ads_tracker.send_end()

        ads_tracker.send_ad_break_end()

        assert content_tracker.state.is_playing
        assert events_named(backend, "AD_BREAK_END")[0]["timeSinceAdBreakBegin"] == 700

    def test_ad_start_suspends_parent_without_break(self, content_tracker, ads_tracker):
        """Test ad start and end outside a break."""
        content_tracker.send_request()
        content_tracker.send_start()
        ads_tracker.send_request()

        ads_tracker.send_start()
        assert not content_tracker.state.is_playing

        ads_tracker.send_end()
        assert content_tracker.state.is_playing

    def test_last_ad_marked_on_parent(self, content_tracker, ads_tracker, backend, clock):
        """Test timeSinceLastAd on the parent."""
        content_tracker.send_request()
        content_tracker.send_start()
        ads_tracker.send_ad_break_start()
        ads_tracker.send_request()
        ads_tracker.send_start()
        ads_tracker.send_end()
        ads_tracker.send_ad_break_end()
        clock.advance(300)

        content_tracker.send_pause()

        assert events_named(backend, "CONTENT_PAUSE")[0]["timeSinceLastAd"] == 300


class TestPlaytimeTotals:
    """Test content and ad playtime accounting."""

    def test_content_playtime_excludes_ads(self, content_tracker, ads_tracker, backend, clock):
        """Test that content playtime excludes ad time."""
        content_tracker.send_request()
        content_tracker.send_start()
        clock.advance(1000)
        ads_tracker.send_ad_break_start()
        ads_tracker.send_request()
        ads_tracker.send_start()
        clock.advance(500)
        ads_tracker.send_end()
        ads_tracker.send_ad_break_end()
        clock.advance(2000)

        content_tracker.send_end()

        content_end = events_named(backend, "CONTENT_END")[0]
        ad_end = events_named(backend, "AD_END")[0]
        assert content_end["totalPlaytime"] == 3000
        assert content_end["totalAdPlaytime"] == 500
        assert ad_end["totalPlaytime"] == 500
        assert ad_end["totalAdPlaytime"] == 500
        assert ad_end["numberOfAds"] == 1

    def test_no_ad_playtime_without_ads(self, content_tracker, ads_tracker, backend):
        """Test that totalAdPlaytime is absent without ad playback."""
        content_tracker.send_request()

        assert "totalAdPlaytime" not in events_named(backend, "CONTENT_REQUEST")[0]


class TestAdPosition:
    """Test pre-roll and mid-roll detection."""

    def test_pre_roll(self, content_tracker, ads_tracker, backend):
        """Test the pre-roll position."""
        content_tracker.send_request()
        ads_tracker.send_request()

        assert events_named(backend, "AD_REQUEST")[0]["adPosition"] == "pre"

    def test_mid_roll(self, content_tracker, ads_tracker, backend):
        """Test the mid-roll position."""
        content_tracker.send_request()
        content_tracker.send_start()
        ads_tracker.send_request()

        assert events_named(backend, "AD_REQUEST")[0]["adPosition"] == "mid"


class TestComposition:
    """Test attaching, replacing and disposing ad trackers."""

    def test_replacing_disposes_previous(self, content_tracker, ads_tracker, settings, backend):
        """Test that replacing the child disposes the old one."""
        replacement = VideoTracker(settings=settings)

        content_tracker.set_ads_tracker(replacement)
        ads_tracker.send_request()

        assert ads_tracker.is_disposed
        assert content_tracker.ads_tracker is replacement
        assert replacement.is_ad
        assert backend.events == []

    def test_cycle_rejected(self, content_tracker, ads_tracker):
        """Test that a parent cycle is rejected."""
        with pytest.raises(TrackerConfigError):
            content_tracker.set_parent_tracker(ads_tracker)

    def test_rejected_cycle_leaves_roles_unchanged(self, content_tracker, ads_tracker, backend):
        """Test that attaching an ancestor as ads tracker changes nothing."""
        with pytest.raises(TrackerConfigError):
            ads_tracker.set_ads_tracker(content_tracker)

        assert content_tracker.is_ad is False
        assert content_tracker.parent_tracker is None
        assert ads_tracker.ads_tracker is None
        assert content_tracker.ads_tracker is ads_tracker

        content_tracker.send_request()
        assert backend.event_names == ["CONTENT_REQUEST"]

    def test_tracker_cannot_be_its_own_ads_tracker(self, content_tracker):
        """Test that self-attachment is rejected before the role changes."""
        with pytest.raises(TrackerConfigError):
            content_tracker.set_ads_tracker(content_tracker)

        assert content_tracker.is_ad is False
        assert content_tracker.ads_tracker is None

    def test_content_tracker_cannot_become_ads_tracker(
        self, content_tracker, ads_tracker, settings, backend
    ):
        """Test that a used content tracker is rejected and the child survives."""
        used = VideoTracker(settings=settings)
        used.send_request()

        with pytest.raises(TrackerConfigError):
            content_tracker.set_ads_tracker(used)

        assert content_tracker.ads_tracker is ads_tracker
        assert not ads_tracker.is_disposed
        assert ads_tracker.parent_tracker is content_tracker
        assert used.is_ad is False
        assert used.parent_tracker is None

        ads_tracker.send_request()
        assert backend.event_names == ["AD_REQUEST"]
        used.dispose()

    def test_attaching_current_ads_tracker_again(self, content_tracker, ads_tracker):
        """Test that re-attaching the current child keeps it alive."""
        content_tracker.set_ads_tracker(ads_tracker)

        assert content_tracker.ads_tracker is ads_tracker
        assert not ads_tracker.is_disposed

    def test_dispose_cascades(self, content_tracker, ads_tracker):
        """Test that disposing the parent disposes the child."""
        content_tracker.dispose()

        assert ads_tracker.is_disposed
        assert content_tracker.ads_tracker is None

    def test_ads_tracker_from_options(self, settings):
        """Test attaching an ads tracker through options."""
        child = VideoTracker(settings=settings)
        parent = VideoTracker(settings=settings, options={"adsTracker": child})

        assert parent.ads_tracker is child
        assert child.parent_tracker is parent
        parent.dispose()


class TestHeartbeat:
    """Test heartbeat timing on a running event loop."""

    @pytest.mark.asyncio
    async def test_heartbeats_until_end(self, settings):
        """Test heartbeats from request until end."""
        backend = MemoryBackend()
        core = Core(backend=backend)
        tracker = VideoTracker(settings=settings, options={"heartbeat": 10})
        core.add_tracker(tracker)

        tracker.send_request()
        assert tracker.is_heartbeat_running
        await asyncio.sleep(0.06)
        tracker.send_end()
        beats = len(events_named(backend, "CONTENT_HEARTBEAT"))
        await asyncio.sleep(0.03)

        assert beats >= 2
        assert not tracker.is_heartbeat_running
        assert len(events_named(backend, "CONTENT_HEARTBEAT")) == beats
        tracker.dispose()

    @pytest.mark.asyncio
    async def test_ads_tracker_inherits_interval(self, settings):
        """Test that the child inherits the parent's interval."""
        backend = MemoryBackend()
        core = Core(backend=backend)
        tracker = VideoTracker(settings=settings, options={"heartbeat": 10})
        tracker.set_ads_tracker(VideoTracker(settings=settings))
        core.add_tracker(tracker)

        assert tracker.ads_tracker.get_heartbeat_interval() == 10

        tracker.ads_tracker.send_request()
        await asyncio.sleep(0.05)
        tracker.ads_tracker.send_end()

        assert len(events_named(backend, "AD_HEARTBEAT")) >= 2
        tracker.dispose()
