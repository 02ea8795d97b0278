# tests/test_utils.py
"""Test utilities and helpers"""

import asyncio

import pytest

from lyricsync.sync.epoch import TrackEpochGuard
from lyricsync.utils.coalesce import InFlightRequestRegistry
from lyricsync.utils.events import Signal
from lyricsync.utils.helpers import (
    calculate_similarity,
    format_clock,
    is_valid_url,
    levenshtein_distance,
    truncate_string
)
from lyricsync.utils.logger import parse_size


class TestHelpers:
    """Test helper functions"""

    def test_levenshtein_distance(self):
        """Test edit distance"""
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("same", "same") == 0

    def test_calculate_similarity(self):
        """Test string similarity calculation"""
        assert calculate_similarity("hello", "hello") == 1.0
        assert calculate_similarity("hello", "world") < 0.5
        assert calculate_similarity("", "") == 1.0
        assert calculate_similarity("test", "") == 0.0

    def test_format_clock(self):
        """Test player clock formatting"""
        assert format_clock(0) == "0:00"
        assert format_clock(65.9) == "1:05"
        assert format_clock(215) == "3:35"
        assert format_clock(725, pad_minutes=True) == "12:05"
        assert format_clock(65, pad_minutes=True) == "01:05"
        assert format_clock(-4) == "0:00"

    def test_is_valid_url(self):
        """Test URL validation"""
        assert is_valid_url("https://lrclib.net")
        assert not is_valid_url("lrclib.net")
        assert not is_valid_url("")

    def test_truncate_string(self):
        """Test string truncation"""
        assert truncate_string("short", 10) == "short"
        assert truncate_string("a longer title", 8) == "a lon..."
        assert truncate_string("abc", 2) == ".."

    def test_parse_size(self):
        """Test log file size parsing"""
        assert parse_size("10MB") == 10 * 1024 ** 2
        assert parse_size("500 kb") == 500 * 1024
        assert parse_size("1.5GB") == int(1.5 * 1024 ** 3)
        with pytest.raises(ValueError):
            parse_size("ten megabytes")


class TestSignal:

    def test_fires_in_subscription_order(self):
        """Test fires in subscription order"""
        signal = Signal("test")
        calls = []
        signal.connect(lambda value: calls.append(("first", value)))
        signal.connect(lambda value: calls.append(("second", value)))

        signal.fire(1)

        assert calls == [("first", 1), ("second", 1)]

    def test_disconnect(self):
        """Test disconnecting a subscriber"""
        signal = Signal("test")
        calls = []
        disconnect = signal.connect(calls.append)

        disconnect()
        disconnect()
        signal.fire("ignored")

        assert calls == []
        assert len(signal) == 0

    def test_raising_subscriber_does_not_stop_others(self):
        """Test raising subscriber does not stop others"""
        signal = Signal("test")
        calls = []

        def broken():
            raise RuntimeError("view crashed")

        signal.connect(broken)
        signal.connect(lambda: calls.append("ran"))

        signal.fire()

        assert calls == ["ran"]

    def test_disconnect_while_firing(self):
        """Test disconnect while firing"""
        signal = Signal("test")
        calls = []
        disconnects = []

        def once():
            calls.append("once")
            disconnects[0]()

        disconnects.append(signal.connect(once))
        signal.fire()
        signal.fire()

        assert calls == ["once"]


class TestTrackEpochGuard:

    def test_advance_invalidates_previous(self):
        """Test advance invalidates previous"""
        guard = TrackEpochGuard()
        first = guard.advance()
        second = guard.advance()

        assert not guard.is_current(first)
        assert guard.is_current(second)
        assert guard.current() == second

    def test_initial_epoch_is_current(self):
        """Test initial epoch is current"""
        guard = TrackEpochGuard()
        assert guard.is_current(guard.current())

    def test_guards_are_independent(self):
        """Test guards are independent"""
        one, two = TrackEpochGuard(), TrackEpochGuard()
        epoch = one.advance()
        two.advance()
        two.advance()

        assert one.is_current(epoch)


class TestInFlightRequestRegistry:

    @pytest.mark.asyncio
    async def test_identical_requests_share_one_call(self):
        """Test identical requests share one call"""
        registry = InFlightRequestRegistry()
        calls = []

        async def request():
            calls.append(1)
            await asyncio.sleep(0.01)
            return {"name": "track"}

        results = await asyncio.gather(
            registry.run("https://metadata.test", "/track/abc", request),
            registry.run("https://metadata.test", "/track/abc", request),
        )

        assert results == [{"name": "track"}, {"name": "track"}]
        assert len(calls) == 1
        assert not registry.is_pending("https://metadata.test", "/track/abc")

    @pytest.mark.asyncio
    async def test_different_resources_run_separately(self):
        """Test different resources run separately"""
        registry = InFlightRequestRegistry()
        calls = []

        async def request():
            calls.append(1)
            await asyncio.sleep(0)
            return len(calls)

        await asyncio.gather(
            registry.run("host", "/track/a", request),
            registry.run("host", "/track/b", request),
        )

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter_and_is_forgotten(self):
        """Test failure reaches every waiter and is forgotten"""
        registry = InFlightRequestRegistry()

        async def failing():
            await asyncio.sleep(0)
            raise ValueError("boom")

        results = await asyncio.gather(
            registry.run("host", "/track/a", failing),
            registry.run("host", "/track/a", failing),
            return_exceptions=True
        )

        assert all(isinstance(result, ValueError) for result in results)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_later_caller_sends_fresh_request(self):
        """Test later caller sends fresh request"""
        registry = InFlightRequestRegistry()
        calls = []

        async def request():
            calls.append(1)
            return len(calls)

        assert await registry.run("host", "/track/a", request) == 1
        assert await registry.run("host", "/track/a", request) == 2
