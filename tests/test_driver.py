"""Tests for DashboardState and the asyncio Ticker."""
import asyncio
from datetime import datetime, timezone

import pytest
from structlog.testing import capture_logs

from climate_clock.config import MS_PER_DAY, TARGET_MS
from climate_clock.countdown import compute_remaining
from climate_clock.driver import DashboardState, Ticker
from climate_clock.metrics import ExternalReading
from climate_clock.providers import FallbackProvider, StaticProvider
from climate_clock.timeutil import to_millis

NOW = to_millis(datetime(2026, 1, 11, tzinfo=timezone.utc))


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


class CountingProvider:
    def __init__(self, reading=None, exc=None):
        self.reading = reading
        self.exc = exc
        self.calls = 0

    async def fetch_snapshot(self):
        self.calls += 1
        if self.exc is not None:
            raise self.exc
        return self.reading


async def wait_for(predicate, timeout=1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


class TestDashboardState:
    """Single state cell written by both triggers."""

    def test_refresh_countdown(self):
        state = DashboardState()
        remaining = state.refresh_countdown(NOW)
        assert remaining == compute_remaining(NOW, TARGET_MS)
        assert state.remaining is remaining

    def test_refresh_metrics_uses_utc_year_start(self):
        state = DashboardState()
        snapshot = state.refresh_metrics(NOW)
        # Jan 11th 00:00 UTC is ten days into the year
        assert snapshot.species_lost == pytest.approx(2000)
        assert snapshot.co2 == 40_800_000_000
        assert state.snapshot is snapshot

    def test_refresh_metrics_applies_reading(self):
        state = DashboardState()
        snapshot = state.refresh_metrics(NOW, ExternalReading(1.0, 2.0, 3.0))
        assert (snapshot.co2, snapshot.temperature, snapshot.sea_level) == (1.0, 2.0, 3.0)

    def test_observers_notified_until_unsubscribed(self):
        state = DashboardState()
        seen = []
        unsubscribe = state.subscribe(lambda s: seen.append(s.remaining))
        state.refresh_countdown(NOW)
        state.refresh_metrics(NOW)
        assert len(seen) == 2

        unsubscribe()
        unsubscribe()
        state.refresh_countdown(NOW + 1000)
        assert len(seen) == 2

    def test_failing_observer_does_not_block_others(self):
        state = DashboardState()
        seen = []

        def broken(_state):
            raise RuntimeError("render failed")

        state.subscribe(broken)
        state.subscribe(seen.append)
        state.refresh_countdown(NOW)
        assert seen == [state]

    def test_custom_target(self):
        state = DashboardState(target=NOW + 2 * MS_PER_DAY)
        assert state.refresh_countdown(NOW).days == 2


class TestTicker:
    """Lifecycle of the two periodic triggers."""

    def test_rejects_non_positive_intervals(self):
        with pytest.raises(ValueError):
            Ticker(DashboardState(), StaticProvider(), fast_interval=0)

    @pytest.mark.asyncio
    async def test_start_populates_state(self):
        state = DashboardState()
        ticker = Ticker(state, FallbackProvider(StaticProvider()), clock=FakeClock(NOW), fast_interval=0.001, slow_interval=60)
        ticker.start()
        try:
            await wait_for(lambda: state.remaining is not None and state.snapshot is not None)
            assert ticker.running
            assert state.remaining == compute_remaining(NOW, TARGET_MS)
            assert state.snapshot.source == "fallback"
        finally:
            await ticker.stop()
        assert not ticker.running

    @pytest.mark.asyncio
    async def test_fast_loop_tracks_clock(self):
        state = DashboardState()
        clock = FakeClock(NOW)
        async with Ticker(state, StaticProvider(), clock=clock, fast_interval=0.001, slow_interval=60):
            await wait_for(lambda: state.remaining is not None)
            clock.now = TARGET_MS + 1
            await wait_for(lambda: state.remaining.expired)

    @pytest.mark.asyncio
    async def test_slow_loop_repeats(self):
        state = DashboardState()
        provider = CountingProvider(reading=ExternalReading(1.0, 2.0, 3.0))
        async with Ticker(state, provider, clock=FakeClock(NOW), fast_interval=1, slow_interval=0.005):
            await wait_for(lambda: provider.calls >= 3)
        assert state.snapshot.co2 == 1.0

    @pytest.mark.asyncio
    async def test_raising_provider_falls_back(self):
        state = DashboardState()
        provider = CountingProvider(exc=ConnectionError("offline"))
        async with Ticker(state, provider, clock=FakeClock(NOW), fast_interval=1, slow_interval=0.005):
            await wait_for(lambda: provider.calls >= 2)
        assert state.snapshot.co2 == 40_800_000_000
        assert state.snapshot.source == "fallback"

    @pytest.mark.asyncio
    async def test_raw_payload_provider_keeps_loop_alive(self):
        state = DashboardState()
        provider = CountingProvider(reading={"co2": 1.0, "temperature": 2.0, "seaLevel": 3.0})
        ticker = Ticker(state, provider, clock=FakeClock(NOW), fast_interval=1, slow_interval=0.005)
        async with ticker:
            await wait_for(lambda: provider.calls >= 3)
            assert ticker.running
            assert not ticker._tasks[1].done()
        assert state.snapshot.co2 == 1.0
        assert state.snapshot.source == "external"

    @pytest.mark.asyncio
    async def test_failing_refresh_is_logged_and_retried(self):
        class BrokenState(DashboardState):
            def refresh_metrics(self, now, reading=None):
                raise RuntimeError("projection failed")

        provider = CountingProvider(reading=None)
        ticker = Ticker(BrokenState(), provider, clock=FakeClock(NOW), fast_interval=1, slow_interval=0.005)
        with capture_logs() as logs:
            async with ticker:
                await wait_for(lambda: provider.calls >= 3)
                assert not ticker._tasks[1].done()
        failures = [entry for entry in logs if entry["event"] == "Metric refresh failed"]
        assert len(failures) >= 2
        assert failures[0]["error"] == "projection failed"

    @pytest.mark.asyncio
    async def test_stop_cancels_tasks_and_is_idempotent(self):
        state = DashboardState()
        ticker = Ticker(state, StaticProvider(), clock=FakeClock(NOW), fast_interval=0.001, slow_interval=60)
        ticker.start()
        tasks = list(ticker._tasks)
        await ticker.stop()
        await ticker.stop()
        assert all(task.cancelled() or task.done() for task in tasks)
        assert not ticker.running

        notified = []
        state.subscribe(notified.append)
        await asyncio.sleep(0.01)
        assert notified == []

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_pair_of_tasks(self):
        ticker = Ticker(DashboardState(), StaticProvider(), clock=FakeClock(NOW), fast_interval=0.01, slow_interval=60)
        ticker.start()
        first = list(ticker._tasks)
        ticker.start()
        assert ticker._tasks == first
        await ticker.stop()
