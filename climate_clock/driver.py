"""Periodic driver: two independent triggers writing into one observable state cell.

The fast trigger recomputes the countdown every frame, the slow one fetches external
readings and recomputes the metric projection. Both run on one event loop, so the
state cell has a single writer at any time.
"""

import asyncio

import structlog

from climate_clock import config
from climate_clock.countdown import compute_remaining
from climate_clock.metrics import METRIC_DEFINITIONS, project_metrics
from climate_clock.timeutil import now_millis, year_start

logger = structlog.get_logger()


class DashboardState:
    """Latest countdown and metric snapshot, plus the observers to notify on change."""

    def __init__(self, target=config.TARGET_MS, defs=METRIC_DEFINITIONS):
        self.target = target
        self.defs = defs
        self.remaining = None
        self.snapshot = None
        self._observers = []

    def subscribe(self, callback):
        """Registers callback(state); returns a function that unsubscribes it."""
        self._observers.append(callback)

        def unsubscribe():
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def refresh_countdown(self, now):
        self.remaining = compute_remaining(now, self.target)
        self._notify()
        return self.remaining

    def refresh_metrics(self, now, reading=None):
        self.snapshot = project_metrics(now, year_start(now), self.defs, reading)
        self._notify()
        return self.snapshot

    def _notify(self):
        for callback in list(self._observers):
            # A broken observer must not stop the others or the trigger loop.
            try:
                callback(self)
            except Exception as exc:
                logger.error("Dashboard observer failed", observer=repr(callback), error=str(exc))


class Ticker:
    """Owns the two asyncio tasks driving a DashboardState. Cancel with stop()."""

    def __init__(
        self,
        state,
        provider,
        clock=now_millis,
        fast_interval=config.FRAME_INTERVAL_SECONDS,
        slow_interval=config.METRICS_REFRESH_SECONDS,
    ):
        if fast_interval <= 0 or slow_interval <= 0:
            raise ValueError("intervals must be positive")
        self.state = state
        self._provider = provider
        self._clock = clock
        self._fast_interval = fast_interval
        self._slow_interval = slow_interval
        self._tasks = []

    @property
    def running(self):
        return any(not task.done() for task in self._tasks)

    def start(self):
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._countdown_loop(), name="countdown-tick"),
            asyncio.create_task(self._metrics_loop(), name="metrics-tick"),
        ]
        logger.info(
            "Ticker started",
            fast_interval=self._fast_interval,
            slow_interval=self._slow_interval,
        )

    async def stop(self):
        if not self._tasks:
            return
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Ticker stopped")

    async def __aenter__(self):
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    async def _countdown_loop(self):
        while True:
            try:
                self.state.refresh_countdown(self._clock())
            except Exception as exc:
                logger.error("Countdown refresh failed", error=str(exc))
            await asyncio.sleep(self._fast_interval)

    async def _metrics_loop(self):
        while True:
            try:
                reading = await self._provider.fetch_snapshot()
            except Exception as exc:
                # Providers are expected to degrade on their own; keep the loop alive if one doesn't.
                logger.warning("Metric provider raised", error=str(exc))
                reading = None
            try:
                self.state.refresh_metrics(self._clock(), reading)
            except Exception as exc:
                logger.error("Metric refresh failed", error=str(exc))
            await asyncio.sleep(self._slow_interval)
