"""External metric data sources.

A provider answers `await fetch_snapshot()` with an ExternalReading (or None) and may
raise. FallbackProvider wraps any provider so its caller always gets a reading.
"""

import asyncio
from typing import Protocol

import structlog

from climate_clock.config import FETCH_TIMEOUT_SECONDS
from climate_clock.errors import DataSourceUnavailable
from climate_clock.metrics import ExternalReading

logger = structlog.get_logger()


class SnapshotProvider(Protocol):
    async def fetch_snapshot(self) -> ExternalReading | None: ...


class StaticProvider:
    """Stand-in for a live source: always answers with the fallback constants."""

    async def fetch_snapshot(self):
        return ExternalReading.fallback()


class FallbackProvider:
    """Degrades any failure of `inner` (error, timeout, no data) to the fallback reading."""

    def __init__(self, inner, timeout=FETCH_TIMEOUT_SECONDS):
        self._inner = inner
        self._timeout = timeout

    async def fetch_snapshot(self):
        try:
            return await self._fetch()
        except DataSourceUnavailable as exc:
            logger.warning(
                "External metric source unavailable, using fallback values",
                provider=type(self._inner).__name__,
                error=str(exc),
            )
            return ExternalReading.fallback()

    async def _fetch(self):
        try:
            reading = await asyncio.wait_for(self._inner.fetch_snapshot(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise DataSourceUnavailable(f"timed out after {self._timeout}s") from exc
        except DataSourceUnavailable:
            raise
        except Exception as exc:
            raise DataSourceUnavailable(f"{type(exc).__name__}: {exc}") from exc

        if reading is None:
            raise DataSourceUnavailable("provider returned no data")
        if isinstance(reading, dict):
            reading = ExternalReading.from_payload(reading)
        elif not isinstance(reading, ExternalReading):
            raise DataSourceUnavailable(f"unexpected reading type {type(reading).__name__}")
        if not reading.is_well_formed():
            raise DataSourceUnavailable(f"malformed reading: {reading!r}")
        return reading
