"""Location services used by the weather pipeline."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Protocol

from pebblewx.exceptions import LocationUnavailableError
from pebblewx.models.weather import LocationFix

_logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    """Acquire a fix, waiting at most *timeout* seconds.

    A previously taken fix no older than *maximum_age* seconds may be
    returned instead of a new reading.
    """

    async def current_position(self, *, timeout: float, maximum_age: float) -> LocationFix:
        ...


class StaticLocationProvider:
    """Always reports the same coordinates (configured home location)."""

    def __init__(self, latitude: float, longitude: float) -> None:
        self._latitude = latitude
        self._longitude = longitude

    async def current_position(self, *, timeout: float, maximum_age: float) -> LocationFix:
        return LocationFix(latitude=self._latitude, longitude=self._longitude)


class CachingLocationProvider:
    """Bound acquisition time and reuse recent fixes.

    Wraps another provider (the sensor).  Any failure of the wrapped
    provider, including running past *timeout*, surfaces as
    :class:`LocationUnavailableError`.
    """

    def __init__(
        self,
        source: LocationProvider,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._clock = clock
        self._last_fix: LocationFix | None = None

    async def current_position(self, *, timeout: float, maximum_age: float) -> LocationFix:
        cached = self._last_fix
        if cached is not None and cached.age(self._clock()) <= maximum_age:
            _logger.debug("Reusing cached location fix (%.1fs old)", cached.age(self._clock()))
            return cached

        try:
            async with asyncio.timeout(timeout):
                fix = await self._source.current_position(timeout=timeout, maximum_age=maximum_age)
        except TimeoutError as exc:
            raise LocationUnavailableError(f"No location fix within {timeout:.1f}s") from exc
        except LocationUnavailableError:
            raise
        except Exception as exc:
            raise LocationUnavailableError(f"Location service failed: {exc!r}") from exc

        fix = fix.model_copy(update={"timestamp": self._clock()})
        self._last_fix = fix
        return fix
