"""Location fix and weather provider response models."""

from __future__ import annotations

import time

from pydantic import Field

from pebblewx.models._base import BridgeBaseModel


class LocationFix(BridgeBaseModel):
    """A single geolocation reading.

    ``timestamp`` is a ``time.monotonic()`` value taken when the reading was
    made; it is only used to decide whether a cached fix is still fresh.
    """

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    timestamp: float = Field(default_factory=time.monotonic)

    def age(self, now: float | None = None) -> float:
        """Seconds since the fix was taken."""
        current = time.monotonic() if now is None else now
        return current - self.timestamp


class WeatherMain(BridgeBaseModel):
    temp: float = Field(strict=True, allow_inf_nan=False, description="Current temperature in Kelvin")


class WeatherResponse(BridgeBaseModel):
    """The subset of the provider payload the bridge consumes."""

    main: WeatherMain

    @property
    def temperature_kelvin(self) -> float:
        return self.main.temp
