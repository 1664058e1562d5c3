"""Internal constants shared across the library."""

from __future__ import annotations

import math

WEATHER_BASE_URL = "http://api.openweathermap.org/data/2.5/weather"
CONFIGURATION_URL = "http://pebble.berlin1237.de/index.html"
RETURN_TO_PARAM = "return_to"
RETURN_TO_DEFAULT = "pebblejs://close#"

#: Location acquisition bounds (seconds).
LOCATION_TIMEOUT: float = 15.0
LOCATION_MAXIMUM_AGE: float = 60.0

#: How long to wait for the configuration page before treating it as closed.
CONFIGURATION_TIMEOUT: float = 300.0

# ------------------------------------------------------------------
# Device dictionary keys (must match the watch app manifest)
# ------------------------------------------------------------------

KEY_TEMPERATURE = "KEY_TEMPERATURE"
KEY_LIGHT_COLOR_SCHEME = "KEY_LIGHT_COLOR_SCHEME"
KEY_DEGREE_CELSIUS = "KEY_DEGREE_CELSIUS"

APP_KEYS: dict[str, int] = {
    KEY_TEMPERATURE: 0,
    KEY_LIGHT_COLOR_SCHEME: 1,
    KEY_DEGREE_CELSIUS: 2,
}

# ------------------------------------------------------------------
# Temperature conversion
# ------------------------------------------------------------------

_KELVIN_OFFSET = 273.15


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity.

    ``0.5 -> 1``, ``-0.5 -> 0``, ``-1.5 -> -1``.  This is the rounding the
    phone-side script host applies, so device values stay bit-identical.
    """
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"cannot round non-finite value {value!r}")
    return int(math.floor(value + 0.5))


def kelvin_to_celsius(kelvin: float) -> int:
    """Convert a Kelvin reading to whole degrees Celsius."""
    return round_half_up(float(kelvin) - _KELVIN_OFFSET)
