"""Data models for preferences, weather, and the device payload."""

from pebblewx.models.preferences import DEFAULT_PREFERENCES, PreferenceSet
from pebblewx.models.transport import TransportDictionary, TransportValue
from pebblewx.models.weather import LocationFix, WeatherMain, WeatherResponse

__all__ = [
    "DEFAULT_PREFERENCES",
    "LocationFix",
    "PreferenceSet",
    "TransportDictionary",
    "TransportValue",
    "WeatherMain",
    "WeatherResponse",
]
