"""Typed key/value payload exchanged with the watch."""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping

from pebblewx._constants import APP_KEYS, KEY_DEGREE_CELSIUS, KEY_LIGHT_COLOR_SCHEME, KEY_TEMPERATURE
from pebblewx.models.preferences import PreferenceSet

TransportValue = int | bool


class TransportDictionary(Mapping[str, TransportValue]):
    """Immutable, ordered mapping of app keys to primitive values.

    Only two shapes exist: the weather dictionary (``KEY_TEMPERATURE``) and
    the configuration dictionary (``KEY_LIGHT_COLOR_SCHEME`` and
    ``KEY_DEGREE_CELSIUS``).  Build them through :meth:`weather` and
    :meth:`configuration`; a dictionary is sent once and then dropped.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, TransportValue]) -> None:
        for key, value in items.items():
            if key not in APP_KEYS:
                raise ValueError(f"unknown app key {key!r}")
            if not isinstance(value, (int, bool)):
                raise TypeError(f"{key} must be int or bool, got {type(value).__name__}")
        self._items: dict[str, TransportValue] = dict(items)

    @classmethod
    def weather(cls, temperature_c: int) -> TransportDictionary:
        if isinstance(temperature_c, bool) or not isinstance(temperature_c, int):
            raise TypeError("temperature must be an int")
        return cls({KEY_TEMPERATURE: temperature_c})

    @classmethod
    def configuration(cls, preferences: PreferenceSet) -> TransportDictionary:
        return cls(
            {
                KEY_LIGHT_COLOR_SCHEME: preferences.use_light_color_scheme,
                KEY_DEGREE_CELSIUS: preferences.use_celsius,
            }
        )

    def __getitem__(self, key: str) -> TransportValue:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"TransportDictionary({self._items!r})"

    def to_wire(self) -> dict[str, TransportValue]:
        """String-keyed form, as handed to the phone's message API."""
        return dict(self._items)

    def to_numeric(self) -> dict[int, TransportValue]:
        """Integer-keyed form, as seen by the firmware's dictionary lookup."""
        return {APP_KEYS[key]: value for key, value in self._items.items()}

    def to_json(self) -> str:
        return json.dumps(self._items, separators=(",", ":"))
