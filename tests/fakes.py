"""Test doubles satisfying the pebblewx protocols."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pebblewx.channel import SendOutcome
from pebblewx.models.transport import TransportDictionary
from pebblewx.models.weather import LocationFix


@dataclass
class FakeLocation:
    latitude: float = 52.52
    longitude: float = 13.405
    error: Exception | None = None
    delay: float = 0.0
    calls: int = 0

    async def current_position(self, *, timeout: float, maximum_age: float) -> LocationFix:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return LocationFix(latitude=self.latitude, longitude=self.longitude)


@dataclass
class FakeWeatherApi:
    body: Any = field(default_factory=lambda: {"main": {"temp": 300.0}})
    error: Exception | None = None
    delay: float = 0.0
    requests: list[tuple[str, dict[str, str]]] = field(default_factory=list)

    async def get_json(self, url: str, params: Mapping[str, str]) -> Any:
        self.requests.append((url, dict(params)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.body


@dataclass
class FakeChannel:
    reject_with: str | None = None
    sent: list[dict[str, Any]] = field(default_factory=list)

    async def send(self, dictionary: TransportDictionary) -> SendOutcome:
        self.sent.append(dictionary.to_wire())
        if self.reject_with is not None:
            return SendOutcome.rejected(self.reject_with)
        return SendOutcome.ack()
