from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeChannel, FakeLocation, FakeWeatherApi

from pebblewx.config import BridgeConfig


@pytest.fixture
def config(tmp_path: Path) -> BridgeConfig:
    return BridgeConfig(
        api_key="test-key",
        weather_base_url="http://weather.test/data/2.5/weather",
        configuration_url="http://config.test/index.html",
        location_timeout=0.5,
        preferences_path=tmp_path / "prefs.json",
    )


@pytest.fixture
def location() -> FakeLocation:
    return FakeLocation()


@pytest.fixture
def weather_api() -> FakeWeatherApi:
    return FakeWeatherApi()


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()
