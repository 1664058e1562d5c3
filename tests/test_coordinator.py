from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest
from fakes import FakeChannel, FakeLocation, FakeWeatherApi

from pebblewx.config import BridgeConfig
from pebblewx.coordinator import BridgeCoordinator
from pebblewx.events import (
    ConfigurationRequested,
    ConfigurationReturned,
    EventType,
    InboundDeviceMessage,
    ProcessReady,
    parse_host_event,
)
from pebblewx.exceptions import DecodeError, TransmissionRejectedError
from pebblewx.form import encode_preferences
from pebblewx.models.preferences import PreferenceSet
from pebblewx.weather import WeatherPipeline


def _coordinator(
    config: BridgeConfig,
    *,
    location: FakeLocation,
    weather_api: FakeWeatherApi,
    channel: FakeChannel,
    opened: list[str] | None = None,
) -> BridgeCoordinator:
    pipeline = WeatherPipeline(config, location=location, fetcher=weather_api, channel=channel)
    sink = opened if opened is not None else []
    return BridgeCoordinator(config, weather=pipeline, channel=channel, opener=sink.append)


@pytest.mark.asyncio
async def test_ready_triggers_weather(
    config: BridgeConfig, location: FakeLocation, weather_api: FakeWeatherApi, channel: FakeChannel
) -> None:
    coordinator = _coordinator(config, location=location, weather_api=weather_api, channel=channel)

    result = await coordinator.dispatch(ProcessReady())

    assert result.ok
    assert result.event_type == EventType.READY
    assert channel.sent == [{"KEY_TEMPERATURE": 27}]


@pytest.mark.asyncio
async def test_back_to_back_device_messages_each_fetch_and_send(
    config: BridgeConfig, location: FakeLocation, channel: FakeChannel
) -> None:
    weather_api = FakeWeatherApi(delay=0.01)
    coordinator = _coordinator(config, location=location, weather_api=weather_api, channel=channel)

    coordinator.dispatch(InboundDeviceMessage(payload={"0": 0}))
    coordinator.dispatch(InboundDeviceMessage(payload={"0": 0}))
    assert coordinator.in_flight == 2
    results = await coordinator.drain()

    assert [r.ok for r in results] == [True, True]
    assert location.calls == 2
    assert len(weather_api.requests) == 2
    assert channel.sent == [{"KEY_TEMPERATURE": 27}, {"KEY_TEMPERATURE": 27}]
    assert coordinator.in_flight == 0


@pytest.mark.asyncio
async def test_configuration_requested_opens_fixed_url(
    config: BridgeConfig, location: FakeLocation, weather_api: FakeWeatherApi, channel: FakeChannel
) -> None:
    opened: list[str] = []
    coordinator = _coordinator(config, location=location, weather_api=weather_api, channel=channel, opened=opened)

    result = await coordinator.dispatch(ConfigurationRequested())

    assert result.ok
    assert opened == ["http://config.test/index.html"]
    assert channel.sent == []


@pytest.mark.asyncio
async def test_async_opener_awaited(
    config: BridgeConfig, location: FakeLocation, weather_api: FakeWeatherApi, channel: FakeChannel
) -> None:
    opened: list[str] = []

    async def opener(url: str) -> None:
        await asyncio.sleep(0)
        opened.append(url)

    pipeline = WeatherPipeline(config, location=location, fetcher=weather_api, channel=channel)
    coordinator = BridgeCoordinator(config, weather=pipeline, channel=channel, opener=opener)

    await coordinator.dispatch(ConfigurationRequested())

    assert opened == ["http://config.test/index.html"]


@pytest.mark.asyncio
async def test_configuration_returned_sends_config_dictionary(
    config: BridgeConfig, location: FakeLocation, weather_api: FakeWeatherApi, channel: FakeChannel
) -> None:
    coordinator = _coordinator(config, location=location, weather_api=weather_api, channel=channel)
    payload = encode_preferences(PreferenceSet(use_light_color_scheme=True, use_celsius=False))

    result = await coordinator.dispatch(ConfigurationReturned(response=payload))

    assert result.ok
    assert channel.sent == [{"KEY_LIGHT_COLOR_SCHEME": True, "KEY_DEGREE_CELSIUS": False}]
    assert location.calls == 0


@pytest.mark.asyncio
async def test_malformed_configuration_payload_dropped(
    config: BridgeConfig,
    location: FakeLocation,
    weather_api: FakeWeatherApi,
    channel: FakeChannel,
    caplog: pytest.LogCaptureFixture,
) -> None:
    coordinator = _coordinator(config, location=location, weather_api=weather_api, channel=channel)
    truncated = encode_preferences(PreferenceSet(use_light_color_scheme=True, use_celsius=False))[:20]

    with caplog.at_level(logging.WARNING, logger="pebblewx.coordinator"):
        result = await coordinator.dispatch(ConfigurationReturned(response=truncated))

    assert not result.ok
    assert isinstance(result.error, DecodeError)
    assert channel.sent == []
    assert len([r for r in caplog.records if r.name == "pebblewx.coordinator"]) == 1


@pytest.mark.asyncio
async def test_rejected_config_send_is_contained(
    config: BridgeConfig, location: FakeLocation, weather_api: FakeWeatherApi
) -> None:
    channel = FakeChannel(reject_with="outbox full")
    coordinator = _coordinator(config, location=location, weather_api=weather_api, channel=channel)
    payload = encode_preferences(PreferenceSet(use_light_color_scheme=False, use_celsius=True))

    result = await coordinator.dispatch(ConfigurationReturned(response=payload))

    assert not result.ok
    assert isinstance(result.error, TransmissionRejectedError)
    assert len(channel.sent) == 1


@pytest.mark.asyncio
async def test_failure_in_one_cycle_does_not_affect_next(
    config: BridgeConfig, location: FakeLocation, channel: FakeChannel
) -> None:
    weather_api = FakeWeatherApi(body={"main": {}})
    coordinator = _coordinator(config, location=location, weather_api=weather_api, channel=channel)

    first = await coordinator.dispatch(ProcessReady())
    weather_api.body = {"main": {"temp": 273.15}}
    second = await coordinator.dispatch(InboundDeviceMessage())

    assert not first.ok
    assert second.ok
    assert channel.sent == [{"KEY_TEMPERATURE": 0}]


@pytest.mark.asyncio
async def test_unexpected_error_is_contained(
    config: BridgeConfig, location: FakeLocation, weather_api: FakeWeatherApi, channel: FakeChannel
) -> None:
    def broken_opener(_url: str) -> Any:
        raise RuntimeError("no browser")

    pipeline = WeatherPipeline(config, location=location, fetcher=weather_api, channel=channel)
    coordinator = BridgeCoordinator(config, weather=pipeline, channel=channel, opener=broken_opener)

    result = await coordinator.dispatch(ConfigurationRequested())
    after = await coordinator.dispatch(ProcessReady())

    assert not result.ok
    assert isinstance(result.error, RuntimeError)
    assert after.ok


def test_parse_host_event() -> None:
    event = parse_host_event({"type": "webviewclosed", "response": "abc"})
    assert isinstance(event, ConfigurationReturned)
    assert event.response == "abc"
    assert isinstance(parse_host_event({"type": "ready"}), ProcessReady)
    assert isinstance(parse_host_event({"type": "appmessage", "payload": {"0": 0}}), InboundDeviceMessage)
