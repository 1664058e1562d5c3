"""Lifecycle coordinator: routes host events to the two pipelines."""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import json
import logging
import webbrowser
from collections.abc import Callable
from typing import Any

from pebblewx.channel import DeviceChannel, send_and_log
from pebblewx.config import BridgeConfig
from pebblewx.events import (
    ConfigurationRequested,
    ConfigurationReturned,
    EventType,
    HostEvent,
    InboundDeviceMessage,
    ProcessReady,
)
from pebblewx.exceptions import BridgeError
from pebblewx.form import decode_preferences
from pebblewx.models.transport import TransportDictionary
from pebblewx.weather import WeatherPipeline

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class CycleResult:
    """Outcome of handling one host event."""

    event_type: EventType
    ok: bool
    error: BaseException | None = None


class BridgeCoordinator:
    """Dispatch host events; every event runs as its own independent cycle.

    Cycles are never de-duplicated or cancelled by newer events, and a
    failing cycle never affects the others.

    Usage::

        coordinator = BridgeCoordinator(config, weather=pipeline, channel=channel)
        coordinator.dispatch(ProcessReady())
        results = await coordinator.drain()
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        weather: WeatherPipeline,
        channel: DeviceChannel,
        opener: Callable[[str], Any] | None = None,
    ) -> None:
        self._config = config
        self._weather = weather
        self._channel = channel
        self._opener = opener
        self._tasks: set[asyncio.Task[CycleResult]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def dispatch(self, event: HostEvent) -> asyncio.Task[CycleResult]:
        """Start handling *event* in the background and return its task."""
        task = asyncio.get_running_loop().create_task(self.handle(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> list[CycleResult]:
        """Wait for every in-flight cycle, including ones started meanwhile."""
        results: list[CycleResult] = []
        while self._tasks:
            results.extend(await asyncio.gather(*list(self._tasks)))
        return results

    async def handle(self, event: HostEvent) -> CycleResult:
        """Run the cycle for *event*. Failures are logged, never raised."""
        event_type = event.type
        try:
            if isinstance(event, (ProcessReady, InboundDeviceMessage)):
                return await self.on_weather_requested(event_type)
            if isinstance(event, ConfigurationRequested):
                return await self.on_configuration_requested()
            if isinstance(event, ConfigurationReturned):
                return await self.on_configuration_returned(event.response)
        except BridgeError as exc:
            _logger.warning("%s cycle failed: %s", event_type, exc)
            return CycleResult(event_type, ok=False, error=exc)
        except Exception as exc:
            _logger.exception("Unexpected error while handling %s", event_type)
            return CycleResult(event_type, ok=False, error=exc)
        _logger.debug("Ignoring unsupported event %r", event)
        return CycleResult(event_type, ok=False)

    async def on_weather_requested(self, event_type: EventType = EventType.APP_MESSAGE) -> CycleResult:
        cycle = await self._weather.run()
        return CycleResult(event_type, ok=cycle.ok, error=cycle.error)

    async def on_configuration_requested(self) -> CycleResult:
        url = self._config.configuration_url
        _logger.info("Showing configuration page: %s", url)
        if self._opener is None:
            await asyncio.get_running_loop().run_in_executor(None, webbrowser.open, url)
        else:
            result = self._opener(url)
            if inspect.isawaitable(result):
                await result
        return CycleResult(EventType.SHOW_CONFIGURATION, ok=True)

    async def on_configuration_returned(self, response: str) -> CycleResult:
        preferences = decode_preferences(response)
        _logger.info("Configuration page returned: %s", json.dumps(preferences.to_payload()))
        dictionary = TransportDictionary.configuration(preferences)
        await send_and_log(self._channel, dictionary, "Config")
        return CycleResult(EventType.WEBVIEW_CLOSED, ok=True)
