"""Wire configuration, I/O resources and the coordinator together."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import aiohttp
from aiohttp import web

from pebblewx._mqtt import InboundMessage, PebbleMqttRuntime
from pebblewx._transport import AiohttpFetcher
from pebblewx.channel import DeviceChannel, MqttDeviceChannel
from pebblewx.config import BridgeConfig
from pebblewx.config_page import attach_channel, create_app
from pebblewx.coordinator import BridgeCoordinator, CycleResult
from pebblewx.events import ConfigurationRequested, ConfigurationReturned, InboundDeviceMessage, ProcessReady
from pebblewx.exceptions import BridgeConfigError, BridgeError
from pebblewx.form import ReturnChannel
from pebblewx.location import CachingLocationProvider, LocationProvider, StaticLocationProvider
from pebblewx.preferences import JsonFileBackend, PreferenceStore
from pebblewx.weather import WeatherPipeline

_logger = logging.getLogger(__name__)


class BridgeRuntime:
    """Async runtime for the watch companion bridge.

    Usage::

        async with BridgeRuntime(config) as runtime:
            runtime.ready()
            await runtime.serve_config_page(port=8080)
            ...
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        location: LocationProvider | None = None,
        channel: DeviceChannel | None = None,
        store: PreferenceStore | None = None,
        opener: Callable[[str], Any] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._location = location
        self._channel = channel
        self._store = store or PreferenceStore(JsonFileBackend(config.preferences_path))
        self._opener = opener
        self._mqtt: PebbleMqttRuntime | None = None
        self._coordinator: BridgeCoordinator | None = None
        self._config_app = create_app(self._store, return_to=config.return_to_default)
        self._site_runner: web.AppRunner | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BridgeRuntime:
        loop = asyncio.get_running_loop()
        location = self._location
        if location is None:
            if self._config.latitude is None or self._config.longitude is None:
                raise BridgeConfigError("No location provider given and no fixed latitude/longitude configured")
            location = StaticLocationProvider(self._config.latitude, self._config.longitude)
        location = CachingLocationProvider(location)

        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()

        channel = self._channel
        if channel is None:
            self._mqtt = PebbleMqttRuntime(
                loop=loop,
                settings=self._config.mqtt,
                on_inbound=self._on_inbound,
                logger=_logger,
            )
            try:
                await loop.run_in_executor(None, self._mqtt.start)
            except OSError as exc:
                await self.__aexit__(None, None, None)
                raise BridgeError(f"Cannot reach MQTT broker {self._config.mqtt.host}:{self._config.mqtt.port}") from exc
            channel = MqttDeviceChannel(self._mqtt, ack_timeout=self._config.mqtt.ack_timeout)

        weather = WeatherPipeline(
            self._config,
            location=location,
            fetcher=AiohttpFetcher(self._http_session, timeout=self._config.http_timeout),
            channel=channel,
        )
        self._coordinator = BridgeCoordinator(
            self._config,
            weather=weather,
            channel=channel,
            opener=self._opener,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._coordinator is not None:
            await self._coordinator.drain()
            self._coordinator = None
        if self._site_runner is not None:
            await self._site_runner.cleanup()
            self._site_runner = None
        mqtt_runtime = self._mqtt
        self._mqtt = None
        if mqtt_runtime is not None:
            await asyncio.get_running_loop().run_in_executor(None, mqtt_runtime.stop)
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Host events
    # ------------------------------------------------------------------

    @property
    def coordinator(self) -> BridgeCoordinator:
        if self._coordinator is None:
            raise BridgeError("Runtime not started. Use 'async with BridgeRuntime(...) as runtime:'")
        return self._coordinator

    @property
    def store(self) -> PreferenceStore:
        return self._store

    @property
    def config_app(self) -> web.Application:
        return self._config_app

    def ready(self) -> asyncio.Task[CycleResult]:
        return self.coordinator.dispatch(ProcessReady())

    def device_message(self, payload: dict[str, Any] | None = None) -> asyncio.Task[CycleResult]:
        return self.coordinator.dispatch(InboundDeviceMessage(payload=payload or {}))

    def _on_inbound(self, message: InboundMessage) -> None:
        if self._coordinator is None:
            return
        self.device_message(message.payload)

    async def configure(self) -> CycleResult:
        """Open the configuration page and forward what it hands back.

        A page that gives no answer within ``configuration_timeout`` counts
        as closed without a response, which is logged and dropped.
        """
        coordinator = self.coordinator
        channel = ReturnChannel()
        attach_channel(self._config_app, channel)
        try:
            opened = await coordinator.dispatch(ConfigurationRequested())
            if not opened.ok:
                return opened
            try:
                async with asyncio.timeout(self._config.configuration_timeout):
                    response = await channel.receive()
            except TimeoutError:
                _logger.warning(
                    "No answer from the configuration page within %.0fs, treating it as closed",
                    self._config.configuration_timeout,
                )
                response = ""
        finally:
            attach_channel(self._config_app, None)
            channel.close()
        return await coordinator.dispatch(ConfigurationReturned(response=response))

    async def serve_config_page(self, host: str = "127.0.0.1", port: int = 8080) -> None:
        """Serve the configuration page until the runtime exits."""
        runner = web.AppRunner(self._config_app)
        await runner.setup()
        site = web.TCPSite(runner, host, port)
        await site.start()
        self._site_runner = runner
        _logger.info("Configuration page listening on http://%s:%s/", host, port)
