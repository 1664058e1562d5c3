"""Weather fetch pipeline: location fix, provider request, device send."""

from __future__ import annotations

import dataclasses
import logging
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from pebblewx._constants import kelvin_to_celsius
from pebblewx._redact import redact_for_log
from pebblewx._transport import HttpFetcher
from pebblewx.channel import DeviceChannel, SendOutcome, send_and_log
from pebblewx.config import BridgeConfig
from pebblewx.exceptions import BridgeError, ParseError, TransmissionRejectedError
from pebblewx.location import LocationProvider
from pebblewx.models.transport import TransportDictionary
from pebblewx.models.weather import LocationFix, WeatherResponse

_logger = logging.getLogger(__name__)


class PipelineState(StrEnum):
    IDLE = "idle"
    ACQUIRING_LOCATION = "acquiring_location"
    FETCHING_WEATHER = "fetching_weather"
    DONE = "done"
    FAILED = "failed"


@dataclasses.dataclass
class WeatherCycle:
    """Record of a single fetch cycle."""

    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = dataclasses.field(default_factory=list)
    fix: LocationFix | None = None
    temperature_c: int | None = None
    outcome: SendOutcome | None = None
    error: BridgeError | None = None

    def advance(self, state: PipelineState) -> None:
        self.history.append(self.state)
        self.state = state

    @property
    def ok(self) -> bool:
        return self.state == PipelineState.DONE and self.outcome is not None and self.outcome.acknowledged


def parse_weather(body: Any) -> WeatherResponse:
    """Validate a provider payload; only ``main.temp`` is required."""
    if not isinstance(body, dict):
        raise ParseError("Weather response is not a JSON object")
    try:
        return WeatherResponse.model_validate(body)
    except ValidationError as exc:
        raise ParseError(f"Weather response lacks a numeric main.temp ({exc.error_count()} error(s))") from exc


class WeatherPipeline:
    """Fetch the current temperature and push it to the watch.

    Every :meth:`run` is an independent cycle; concurrent runs share only
    the immutable configuration and the collaborators passed in here.
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        location: LocationProvider,
        fetcher: HttpFetcher,
        channel: DeviceChannel,
    ) -> None:
        self._config = config
        self._location = location
        self._fetcher = fetcher
        self._channel = channel

    def request_params(self, fix: LocationFix) -> dict[str, str]:
        return {
            "lat": repr(fix.latitude),
            "lon": repr(fix.longitude),
            "appid": self._config.api_key,
        }

    async def acquire_location(self) -> LocationFix:
        return await self._location.current_position(
            timeout=self._config.location_timeout,
            maximum_age=self._config.location_maximum_age,
        )

    async def fetch_temperature(self, fix: LocationFix) -> int:
        params = self.request_params(fix)
        _logger.debug("Requesting weather %s", redact_for_log(params))
        body = await self._fetcher.get_json(self._config.weather_base_url, params)
        weather = parse_weather(body)
        _logger.info("Temperature returned [K]: %s", weather.temperature_kelvin)
        return kelvin_to_celsius(weather.temperature_kelvin)

    async def run(self) -> WeatherCycle:
        cycle = WeatherCycle()
        try:
            cycle.advance(PipelineState.ACQUIRING_LOCATION)
            cycle.fix = await self.acquire_location()

            cycle.advance(PipelineState.FETCHING_WEATHER)
            cycle.temperature_c = await self.fetch_temperature(cycle.fix)

            cycle.advance(PipelineState.DONE)
            dictionary = TransportDictionary.weather(cycle.temperature_c)
            cycle.outcome = await send_and_log(self._channel, dictionary, "Temperature")
        except BridgeError as exc:
            if cycle.state != PipelineState.DONE:
                cycle.advance(PipelineState.FAILED)
            cycle.error = exc
            if isinstance(exc, TransmissionRejectedError):
                cycle.outcome = SendOutcome.rejected(exc.reason)
            _logger.warning("Weather cycle ended in %s: %s", cycle.state.value, exc)
        return cycle
