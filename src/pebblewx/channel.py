"""Device message channel: deliver transport dictionaries to the watch."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from typing import Protocol

from pebblewx.exceptions import TransmissionRejectedError
from pebblewx.models.transport import TransportDictionary

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class SendOutcome:
    """Result of one send attempt: acknowledged, or rejected with a reason."""

    acknowledged: bool
    reason: str | None = None

    @classmethod
    def ack(cls) -> SendOutcome:
        return cls(acknowledged=True)

    @classmethod
    def rejected(cls, reason: str) -> SendOutcome:
        return cls(acknowledged=False, reason=reason)


class DeviceChannel(Protocol):
    """Generic typed-mapping transport to the paired watch.

    Implementations never retry; a failed attempt resolves to a rejected
    outcome instead of raising.
    """

    async def send(self, dictionary: TransportDictionary) -> SendOutcome:
        ...


async def send_and_log(channel: DeviceChannel, dictionary: TransportDictionary, label: str) -> SendOutcome:
    """Send *dictionary* and log the outcome.

    Raises
    ------
    TransmissionRejectedError
        When the channel reports the send as rejected.
    """
    shown = json.dumps(dictionary.to_wire())
    outcome = await channel.send(dictionary)
    if outcome.acknowledged:
        _logger.info("%s successfully sent to Pebble: %s", label, shown)
        return outcome

    _logger.warning("Error sending %s to Pebble (%s): %s", label.lower(), outcome.reason, shown)
    raise TransmissionRejectedError(outcome.reason or "rejected", payload=dictionary.to_wire())


class Publisher(Protocol):
    def publish(self, payload: str) -> asyncio.Future[str | None]:
        ...

    def forget(self, future: asyncio.Future[str | None]) -> None:
        ...


class MqttDeviceChannel:
    """Send dictionaries through the MQTT relay, one QoS 1 publish each."""

    def __init__(self, publisher: Publisher, *, ack_timeout: float) -> None:
        self._publisher = publisher
        self._ack_timeout = ack_timeout

    async def send(self, dictionary: TransportDictionary) -> SendOutcome:
        future = self._publisher.publish(dictionary.to_json())
        try:
            async with asyncio.timeout(self._ack_timeout):
                reason = await future
        except TimeoutError:
            self._publisher.forget(future)
            return SendOutcome.rejected(f"no acknowledgement within {self._ack_timeout:.1f}s")
        if reason is not None:
            return SendOutcome.rejected(reason)
        return SendOutcome.ack()
