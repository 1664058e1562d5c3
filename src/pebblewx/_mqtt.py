"""Threaded MQTT link to the phone-side watch relay."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from pebblewx.config import MqttSettings


@dataclass(frozen=True)
class InboundMessage:
    """A message the watch sent to the phone."""

    topic: str
    payload: dict[str, Any]


def decode_inbound_payload(raw: bytes) -> dict[str, Any]:
    """Parse an inbox payload; anything that is not a JSON object is wrapped."""
    text = raw.decode("utf-8", errors="replace").strip()
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return {"raw": text}
    if isinstance(parsed, dict):
        return parsed
    return {"value": parsed}


class PebbleMqttRuntime:
    """Threaded paho-mqtt runtime bridged onto an asyncio loop.

    Inbound watch messages are handed to *on_inbound* on the loop thread.
    Outgoing publishes are QoS 1; the broker's PUBACK resolves the future
    returned by :meth:`publish`.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        settings: MqttSettings,
        on_inbound: Callable[[InboundMessage], None],
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._settings = settings
        self._on_inbound = on_inbound
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._connected = False
        self._pending: dict[int, asyncio.Future[str | None]] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_connected(self) -> bool:
        return self._connected

    def start(self) -> None:
        """Connect and subscribe to the watch inbox."""
        self.stop()
        settings = self._settings
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s device=%s",
            settings.host,
            settings.port,
            settings.device_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=f"pebblewx-{settings.device_id}",
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if settings.username:
            client.username_pw_set(settings.username, settings.password)
        if settings.tls:
            client.tls_set()

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._connected = True
            self._logger.debug("MQTT connected, subscribing topic=%s", settings.inbox_topic)
            c.subscribe(settings.inbox_topic, qos=1)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            message = InboundMessage(topic=msg.topic, payload=decode_inbound_payload(msg.payload))
            self._logger.debug("Received message from watch topic=%s payload=%s", msg.topic, message.payload)
            self._loop.call_soon_threadsafe(self._on_inbound, message)

        def on_publish(
            _c: mqtt.Client,
            _userdata: Any,
            mid: int,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            reason = None if reason_code is None or not reason_code.is_failure else str(reason_code)
            self._loop.call_soon_threadsafe(self._resolve, mid, reason)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            self._connected = False
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)
                self._loop.call_soon_threadsafe(self._fail_pending, f"disconnected: {reason_code}")

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_publish = on_publish
        client.on_disconnect = on_disconnect

        client.connect(settings.host, settings.port, keepalive=settings.keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect the current client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._connected = False
        if self._pending:
            self._loop.call_soon_threadsafe(self._fail_pending, "runtime stopped")

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    def publish(self, payload: str) -> asyncio.Future[str | None]:
        """Publish to the watch outbox.

        The returned future resolves to ``None`` once the broker
        acknowledges, or to a failure reason.  Must be called on the loop
        thread: acknowledgements are delivered there too, so the future is
        always registered before its PUBACK is processed.
        """
        future: asyncio.Future[str | None] = self._loop.create_future()
        client = self._client
        if client is None or not self._connected:
            future.set_result("not connected")
            return future

        info = client.publish(self._settings.outbox_topic, payload, qos=1)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            future.set_result(mqtt.error_string(info.rc))
            return future
        self._pending[info.mid] = future
        return future

    def forget(self, future: asyncio.Future[str | None]) -> None:
        """Drop a pending publish the caller gave up on."""
        for mid, pending in list(self._pending.items()):
            if pending is future:
                del self._pending[mid]

    def _resolve(self, mid: int, reason: str | None) -> None:
        future = self._pending.pop(mid, None)
        if future is not None and not future.done():
            future.set_result(reason)

    def _fail_pending(self, reason: str) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_result(reason)
