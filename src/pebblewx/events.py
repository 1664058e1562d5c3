"""Host lifecycle events consumed by the coordinator."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class EventType(StrEnum):
    READY = "ready"
    APP_MESSAGE = "appmessage"
    SHOW_CONFIGURATION = "showConfiguration"
    WEBVIEW_CLOSED = "webviewclosed"


class HostEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: EventType
    received_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ProcessReady(HostEvent):
    """The companion process has started."""

    type: Literal[EventType.READY] = EventType.READY


class InboundDeviceMessage(HostEvent):
    """The watch sent a message; any message asks for a weather refresh."""

    type: Literal[EventType.APP_MESSAGE] = EventType.APP_MESSAGE
    payload: dict[str, Any] = Field(default_factory=dict)


class ConfigurationRequested(HostEvent):
    """The user asked to open the configuration page."""

    type: Literal[EventType.SHOW_CONFIGURATION] = EventType.SHOW_CONFIGURATION


class ConfigurationReturned(HostEvent):
    """The configuration page closed, handing back *response*."""

    type: Literal[EventType.WEBVIEW_CLOSED] = EventType.WEBVIEW_CLOSED
    response: str = ""


AnyHostEvent = Annotated[
    ProcessReady | InboundDeviceMessage | ConfigurationRequested | ConfigurationReturned,
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[AnyHostEvent] = TypeAdapter(AnyHostEvent)


def parse_host_event(data: dict[str, Any]) -> HostEvent:
    """Build a typed event from its dict form (``{"type": "ready", ...}``)."""
    return _EVENT_ADAPTER.validate_python(data)
