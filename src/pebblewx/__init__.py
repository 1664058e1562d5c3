"""pebblewx - Async companion bridge feeding weather and settings to a Pebble watchface."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pebblewx")
except PackageNotFoundError:
    __version__ = "0+local"
from pebblewx.channel import DeviceChannel, MqttDeviceChannel, SendOutcome
from pebblewx.config import BridgeConfig, MqttSettings
from pebblewx.coordinator import BridgeCoordinator, CycleResult
from pebblewx.events import (
    ConfigurationRequested,
    ConfigurationReturned,
    EventType,
    InboundDeviceMessage,
    ProcessReady,
)
from pebblewx.exceptions import (
    BridgeConfigError,
    BridgeError,
    DecodeError,
    LocationUnavailableError,
    NetworkError,
    ParseError,
    StorageUnavailableError,
    TransmissionRejectedError,
)
from pebblewx.form import PreferenceForm, ReturnChannel
from pebblewx.models import LocationFix, PreferenceSet, TransportDictionary, WeatherResponse
from pebblewx.preferences import JsonFileBackend, MemoryBackend, PreferenceStore
from pebblewx.runtime import BridgeRuntime
from pebblewx.weather import PipelineState, WeatherCycle, WeatherPipeline

__all__ = [
    "__version__",
    "BridgeConfig",
    "BridgeConfigError",
    "BridgeCoordinator",
    "BridgeError",
    "BridgeRuntime",
    "ConfigurationRequested",
    "ConfigurationReturned",
    "CycleResult",
    "DecodeError",
    "DeviceChannel",
    "EventType",
    "InboundDeviceMessage",
    "JsonFileBackend",
    "LocationFix",
    "LocationUnavailableError",
    "MemoryBackend",
    "MqttDeviceChannel",
    "MqttSettings",
    "NetworkError",
    "ParseError",
    "PipelineState",
    "PreferenceForm",
    "PreferenceSet",
    "PreferenceStore",
    "ProcessReady",
    "ReturnChannel",
    "SendOutcome",
    "StorageUnavailableError",
    "TransmissionRejectedError",
    "TransportDictionary",
    "WeatherCycle",
    "WeatherPipeline",
    "WeatherResponse",
]
