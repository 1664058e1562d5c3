"""Bridge configuration for pebblewx."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pebblewx._constants import (
    CONFIGURATION_TIMEOUT,
    CONFIGURATION_URL,
    LOCATION_MAXIMUM_AGE,
    LOCATION_TIMEOUT,
    RETURN_TO_DEFAULT,
    WEATHER_BASE_URL,
)
from pebblewx.exceptions import BridgeConfigError


def _default_preferences_path() -> Path:
    return Path.home() / ".config" / "pebblewx" / "preferences.json"


def _optional_float(value: str | None, name: str) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise BridgeConfigError(f"{name} must be numeric, got {value!r}") from exc


def _env_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise BridgeConfigError(f"{name} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class MqttSettings:
    """Broker connection used as the link to the paired watch.

    The phone-side Bluetooth relay publishes what the watch sends on
    ``pebblewx/<device_id>/inbox`` and forwards anything published on
    ``pebblewx/<device_id>/outbox`` to the watch.
    """

    host: str = "localhost"
    port: int = 1883
    keepalive: int = 60
    device_id: str = "pebble"
    ack_timeout: float = 10.0
    tls: bool = False
    username: str | None = None
    password: str | None = None

    @property
    def outbox_topic(self) -> str:
        return f"pebblewx/{self.device_id}/outbox"

    @property
    def inbox_topic(self) -> str:
        return f"pebblewx/{self.device_id}/inbox"


@dataclasses.dataclass(frozen=True)
class BridgeConfig:
    """Bridge configuration.

    Parameters
    ----------
    api_key : str
        Weather provider credential, sent as ``appid``.
    weather_base_url : str
        Weather provider endpoint. Substitute a fake endpoint in tests.
    configuration_url : str
        Page opened when the user asks to configure the watchface.
    configuration_timeout : float
        Seconds to wait for the page to hand preferences back. On expiry
        the page counts as closed without an answer.
    return_to_default : str
        Return location used when the page is opened without ``return_to``.
    location_timeout : float
        Seconds to wait for a location fix before giving up.
    location_maximum_age : float
        Oldest cached fix (seconds) that may be reused without a new read.
    http_timeout : float or None
        Total timeout for the weather request. ``None`` leaves the
        session default in place.
    latitude, longitude : float or None
        Fixed coordinates for hosts without a location service.
    preferences_path : Path
        JSON file backing the preference store.
    mqtt : MqttSettings
        Device link settings.
    """

    api_key: str
    weather_base_url: str = WEATHER_BASE_URL
    configuration_url: str = CONFIGURATION_URL
    configuration_timeout: float = CONFIGURATION_TIMEOUT
    return_to_default: str = RETURN_TO_DEFAULT
    location_timeout: float = LOCATION_TIMEOUT
    location_maximum_age: float = LOCATION_MAXIMUM_AGE
    http_timeout: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    preferences_path: Path = dataclasses.field(default_factory=_default_preferences_path)
    mqtt: MqttSettings = dataclasses.field(default_factory=MqttSettings)

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise BridgeConfigError("api_key is required")
        if self.location_timeout <= 0:
            raise BridgeConfigError("location_timeout must be positive")
        if self.location_maximum_age < 0:
            raise BridgeConfigError("location_maximum_age must not be negative")
        if self.configuration_timeout <= 0:
            raise BridgeConfigError("configuration_timeout must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeConfig:
        """Create configuration from ``PEBBLEWX_*`` environment variables.

        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        BridgeConfig
            Populated configuration.
        """
        env = os.environ

        mqtt_kwargs: dict[str, Any] = {}
        _ENV_MQTT_MAP = {
            "PEBBLEWX_MQTT_HOST": "host",
            "PEBBLEWX_MQTT_USERNAME": "username",
            "PEBBLEWX_MQTT_PASSWORD": "password",
            "PEBBLEWX_DEVICE_ID": "device_id",
        }
        for env_key, field_name in _ENV_MQTT_MAP.items():
            val = env.get(env_key)
            if val is not None:
                mqtt_kwargs[field_name] = val

        port_env = env.get("PEBBLEWX_MQTT_PORT")
        if port_env is not None:
            mqtt_kwargs["port"] = _env_int(port_env, "PEBBLEWX_MQTT_PORT")
        tls_env = env.get("PEBBLEWX_MQTT_TLS")
        if tls_env is not None:
            mqtt_kwargs["tls"] = tls_env.strip().lower() in {"1", "true", "yes", "y", "on"}
        keepalive_env = env.get("PEBBLEWX_MQTT_KEEPALIVE")
        if keepalive_env is not None:
            mqtt_kwargs["keepalive"] = _env_int(keepalive_env, "PEBBLEWX_MQTT_KEEPALIVE")
        ack_env = _optional_float(env.get("PEBBLEWX_MQTT_ACK_TIMEOUT"), "PEBBLEWX_MQTT_ACK_TIMEOUT")
        if ack_env is not None:
            mqtt_kwargs["ack_timeout"] = ack_env

        mqtt_overrides = overrides.pop("mqtt", None)
        if isinstance(mqtt_overrides, dict):
            mqtt_kwargs.update(mqtt_overrides)
        elif isinstance(mqtt_overrides, MqttSettings):
            mqtt_kwargs = dataclasses.asdict(mqtt_overrides)

        config_kwargs: dict[str, Any] = {"mqtt": MqttSettings(**mqtt_kwargs)}

        _ENV_CONFIG_MAP = {
            "PEBBLEWX_API_KEY": "api_key",
            "PEBBLEWX_WEATHER_URL": "weather_base_url",
            "PEBBLEWX_CONFIGURATION_URL": "configuration_url",
            "PEBBLEWX_RETURN_TO": "return_to_default",
        }
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "PEBBLEWX_LOCATION_TIMEOUT": "location_timeout",
            "PEBBLEWX_LOCATION_MAXIMUM_AGE": "location_maximum_age",
            "PEBBLEWX_CONFIGURATION_TIMEOUT": "configuration_timeout",
            "PEBBLEWX_HTTP_TIMEOUT": "http_timeout",
            "PEBBLEWX_LATITUDE": "latitude",
            "PEBBLEWX_LONGITUDE": "longitude",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            parsed = _optional_float(env.get(env_key), env_key)
            if parsed is not None and field_name not in overrides:
                config_kwargs[field_name] = parsed

        prefs_env = env.get("PEBBLEWX_PREFERENCES_PATH")
        if prefs_env and "preferences_path" not in overrides:
            config_kwargs["preferences_path"] = Path(prefs_env).expanduser()

        config_kwargs.update(overrides)
        config_kwargs.setdefault("api_key", "")

        return cls(**config_kwargs)
