"""Custom exception hierarchy for pebblewx."""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base exception for all pebblewx errors."""


class BridgeConfigError(BridgeError):
    """Invalid or missing configuration."""


class LocationUnavailableError(BridgeError):
    """No location fix could be obtained (timeout, permission, sensor error)."""


class NetworkError(BridgeError):
    """HTTP-level failure (transport error or non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class ParseError(BridgeError):
    """Weather response is not JSON or lacks ``main.temp``."""


class TransmissionRejectedError(BridgeError):
    """The device channel reported a failed send."""

    def __init__(self, reason: str, *, payload: dict[str, Any] | None = None) -> None:
        self.reason = reason
        self.payload = payload or {}
        super().__init__(reason)


class DecodeError(BridgeError):
    """Configuration surface returned a payload that cannot be decoded."""


class StorageUnavailableError(BridgeError):
    """Preference storage could not be read or written.

    Raised by the storage backend only; :class:`pebblewx.preferences.PreferenceStore`
    absorbs it and falls back to defaults.
    """
