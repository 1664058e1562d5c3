"""Durable store for the two watchface preferences.

Values are kept the way the configuration page keeps them in its local
storage: two string keys, each holding ``"true"`` or ``"false"``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from pebblewx.exceptions import StorageUnavailableError
from pebblewx.models.preferences import PreferenceSet

_logger = logging.getLogger(__name__)

LIGHT_COLOR_SCHEME_KEY = "lightColorScheme"
DEGREE_CELSIUS_KEY = "degreeCelsius"


class KeyValueBackend(Protocol):
    """String key/value area that survives across sessions."""

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def set_items(self, items: Mapping[str, str]) -> None:
        """Write all *items* at once, or none of them."""
        ...


class MemoryBackend:
    """Non-durable backend, for tests and for hosts without a disk."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def set_items(self, items: Mapping[str, str]) -> None:
        self._items.update(items)


class JsonFileBackend:
    """Backend persisting a flat JSON object to a single file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot read {self._path}: {exc}") from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageUnavailableError(f"{self._path} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise StorageUnavailableError(f"{self._path} does not hold a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        self.set_items({key: value})

    def set_items(self, items: Mapping[str, str]) -> None:
        merged = self._read_all()
        merged.update(items)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".prefs-", suffix=".tmp")
        except OSError as exc:
            raise StorageUnavailableError(f"Cannot write {self._path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(merged, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageUnavailableError(f"Cannot write {self._path}: {exc}") from exc


def _as_bool(value: str | None) -> bool | None:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


class PreferenceStore:
    """Read and write the :class:`PreferenceSet` through a backend.

    ``get()`` returns ``None`` when nothing has been stored yet, which is
    different from a stored ``False``: callers apply their own defaults.
    Storage failures are logged and tolerated.
    """

    def __init__(self, backend: KeyValueBackend) -> None:
        self._backend = backend

    def get(self) -> PreferenceSet | None:
        try:
            light = _as_bool(self._backend.get_item(LIGHT_COLOR_SCHEME_KEY))
            celsius = _as_bool(self._backend.get_item(DEGREE_CELSIUS_KEY))
        except StorageUnavailableError:
            _logger.warning("Preference storage unavailable, using defaults", exc_info=True)
            return None

        if light is None or celsius is None:
            return None
        return PreferenceSet(use_light_color_scheme=light, use_celsius=celsius)

    def set(self, preferences: PreferenceSet) -> None:
        try:
            self._backend.set_items(
                {
                    LIGHT_COLOR_SCHEME_KEY: _bool_text(preferences.use_light_color_scheme),
                    DEGREE_CELSIUS_KEY: _bool_text(preferences.use_celsius),
                }
            )
        except StorageUnavailableError:
            _logger.warning("Could not persist preferences %s", preferences.to_payload(), exc_info=True)
            return
        _logger.debug("Stored preferences %s", preferences.to_payload())


def _bool_text(value: bool) -> str:
    return "true" if value else "false"
