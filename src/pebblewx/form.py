"""Configuration page logic and the return-location encoding.

The configuration page hands the chosen preferences back by navigating to
``{return_to}{encodeURIComponent(JSON.stringify(prefs))}``.  The host turns
that navigation into a single string payload.  This module implements both
halves of that contract plus the page's form state.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from urllib.parse import quote, unquote

from pydantic import ValidationError

from pebblewx._constants import RETURN_TO_DEFAULT, RETURN_TO_PARAM
from pebblewx.exceptions import DecodeError
from pebblewx.models.preferences import DEFAULT_PREFERENCES, PreferenceSet
from pebblewx.preferences import PreferenceStore

_logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves untouched besides alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
# An absolute URL or a path, as opposed to a bare query string.
_URL_PREFIX = re.compile(r"^(?:[A-Za-z][A-Za-z0-9+.-]*:|/)")


def encode_uri_component(text: str) -> str:
    return quote(text, safe=_URI_COMPONENT_SAFE)


def decode_uri_component(text: str) -> str:
    """Strict percent-decoding; malformed escapes raise :class:`DecodeError`."""
    if _BAD_ESCAPE.search(text):
        raise DecodeError(f"Malformed percent-escape in {text[:64]!r}")
    try:
        return unquote(text, errors="strict")
    except UnicodeDecodeError as exc:
        raise DecodeError("Percent-escapes do not form valid UTF-8") from exc


def encode_preferences(preferences: PreferenceSet) -> str:
    """Serialize and percent-encode *preferences* for the return location."""
    serialized = json.dumps(preferences.to_payload(), separators=(",", ":"))
    return encode_uri_component(serialized)


def decode_preferences(encoded: str) -> PreferenceSet:
    """Inverse of :func:`encode_preferences`.

    Raises
    ------
    DecodeError
        If the text is not percent-encoded JSON describing a preference set.
    """
    text = decode_uri_component(encoded)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Return payload is not JSON: {text[:64]!r}") from exc
    if not isinstance(data, dict):
        raise DecodeError("Return payload is not a JSON object")
    try:
        return PreferenceSet.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"Return payload is not a preference set: {exc.error_count()} error(s)") from exc


def get_query_param(query: str, name: str, default: str) -> str:
    """Look up *name* in a query string, falling back to *default*.

    *query* may be a full URL, a ``?``-prefixed search string or a bare,
    still percent-encoded query.  The first matching pair wins.  A missing,
    empty or badly-escaped value yields *default* unchanged.
    """
    if query.startswith("?"):
        query = query[1:]
    elif _URL_PREFIX.match(query):
        query = query.partition("?")[2].partition("#")[0]
    for pair in query.split("&"):
        key, sep, value = pair.partition("=")
        if key != name:
            continue
        if not sep or not value:
            return default
        try:
            return decode_uri_component(value)
        except DecodeError:
            _logger.warning("Ignoring malformed %s parameter", name)
            return default
    return default


def compose_return_location(query: str, preferences: PreferenceSet, *, default: str = RETURN_TO_DEFAULT) -> str:
    return_to = get_query_param(query, RETURN_TO_PARAM, default)
    return return_to + encode_preferences(preferences)


def extract_return_payload(location: str, return_to: str = RETURN_TO_DEFAULT) -> str:
    """Recover the encoded payload from a composed return location."""
    if not location.startswith(return_to):
        raise DecodeError(f"Location does not start with {return_to!r}")
    return location[len(return_to) :]


@dataclass
class PreferenceForm:
    """State of the two selectors on the configuration page.

    The initial values are whatever the page markup selects; :meth:`load`
    only overrides them when preferences have been stored before.
    """

    store: PreferenceStore
    light_color_scheme: bool = DEFAULT_PREFERENCES.use_light_color_scheme
    degree_celsius: bool = DEFAULT_PREFERENCES.use_celsius

    def load(self) -> bool:
        """Prefill the selectors from the store. Returns whether it did."""
        stored = self.store.get()
        if stored is None:
            return False
        self.light_color_scheme = stored.use_light_color_scheme
        self.degree_celsius = stored.use_celsius
        return True

    def collect(self) -> PreferenceSet:
        """Snapshot the selectors and persist them."""
        preferences = PreferenceSet(
            use_light_color_scheme=self.light_color_scheme,
            use_celsius=self.degree_celsius,
        )
        self.store.set(preferences)
        _logger.info("Got options: %s", json.dumps(preferences.to_payload()))
        return preferences

    def submit(self, query: str, *, default: str = RETURN_TO_DEFAULT) -> str:
        """Persist the current selection and return the location to navigate to."""
        return compose_return_location(query, self.collect(), default=default)


class ReturnChannel:
    """One-shot channel carrying the configuration page's answer to the host.

    The page side calls :meth:`deliver` once and the host side awaits
    :meth:`receive`.  Later deliveries are ignored.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[str] = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    def deliver(self, payload: str) -> bool:
        if self._future.done():
            _logger.debug("Return channel already used, dropping payload")
            return False
        self._future.set_result(payload)
        return True

    def close(self) -> None:
        if not self._future.done():
            self._future.cancel()

    async def receive(self) -> str:
        return await self._future
