"""HTTP transport for the weather provider."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pebblewx._redact import redact_url
from pebblewx.exceptions import NetworkError, ParseError

_logger = logging.getLogger(__name__)


class HttpFetcher(Protocol):
    """Structural transport interface used by the weather pipeline.

    Tests pass small fakes; production uses :class:`AiohttpFetcher`.
    """

    async def get_json(self, url: str, params: Mapping[str, str]) -> Any:
        ...


class AiohttpFetcher:
    """Issue a single GET and decode the JSON body."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float | None = None) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout) if timeout is not None else None

    async def get_json(self, url: str, params: Mapping[str, str]) -> Any:
        kwargs: dict[str, Any] = {"params": dict(params)}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout

        try:
            async with self._http.get(url, **kwargs) as resp:
                shown = redact_url(str(resp.url))
                _logger.debug("GET %s -> %s", shown, resp.status)
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise NetworkError(
                        f"HTTP {resp.status} from {shown}: {text[:200]}",
                        status_code=resp.status,
                        url=shown,
                    )
        except NetworkError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise NetworkError(f"Request to {url} failed: {exc!r}", url=url) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Invalid JSON from {url}: {text[:200]}") from exc
