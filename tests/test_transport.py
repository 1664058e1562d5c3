from __future__ import annotations

import pytest
from aiohttp import ClientSession, web
from aiohttp.test_utils import TestServer

from pebblewx._transport import AiohttpFetcher
from pebblewx.exceptions import NetworkError, ParseError


async def _weather(request: web.Request) -> web.Response:
    return web.json_response({"main": {"temp": float(request.query["lat"]) + 250}, "appid": request.query["appid"]})


async def _error(_request: web.Request) -> web.Response:
    return web.Response(status=401, text='{"cod":401,"message":"Invalid API key"}')


async def _garbage(_request: web.Request) -> web.Response:
    return web.Response(text="<html>oops</html>")


def _app() -> web.Application:
    app = web.Application()
    app.router.add_get("/weather", _weather)
    app.router.add_get("/error", _error)
    app.router.add_get("/garbage", _garbage)
    return app


@pytest.mark.asyncio
async def test_get_json_sends_params() -> None:
    async with TestServer(_app()) as server, ClientSession() as session:
        fetcher = AiohttpFetcher(session, timeout=5.0)
        body = await fetcher.get_json(str(server.make_url("/weather")), {"lat": "30.0", "appid": "k"})

    assert body == {"main": {"temp": 280.0}, "appid": "k"}


@pytest.mark.asyncio
async def test_non_2xx_raises_network_error() -> None:
    async with TestServer(_app()) as server, ClientSession() as session:
        fetcher = AiohttpFetcher(session)
        with pytest.raises(NetworkError) as exc_info:
            await fetcher.get_json(str(server.make_url("/error")), {"appid": "secret"})

    assert exc_info.value.status_code == 401
    assert "secret" not in exc_info.value.url


@pytest.mark.asyncio
async def test_invalid_json_raises_parse_error() -> None:
    async with TestServer(_app()) as server, ClientSession() as session:
        fetcher = AiohttpFetcher(session)
        with pytest.raises(ParseError):
            await fetcher.get_json(str(server.make_url("/garbage")), {})


@pytest.mark.asyncio
async def test_connection_failure_raises_network_error() -> None:
    async with ClientSession() as session:
        fetcher = AiohttpFetcher(session, timeout=2.0)
        with pytest.raises(NetworkError):
            await fetcher.get_json("http://127.0.0.1:9/weather", {})
