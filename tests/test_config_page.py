from __future__ import annotations

import html
import re

import pytest
from aiohttp.test_utils import TestClient, TestServer

from pebblewx.config_page import attach_channel, create_app
from pebblewx.form import ReturnChannel, decode_preferences
from pebblewx.models.preferences import PreferenceSet
from pebblewx.preferences import MemoryBackend, PreferenceStore


def _store(prefs: PreferenceSet | None = None) -> PreferenceStore:
    store = PreferenceStore(MemoryBackend())
    if prefs is not None:
        store.set(prefs)
    return store


@pytest.mark.asyncio
async def test_form_prefilled_from_store() -> None:
    app = create_app(_store(PreferenceSet(use_light_color_scheme=True, use_celsius=False)))

    async with TestClient(TestServer(app)) as client:
        resp = await client.get("/")
        assert resp.status == 200
        text = await resp.text()

    assert '<option value="light" selected>' in text
    assert '<option value="dark">' in text
    assert '<option value="fahrenheit" selected>' in text
    assert '<option value="celsius">' in text


@pytest.mark.asyncio
async def test_submit_stores_and_redirects_to_default_sentinel() -> None:
    store = _store()
    app = create_app(store)

    async with TestClient(TestServer(app)) as client:
        resp = await client.post(
            "/submit",
            data={"colorScheme": "light", "degreeUnit": "fahrenheit"},
            allow_redirects=False,
        )
        assert resp.status == 302
        location = resp.headers["Location"]

    assert location.startswith("pebblejs://close#")
    prefs = decode_preferences(location[len("pebblejs://close#") :])
    assert prefs == PreferenceSet(use_light_color_scheme=True, use_celsius=False)
    assert store.get() == prefs


@pytest.mark.asyncio
async def test_submit_honours_return_to_and_feeds_channel() -> None:
    app = create_app(_store())
    channel = ReturnChannel()
    attach_channel(app, channel)

    async with TestClient(TestServer(app)) as client:
        resp = await client.post(
            "/submit?return_to=https%3A%2F%2Fback%2F%23",
            data={"colorScheme": "dark", "degreeUnit": "celsius"},
            allow_redirects=False,
        )
        assert resp.status == 302
        assert resp.headers["Location"].startswith("https://back/#")

    payload = await channel.receive()
    assert decode_preferences(payload) == PreferenceSet(use_light_color_scheme=False, use_celsius=True)


async def _submit_through_form(client: TestClient, page: str, data: dict[str, str]) -> str:
    resp = await client.get(page)
    match = re.search(r'action="([^"]*)"', await resp.text())
    assert match is not None
    action = html.unescape(match.group(1))

    resp = await client.post("/" + action, data=data, allow_redirects=False)
    assert resp.status == 302
    return resp.headers["Location"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("page", "return_to"),
    [
        ("/index.html?return_to=pebblejs%3A%2F%2Fclose%23", "pebblejs://close#"),
        (
            "/index.html?return_to=https%3A%2F%2Fback.test%2Fdone%3Fsrc%3Dpebble%26x%3D1%23",
            "https://back.test/done?src=pebble&x=1#",
        ),
    ],
)
async def test_form_submit_keeps_exact_return_to(page: str, return_to: str) -> None:
    app = create_app(_store())
    channel = ReturnChannel()
    attach_channel(app, channel)

    async with TestClient(TestServer(app)) as client:
        location = await _submit_through_form(client, page, {"colorScheme": "light", "degreeUnit": "celsius"})

    expected = PreferenceSet(use_light_color_scheme=True, use_celsius=True)
    assert location.startswith(return_to)
    assert decode_preferences(location[len(return_to) :]) == expected
    assert decode_preferences(await channel.receive()) == expected


@pytest.mark.asyncio
async def test_submit_with_encoded_return_to_is_not_replaced_by_default() -> None:
    app = create_app(_store())

    async with TestClient(TestServer(app)) as client:
        resp = await client.post(
            "/submit?return_to=https%3A%2F%2Fback.test%2Fdone%3Fsrc%3Dpebble%23",
            data={"colorScheme": "dark", "degreeUnit": "fahrenheit"},
            allow_redirects=False,
        )
        location = resp.headers["Location"]

    assert location.startswith("https://back.test/done?src=pebble#")
    assert not location.startswith("pebblejs://")
