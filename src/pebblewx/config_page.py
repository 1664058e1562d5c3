"""Local web server hosting the configuration page.

``GET /`` renders the two selectors, prefilled from the preference store.
``POST /submit`` stores the selection and redirects to the composed return
location, handing the encoded preferences to a waiting
:class:`~pebblewx.form.ReturnChannel` when one is attached.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass

from aiohttp import web

from pebblewx._constants import RETURN_TO_DEFAULT, RETURN_TO_PARAM
from pebblewx.form import PreferenceForm, ReturnChannel, extract_return_payload, get_query_param
from pebblewx.preferences import PreferenceStore

_logger = logging.getLogger(__name__)


@dataclass
class ChannelSlot:
    """Holds the return channel waiting for the next submission, if any."""

    channel: ReturnChannel | None = None


STORE_KEY: web.AppKey[PreferenceStore] = web.AppKey("store", PreferenceStore)
RETURN_TO_KEY: web.AppKey[str] = web.AppKey("return_to", str)
SLOT_KEY: web.AppKey[ChannelSlot] = web.AppKey("channel_slot", ChannelSlot)

_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Watchface configuration</title></head>
<body>
<form method="post" action="submit{query}">
  <label>Color scheme
    <select name="colorScheme">
      <option value="light"{light_sel}>Light</option>
      <option value="dark"{dark_sel}>Dark</option>
    </select>
  </label>
  <label>Temperature unit
    <select name="degreeUnit">
      <option value="celsius"{c_sel}>Celsius</option>
      <option value="fahrenheit"{f_sel}>Fahrenheit</option>
    </select>
  </label>
  <button id="submitButton" type="submit">Save</button>
</form>
</body>
</html>
"""


def _selected(flag: bool) -> str:
    return " selected" if flag else ""


def render_form(form: PreferenceForm, query_string: str = "") -> str:
    query = f"?{html.escape(query_string, quote=True)}" if query_string else ""
    return _PAGE.format(
        query=query,
        light_sel=_selected(form.light_color_scheme),
        dark_sel=_selected(not form.light_color_scheme),
        c_sel=_selected(form.degree_celsius),
        f_sel=_selected(not form.degree_celsius),
    )


async def handle_form(request: web.Request) -> web.Response:
    form = PreferenceForm(store=request.app[STORE_KEY])
    form.load()
    return web.Response(text=render_form(form, request.rel_url.raw_query_string), content_type="text/html")


async def handle_submit(request: web.Request) -> web.Response:
    data = await request.post()
    form = PreferenceForm(store=request.app[STORE_KEY])
    form.load()
    color_scheme = data.get("colorScheme")
    degree_unit = data.get("degreeUnit")
    if color_scheme in ("light", "dark"):
        form.light_color_scheme = color_scheme == "light"
    if degree_unit in ("celsius", "fahrenheit"):
        form.degree_celsius = degree_unit == "celsius"

    # Still percent-encoded; get_query_param decodes each value exactly once.
    query = request.rel_url.raw_query_string
    default = request.app[RETURN_TO_KEY]
    return_to = get_query_param(query, RETURN_TO_PARAM, default)
    location = form.submit(query, default=default)
    _logger.debug("Submit, returning to %s", location)

    channel = request.app[SLOT_KEY].channel
    if channel is not None:
        channel.deliver(extract_return_payload(location, return_to))
    # Location is sent verbatim; the payload must reach the host byte for byte.
    return web.Response(status=302, headers={"Location": location})


def attach_channel(app: web.Application, channel: ReturnChannel | None) -> None:
    """Route the next submission's payload to *channel*."""
    app[SLOT_KEY].channel = channel


def create_app(store: PreferenceStore, *, return_to: str = RETURN_TO_DEFAULT) -> web.Application:
    app = web.Application()
    app[STORE_KEY] = store
    app[RETURN_TO_KEY] = return_to
    app[SLOT_KEY] = ChannelSlot()
    app.router.add_get("/", handle_form)
    app.router.add_get("/index.html", handle_form)
    app.router.add_post("/submit", handle_submit)
    return app
