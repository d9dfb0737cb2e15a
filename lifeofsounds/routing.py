"""Dispatch of HTTP requests and WebSocket metadata to their handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from . import api, pages
from .config import AppContext
from .files import create_directory
from .jsonvalues import get_int_value_from_json, get_string_value_from_json
from .sessions import get_session

logger = logging.getLogger(__name__)

_Handler = Callable[[Any, AppContext, Any, str], Any]


def process_websocket_route(
    context: AppContext, metadata: str, data: bytes
) -> Path | None:
    """Store an audio chunk described by ``metadata``; return the file written.

    Chunks are appended to ``<database>/<userid>/<source>/<audioName>`` below
    the storage root.  Text messages and chunks without a valid session are
    ignored.
    """
    kind = get_string_value_from_json("type", metadata)
    if kind == "text":
        return None
    if kind != "audio":
        logger.warning("type not valid to read: %r", data)
        return None

    size = get_int_value_from_json("size", metadata)
    source = get_string_value_from_json("source", metadata)
    database = get_string_value_from_json("database", metadata)
    audio_name = get_string_value_from_json("audioName", metadata)
    session_id = get_string_value_from_json("sessionid", metadata)
    if session_id is None:
        return None
    session = get_session(context.db, session_id)
    if session is None:
        return None
    if database is None or source is None or audio_name is None or session.user_id is None:
        logger.warning("audio metadata is incomplete: %s", metadata)
        return None

    directory = context.storage_path(database)
    create_directory(directory)
    for part in (session.user_id, source):
        directory = directory / part
        create_directory(directory)
    target = directory / audio_name
    chunk = bytes(data)
    if size is not None:
        chunk = chunk[: max(size, 0)]
    with open(target, "ab") as handle:
        handle.write(chunk)
    return target


@dataclass(frozen=True)
class _Rule:
    method: str
    path: str
    exact: bool
    handler: Optional[_Handler]

    def matches(self, method: str, route: str) -> bool:
        if method != self.method:
            return False
        return route == self.path if self.exact else self.path in route


def _page(handler: Callable[..., Any], template_name: str) -> _Handler:
    return lambda stream, context, request, route: handler(
        stream, context, request, template_name
    )


def _with_route(handler: Callable[..., Any]) -> _Handler:
    return lambda stream, context, request, route: handler(stream, context, route, request)


def _body_only(handler: Callable[..., Any]) -> _Handler:
    return lambda stream, context, request, route: handler(stream, context, request)


_BASE = "/life-of-sounds"

_RULES = (
    _Rule("GET", f"{_BASE}/login", True, _page(pages.get_login_page, "index.html")),
    _Rule("DELETE", f"{_BASE}/websocket", False, _with_route(api.delete_websocket)),
    _Rule("DELETE", f"{_BASE}/session/", False, _with_route(api.delete_sessioninfo)),
    _Rule("GET", f"{_BASE}/session", False, _with_route(api.get_sessioninfo)),
    _Rule("PATCH", f"{_BASE}/audio", True, _with_route(api.update_audio_info)),
    _Rule("PATCH", f"{_BASE}/websocket", True, None),
    _Rule("GET", f"{_BASE}/websocket", True, _with_route(api.get_websocket_protocol)),
    _Rule("GET", f"{_BASE}/home/recordings", True, _page(pages.get_data_page, "recordings.html")),
    _Rule("GET", f"{_BASE}/home/data", True, _page(pages.get_data_page, "data.html")),
    _Rule(
        "GET",
        f"{_BASE}/home/studio/html_utilities.js",
        True,
        _page(pages.get_utilities_script, "html_utilities.js"),
    ),
    _Rule("GET", f"{_BASE}/game_of_life.js", True, _page(pages.get_gol_script, "game_of_life.js")),
    _Rule(
        "GET",
        f"{_BASE}/home/studio/websocket.js",
        True,
        _page(pages.get_websocket_script, "websocket.js"),
    ),
    _Rule(
        "GET",
        f"{_BASE}/home/live_studio/web_audio_api.js",
        True,
        _page(pages.get_web_audio_script, "web_audio_api.js"),
    ),
    _Rule(
        "GET",
        f"{_BASE}/home/studio/data_table.js",
        True,
        _page(pages.get_data_table_script, "data_table.js"),
    ),
    _Rule("GET", f"{_BASE}/home/live_studio", True, _page(pages.get_live_html, "live.html")),
    _Rule("GET", f"{_BASE}/home/studio", True, _page(pages.get_studio_page, "studio.html")),
    _Rule("GET", f"{_BASE}/home", True, _page(pages.get_home_page, "home.html")),
    _Rule("POST", f"{_BASE}/login", True, _body_only(api.login)),
    _Rule("GET", f"{_BASE}/new_login", True, _page(pages.get_new_login_page, "new_login.html")),
    _Rule("POST", f"{_BASE}/audio", True, _body_only(api.create_new_audio)),
    _Rule("POST", f"{_BASE}/user", True, _body_only(api.create_new_user)),
    _Rule("GET", f"{_BASE}/audio_blob", False, _with_route(api.get_audio_blob)),
    _Rule("GET", f"{_BASE}/audio", False, _with_route(api.retrieve_audio)),
    _Rule("GET", f"{_BASE}/user", False, _with_route(api.get_user)),
)


def process_route(
    stream: Any,
    context: AppContext,
    request: str | bytes,
    request_type: str,
    route: str,
    fd: int,
) -> bool:
    """Run the handler for ``request_type`` and ``route``; return False when none matches."""
    logger.info("route: %s %s (fd %d)", request_type, route, fd)
    for rule in _RULES:
        if rule.matches(request_type, route):
            if rule.handler is not None:
                rule.handler(stream, context, request, route)
            return True
    return False