"""Handlers that serve HTML pages and scripts from the template directory."""

from __future__ import annotations

import logging
from typing import Any, Callable

from .config import AppContext
from .httputil import open_html_template_page, send_html_response_code, send_response_code

logger = logging.getLogger(__name__)


def _write(stream: Any, data: bytes) -> None:
    sendall = getattr(stream, "sendall", None)
    if sendall is not None:
        sendall(data)
    else:
        stream.write(data)


def _not_found_page(stream: Any, template_name: str) -> None:
    send_html_response_code(stream, 404, 0)


def _bad_request(stream: Any, template_name: str) -> None:
    send_response_code(stream, 400)


def _log_missing(stream: Any, template_name: str) -> None:
    logger.warning("could not find %s", template_name)


def _serve(
    stream: Any,
    context: AppContext,
    request: str | bytes,
    template_name: str,
    on_missing: Callable[[Any, str], None],
) -> bytes | None:
    """Send a template as an HTML response and return its content."""
    content = open_html_template_page(context, template_name, request)
    if content is None:
        on_missing(stream, template_name)
        return None
    send_html_response_code(stream, 200, len(content))
    _write(stream, content)
    return content


def get_data_page(stream, context, request, template_name):
    """Serve a data page; a missing template gets an HTML 404."""
    return _serve(stream, context, request, template_name, _not_found_page)


def get_home_page(stream, context, request, template_name):
    """Serve the home page; a missing template gets an HTML 404."""
    return _serve(stream, context, request, template_name, _not_found_page)


def get_login_page(stream, context, request, template_name):
    """Serve the login page; nothing is sent when the template is missing."""
    return _serve(stream, context, request, template_name, lambda s, n: None)


def get_new_login_page(stream, context, request, template_name):
    """Serve the sign-up page; a missing template is only logged."""
    return _serve(stream, context, request, template_name, _log_missing)


def get_studio_page(stream, context, request, template_name):
    """Serve the studio page; a missing template is only logged."""
    return _serve(stream, context, request, template_name, _log_missing)


def get_live_html(stream, context, request, template_name):
    """Serve the live studio page; a missing template is only logged."""
    return _serve(stream, context, request, template_name, _log_missing)


def get_recordings_html_page(stream, context, request, template_name):
    """Serve the recordings page; a missing template gets a 400."""
    return _serve(stream, context, request, template_name, _bad_request)


def get_gol_script(stream, context, request, template_name):
    """Serve the game-of-life script; a missing file is only logged."""
    return _serve(stream, context, request, template_name, _log_missing)


def get_web_audio_script(stream, context, request, template_name):
    """Serve the web audio script; a missing file is only logged."""
    return _serve(stream, context, request, template_name, _log_missing)


def get_websocket_script(stream, context, request, template_name):
    """Serve the WebSocket client script; a missing file gets a 400."""
    return _serve(stream, context, request, template_name, _bad_request)


def get_utilities_script(stream, context, request, template_name):
    """Serve the HTML utilities script; a missing file gets a 400."""
    return _serve(stream, context, request, template_name, _bad_request)


def get_data_table_script(stream, context, request, template_name):
    """Serve the data table script; a missing file gets a 400."""
    return _serve(stream, context, request, template_name, _bad_request)