"""HTTP request parsing and response writing helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from .config import AppContext
from .frames import encode_text_frame
from .sessions import get_session
from .strings import replace

_HEADER_VALUE_MAX = 63
_COOKIE_LENGTH = 32

_STATUS_TEXT = {
    200: "200 OK",
    201: "201 Created",
    400: "400 Bad Request",
    401: "401 Unauthorized",
    404: "404 Not Found",
    405: "405 Not Allowed",
    409: "409 Conflict",
}

_PLAIN_CODES = frozenset({200, 201, 400, 401, 404, 405, 409})
_JSON_CODES = frozenset({200, 201, 401, 404, 405, 409})


def _text(request: str | bytes) -> str:
    if isinstance(request, (bytes, bytearray)):
        return bytes(request).decode("latin-1")
    return request


def _send(stream: Any, data: bytes) -> None:
    """Write ``data`` to a socket (``sendall``) or a binary file (``write``)."""
    sendall = getattr(stream, "sendall", None)
    if sendall is not None:
        sendall(data)
    else:
        stream.write(data)


def _unsupported(code: int) -> ValueError:
    return ValueError(f"unsupported status code {code}")


def retrieve_request_body(request: str | bytes) -> str | None:
    """Return the body up to and including its first ``}``, or None."""
    text = _text(request)
    head_end = text.find("\r\n\r\n")
    if head_end < 0:
        return None
    body = text[head_end + 4 :]
    end = body.find("}")
    if end < 0:
        return None
    return body[: end + 1]


def create_cookie(path: str, key: str, value: str) -> str:
    """Return a Set-Cookie value for ``key=value`` limited to ``path``."""
    return f"{key}={value};Path={path};Secure;"


def get_cookie(request: str | bytes) -> str | None:
    """Return the value of the first cookie in the request, at most 32 characters."""
    text = _text(request)
    start = text.find("Cookie: ")
    if start < 0:
        return None
    equals = text.find("=", start)
    if equals < 0:
        return None
    value = text[equals + 1 : equals + 1 + _COOKIE_LENGTH]
    for stop in ("\r", "\n", ";"):
        value = value.split(stop, 1)[0]
    return value


def get_file_buffer(filename: str | os.PathLike[str]) -> bytes | None:
    """Return the content of ``filename``, or None when it cannot be read."""
    try:
        return Path(filename).read_bytes()
    except OSError:
        return None


def open_html_template_page(
    context: AppContext, template_name: str, request: str | bytes
) -> bytes | None:
    """Return a template, falling back to the login page without a valid session."""
    cookie = get_cookie(request)
    if "new_login.html" in template_name or "index.html" in template_name:
        name = template_name
    elif cookie is None or get_session(context.db, cookie) is None:
        name = "index.html"
    else:
        name = template_name
    return get_file_buffer(context.template_path(name))


def set_and_send_cookie(stream: Any, cookie: str) -> None:
    """Send a 200 response that sets ``cookie``."""
    _send(stream, f"HTTP/1.1 200 OK\r\nSet-Cookie: {cookie}\r\n\r\n".encode("latin-1"))


def send_response_code(stream: Any, code: int) -> None:
    """Send a bare status line with no headers and no body."""
    if code not in _PLAIN_CODES:
        raise _unsupported(code)
    _send(stream, f"HTTP/1.1 {_STATUS_TEXT[code]}\r\n\r\n".encode("ascii"))


def get_header_value(request: str | bytes, key: str) -> str:
    """Return the value after ``key`` up to the end of its line, or an empty string."""
    text = _text(request)
    start = text.find(key)
    if start < 0:
        return ""
    start += len(key)
    while start < len(text) and text[start] in " :":
        start += 1
    end = text.find("\r\n", start)
    if end < 0:
        return ""
    return text[start:end][:_HEADER_VALUE_MAX]


def switch_to_websocket_protocol(stream: Any, accept_key: str) -> int:
    """Send the 101 handshake response and return the number of bytes sent."""
    header = (
        "HTTP/1.1 101 Switching Protocols\r\n"
        "Upgrade: websocket\r\n"
        "Connection: Upgrade\r\n"
        f"Sec-WebSocket-Accept: {accept_key}\r\n"
        "Access-Control-Allow-Origin: *\r\n"
        "\r\n"
    ).encode("latin-1")
    _send(stream, header)
    return len(header)


def send_buffer_response_code(stream: Any, code: int, buffer: bytes) -> None:
    """Send binary content as an octet stream."""
    if code != 200:
        raise _unsupported(code)
    data = bytes(buffer)
    header = (
        f"HTTP/1.1 {_STATUS_TEXT[code]}\r\n"
        "Content-Type:  application/octet-stream\r\n"
        "Connection: close\r\n"
        f"Content-Length: {len(data)}\r\n"
        "\r\n"
    ).encode("ascii")
    _send(stream, header)
    _send(stream, data)


def send_html_response_code(stream: Any, code: int, content_length: int) -> None:
    """Send the header of an HTML response; the 404 form carries no length."""
    if code == 200:
        header = (
            "HTTP/1.1 200 OK\r\n"
            "Content-Type: text/html\r\n"
            "Connection: close\r\n"
            f"Content-Length: {content_length}\r\n"
            "\r\n"
        )
    elif code == 404:
        header = (
            "HTTP/1.1 404 Not Found\r\n"
            "Content-Type: text/html\r\n"
            "Connection: close\r\n"
            "\r\n"
        )
    else:
        raise _unsupported(code)
    _send(stream, header.encode("ascii"))


def _query_pairs(route: str) -> list[tuple[str, str]] | None:
    mark = route.find("?")
    if mark < 0:
        return None
    query = route[mark + 1 :].split("?", 1)[0]
    if not query:
        return None
    pairs = []
    for token in query.split("&"):
        if not token and pairs:
            continue
        if "=" not in token:
            return None
        name, value = token.split("=", 1)
        value = replace(value, "%27", "")
        value = replace(value, "%20", "")
        pairs.append((name, value))
    return pairs


def get_query_parameter(route: str, param: str) -> str | None:
    """Return the first query parameter named ``param``, ignoring case.

    Quotes and spaces encoded as ``%27`` and ``%20`` are removed from the value.
    A parameter without ``=`` makes the whole query unreadable.
    """
    pairs = _query_pairs(_text(route))
    if pairs is None:
        return None
    wanted = param.casefold()
    for name, value in pairs:
        if name.casefold() == wanted:
            return value
    return None


def send_json_response_code(stream: Any, code: int, json_text: str) -> None:
    """Send a JSON body with the given status code."""
    if code not in _JSON_CODES:
        raise _unsupported(code)
    body = json_text.encode("utf-8")
    content_type = "Content-Type: text/json\r\n" if code == 200 else ""
    header = (
        f"HTTP/1.1 {_STATUS_TEXT[code]}\r\n"
        f"{content_type}"
        f"Content-Length: {len(body)}\r\n"
        "\r\n"
    ).encode("ascii")
    _send(stream, header)
    _send(stream, body)


def get_route(request: str | bytes) -> str:
    """Return the path of a ``GET`` request line."""
    text = _text(request)
    rest = text[4:]
    end = rest.find(" ")
    if end < 0:
        raise ValueError("request line has no route")
    return rest[:end]


def send_websocket_buffer(stream: Any, text: str | bytes) -> None:
    """Send ``text`` as a single WebSocket text frame."""
    _send(stream, encode_text_frame(text))