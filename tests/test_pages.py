import io

import pytest

from lifeofsounds import pages
from lifeofsounds.config import AppContext

INDEX = b"<p>login</p>"
HOME = b"<p>home</p>"


class FakeDB:
    def __init__(self, responses=None):
        self.responses = responses or {}
        self.queries = []

    def query(self, sql, params=None):
        self.queries.append((sql, params))
        for fragment, rows in self.responses.items():
            if fragment in sql:
                return list(rows)
        return []

    def execute(self, sql, params=None):
        return 1


@pytest.fixture
def context(tmp_path):
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "index.html").write_bytes(INDEX)
    (templates / "home.html").write_bytes(HOME)
    db = FakeDB({"FROM session WHERE sessionid": [("abc", "u1", "t")]})
    return AppContext(db=db, root=tmp_path)


def request(cookie=None):
    text = "GET /life-of-sounds/home HTTP/1.1\r\nHost: localhost\r\n"
    if cookie is not None:
        text += f"Cookie: session={cookie}\r\n"
    return text + "\r\n"


def ok_response(content):
    header = (
        "HTTP/1.1 200 OK\r\nContent-Type: text/html\r\nConnection: close\r\n"
        f"Content-Length: {len(content)}\r\n\r\n"
    ).encode("ascii")
    return header + content


ALL_HANDLERS = [
    pages.get_data_page,
    pages.get_home_page,
    pages.get_login_page,
    pages.get_new_login_page,
    pages.get_studio_page,
    pages.get_live_html,
    pages.get_recordings_html_page,
    pages.get_gol_script,
    pages.get_web_audio_script,
    pages.get_websocket_script,
    pages.get_utilities_script,
    pages.get_data_table_script,
]


@pytest.mark.parametrize("handler", ALL_HANDLERS)
def test_every_handler_serves_existing_template(handler, context):
    stream = io.BytesIO()
    result = handler(stream, context, request(), "index.html")
    assert result == INDEX
    assert stream.getvalue() == ok_response(INDEX)


def test_home_with_valid_session_serves_home(context):
    stream = io.BytesIO()
    result = pages.get_home_page(stream, context, request("abc"), "home.html")
    assert result == HOME
    assert stream.getvalue() == ok_response(HOME)


def test_home_without_cookie_falls_back_to_login(context):
    stream = io.BytesIO()
    result = pages.get_home_page(stream, context, request(), "home.html")
    assert result == INDEX
    assert context.db.queries == []


def test_home_with_unknown_session_falls_back_to_login(context):
    stream = io.BytesIO()
    context.db.responses = {}
    result = pages.get_home_page(stream, context, request("zzz"), "home.html")
    assert result == INDEX
    assert stream.getvalue().endswith(INDEX)


@pytest.mark.parametrize("handler", [pages.get_data_page, pages.get_home_page])
def test_missing_template_gives_html_404(handler, context):
    stream = io.BytesIO()
    assert handler(stream, context, request("abc"), "missing.html") is None
    assert stream.getvalue() == (
        b"HTTP/1.1 404 Not Found\r\nContent-Type: text/html\r\nConnection: close\r\n\r\n"
    )


@pytest.mark.parametrize(
    "handler",
    [
        pages.get_recordings_html_page,
        pages.get_websocket_script,
        pages.get_utilities_script,
        pages.get_data_table_script,
    ],
)
def test_missing_script_gives_400(handler, context):
    stream = io.BytesIO()
    assert handler(stream, context, request("abc"), "missing.js") is None
    assert stream.getvalue() == b"HTTP/1.1 400 Bad Request\r\n\r\n"


@pytest.mark.parametrize(
    "handler",
    [
        pages.get_login_page,
        pages.get_new_login_page,
        pages.get_studio_page,
        pages.get_live_html,
        pages.get_gol_script,
        pages.get_web_audio_script,
    ],
)
def test_missing_template_sends_nothing(handler, context):
    stream = io.BytesIO()
    assert handler(stream, context, request("abc"), "missing.html") is None
    assert stream.getvalue() == b""