import io
import json

import pytest

from lifeofsounds import api
from lifeofsounds.config import AppContext
from lifeofsounds.users import LoginResult, create_user

OK = b"HTTP/1.1 200 OK\r\n\r\n"
BAD = b"HTTP/1.1 400 Bad Request\r\n\r\n"


class FakeDB:
    def __init__(self, responses=None):
        self.responses = responses or {}
        self.queries = []
        self.executed = []

    def query(self, sql, params=None):
        self.queries.append((sql, params))
        for fragment, rows in self.responses.items():
            if fragment in sql:
                return list(rows)
        return []

    def execute(self, sql, params=None):
        self.executed.append((sql, params))
        return 1


def make_context(tmp_path, responses=None):
    return AppContext(db=FakeDB(responses), root=tmp_path)


def make_request(method, route, body="", headers=""):
    return f"{method} {route} HTTP/1.1\r\nHost: localhost\r\n{headers}\r\n{body}"


def json_body(stream):
    return json.loads(stream.getvalue().split(b"\r\n\r\n", 1)[1])


AUDIO_ROW = ("a1", "old", "t0", None, 0.0, "u1", "users/u1/recordings/old.webm")


def test_delete_websocket_with_both_parameters(tmp_path):
    context = make_context(tmp_path)
    stream = io.BytesIO()
    route = "/life-of-sounds/websocket?userid=u1&sessionid=s1"
    api.delete_websocket(stream, context, route, "")
    assert stream.getvalue() == OK
    assert context.db.executed[0][1] == ("s1", "u1")


def test_delete_websocket_missing_parameter(tmp_path):
    context = make_context(tmp_path)
    stream = io.BytesIO()
    api.delete_websocket(stream, context, "/life-of-sounds/websocket?userid=u1", "")
    assert stream.getvalue() == BAD
    assert context.db.executed == []


def test_delete_sessioninfo_without_id(tmp_path):
    context = make_context(tmp_path)
    stream = io.BytesIO()
    api.delete_sessioninfo(stream, context, "/life-of-sounds/session/", "")
    assert stream.getvalue() == BAD


def test_delete_sessioninfo_existing(tmp_path):
    context = make_context(tmp_path, {"FROM session WHERE": [("abc", "u1", "t")]})
    stream = io.BytesIO()
    api.delete_sessioninfo(stream, context, "/life-of-sounds/session/abc", "")
    assert stream.getvalue() == OK
    assert context.db.executed[0][1] == ("abc",)


def test_delete_sessioninfo_unknown(tmp_path):
    context = make_context(tmp_path)
    stream = io.BytesIO()
    api.delete_sessioninfo(stream, context, "/life-of-sounds/session/abc", "")
    assert stream.getvalue() == BAD
    assert context.db.executed == []


def test_retrieve_audio_by_user(tmp_path):
    context = make_context(
        tmp_path,
        {"COUNT(*)": [(1,)], "SELECT * FROM Audio WHERE userid": [AUDIO_ROW]},
    )
    stream = io.BytesIO()
    api.retrieve_audio(stream, context, "/life-of-sounds/audio?userid=u1", "")
    listing = json_body(stream)
    assert listing["total_count"] == 1
    assert listing["values"][0]["Id"] == "a1"


def test_retrieve_all_audio_when_empty(tmp_path):
    context = make_context(tmp_path, {"COUNT(*)": [(0,)]})
    stream = io.BytesIO()
    api.retrieve_audio(stream, context, "/life-of-sounds/audio", "")
    assert json_body(stream) == {"total_count": 0, "values": []}


def test_retrieve_audio_bad_route(tmp_path):
    stream = io.BytesIO()
    api.retrieve_audio(stream, make_context(tmp_path), "/life-of-sounds/audio?x", "")
    assert stream.getvalue() == BAD


def test_get_audio_blob_sends_file(tmp_path):
    target = tmp_path / "users" / "u1" / "recordings"
    target.mkdir(parents=True)
    (target / "old.webm").write_bytes(b"\x1a\x45\xdf\xa3")
    context = make_context(tmp_path, {"FROM Audio WHERE Id": [AUDIO_ROW]})
    stream = io.BytesIO()
    api.get_audio_blob(stream, context, "/life-of-sounds/audio_blob?Id=a1", "")
    data = stream.getvalue()
    assert data.startswith(b"HTTP/1.1 200 OK\r\n")
    assert b"Content-Length: 4\r\n" in data
    assert data.endswith(b"\r\n\r\n\x1a\x45\xdf\xa3")


@pytest.mark.parametrize(
    "route, responses",
    [
        ("/life-of-sounds/audio_blob", {}),
        ("/life-of-sounds/audio_blob?Id=a1", {}),
        ("/life-of-sounds/audio_blob?Id=a1", {"FROM Audio WHERE Id": [AUDIO_ROW]}),
    ],
)
def test_get_audio_blob_failures(tmp_path, route, responses):
    stream = io.BytesIO()
    api.get_audio_blob(stream, make_context(tmp_path, responses), route, "")
    assert stream.getvalue() == BAD


def test_get_sessioninfo_lists_sessions(tmp_path):
    context = make_context(
        tmp_path,
        {"COUNT(*)": [(1,)], "SELECT * FROM session": [("abc", "u1", "t")]},
    )
    stream = io.BytesIO()
    api.get_sessioninfo(stream, context, "/life-of-sounds/session", "")
    listing = json_body(stream)
    assert listing["values"] == [{"sessionid": "abc", "userid": "u1", "login_time": "t"}]


def test_get_sessioninfo_returns_owner(tmp_path):
    context = make_context(
        tmp_path,
        {
            "FROM session WHERE": [("abc", "u1", "t")],
            "FROM user WHERE user_id": [("u1", "alice", "ff", "alice@example.com")],
        },
    )
    stream = io.BytesIO()
    api.get_sessioninfo(stream, context, "/life-of-sounds/session/abc", "")
    assert json_body(stream) == {"Id": "u1", "fullname": "alice", "email": "alice@example.com"}


def test_get_sessioninfo_unknown(tmp_path):
    stream = io.BytesIO()
    api.get_sessioninfo(stream, make_context(tmp_path), "/life-of-sounds/session/abc", "")
    assert stream.getvalue() == b"HTTP/1.1 404 Not Found\r\n\r\n"


def test_get_user_by_id(tmp_path):
    context = make_context(
        tmp_path, {"FROM user WHERE user_id": [("u1", "alice", "ff", "alice@example.com")]}
    )
    stream = io.BytesIO()
    api.get_user(stream, context, "/life-of-sounds/user?userid=u1", "")
    assert json_body(stream)["fullname"] == "alice"


def test_get_user_unknown_sends_nothing(tmp_path):
    stream = io.BytesIO()
    api.get_user(stream, make_context(tmp_path), "/life-of-sounds/user?username=bob", "")
    assert stream.getvalue() == b""


def test_get_user_bad_route(tmp_path):
    stream = io.BytesIO()
    api.get_user(stream, make_context(tmp_path), "/life-of-sounds/users", "")
    assert stream.getvalue() == BAD


def test_get_user_lists_all(tmp_path):
    context = make_context(tmp_path, {"COUNT(*)": [(0,)]})
    stream = io.BytesIO()
    api.get_user(stream, context, "/life-of-sounds/user", "")
    assert json_body(stream) == {"total_count": 0, "values": []}


def test_websocket_handshake(tmp_path):
    stream = io.BytesIO()
    request = make_request(
        "GET", "/life-of-sounds/websocket", headers="Sec-WebSocket-Key: dGhlIHNhbXBsZSBub25jZQ==\r\n"
    )
    assert api.get_websocket_protocol(stream, make_context(tmp_path), "", request) is True
    data = stream.getvalue()
    assert data.startswith(b"HTTP/1.1 101 Switching Protocols\r\n")
    assert b"Sec-WebSocket-Accept: s3pPLMBiTxaQ9kYGzzhZRbK+xOo=\r\n" in data


def test_websocket_handshake_without_key(tmp_path):
    stream = io.BytesIO()
    request = make_request("GET", "/life-of-sounds/websocket")
    assert api.get_websocket_protocol(stream, make_context(tmp_path), "", request) is False
    assert stream.getvalue() == b""


def test_update_audio_without_body(tmp_path):
    stream = io.BytesIO()
    request = make_request("PATCH", "/life-of-sounds/audio")
    assert api.update_audio_info(stream, make_context(tmp_path), "", request) is False
    assert stream.getvalue() == BAD


def test_update_audio_finishes_active_recording(tmp_path):
    context = make_context(
        tmp_path,
        {"endtime IS NULL": [AUDIO_ROW], "TIMESTAMPDIFF": [(120,)]},
    )
    stream = io.BytesIO()
    request = make_request("PATCH", "/life-of-sounds/audio", '{"userid": "u1", "endtime": "t1"}')
    assert api.update_audio_info(stream, context, "", request) is True
    assert stream.getvalue() == OK
    assert context.db.executed[0][1] == ("t1", "a1")
    assert context.db.executed[1][1] == (pytest.approx(2.0), "a1")


def test_update_audio_renames_file(tmp_path):
    target = tmp_path / "users" / "u1" / "recordings"
    target.mkdir(parents=True)
    (target / "old.webm").write_bytes(b"data")
    context = make_context(tmp_path, {"FROM Audio WHERE Id": [AUDIO_ROW]})
    stream = io.BytesIO()
    request = make_request("PATCH", "/life-of-sounds/audio", '{"Id": "a1", "name": "new"}')
    api.update_audio_info(stream, context, "", request)
    assert stream.getvalue() == OK
    assert (target / "new.webm").read_bytes() == b"data"
    assert not (target / "old.webm").exists()
    assert context.db.executed[-1][1] == ("users/u1/recordings/new.webm", "a1")


def test_update_audio_rename_failure(tmp_path):
    context = make_context(tmp_path, {"FROM Audio WHERE Id": [AUDIO_ROW]})
    stream = io.BytesIO()
    request = make_request("PATCH", "/life-of-sounds/audio", '{"Id": "a1", "name": "new"}')
    api.update_audio_info(stream, context, "", request)
    assert stream.getvalue() == BAD
    assert len(context.db.executed) == 1


def test_update_unknown_audio(tmp_path):
    context = make_context(tmp_path)
    stream = io.BytesIO()
    request = make_request("PATCH", "/life-of-sounds/audio", '{"Id": "a1", "name": "new"}')
    api.update_audio_info(stream, context, "", request)
    assert stream.getvalue() == BAD
    assert context.db.executed == []


def test_update_websocket_info(tmp_path):
    context = make_context(tmp_path)
    stream = io.BytesIO()
    body = '{"userid": "u1", "Id": "w1", "sessionid": "s1", "connected_on": "t"}'
    request = make_request("PATCH", "/life-of-sounds/websocket", body)
    assert api.update_websocket_info(stream, context, "", request) is True
    assert stream.getvalue() == OK
    assert [params for _, params in context.db.executed] == [("w1", "u1", "s1"), ("t", "u1", "s1")]


@pytest.fixture
def account_context(tmp_path):
    password = "password"
    user = create_user("alice", password, "alice@example.com")
    row = (user.id, user.fullname, user.password, user.email, user.salt)
    return make_context(tmp_path, {"FROM user WHERE username": [row]}), user


def test_login_valid(account_context):
    context, user = account_context
    stream = io.BytesIO()
    body = '{"username": "alice", "password": "password", "login_time": "t"}'
    result = api.login(stream, context, make_request("POST", "/life-of-sounds/login", body))
    assert result is LoginResult.VALID
    data = stream.getvalue()
    assert data.startswith(b"HTTP/1.1 200 OK\r\nSet-Cookie: session=")
    assert b";Path=/life-of-sounds/;Secure;" in data
    assert data.endswith(OK)
    session_params = context.db.executed[0][1]
    assert session_params[1:] == (user.id, "t")
    assert session_params[0].encode() in data


def test_login_wrong_password(account_context):
    context, _ = account_context
    stream = io.BytesIO()
    body = '{"username": "alice", "password": "secret"}'
    result = api.login(stream, context, make_request("POST", "/life-of-sounds/login", body))
    assert result is LoginResult.INVALID
    assert stream.getvalue() == b"HTTP/1.1 401 Unauthorized\r\n\r\n"


def test_login_unknown_user(tmp_path):
    stream = io.BytesIO()
    body = '{"username": "bob", "password": "password"}'
    result = api.login(stream, make_context(tmp_path), make_request("POST", "/", body))
    assert result is LoginResult.UNKNOWN_USER
    assert stream.getvalue() == b"HTTP/1.1 404 Not Found\r\n\r\n"


def test_create_new_user(tmp_path):
    context = make_context(tmp_path)
    stream = io.BytesIO()
    body = '{"username": "bob", "password": "password", "email": "bob@example.com"}'
    assert api.create_new_user(stream, context, make_request("POST", "/", body)) is True
    assert stream.getvalue() == b"HTTP/1.1 201 Created\r\n\r\n"
    params = context.db.executed[0][1]
    assert (params[1], params[3]) == ("bob", "bob@example.com")


def test_create_existing_user(account_context):
    context, _ = account_context
    stream = io.BytesIO()
    body = '{"username": "alice", "password": "password", "email": "alice@example.com"}'
    assert api.create_new_user(stream, context, make_request("POST", "/", body)) is False
    assert stream.getvalue() == b"HTTP/1.1 405 Not Allowed\r\n\r\n"
    assert context.db.executed == []


def test_create_new_audio(tmp_path):
    context = make_context(tmp_path)
    stream = io.BytesIO()
    body = (
        '{"starttime": "t0", "userid": "u1", "audioName": "take", '
        '"audioId": "a9", "path": "users/u1/recordings/take.webm"}'
    )
    api.create_new_audio(stream, context, make_request("POST", "/life-of-sounds/audio", body))
    assert stream.getvalue() == OK
    assert context.db.executed[0][1] == (
        "a9", "take", "t0", None, 0.0, "u1", "users/u1/recordings/take.webm",
    )