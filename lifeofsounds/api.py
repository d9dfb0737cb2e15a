"""Handlers for the JSON and data routes of the application."""

from __future__ import annotations

import json
import os
from typing import Any

from .audio import (
    create_audio,
    get_active_audio_by_userid,
    get_audio,
    get_audio_duration_by_id,
    get_audios,
    get_audios_by_userid,
    insert_audio,
    update_audio_duration,
    update_audio_value,
)
from .config import AppContext
from .files import get_file_contents
from .frames import generate_websocket_accept_key
from .httputil import (
    create_cookie,
    get_header_value,
    get_query_parameter,
    retrieve_request_body,
    send_buffer_response_code,
    send_json_response_code,
    send_response_code,
    set_and_send_cookie,
    switch_to_websocket_protocol,
)
from .jsonvalues import get_string_value_from_json
from .sessions import create_session, delete_session, get_session, get_sessions, insert_session
from .users import (
    LoginResult,
    convert_user_to_json,
    create_user,
    get_user_by_id,
    get_user_by_name,
    get_users,
    insert_user,
    validate_login,
    validate_login as _validate_login,
)
from .websockets import delete_websocket_by_sessionid, update_websocket

_SESSION_MARKER = "session/"
_COOKIE_PATH = "/life-of-sounds/"


def _session_id_from_route(route: str) -> str | None:
    """Return what follows ``session/`` in the route, or None when absent."""
    start = route.find(_SESSION_MARKER)
    if start < 0:
        return None
    return route[start + len(_SESSION_MARKER):]


def _recording_path(userid: str, name: str) -> str:
    return "/".join(("users", userid, "recordings", f"{name}.webm"))


def delete_websocket(stream: Any, context: AppContext, route: str, request: Any) -> None:
    """Remove the WebSocket of the session named in the query string."""
    userid = get_query_parameter(route, "userid")
    sessionid = get_query_parameter(route, "sessionid")
    if userid is not None and sessionid is not None:
        delete_websocket_by_sessionid(context.db, sessionid, userid)
        send_response_code(stream, 200)
    else:
        send_response_code(stream, 400)


def delete_sessioninfo(stream: Any, context: AppContext, route: str, request: Any) -> None:
    """Delete the session whose id ends the route."""
    session_id = _session_id_from_route(route)
    if not session_id:
        send_response_code(stream, 400)
        return
    session = get_session(context.db, session_id)
    if session is None:
        send_response_code(stream, 400)
        return
    delete_session(context.db, session.id)
    send_response_code(stream, 200)


def retrieve_audio(stream: Any, context: AppContext, route: str, request: Any) -> None:
    """Send the recordings of a user, or all recordings for the bare route."""
    userid = get_query_parameter(route, "userid")
    if userid is not None:
        send_json_response_code(stream, 200, get_audios_by_userid(context.db, userid))
    elif route == "/life-of-sounds/audio":
        send_json_response_code(stream, 200, get_audios(context.db))
    else:
        send_response_code(stream, 400)


def get_audio_blob(stream: Any, context: AppContext, route: str, request: Any) -> None:
    """Send the stored file of the recording named by the ``Id`` parameter."""
    audio_id = get_query_parameter(route, "Id")
    if audio_id is None:
        send_response_code(stream, 400)
        return
    audio = get_audio(context.db, audio_id)
    if audio is None or audio.path is None:
        send_response_code(stream, 400)
        return
    try:
        content = get_file_contents(context.storage_path(audio.path))
    except OSError:
        send_response_code(stream, 400)
        return
    send_buffer_response_code(stream, 200, content)


def get_sessioninfo(stream: Any, context: AppContext, route: str, request: Any) -> None:
    """Send all sessions, or the user owning the session named in the route."""
    session_id = _session_id_from_route(route)
    if not session_id:
        send_json_response_code(stream, 200, get_sessions(context.db))
        return
    session = get_session(context.db, session_id)
    if session is None:
        send_response_code(stream, 404)
        return
    user = get_user_by_id(context.db, session.user_id)
    user_json = convert_user_to_json(user) if user is not None else json.dumps({})
    send_json_response_code(stream, 200, user_json)


def get_user(stream: Any, context: AppContext, route: str, request: Any) -> None:
    """Send one user by ``userid`` or ``username``, or every user for the bare route.

    Nothing is sent when the requested user does not exist.
    """
    userid = get_query_parameter(route, "userid")
    username = get_query_parameter(route, "username")
    if userid is not None:
        user = get_user_by_id(context.db, userid)
        if user is not None:
            send_json_response_code(stream, 200, convert_user_to_json(user))
    elif username is not None:
        user = get_user_by_name(context.db, username)
        if user is not None:
            send_json_response_code(stream, 200, convert_user_to_json(user))
    elif route != "/life-of-sounds/user":
        send_response_code(stream, 400)
    else:
        send_json_response_code(stream, 200, get_users(context.db))


def get_websocket_protocol(stream: Any, context: AppContext, route: str, request: Any) -> bool:
    """Answer a WebSocket upgrade request; return True when the handshake was sent."""
    key = get_header_value(request, "Sec-WebSocket-Key")
    if not key:
        return False
    sent = switch_to_websocket_protocol(stream, generate_websocket_accept_key(key))
    if sent <= 0:
        send_response_code(stream, 400)
        return False
    return True


def update_audio_info(stream: Any, context: AppContext, route: str, request: Any) -> bool:
    """Finish the user's active recording, or rename a recording by ``Id``.

    Returns False when the request carries no body.
    """
    body = retrieve_request_body(request)
    if body is None:
        send_response_code(stream, 400)
        return False
    audio_id = get_string_value_from_json("Id", body)
    name = get_string_value_from_json("name", body)
    userid = get_string_value_from_json("userid", body)
    endtime = get_string_value_from_json("endtime", body)
    db = context.db

    if audio_id is None:
        active = get_active_audio_by_userid(db, userid)
        if active is None:
            send_response_code(stream, 400)
            return True
        update_audio_value(db, active.id, "endtime", endtime)
        seconds = get_audio_duration_by_id(db, active.id)
        update_audio_duration(db, active.id, "duration", seconds / 60.0)
        send_response_code(stream, 200)
        return True

    audio = get_audio(db, audio_id)
    if audio is None or name is None:
        send_response_code(stream, 400)
        return True
    update_audio_value(db, audio.id, "name", name)
    old_path = _recording_path(audio.userid, audio.name)
    new_path = _recording_path(audio.userid, name)
    try:
        os.rename(context.storage_path(old_path), context.storage_path(new_path))
    except OSError:
        send_response_code(stream, 400)
        return True
    update_audio_value(db, audio.id, "path", new_path)
    send_response_code(stream, 200)
    return True


def update_websocket_info(stream: Any, context: AppContext, route: str, request: Any) -> bool:
    """Record the id and connection time of a session's WebSocket."""
    body = retrieve_request_body(request)
    userid = get_string_value_from_json("userid", body)
    websocket_id = get_string_value_from_json("Id", body)
    sessionid = get_string_value_from_json("sessionid", body)
    connected_on = get_string_value_from_json("connected_on", body)
    if update_websocket(context.db, websocket_id, userid, sessionid, connected_on):
        send_response_code(stream, 200)
        return True
    send_response_code(stream, 400)
    return False


def login(stream: Any, context: AppContext, request: Any) -> LoginResult | None:
    """Check the posted credentials and open a session on success.

    Returns None when the body lacks a username or password.
    """
    body = retrieve_request_body(request)
    username = get_string_value_from_json("username", body)
    password = get_string_value_from_json("password", body)
    login_time = get_string_value_from_json("login_time", body)
    if username is None or password is None:
        send_response_code(stream, 400)
        return None
    result = _validate_login(context.db, username, password)
    if result is LoginResult.VALID:
        user = get_user_by_name(context.db, username)
        session = create_session(user.id, login_time)
        cookie = create_cookie(_COOKIE_PATH, "session", session.id)
        insert_session(context.db, session)
        set_and_send_cookie(stream, cookie)
        send_response_code(stream, 200)
    elif result is LoginResult.UNKNOWN_USER:
        send_response_code(stream, 404)
    else:
        send_response_code(stream, 401)
    return result


def create_new_user(stream: Any, context: AppContext, request: Any) -> bool:
    """Create the posted user unless the name is taken."""
    body = retrieve_request_body(request)
    username = get_string_value_from_json("username", body)
    password = get_string_value_from_json("password", body)
    if username is None or password is None:
        send_response_code(stream, 400)
        return False
    if get_user_by_name(context.db, username) is not None:
        send_response_code(stream, 405)
        return False
    email = get_string_value_from_json("email", body)
    insert_user(context.db, create_user(username, password, email))
    send_response_code(stream, 201)
    return True


def create_new_audio(stream: Any, context: AppContext, request: Any) -> None:
    """Store a new, still running recording described by the posted body."""
    body = retrieve_request_body(request)
    audio = create_audio(
        get_string_value_from_json("audioId", body),
        get_string_value_from_json("audioName", body),
        get_string_value_from_json("path", body),
        get_string_value_from_json("starttime", body),
        get_string_value_from_json("userid", body),
        None,
        0.0,
    )
    insert_audio(context.db, audio)
    send_response_code(stream, 200)


__all__ = [
    "delete_websocket",
    "delete_sessioninfo",
    "retrieve_audio",
    "get_audio_blob",
    "get_sessioninfo",
    "get_user",
    "get_websocket_protocol",
    "update_audio_info",
    "update_websocket_info",
    "login",
    "create_new_user",
    "create_new_audio",
    "validate_login",
]