# lifeofsounds

A small HTTPS server for an audio studio. It serves HTML pages and scripts
from a templates directory, keeps users, login sessions, recordings, WebSocket
records and client connections in a MySQL database, and relays WebSocket
messages between connected clients.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
lifeofsounds [--port PORT] [--cert CERTFILE] [--key KEYFILE]
```

| Option | Default |
| ------ | ------- |
| `--port` | `9035` |
| `--cert` | `../server/self_signed_cert.crt` |
| `--key` | `../server/privateKey.key` |

The server accepts connections over TLS and prints the login address,
`https://127.0.0.1:9035/life-of-sounds/login` on the default port. It runs
until interrupted.

Each readable client is served one read of up to 5056 bytes at a time:

- A read containing `HTTP/1.1` is parsed as a request and dispatched by
  `lifeofsounds.routing.process_route`. Without a `Sec-WebSocket-Key` header
  the connection is then closed; with one, the client is marked as a
  WebSocket client.
- A read from a WebSocket client is unmasked and sent to every other client as
  a relay frame: one opcode byte, a 4-byte big-endian length and the payload
  (`lifeofsounds.server.encode_relay_frame`).
- A relay frame from any other client has its payload, if shorter than 126
  bytes, sent to every other client as a WebSocket text frame.

The server uses `lifeofsounds.config.default_context()`: files are found
below the storage root `..`, templates in `../templates`, and the database is
MySQL on `localhost`, database `Users`, with the user and password set in
`lifeofsounds.config`.

## Routes

| Method | Route | Purpose |
| ------ | ----- | ------- |
| GET | `/life-of-sounds/login` | login page (`index.html`) |
| POST | `/life-of-sounds/login` | check `username`/`password`, set a `session` cookie |
| GET | `/life-of-sounds/new_login` | sign-up page (`new_login.html`) |
| POST | `/life-of-sounds/user` | create a user (`username`, `password`, `email`) |
| GET | `/life-of-sounds/user` | all users, or one with `?userid=...` or `?username=...` |
| GET | `/life-of-sounds/home`, `/home/studio`, `/home/live_studio`, `/home/data`, `/home/recordings` | pages |
| GET | `/life-of-sounds/home/studio/html_utilities.js`, `/home/studio/websocket.js`, `/home/studio/data_table.js`, `/home/live_studio/web_audio_api.js`, `/life-of-sounds/game_of_life.js` | scripts |
| GET | `/life-of-sounds/session` | all sessions |
| GET | `/life-of-sounds/session/<id>` | the user owning a session |
| DELETE | `/life-of-sounds/session/<id>` | end a session |
| GET | `/life-of-sounds/audio` | all recordings, or a user's with `?userid=...` |
| POST | `/life-of-sounds/audio` | start a recording |
| PATCH | `/life-of-sounds/audio` | end the user's running recording, or rename one by `Id` |
| GET | `/life-of-sounds/audio_blob?Id=...` | download a recording's file |
| GET | `/life-of-sounds/websocket` | WebSocket upgrade handshake |
| DELETE | `/life-of-sounds/websocket?userid=...&sessionid=...` | remove a WebSocket record |

Pages and scripts other than `index.html` and `new_login.html` are served only
to a request whose cookie names a stored session; otherwise `index.html` is
sent instead. Request bodies are read up to their first `}`.

## Using the pieces as a library

```python
from lifeofsounds.frames import generate_websocket_accept_key, encode_text_frame
from lifeofsounds.httputil import get_query_parameter

generate_websocket_accept_key("dGhlIHNhbXBsZSBub25jZQ==")  # 's3pPLMBiTxaQ9kYGzzhZRbK+xOo='
encode_text_frame("hello")                                # b'\x81\x05hello'
get_query_parameter("/life-of-sounds/user?userid=42", "userid")  # '42'
```

Database-backed functions take a `lifeofsounds.sql.Database` as their first
argument. A `Database` opens a fresh connection from the factory it is given
for every statement:

```python
from lifeofsounds.config import AppContext
from lifeofsounds.sql import Database, connect_to_sql
from lifeofsounds.users import create_user, insert_user, validate_login

password = "password"
db = Database(lambda: connect_to_sql("user", password, "localhost", "Users"))
insert_user(db, create_user("alice", password, "alice@example.com"))
validate_login(db, "alice", password)  # LoginResult.VALID

context = AppContext(db=db)  # storage root "..", templates in "../templates"
```

Failures to connect or to run a statement raise `lifeofsounds.sql.DatabaseError`.

`lifeofsounds.routing.process_websocket_route(context, metadata, data)` appends
an audio chunk described by JSON metadata (`type`, `size`, `source`,
`database`, `audioName`, `sessionid`) to
`<storage root>/<database>/<userid>/<source>/<audioName>`.

## What it does not do

- It does not create the database or its tables. They must already exist:
  `user` (id, username, password hash, email, salt), `session` (sessionid,
  userid, login_time), `Audio` (Id, name, starttime, endtime, duration,
  userid, path), `websocket` (userid, sessionid, connected_on, Id, socketId)
  and `ClientConnection` (Id, ip_address, fileDescriptorId, client_type).
- It ships no HTML templates or scripts; the routes above serve whatever is in
  the templates directory.
- The server only relays WebSocket messages; it does not call
  `process_websocket_route`, so audio chunks are not written to disk by the
  running server.
- `PATCH /life-of-sounds/websocket` is accepted but does nothing.
- WebSocket frames with 64-bit payload lengths are not decoded, and a message
  must arrive in a single read.