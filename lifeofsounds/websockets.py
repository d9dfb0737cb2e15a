"""WebSocket client records stored in the ``websocket`` table."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable

from .sql import Database


@dataclass
class Websocket:
    """A WebSocket connection tied to a user's session."""

    userid: str | None
    sessionid: str | None
    socket_id: int
    id: str | None = None
    connected_on: str | None = None

    @classmethod
    def from_row(cls, row: tuple) -> "Websocket":
        return cls(
            userid=row[0],
            sessionid=row[1],
            connected_on=row[2],
            id=row[3],
            socket_id=int(row[4]),
        )

    def to_dict(self) -> dict:
        fields = {
            "Id": self.id,
            "userid": self.userid,
            "sessionid": self.sessionid,
            "connected_on": self.connected_on,
            "socketId": self.socket_id,
        }
        return {key: value for key, value in fields.items() if value is not None}


def create_websocket(userid: str | None, sessionid: str | None, socket_id: int) -> Websocket:
    """Return a new, not yet identified WebSocket record."""
    return Websocket(userid=userid, sessionid=sessionid, socket_id=socket_id)


def insert_websocket_session(db: Database, websocket: Websocket) -> None:
    """Store ``websocket`` without id or connection time."""
    db.execute(
        "INSERT INTO websocket VALUES (%s, %s, NULL, NULL, %s)",
        (websocket.userid, websocket.sessionid, websocket.socket_id),
    )


def update_websocket(
    db: Database,
    websocket_id: str,
    userid: str,
    sessionid: str,
    connected_on: str,
) -> bool:
    """Set the id and connection time of the user's session WebSocket."""
    db.execute(
        "UPDATE websocket SET Id = %s WHERE userid = %s AND sessionid = %s",
        (websocket_id, userid, sessionid),
    )
    db.execute(
        "UPDATE websocket SET connected_on = %s WHERE userid = %s AND sessionid = %s",
        (connected_on, userid, sessionid),
    )
    return True


def is_active_websocket_client(db: Database, fd: int) -> bool:
    """Return True when a WebSocket is recorded for socket ``fd``."""
    rows = db.query("SELECT socketId FROM websocket WHERE socketId = %s", (fd,))
    return bool(rows)


def get_total_websockets(db: Database) -> int:
    """Return the number of stored WebSockets."""
    rows = db.query("SELECT COUNT(*) AS total_count FROM websocket")
    return int(rows[0][0]) if rows else 0


def convert_websockets_to_json(websockets: Iterable[Websocket]) -> str:
    """Return a JSON listing with ``total_count`` and ``values``."""
    values = [websocket.to_dict() for websocket in websockets]
    return json.dumps({"total_count": len(values), "values": values}, indent="\t")


def convert_websocket_to_json(websocket: Websocket) -> str:
    """Return ``websocket`` as JSON."""
    return json.dumps(websocket.to_dict(), indent="\t")


def get_websockets(db: Database) -> str:
    """Return every stored WebSocket as a JSON listing."""
    if get_total_websockets(db) == 0:
        return convert_websockets_to_json([])
    rows = db.query("SELECT * FROM websocket")
    return convert_websockets_to_json(Websocket.from_row(row) for row in rows)


def delete_websocket_by_fd(db: Database, fd: int) -> None:
    """Remove the WebSocket recorded for socket ``fd``."""
    db.execute("DELETE FROM websocket WHERE socketId = %s", (fd,))


def delete_websocket_by_sessionid(db: Database, sessionid: str, userid: str) -> None:
    """Remove the WebSocket of a user's session."""
    db.execute(
        "DELETE FROM websocket WHERE sessionid = %s AND userid = %s",
        (sessionid, userid),
    )