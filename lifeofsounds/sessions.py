"""Login sessions stored in the ``session`` table."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable

from .sql import Database
from .strings import create_unique_identifier, hash_to_hex


@dataclass
class Session:
    """A logged-in user's session."""

    id: str
    user_id: str | None
    login_time: str | None

    @classmethod
    def from_row(cls, row: tuple) -> "Session":
        return cls(id=row[0], user_id=row[1], login_time=row[2])

    def to_dict(self) -> dict:
        fields = {
            "sessionid": self.id,
            "userid": self.user_id,
            "login_time": self.login_time,
        }
        return {key: value for key, value in fields.items() if value is not None}


def create_session(user_id: str | None, login_time: str | None) -> Session:
    """Return a new session with a random 32-digit hex identifier."""
    return Session(
        id=hash_to_hex(create_unique_identifier()),
        user_id=user_id,
        login_time=login_time,
    )


def insert_session(db: Database, session: Session) -> None:
    """Store ``session``."""
    db.execute(
        "INSERT INTO session VALUES (%s, %s, %s)",
        (session.id, session.user_id, session.login_time),
    )


def get_session(db: Database, session_id: str) -> Session | None:
    """Return the session with ``session_id``, or None when there is none."""
    rows = db.query("SELECT * FROM session WHERE sessionid = %s", (session_id,))
    return Session.from_row(rows[-1]) if rows else None


def delete_session(db: Database, session_id: str) -> None:
    """Remove the session with ``session_id``."""
    db.execute("DELETE FROM session WHERE sessionid = %s", (session_id,))


def convert_sessions_to_json(sessions: Iterable[Session]) -> str:
    """Return a JSON listing with ``total_count`` and ``values``."""
    values = [session.to_dict() for session in sessions]
    return json.dumps({"total_count": len(values), "values": values}, indent="\t")


def get_total_sessions(db: Database) -> int:
    """Return the number of stored sessions."""
    rows = db.query("SELECT COUNT(*) AS total_count FROM session")
    return int(rows[0][0]) if rows else 0


def get_sessions(db: Database) -> str:
    """Return every stored session as a JSON listing."""
    if get_total_sessions(db) == 0:
        return convert_sessions_to_json([])
    rows = db.query("SELECT * FROM session")
    return convert_sessions_to_json(Session.from_row(row) for row in rows)