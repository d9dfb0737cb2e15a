"""User accounts stored in the ``user`` table."""

from __future__ import annotations

import enum
import hmac
import json
from dataclasses import dataclass
from typing import Iterable

from .sql import Database
from .strings import create_unique_identifier, hash_string, hash_to_hex, hex_to_bytes

_SALT_LENGTH = 16
_DIGEST_LENGTH = 32


class LoginResult(enum.IntEnum):
    """Outcome of a login attempt."""

    UNKNOWN_USER = -1
    INVALID = 0
    VALID = 1


@dataclass
class User:
    """A user account; ``password`` and ``salt`` are hex strings."""

    id: str
    fullname: str
    email: str
    password: str = ""
    salt: str = ""

    @classmethod
    def from_row(cls, row: tuple) -> "User":
        salt = row[4] if len(row) > 4 and row[4] is not None else ""
        return cls(id=row[0], fullname=row[1], password=row[2], email=row[3], salt=salt)

    def to_dict(self) -> dict:
        fields = {"Id": self.id, "fullname": self.fullname, "email": self.email}
        return {key: value for key, value in fields.items() if value is not None}


def _salted_hash(password: str, salt: bytes) -> bytes:
    return hash_string(password.encode("utf-8") + salt)


def convert_users_to_json(users: Iterable[User]) -> str:
    """Return a JSON listing with ``total_count`` and ``values``."""
    values = [user.to_dict() for user in users]
    return json.dumps({"total_count": len(values), "values": values}, indent="\t")


def convert_user_to_json(user: User) -> str:
    """Return the public fields of ``user`` as JSON."""
    return json.dumps(user.to_dict(), indent="\t")


def create_user(fullname: str, password: str, email: str) -> User:
    """Return a new user with a random id and a salted SHA-256 password hash."""
    salt = create_unique_identifier()
    return User(
        id=hash_to_hex(create_unique_identifier()),
        fullname=fullname,
        email=email,
        password=hash_to_hex(_salted_hash(password, salt)),
        salt=hash_to_hex(salt),
    )


def get_user_by_name(db: Database, fullname: str) -> User | None:
    """Return the user called ``fullname``, or None."""
    rows = db.query("SELECT * FROM user WHERE username = %s", (fullname,))
    return User.from_row(rows[0]) if rows else None


def insert_user(db: Database, user: User) -> None:
    """Store ``user``."""
    db.execute(
        "INSERT INTO user VALUES (%s, %s, %s, %s, %s)",
        (user.id, user.fullname, user.password, user.email, user.salt),
    )


def validate_login(db: Database, username: str, password: str) -> LoginResult:
    """Check ``password`` against the stored salted hash of ``username``."""
    user = get_user_by_name(db, username)
    if user is None:
        return LoginResult.UNKNOWN_USER
    salt = hex_to_bytes(user.salt, _SALT_LENGTH)
    stored = hex_to_bytes(user.password, _DIGEST_LENGTH)
    if hmac.compare_digest(_salted_hash(password, salt), stored):
        return LoginResult.VALID
    return LoginResult.INVALID


def get_user_by_id(db: Database, userid: str) -> User | None:
    """Return the user with ``userid``, or None."""
    rows = db.query("SELECT * FROM user WHERE user_id = %s", (userid,))
    return User.from_row(rows[0]) if rows else None


def get_total_users(db: Database) -> int:
    """Return the number of stored users."""
    rows = db.query("SELECT COUNT(*) AS total_count FROM user")
    return int(rows[0][0]) if rows else 0


def get_users(db: Database) -> str:
    """Return every user as a JSON listing."""
    if get_total_users(db) == 0:
        return convert_users_to_json([])
    rows = db.query("SELECT * FROM user")
    return convert_users_to_json(User.from_row(row) for row in rows)