"""Database access and the small encoding helpers that go with it."""

from __future__ import annotations

import base64
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Sequence

import pymysql

_B64_CHARS = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/="
)


class DatabaseError(RuntimeError):
    """A connection or query against the database failed."""


class Database:
    """Runs statements, opening a fresh connection for each one."""

    def __init__(self, connect: Callable[[], Any]):
        self._connect = connect

    @contextmanager
    def _session(self) -> Iterator[Any]:
        try:
            conn = self._connect()
        except pymysql.MySQLError as exc:
            raise DatabaseError(str(exc)) from exc
        try:
            yield conn
        except pymysql.MySQLError as exc:
            raise DatabaseError(str(exc)) from exc
        finally:
            conn.close()

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[tuple]:
        """Run a SELECT and return every row."""
        with self._session() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(sql, params)
                return [tuple(row) for row in cursor.fetchall()]
            finally:
                cursor.close()

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> int:
        """Run a statement that changes data, commit it and return the row count."""
        with self._session() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(sql, params)
                conn.commit()
                return cursor.rowcount
            finally:
                cursor.close()


def connect_to_sql(username: str, password: str, server: str, database: str) -> Any:
    """Open a MySQL connection."""
    try:
        return pymysql.connect(
            host=server, user=username, password=password, database=database
        )
    except pymysql.MySQLError as exc:
        raise DatabaseError(str(exc)) from exc


def encrypt(password: str, key: int) -> str:
    """Shift every character of ``password`` down by ``key``."""
    return "".join(chr(ord(ch) - key) for ch in password)


def decrypt(password: str, key: int) -> str:
    """Shift every character of ``password`` up by ``key``."""
    return "".join(chr(ord(ch) + key) for ch in password)


def b64_encoded_size(inlen: int) -> int:
    """Return the padded base64 length for ``inlen`` input bytes."""
    return (inlen + 2) // 3 * 4


def b64_isvalidchar(c: str) -> bool:
    """Return True when ``c`` belongs to the base64 alphabet or is padding."""
    return c in _B64_CHARS and len(c) == 1


def b64_decoded_size(text: str | None) -> int:
    """Return the number of bytes ``text`` decodes to."""
    if text is None:
        return 0
    size = len(text) // 4 * 3
    padding = len(text) - len(text.rstrip("="))
    return max(size - padding, 0)


def b64_encode(data: bytes) -> str:
    """Encode ``data`` as padded base64."""
    return base64.b64encode(bytes(data)).decode("ascii")


def b64_decode(text: str) -> bytes:
    """Decode padded base64, raising ValueError on malformed input."""
    if len(text) % 4 != 0:
        raise ValueError("base64 text length must be a multiple of 4")
    for ch in text:
        if not b64_isvalidchar(ch):
            raise ValueError(f"invalid base64 character {ch!r}")
    return base64.b64decode(text, validate=True)