"""Client connections stored in the ``ClientConnection`` table."""

from __future__ import annotations

from dataclasses import dataclass

from .sql import Database
from .strings import create_unique_identifier, hash_to_hex

_COLUMNS = frozenset({"Id", "ip_address", "fileDescriptorId", "client_type"})


@dataclass
class ClientConnection:
    """A socket connected to the server."""

    id: str
    ip_address: str
    fd: int
    client_type: str | None = None

    @classmethod
    def from_row(cls, row: tuple) -> "ClientConnection":
        client_type = row[3] if len(row) > 3 else None
        return cls(id=row[0], ip_address=row[1], fd=int(row[2]), client_type=client_type)


def create_client_connection(ip_address: str, fd: int) -> ClientConnection:
    """Return a new connection record with a random 32-digit hex identifier."""
    return ClientConnection(
        id=hash_to_hex(create_unique_identifier()), ip_address=ip_address, fd=fd
    )


def update_client_connection_value(
    db: Database, connection_id: str, column_name: str, new_value: str | None
) -> None:
    """Set one column of a stored connection."""
    if column_name not in _COLUMNS:
        raise ValueError(f"unknown ClientConnection column {column_name!r}")
    db.execute(
        f"UPDATE ClientConnection SET {column_name} = %s WHERE Id = %s",
        (new_value, connection_id),
    )


def insert_client_connection(db: Database, connection: ClientConnection) -> None:
    """Store ``connection``."""
    db.execute(
        "INSERT INTO ClientConnection VALUES (%s, %s, %s, %s)",
        (connection.id, connection.ip_address, connection.fd, connection.client_type),
    )


def delete_connection_by_fd(db: Database, fd: int) -> None:
    """Remove the connection recorded for socket ``fd``."""
    db.execute("DELETE FROM ClientConnection WHERE fileDescriptorId = %s", (fd,))


def get_total_connections(db: Database) -> int:
    """Return the number of stored connections."""
    rows = db.query("SELECT COUNT(*) AS total_count FROM ClientConnection")
    return int(rows[0][0]) if rows else 0


def get_client_connection_by_fd(db: Database, fd: int) -> ClientConnection | None:
    """Return the connection recorded for socket ``fd``, or None."""
    rows = db.query(
        "SELECT * FROM ClientConnection WHERE fileDescriptorId = %s", (fd,)
    )
    return ClientConnection.from_row(rows[-1]) if rows else None


def get_client_connections(db: Database) -> list[ClientConnection]:
    """Return every stored connection."""
    rows = db.query("SELECT * FROM ClientConnection")
    return [ClientConnection.from_row(row) for row in rows]