"""Application context: database access and on-disk locations."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .sql import Database, connect_to_sql

DB_USER = "testUser"
PASSWORD = "password"
DB_HOST = "localhost"
DB_NAME = "Users"


@dataclass
class AppContext:
    """Everything a request handler needs besides the request itself."""

    db: Database
    root: Path = field(default_factory=lambda: Path(".."))
    templates_dir: str = "templates"

    def storage_path(self, *args: str) -> Path:
        """Return a path below the storage root."""
        return self.root.joinpath(*args)

    def template_path(self, template_name: str) -> Path:
        """Return the path of a template file."""
        return self.root / self.templates_dir / template_name


def default_context() -> AppContext:
    """Return the context the server runs with by default."""

    def connect():
        return connect_to_sql(DB_USER, PASSWORD, DB_HOST, DB_NAME)

    return AppContext(db=Database(connect))