"""Filesystem helpers for stored recordings."""

from __future__ import annotations

import os
from pathlib import Path


def get_file_contents(filename: str | os.PathLike[str]) -> bytes:
    """Return the whole content of ``filename`` as bytes."""
    return Path(filename).read_bytes()


def directory_exists(path: str | os.PathLike[str]) -> bool:
    """Return True when ``path`` names an existing directory."""
    return Path(path).is_dir()


def create_directory(path: str | os.PathLike[str]) -> bool:
    """Create ``path`` with mode 0777; return False when it already exists."""
    try:
        os.mkdir(path, 0o777)
    except FileExistsError:
        return False
    return True