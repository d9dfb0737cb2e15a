"""Audio recordings stored in the ``Audio`` table."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable

from .sql import Database

_COLUMNS = frozenset({"Id", "name", "starttime", "endtime", "duration", "userid", "path"})


@dataclass
class Audio:
    """One recording made by a user."""

    id: str | None
    name: str | None
    path: str | None
    starttime: str | None
    userid: str | None
    endtime: str | None = None
    duration: float = 0.0

    @classmethod
    def from_row(cls, row: tuple) -> "Audio":
        duration = row[4]
        return cls(
            id=row[0],
            name=row[1],
            starttime=row[2],
            endtime=row[3],
            duration=float(duration) if duration is not None else 0.0,
            userid=row[5],
            path=row[6],
        )

    def to_dict(self) -> dict:
        fields = {
            "Id": self.id,
            "userid": self.userid,
            "name": self.name,
            "starttime": self.starttime,
            "endtime": self.endtime,
            "duration": self.duration,
            "path": self.path,
        }
        return {key: value for key, value in fields.items() if value is not None}


def _check_column(column_name: str) -> None:
    if column_name not in _COLUMNS:
        raise ValueError(f"unknown Audio column {column_name!r}")


def create_audio(
    unique_id: str | None,
    name: str | None,
    path: str | None,
    starttime: str | None,
    userid: str | None,
    endtime: str | None,
    duration: float,
) -> Audio:
    """Return a new recording record."""
    return Audio(
        id=unique_id,
        name=name,
        path=path,
        starttime=starttime,
        userid=userid,
        endtime=endtime,
        duration=float(duration),
    )


def insert_audio(db: Database, audio: Audio) -> None:
    """Store ``audio``; a missing end time is stored as NULL."""
    db.execute(
        "INSERT INTO Audio VALUES (%s, %s, %s, %s, %s, %s, %s)",
        (
            audio.id,
            audio.name,
            audio.starttime,
            audio.endtime,
            audio.duration,
            audio.userid,
            audio.path,
        ),
    )


def get_active_audio_by_userid(db: Database, userid: str | None) -> Audio | None:
    """Return the user's recording that has not ended yet, or None."""
    rows = db.query(
        "SELECT * FROM Audio WHERE userid = %s AND endtime IS NULL", (userid,)
    )
    return Audio.from_row(rows[-1]) if rows else None


def update_audio_duration(
    db: Database, audio_id: str, column_name: str, new_value: float
) -> None:
    """Set the duration of a recording; only the ``duration`` column is accepted."""
    if column_name != "duration":
        raise ValueError(f"only the duration column takes a number, not {column_name!r}")
    db.execute(
        "UPDATE Audio SET duration = %s WHERE Id = %s", (float(new_value), audio_id)
    )


def update_audio_value(
    db: Database, audio_id: str, column_name: str, new_value: str | None
) -> None:
    """Set one text column of a recording."""
    _check_column(column_name)
    db.execute(
        f"UPDATE Audio SET {column_name} = %s WHERE Id = %s", (new_value, audio_id)
    )


def get_audio_duration_by_id(db: Database, audio_id: str) -> int:
    """Return the seconds between start and end of a recording, 0 when unknown."""
    rows = db.query(
        "SELECT CAST(TIMESTAMPDIFF(SECOND, starttime, endtime) AS INT) AS duration "
        "FROM Audio WHERE Id = %s",
        (audio_id,),
    )
    if not rows or rows[0][0] is None:
        return 0
    return int(rows[0][0])


def convert_audios_to_json(audios: Iterable[Audio]) -> str:
    """Return a JSON listing with ``total_count`` and ``values``."""
    values = [audio.to_dict() for audio in audios]
    return json.dumps({"total_count": len(values), "values": values}, indent="\t")


def get_total_audio(db: Database) -> int:
    """Return the number of stored recordings."""
    rows = db.query("SELECT COUNT(*) AS total_count FROM Audio")
    return int(rows[0][0]) if rows else 0


def get_total_audio_by_userid(db: Database, userid: str) -> int:
    """Return the number of recordings made by ``userid``."""
    rows = db.query(
        "SELECT COUNT(*) AS total_count FROM Audio WHERE userid = %s", (userid,)
    )
    return int(rows[0][0]) if rows else 0


def get_audios_by_userid(db: Database, userid: str) -> str:
    """Return the recordings of ``userid`` as a JSON listing."""
    if get_total_audio_by_userid(db, userid) == 0:
        return convert_audios_to_json([])
    rows = db.query("SELECT * FROM Audio WHERE userid = %s", (userid,))
    return convert_audios_to_json(Audio.from_row(row) for row in rows)


def get_audios(db: Database) -> str:
    """Return every recording as a JSON listing."""
    if get_total_audio(db) == 0:
        return convert_audios_to_json([])
    rows = db.query("SELECT * FROM Audio")
    return convert_audios_to_json(Audio.from_row(row) for row in rows)


def get_audio(db: Database, audio_id: str) -> Audio | None:
    """Return the recording with ``audio_id``, or None."""
    rows = db.query("SELECT * FROM Audio WHERE Id = %s", (audio_id,))
    return Audio.from_row(rows[-1]) if rows else None