"""JSON snapshots of already-fetched library and album state.

A snapshot holds the source library entries and the destination album
version of one migration, so the plan can be reviewed offline and rebuilt
from exactly the same inputs.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from album_migrator.apple_music.parser import parse_timestamp
from album_migrator.exceptions import SnapshotError
from album_migrator.models import AlbumVersion, LibraryEntry, Track

SNAPSHOT_VERSION = 1


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Inputs of one migration."""

    source_album_id: str
    source_entries: tuple[LibraryEntry, ...]
    destination: AlbumVersion
    # Library entries already added from the destination, if known
    destination_entries: tuple[LibraryEntry, ...] = ()


def _track_to_dict(track: Track) -> dict[str, Any]:
    return {
        "id": track.track_id,
        "title": track.title,
        "album_id": track.album_id,
        "disc_number": track.disc_number,
        "track_number": track.track_number,
        "duration": track.duration,
        "artist": track.artist,
        "isrc": track.isrc,
        "explicit": track.is_explicit,
    }


def _optional(data: dict[str, Any], key: str, types: tuple[type, ...]) -> Any:
    """Return ``data[key]`` if it is None or one of *types* (bool never counts)."""
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, types):
        names = "/".join(t.__name__ for t in types)
        raise ValueError(f"track field '{key}' must be {names} or absent, got {value!r}")
    return value


def _track_from_dict(data: dict[str, Any]) -> Track:
    return Track(
        track_id=str(data["id"]),
        title=_optional(data, "title", (str,)),
        album_id=str(data["album_id"]),
        disc_number=_optional(data, "disc_number", (int,)),
        track_number=_optional(data, "track_number", (int,)),
        duration=_optional(data, "duration", (int, float)),
        artist=_optional(data, "artist", (str,)),
        isrc=_optional(data, "isrc", (str,)),
        is_explicit=bool(data.get("explicit", False)),
    )


def _entry_to_dict(entry: LibraryEntry) -> dict[str, Any]:
    return {
        "library_id": entry.library_id,
        "album_id": entry.album_id,
        "added_at": entry.added_at.isoformat() if entry.added_at else None,
        "track": _track_to_dict(entry.track),
    }


def _entry_from_dict(data: dict[str, Any]) -> LibraryEntry:
    return LibraryEntry(
        library_id=str(data["library_id"]),
        track=_track_from_dict(data["track"]),
        album_id=str(data["album_id"]),
        added_at=parse_timestamp(data.get("added_at")),
    )


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    """Serialize a snapshot to a JSON-compatible dict."""
    return {
        "version": SNAPSHOT_VERSION,
        "source_album_id": snapshot.source_album_id,
        "source_entries": [_entry_to_dict(e) for e in snapshot.source_entries],
        "destination": {
            "id": snapshot.destination.album_id,
            "name": snapshot.destination.name,
            "artist": snapshot.destination.artist,
            "release_date": snapshot.destination.release_date,
            "tracks": [_track_to_dict(t) for t in snapshot.destination.tracks],
        },
        "destination_entries": [_entry_to_dict(e) for e in snapshot.destination_entries],
    }


def snapshot_from_dict(data: dict[str, Any]) -> Snapshot:
    """Deserialize a snapshot dict.

    Raises:
        KeyError, TypeError, ValueError: On missing or mistyped fields.
    """
    if data.get("version") != SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version {data.get('version')!r}")

    entries = tuple(_entry_from_dict(e) for e in data["source_entries"])
    dest = data["destination"]
    destination = AlbumVersion(
        album_id=str(dest["id"]),
        name=dest.get("name") or "",
        artist=dest.get("artist") or "",
        release_date=dest.get("release_date"),
        tracks=tuple(
            sorted((_track_from_dict(t) for t in dest["tracks"]), key=lambda t: t.position)
        ),
    )
    return Snapshot(
        source_album_id=str(data["source_album_id"]),
        source_entries=entries,
        destination=destination,
        destination_entries=tuple(
            _entry_from_dict(e) for e in data.get("destination_entries") or ()
        ),
    )


def save_snapshot(snapshot: Snapshot, path: Path) -> None:
    """Write a snapshot as pretty-printed JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(snapshot_to_dict(snapshot), indent=2, ensure_ascii=False)
    path.write_text(text + "\n", encoding="utf-8")


def load_snapshot(path: Path) -> Snapshot:
    """Read a snapshot file.

    Raises:
        SnapshotError: If the file is missing, not JSON, or malformed.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotError(path, str(e)) from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SnapshotError(path, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SnapshotError(path, "top level must be an object")
    try:
        return snapshot_from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise SnapshotError(path, f"malformed snapshot: {e}") from e
