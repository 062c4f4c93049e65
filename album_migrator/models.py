"""Album, track and library entry records.

These are immutable snapshots of host-library state. The matcher and plan
builder never mutate them; only an executor changes the library, and a fresh
snapshot must be fetched before any re-run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Track:
    """One song as listed in an album version's track listing."""

    track_id: str
    title: str | None
    album_id: str
    disc_number: int | None = None
    track_number: int | None = None
    duration: float | None = None  # seconds
    artist: str | None = None
    isrc: str | None = None
    is_explicit: bool = False

    @property
    def position(self) -> tuple[int, int]:
        """Sort key by disc/track, unknown positions last."""
        return (
            self.disc_number if self.disc_number is not None else 1 << 16,
            self.track_number if self.track_number is not None else 1 << 16,
        )

    def position_label(self) -> str:
        """Human-readable position like ``1-03``."""
        disc = str(self.disc_number) if self.disc_number is not None else "?"
        number = f"{self.track_number:02d}" if self.track_number is not None else "??"
        return f"{disc}-{number}"


@dataclass(frozen=True, slots=True)
class LibraryEntry:
    """One item in the user's library, added from a specific album version."""

    library_id: str
    track: Track
    album_id: str
    added_at: datetime | None = None

    @property
    def sort_key(self) -> tuple[int, int, float, str]:
        added = self.added_at.timestamp() if self.added_at is not None else float("inf")
        disc, number = self.track.position
        return (disc, number, added, self.library_id)


@dataclass(frozen=True, slots=True)
class AlbumVersion:
    """One release/edition of an album with its full track listing."""

    album_id: str
    name: str
    artist: str
    release_date: str | None = None
    tracks: tuple[Track, ...] = field(default_factory=tuple)

    def __repr__(self) -> str:
        return f"<AlbumVersion(id='{self.album_id}', name='{self.name}', tracks={len(self.tracks)})>"


def entries_for_album(entries: list[LibraryEntry], album_id: str) -> list[LibraryEntry]:
    """Select the library entries attributed to one album version."""
    return [e for e in entries if e.album_id == album_id]


def present_track_ids(entries: list[LibraryEntry], album_id: str) -> set[str]:
    """Track ids of *album_id* that already have a library entry."""
    return {e.track.track_id for e in entries if e.album_id == album_id}
