"""Apple Music API response parsing.

Turns catalog-album and library-album JSON documents into the immutable
records the matcher works on.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from album_migrator.exceptions import AppleMusicParseError
from album_migrator.models import AlbumVersion, LibraryEntry, Track


@dataclass(frozen=True, slots=True)
class LibrarySong:
    """One song of a library album, as reported by the library endpoint."""

    library_id: str
    catalog_id: str | None
    title: str | None
    artist: str | None
    disc_number: int | None
    track_number: int | None
    duration: float | None
    added_at: datetime | None


@dataclass(frozen=True, slots=True)
class LibraryAlbum:
    """A library album and the catalog album it was added from."""

    library_id: str
    catalog_id: str
    songs: tuple[LibrarySong, ...]


def _single_resource(payload: dict[str, Any], url: str) -> dict[str, Any]:
    data = payload.get("data")
    if not isinstance(data, list) or len(data) != 1:
        raise AppleMusicParseError(url, "expected exactly one resource in 'data'")
    resource = data[0]
    if not isinstance(resource, dict) or "id" not in resource:
        raise AppleMusicParseError(url, "resource has no id")
    return resource


def _duration(attributes: dict[str, Any]) -> float | None:
    millis = attributes.get("durationInMillis")
    if isinstance(millis, (int, float)) and millis > 0:
        return millis / 1000.0
    return None


def _optional_int(value: Any) -> int | None:
    return value if isinstance(value, int) else None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp such as ``2021-03-04T05:06:07Z``."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_catalog_song(song: dict[str, Any], album_id: str) -> Track:
    """Convert one catalog song resource into a Track."""
    attributes = song.get("attributes") or {}
    return Track(
        track_id=str(song["id"]),
        title=attributes.get("name"),
        album_id=album_id,
        disc_number=_optional_int(attributes.get("discNumber")),
        track_number=_optional_int(attributes.get("trackNumber")),
        duration=_duration(attributes),
        artist=attributes.get("artistName"),
        isrc=attributes.get("isrc"),
        is_explicit=attributes.get("contentRating") == "explicit",
    )


def parse_catalog_album(
    payload: dict[str, Any],
    url: str = "",
    extra_songs: list[dict[str, Any]] | None = None,
) -> AlbumVersion:
    """Parse a ``/v1/catalog/{storefront}/albums/{id}`` response.

    Args:
        payload: Decoded JSON response.
        url: Request URL (for error reporting).
        extra_songs: Song resources fetched from ``next`` pages of the
            tracks relationship.

    Returns:
        AlbumVersion with tracks sorted by disc and track number.

    Raises:
        AppleMusicParseError: If the track listing is incomplete or its
            numbering is not contiguous per disc.
    """
    album = _single_resource(payload, url)
    album_id = str(album["id"])
    attributes = album.get("attributes") or {}
    songs = list(((album.get("relationships") or {}).get("tracks") or {}).get("data") or [])
    songs.extend(extra_songs or [])

    tracks = sorted((parse_catalog_song(s, album_id) for s in songs), key=lambda t: t.position)

    expected = attributes.get("trackCount")
    if isinstance(expected, int) and expected != len(tracks):
        raise AppleMusicParseError(url, f"album lists {expected} tracks but {len(tracks)} returned")

    seen: set[str] = set()
    current_disc: int | None = None
    expected_number = 1
    for track in tracks:
        if track.track_id in seen:
            raise AppleMusicParseError(url, f"duplicate track id {track.track_id}")
        seen.add(track.track_id)
        if track.disc_number is None or track.track_number is None:
            continue
        if track.disc_number != current_disc:
            current_disc = track.disc_number
            expected_number = 1
        if track.track_number != expected_number:
            raise AppleMusicParseError(
                url,
                f"disc {track.disc_number} track numbering jumps to {track.track_number}",
            )
        expected_number += 1

    return AlbumVersion(
        album_id=album_id,
        name=attributes.get("name") or "",
        artist=attributes.get("artistName") or "",
        release_date=attributes.get("releaseDate"),
        tracks=tuple(tracks),
    )


def parse_library_album(payload: dict[str, Any], url: str = "") -> LibraryAlbum:
    """Parse a ``/v1/me/library/albums/{id}?include=catalog`` response.

    Raises:
        AppleMusicParseError: If the album is not linked to exactly one
            catalog album.
    """
    album = _single_resource(payload, url)
    relationships = album.get("relationships") or {}

    catalog = (relationships.get("catalog") or {}).get("data") or []
    if len(catalog) != 1 or "id" not in catalog[0]:
        raise AppleMusicParseError(url, "library album is not linked to one catalog album")

    songs: list[LibrarySong] = []
    for song in (relationships.get("tracks") or {}).get("data") or []:
        attributes = song.get("attributes") or {}
        play_params = attributes.get("playParams") or {}
        catalog_id = play_params.get("catalogId")
        songs.append(
            LibrarySong(
                library_id=str(song["id"]),
                catalog_id=str(catalog_id) if catalog_id is not None else None,
                title=attributes.get("name"),
                artist=attributes.get("artistName"),
                disc_number=_optional_int(attributes.get("discNumber")),
                track_number=_optional_int(attributes.get("trackNumber")),
                duration=_duration(attributes),
                added_at=parse_timestamp(attributes.get("dateAdded")),
            )
        )

    return LibraryAlbum(
        library_id=str(album["id"]),
        catalog_id=str(catalog[0]["id"]),
        songs=tuple(songs),
    )


def build_source_entries(
    library_album: LibraryAlbum,
    catalog_album: AlbumVersion,
) -> list[LibraryEntry]:
    """Combine a library album with its catalog album into library entries.

    Each library song takes the catalog metadata of the track it was added
    from. A song whose catalog track is not in the listing keeps the
    metadata the library reports for it.

    Raises:
        AppleMusicParseError: If the library album belongs to another
            catalog album.
    """
    if library_album.catalog_id != catalog_album.album_id:
        raise AppleMusicParseError(
            library_album.library_id,
            f"library album points at catalog album {library_album.catalog_id}, "
            f"not {catalog_album.album_id}",
        )

    by_catalog_id = {t.track_id: t for t in catalog_album.tracks}
    entries: list[LibraryEntry] = []
    for song in library_album.songs:
        track = by_catalog_id.get(song.catalog_id) if song.catalog_id else None
        if track is None:
            track = Track(
                track_id=song.catalog_id or song.library_id,
                title=song.title,
                album_id=catalog_album.album_id,
                disc_number=song.disc_number,
                track_number=song.track_number,
                duration=song.duration,
                artist=song.artist,
            )
        entries.append(
            LibraryEntry(
                library_id=song.library_id,
                track=track,
                album_id=catalog_album.album_id,
                added_at=song.added_at,
            )
        )
    return entries
