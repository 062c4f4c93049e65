"""Unit tests for Apple Music response parsing."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from album_migrator.apple_music.parser import (
    build_source_entries,
    parse_catalog_album,
    parse_library_album,
    parse_timestamp,
)
from album_migrator.exceptions import AppleMusicParseError


def _song(song_id: str, name: str, number: int, disc: int = 1, millis: int = 180000, **attrs) -> dict:
    attributes = {
        "name": name,
        "trackNumber": number,
        "discNumber": disc,
        "durationInMillis": millis,
        "artistName": "Band",
    }
    attributes.update(attrs)
    return {"id": song_id, "type": "songs", "attributes": attributes}


def _catalog(songs: list[dict], album_id: str = "100", track_count: int | None = None) -> dict:
    return {
        "data": [
            {
                "id": album_id,
                "type": "albums",
                "attributes": {
                    "name": "Record",
                    "artistName": "Band",
                    "releaseDate": "2011-05-01",
                    "trackCount": len(songs) if track_count is None else track_count,
                },
                "relationships": {"tracks": {"data": songs}},
            }
        ]
    }


def _library(songs: list[dict], catalog_id: str = "100") -> dict:
    return {
        "data": [
            {
                "id": "l.AbC123",
                "type": "library-albums",
                "relationships": {
                    "catalog": {"data": [{"id": catalog_id, "type": "albums"}]},
                    "tracks": {"data": songs},
                },
            }
        ]
    }


def _library_song(library_id: str, catalog_id: str | None, name: str, number: int) -> dict:
    attributes = {
        "name": name,
        "trackNumber": number,
        "discNumber": 1,
        "durationInMillis": 180000,
        "dateAdded": "2021-03-04T05:06:07Z",
    }
    if catalog_id is not None:
        attributes["playParams"] = {"id": library_id, "kind": "song", "catalogId": catalog_id}
    return {"id": library_id, "type": "library-songs", "attributes": attributes}


class TestParseCatalogAlbum:
    def test_basic_album(self) -> None:
        album = parse_catalog_album(
            _catalog(
                [
                    _song("2", "Song A", 2, isrc="USAAA0000002", contentRating="explicit"),
                    _song("1", "Intro", 1, millis=45000),
                ]
            )
        )
        assert album.album_id == "100"
        assert album.name == "Record"
        assert album.release_date == "2011-05-01"
        assert [t.track_id for t in album.tracks] == ["1", "2"]
        intro, song = album.tracks
        assert intro.duration == 45.0
        assert intro.album_id == "100"
        assert song.isrc == "USAAA0000002"
        assert song.is_explicit

    def test_multi_disc_numbering_restarts(self) -> None:
        album = parse_catalog_album(
            _catalog([_song("1", "A", 1), _song("2", "B", 2), _song("3", "C", 1, disc=2)])
        )
        assert [t.position_label() for t in album.tracks] == ["1-01", "1-02", "2-01"]

    def test_extra_pages_are_merged(self) -> None:
        album = parse_catalog_album(
            _catalog([_song("1", "A", 1)], track_count=2), extra_songs=[_song("2", "B", 2)]
        )
        assert len(album.tracks) == 2

    def test_track_count_mismatch(self) -> None:
        with pytest.raises(AppleMusicParseError, match="lists 3 tracks"):
            parse_catalog_album(_catalog([_song("1", "A", 1)], track_count=3))

    def test_numbering_gap(self) -> None:
        with pytest.raises(AppleMusicParseError, match="jumps to 3"):
            parse_catalog_album(_catalog([_song("1", "A", 1), _song("3", "C", 3)]))

    def test_duplicate_track_id(self) -> None:
        with pytest.raises(AppleMusicParseError, match="duplicate track id"):
            parse_catalog_album(_catalog([_song("1", "A", 1), _song("1", "A", 2)]))

    def test_missing_resource(self) -> None:
        with pytest.raises(AppleMusicParseError):
            parse_catalog_album({"data": []}, url="https://example.test/albums/1")

    def test_zero_duration_is_unknown(self) -> None:
        album = parse_catalog_album(_catalog([_song("1", "A", 1, millis=0)]))
        assert album.tracks[0].duration is None


class TestParseLibraryAlbum:
    def test_songs_and_catalog_link(self) -> None:
        album = parse_library_album(
            _library([_library_song("i.1", "1", "Intro", 1), _library_song("i.2", None, "Odd", 2)])
        )
        assert album.library_id == "l.AbC123"
        assert album.catalog_id == "100"
        first, second = album.songs
        assert first.catalog_id == "1"
        assert first.added_at == datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
        assert second.catalog_id is None

    def test_requires_catalog_relationship(self) -> None:
        payload = _library([])
        payload["data"][0]["relationships"]["catalog"]["data"] = []
        with pytest.raises(AppleMusicParseError, match="catalog album"):
            parse_library_album(payload)


class TestBuildSourceEntries:
    def test_entries_use_catalog_metadata(self) -> None:
        catalog = parse_catalog_album(_catalog([_song("1", "Intro", 1, isrc="USAAA0000001")]))
        library = parse_library_album(_library([_library_song("i.1", "1", "intro (lib)", 1)]))

        (entry,) = build_source_entries(library, catalog)

        assert entry.library_id == "i.1"
        assert entry.album_id == "100"
        assert entry.track.title == "Intro"
        assert entry.track.isrc == "USAAA0000001"

    def test_song_missing_from_listing_keeps_library_metadata(self) -> None:
        catalog = parse_catalog_album(_catalog([_song("1", "Intro", 1)]))
        library = parse_library_album(_library([_library_song("i.9", "999", "Hidden", 9)]))

        (entry,) = build_source_entries(library, catalog)

        assert entry.track.track_id == "999"
        assert entry.track.title == "Hidden"
        assert entry.track.track_number == 9
        assert entry.album_id == "100"

    def test_catalog_mismatch(self) -> None:
        catalog = parse_catalog_album(_catalog([_song("1", "Intro", 1)], album_id="555"))
        library = parse_library_album(_library([]))
        with pytest.raises(AppleMusicParseError, match="not 555"):
            build_source_entries(library, catalog)


class TestParseTimestamp:
    def test_invalid_values(self) -> None:
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None
        assert parse_timestamp("yesterday") is None
