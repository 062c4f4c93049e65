"""Apple Music API integration."""

from album_migrator.apple_music.client import AppleMusicClient
from album_migrator.apple_music.parser import (
    LibraryAlbum,
    LibrarySong,
    build_source_entries,
    parse_catalog_album,
    parse_library_album,
)

__all__ = [
    "AppleMusicClient",
    "LibraryAlbum",
    "LibrarySong",
    "build_source_entries",
    "parse_catalog_album",
    "parse_library_album",
]
