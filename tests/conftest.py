"""Shared pytest fixtures."""

from __future__ import annotations

import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from album_migrator.models import LibraryEntry, Track

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample config file."""
    config_path = temp_dir / "config.toml"
    config_path.write_text(f"""[apple_music]
developer_token = "aaa.bbb.ccc"
user_token = "user-token"
storefront = "gb"
origin = "https://music.apple.com"

[matching]
duration_tolerance = 3

[journal]
path = "{temp_dir / 'journal.db'}"

[display]
colored_output = false
""")
    return config_path


class InMemoryLibrary:
    """Host library double: applies operations to a list of entries."""

    def __init__(self, entries: list[LibraryEntry], fail_adds: set[str] | None = None) -> None:
        self.entries = list(entries)
        self.fail_adds = fail_adds or set()
        self.calls: list[str] = []
        self._next_id = 1

    def add_track(self, track: Track) -> None:
        self.calls.append(f"add:{track.track_id}")
        if track.track_id in self.fail_adds:
            raise RuntimeError(f"cannot add {track.track_id}")
        if any(e.track.track_id == track.track_id for e in self.entries):
            return
        self.entries.append(
            LibraryEntry(
                library_id=f"i.new{self._next_id}",
                track=track,
                album_id=track.album_id,
                added_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )
        )
        self._next_id += 1

    def remove_entry(self, entry: LibraryEntry) -> None:
        self.calls.append(f"remove:{entry.library_id}")
        self.entries = [e for e in self.entries if e.library_id != entry.library_id]


@pytest.fixture
def library_factory():
    """Build an InMemoryLibrary from a list of entries."""
    return InMemoryLibrary
