"""Unit tests for plan review rendering."""

from __future__ import annotations

from album_migrator.matcher import match
from album_migrator.models import LibraryEntry, Track
from album_migrator.plan import build_plan
from album_migrator.reviewer import RowKind, plan_to_dict, render, suggest, summarize


def _dest(track_id: str, title: str, number: int, duration: float = 180.0, **kw) -> Track:
    return Track(
        track_id=track_id,
        title=title,
        album_id="200",
        disc_number=1,
        track_number=number,
        duration=duration,
        **kw,
    )


def _entry(library_id: str, title: str, number: int, duration: float = 180.0) -> LibraryEntry:
    track = Track(
        track_id=f"s{number}",
        title=title,
        album_id="100",
        disc_number=1,
        track_number=number,
        duration=duration,
    )
    return LibraryEntry(library_id=library_id, track=track, album_id="100")


def _plan(source, dest, **kwargs):
    return build_plan(match(source, dest), source, dest, **kwargs)


class TestRender:
    def test_row_order_and_kinds(self) -> None:
        source = [
            _entry("i.1", "Intro", 1),
            _entry("i.2", "Intro", 1),
            _entry("i.3", "Twin", 3),
            _entry("i.4", "Gone Forever", 4),
        ]
        dest = [
            _dest("d1", "Intro", 1),
            _dest("d2", "Twin", 2),
            _dest("d3", "Twin", 3),
            _dest("d5", "Gone Forever (Live)", 5, 240),
        ]
        rows = render(_plan(source, dest))
        assert [r.kind for r in rows] == [
            RowKind.MIGRATE,
            RowKind.DUPLICATE,
            RowKind.AMBIGUOUS,
            RowKind.NO_CANDIDATE,
            RowKind.NEW,
            RowKind.NEW,
            RowKind.NEW,
        ]

    def test_migrate_row_contents(self) -> None:
        rows = render(_plan([_entry("i.1", "Intro", 1)], [_dest("d1", "Intro", 2)]))
        (row,) = rows
        assert row.source_position == "1-01"
        assert row.destination_position == "1-02"
        assert row.tier == "exact"
        assert row.note == ""

    def test_present_track_noted(self) -> None:
        plan = _plan([_entry("i.1", "Intro", 1)], [_dest("d1", "Intro", 1)], present_track_ids={"d1"})
        (row,) = render(plan)
        assert row.note == "already in library"

    def test_explicit_marker(self) -> None:
        plan = _plan([_entry("i.1", "Intro", 1)], [_dest("d1", "Intro", 1, is_explicit=True)])
        (row,) = render(plan)
        assert row.destination_title == "Intro [E]"

    def test_no_candidate_gets_closest_hint(self) -> None:
        plan = _plan([_entry("i.1", "Gone Forever", 1)], [_dest("d1", "Gone Forever (Live)", 1, 240)])
        no_candidate = [r for r in render(plan) if r.kind is RowKind.NO_CANDIDATE]
        assert "closest: 1-01 Gone Forever (Live)" in no_candidate[0].note


class TestSuggest:
    def test_no_hint_below_threshold(self) -> None:
        assert suggest(_entry("i.1", "Alpha", 1), (_dest("d1", "Completely Different", 1),)) is None

    def test_untitled_entry(self) -> None:
        entry = LibraryEntry(
            library_id="i.1", track=Track(track_id="s1", title=None, album_id="100"), album_id="100"
        )
        assert suggest(entry, (_dest("d1", "Anything", 1),)) is None


class TestSummary:
    def test_counts(self) -> None:
        source = [_entry("i.1", "A", 1), _entry("i.2", "A", 1), _entry("i.3", "Z", 3)]
        dest = [_dest("d1", "A", 1), _dest("d2", "B", 2)]
        counts = summarize(_plan(source, dest))
        assert counts == {
            "adds": 1,
            "removes": 2,
            "duplicates": 1,
            "ambiguous": 0,
            "no_candidate": 1,
            "new_tracks": 1,
        }

    def test_plan_to_dict(self) -> None:
        data = plan_to_dict(_plan([_entry("i.1", "A", 1)], [_dest("d1", "A", 1)]))
        assert [op["op"] for op in data["operations"]] == ["add", "remove"]
        assert data["operations"][1]["depends_on"] == "add:d1"
        assert data["operations"][0]["tier"] == "exact"
        assert data["warnings"] == []
