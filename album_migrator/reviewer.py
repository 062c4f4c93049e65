"""Read-only rendering of a migration plan for review before execution."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from rapidfuzz import fuzz

from album_migrator.fingerprint import normalize_text
from album_migrator.models import LibraryEntry, Track
from album_migrator.plan import AddOperation, MigrationPlan, RemoveReason, WarningKind

# Minimum token_sort_ratio for a "closest title" hint on unmatched entries.
HINT_THRESHOLD = 60.0


class RowKind(enum.Enum):
    """What a review row describes."""

    MIGRATE = "migrate"
    DUPLICATE = "duplicate"
    AMBIGUOUS = "ambiguous"
    NO_CANDIDATE = "no-candidate"
    NEW = "new"


@dataclass(frozen=True, slots=True)
class ReviewRow:
    """One line of the review: source -> destination, or a warning."""

    kind: RowKind
    source_position: str = ""
    source_title: str = ""
    destination_position: str = ""
    destination_title: str = ""
    tier: str = ""
    note: str = ""


def _title(track: Track) -> str:
    title = track.title or "<untitled>"
    return f"{title} [E]" if track.is_explicit else title


def suggest(entry: LibraryEntry, tracks: tuple[Track, ...]) -> Track | None:
    """Closest destination title for an unmatched entry, for display only.

    The hint is never used to build a plan; it only helps a user resolve an
    entry by hand.
    """
    if not entry.track.title:
        return None
    query = normalize_text(entry.track.title)
    best: Track | None = None
    best_score = 0.0
    for track in tracks:
        if not track.title:
            continue
        score = fuzz.token_sort_ratio(query, normalize_text(track.title))
        if score > best_score:
            best_score = score
            best = track
    return best if best_score >= HINT_THRESHOLD else None


def render(plan: MigrationPlan) -> list[ReviewRow]:
    """Render a plan into review rows.

    Rows come in this order: migrated entries, duplicate removals, entries
    left in place, new destination tracks.
    """
    rows: list[ReviewRow] = []
    tiers = {
        m.entry.library_id: m.tier.value for m in plan.matches if m.is_match and m.entry is not None
    }

    for op in plan.removes:
        if op.reason is not RemoveReason.MIGRATED:
            continue
        src = op.entry.track
        rows.append(
            ReviewRow(
                kind=RowKind.MIGRATE,
                source_position=src.position_label(),
                source_title=_title(src),
                destination_position=op.covered_by.position_label(),
                destination_title=_title(op.covered_by),
                tier=tiers.get(op.entry.library_id, ""),
                note="" if op.depends_on else "already in library",
            )
        )

    for op in plan.removes:
        if op.reason is not RemoveReason.DUPLICATE_SOURCE:
            continue
        src = op.entry.track
        rows.append(
            ReviewRow(
                kind=RowKind.DUPLICATE,
                source_position=src.position_label(),
                source_title=_title(src),
                destination_position=op.covered_by.position_label(),
                destination_title=_title(op.covered_by),
                note=f"duplicate entry {op.entry.library_id} removed",
            )
        )

    for warning in plan.warnings:
        if warning.kind is WarningKind.DUPLICATE_SOURCE:
            continue
        src = warning.entry.track
        if warning.kind is WarningKind.AMBIGUOUS:
            positions = ", ".join(t.position_label() for t in warning.candidates)
            rows.append(
                ReviewRow(
                    kind=RowKind.AMBIGUOUS,
                    source_position=src.position_label(),
                    source_title=_title(src),
                    note=f"ambiguous between {positions}; left in place",
                )
            )
            continue
        hint = suggest(warning.entry, plan.new_tracks)
        note = "no match; left in place"
        if hint is not None:
            note += f" (closest: {hint.position_label()} {_title(hint)})"
        rows.append(
            ReviewRow(
                kind=RowKind.NO_CANDIDATE,
                source_position=src.position_label(),
                source_title=_title(src),
                note=note,
            )
        )

    for track in plan.new_tracks:
        rows.append(
            ReviewRow(
                kind=RowKind.NEW,
                destination_position=track.position_label(),
                destination_title=_title(track),
                note="not in library",
            )
        )

    return rows


def summarize(plan: MigrationPlan) -> dict[str, int]:
    """Count operations and warnings by kind."""
    return {
        "adds": len(plan.adds),
        "removes": len(plan.removes),
        "duplicates": sum(1 for op in plan.removes if op.reason is RemoveReason.DUPLICATE_SOURCE),
        "ambiguous": sum(1 for w in plan.warnings if w.kind is WarningKind.AMBIGUOUS),
        "no_candidate": sum(1 for w in plan.warnings if w.kind is WarningKind.NO_CANDIDATE),
        "new_tracks": len(plan.new_tracks),
    }


def plan_to_dict(plan: MigrationPlan) -> dict[str, Any]:
    """JSON-compatible form of a plan, for scripting and archiving reviews."""
    operations: list[dict[str, Any]] = []
    for op in plan.operations:
        if isinstance(op, AddOperation):
            operations.append(
                {
                    "op": "add",
                    "key": op.key,
                    "track_id": op.track.track_id,
                    "title": op.track.title,
                    "position": op.track.position_label(),
                    "tier": op.tier.value,
                    "source_library_id": op.source.library_id,
                }
            )
        else:
            operations.append(
                {
                    "op": "remove",
                    "key": op.key,
                    "library_id": op.entry.library_id,
                    "title": op.entry.track.title,
                    "position": op.entry.track.position_label(),
                    "reason": op.reason.value,
                    "covered_by": op.covered_by.track_id,
                    "depends_on": op.depends_on,
                }
            )
    return {
        "summary": summarize(plan),
        "operations": operations,
        "warnings": [
            {
                "kind": w.kind.value,
                "library_id": w.entry.library_id,
                "message": w.message,
                "candidates": [t.track_id for t in w.candidates],
            }
            for w in plan.warnings
        ],
        "new_tracks": [
            {"track_id": t.track_id, "title": t.title, "position": t.position_label()}
            for t in plan.new_tracks
        ],
    }
