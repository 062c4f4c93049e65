"""Migration plan construction from match results.

A plan lists every Add before any Remove. Each Remove that relies on a new
library entry carries the key of the Add it depends on, so an executor can
refuse to remove a song whose replacement was never added.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass

from album_migrator.exceptions import PlanConsistencyError
from album_migrator.matcher import DURATION_TOLERANCE, MatchReason, MatchResult, MatchTier, match
from album_migrator.models import AlbumVersion, LibraryEntry, Track, present_track_ids

logger = logging.getLogger(__name__)


class RemoveReason(enum.Enum):
    """Why a source entry is removed."""

    MIGRATED = "migrated"
    DUPLICATE_SOURCE = "duplicate-source"


class WarningKind(enum.Enum):
    """Kinds of plan warnings."""

    NO_CANDIDATE = "no-candidate"
    AMBIGUOUS = "ambiguous"
    DUPLICATE_SOURCE = "duplicate-source"


@dataclass(frozen=True, slots=True)
class AddOperation:
    """Add a destination track to the library."""

    track: Track
    source: LibraryEntry
    tier: MatchTier

    @property
    def key(self) -> str:
        return f"add:{self.track.track_id}"


@dataclass(frozen=True, slots=True)
class RemoveOperation:
    """Remove a source entry from the library.

    ``covered_by`` is the destination track that keeps the song in the
    library; ``depends_on`` is the key of the Add that must commit first, or
    None when that track is already present.
    """

    entry: LibraryEntry
    reason: RemoveReason
    covered_by: Track
    depends_on: str | None = None

    @property
    def key(self) -> str:
        return f"remove:{self.entry.library_id}"


Operation = AddOperation | RemoveOperation


@dataclass(frozen=True, slots=True)
class PlanWarning:
    """A source entry the plan leaves untouched or removes as a duplicate."""

    kind: WarningKind
    entry: LibraryEntry
    message: str
    candidates: tuple[Track, ...] = ()


@dataclass(frozen=True, slots=True)
class MigrationPlan:
    """Ordered operations plus warnings; never mutated after construction."""

    operations: tuple[Operation, ...] = ()
    warnings: tuple[PlanWarning, ...] = ()
    new_tracks: tuple[Track, ...] = ()
    matches: tuple[MatchResult, ...] = ()

    @property
    def adds(self) -> list[AddOperation]:
        return [op for op in self.operations if isinstance(op, AddOperation)]

    @property
    def removes(self) -> list[RemoveOperation]:
        return [op for op in self.operations if isinstance(op, RemoveOperation)]

    @property
    def is_empty(self) -> bool:
        return not self.operations


def _describe(entry: LibraryEntry) -> str:
    return f"'{entry.track.title or '<untitled>'}' ({entry.track.position_label()})"


def _check_consistency(
    results: list[MatchResult],
    source_entries: list[LibraryEntry],
    destination_tracks: list[Track],
) -> None:
    """Every source entry has exactly one result and nothing is foreign."""
    entry_ids = {e.library_id for e in source_entries}
    track_ids = {t.track_id for t in destination_tracks}
    seen_entries: set[str] = set()
    matched_tracks: set[str] = set()

    for result in results:
        if result.entry is not None:
            lid = result.entry.library_id
            if lid not in entry_ids:
                raise PlanConsistencyError(f"unknown source entry {lid}")
            if lid in seen_entries:
                raise PlanConsistencyError(f"source entry {lid} has more than one result")
            seen_entries.add(lid)
        if result.track is not None and result.track.track_id not in track_ids:
            raise PlanConsistencyError(f"unknown destination track {result.track.track_id}")
        if result.is_match:
            assert result.track is not None
            if result.track.track_id in matched_tracks:
                raise PlanConsistencyError(
                    f"destination track {result.track.track_id} matched more than once"
                )
            matched_tracks.add(result.track.track_id)

    missing = entry_ids - seen_entries
    if missing:
        raise PlanConsistencyError(f"no result for source entries {sorted(missing)}")


def build_plan(
    results: Iterable[MatchResult],
    source_entries: Iterable[LibraryEntry],
    destination_tracks: Iterable[Track],
    *,
    present_track_ids: Collection[str] = (),
) -> MigrationPlan:
    """Turn match results into an ordered migration plan.

    Args:
        results: Output of :func:`album_migrator.matcher.match`.
        source_entries: The source entries that were matched.
        destination_tracks: The destination listing that was matched against.
        present_track_ids: Destination track ids that already have a library
            entry. Their Add is omitted; the paired Remove is still emitted.

    Returns:
        MigrationPlan with all Adds (destination order) before all Removes
        (source order).

    Raises:
        PlanConsistencyError: If the results do not belong to these inputs.
    """
    results = list(results)
    entries = list(source_entries)
    tracks = list(destination_tracks)
    _check_consistency(results, entries, tracks)

    ordered = sorted(tracks, key=lambda t: (t.position, t.track_id))
    track_order = {t.track_id: i for i, t in enumerate(ordered)}
    present = set(present_track_ids)

    adds: list[AddOperation] = []
    removes: list[RemoveOperation] = []
    warnings: list[PlanWarning] = []
    new_tracks: list[Track] = []

    # primary library_id -> (destination track, add key or None)
    covering: dict[str, tuple[Track, str | None]] = {}

    for result in results:
        if not result.is_match:
            continue
        assert result.entry is not None and result.track is not None
        add_key: str | None = None
        if result.track.track_id not in present:
            add = AddOperation(track=result.track, source=result.entry, tier=result.tier)
            adds.append(add)
            add_key = add.key
        covering[result.entry.library_id] = (result.track, add_key)

    for result in results:
        entry = result.entry
        if result.reason is MatchReason.UNMATCHED_DESTINATION:
            assert result.track is not None
            if result.track.track_id not in present:
                new_tracks.append(result.track)
            continue
        assert entry is not None

        if result.is_match:
            track, add_key = covering[entry.library_id]
            removes.append(
                RemoveOperation(
                    entry=entry,
                    reason=RemoveReason.MIGRATED,
                    covered_by=track,
                    depends_on=add_key,
                )
            )
        elif result.reason is MatchReason.DUPLICATE_SOURCE:
            primary = result.duplicate_of
            if primary is None or primary not in covering:
                raise PlanConsistencyError(
                    f"duplicate {entry.library_id} refers to unmatched primary {primary}"
                )
            track, add_key = covering[primary]
            removes.append(
                RemoveOperation(
                    entry=entry,
                    reason=RemoveReason.DUPLICATE_SOURCE,
                    covered_by=track,
                    depends_on=add_key,
                )
            )
            warnings.append(
                PlanWarning(
                    kind=WarningKind.DUPLICATE_SOURCE,
                    entry=entry,
                    message=f"{_describe(entry)} duplicates library entry {primary}",
                )
            )
        else:
            if result.reason is MatchReason.AMBIGUOUS:
                kind = WarningKind.AMBIGUOUS
                message = (
                    f"{_describe(entry)} matches {len(result.candidates)} destination "
                    f"tracks equally; left in place"
                )
            else:
                kind = WarningKind.NO_CANDIDATE
                message = f"{_describe(entry)} has no counterpart in the destination; left in place"
            if result.duplicate_of is not None:
                message += f" (duplicates library entry {result.duplicate_of})"
            warnings.append(
                PlanWarning(kind=kind, entry=entry, message=message, candidates=result.candidates)
            )

    adds.sort(key=lambda op: track_order[op.track.track_id])

    logger.debug(
        "Plan: %d adds, %d removes, %d warnings, %d new tracks",
        len(adds),
        len(removes),
        len(warnings),
        len(new_tracks),
    )

    return MigrationPlan(
        operations=(*adds, *removes),
        warnings=tuple(warnings),
        new_tracks=tuple(new_tracks),
        matches=tuple(results),
    )


def plan_migration(
    source_entries: Iterable[LibraryEntry],
    destination: AlbumVersion,
    *,
    destination_entries: Iterable[LibraryEntry] = (),
    tolerance: int = DURATION_TOLERANCE,
) -> MigrationPlan:
    """Match and plan in one step.

    Args:
        source_entries: Library entries attributed to the source version.
        destination: The destination album version.
        destination_entries: Library entries already added from the
            destination; their tracks are not added again.
        tolerance: Duration window in seconds for the tolerance tier.

    Returns:
        The migration plan.
    """
    entries = list(source_entries)
    results = match(entries, destination.tracks, tolerance=tolerance)
    return build_plan(
        results,
        entries,
        destination.tracks,
        present_track_ids=present_track_ids(list(destination_entries), destination.album_id),
    )
