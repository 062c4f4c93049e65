"""Tiered matching of source library entries against a destination album.

Each source entry is matched at the highest tier where exactly one
destination track qualifies:

  Tier 1: Same external identifier (ISRC); authoritative
  Tier 2: Same normalized title and same duration (or both unknown)
  Tier 3: Same normalized title, durations within a small tolerance
  Otherwise: unmatched (NoCandidate, or Ambiguous when candidates tie)

Ties are never broken by guessing. The only narrowing applied to a tie is
exact equality of the title annotations ("Remastered", "feat. X", ...); if
that does not leave a single candidate the entry is Ambiguous.
"""

from __future__ import annotations

import enum
import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from album_migrator.exceptions import SameAlbumError
from album_migrator.fingerprint import Fingerprint, fingerprint
from album_migrator.models import LibraryEntry, Track

logger = logging.getLogger(__name__)

DURATION_TOLERANCE = 2  # seconds


class MatchTier(enum.Enum):
    """Evidence level of a match, strongest first."""

    EXTERNAL_ID = "external-id"
    EXACT = "exact"
    TOLERANCE = "tolerance"
    NONE = "none"


class MatchReason(enum.Enum):
    """Why a result is not a plain successful match."""

    NO_CANDIDATE = "no-candidate"
    AMBIGUOUS = "ambiguous"
    DUPLICATE_SOURCE = "duplicate-source"
    UNMATCHED_DESTINATION = "unmatched-destination"


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Relation between at most one source entry and one destination track.

    A successful match has both ``entry`` and ``track`` set and ``reason`` None.
    """

    entry: LibraryEntry | None
    track: Track | None
    tier: MatchTier = MatchTier.NONE
    reason: MatchReason | None = None
    candidates: tuple[Track, ...] = ()
    duplicate_of: str | None = None  # library_id of the primary entry

    @property
    def is_match(self) -> bool:
        return self.reason is None and self.entry is not None and self.track is not None


@dataclass(slots=True)
class _Group:
    """Source entries sharing one fingerprint; the first is the primary."""

    fp: Fingerprint
    entries: list[LibraryEntry] = field(default_factory=list)

    @property
    def primary(self) -> LibraryEntry:
        return self.entries[0]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _group_duplicates(entries: list[LibraryEntry]) -> list[_Group]:
    """Group entries with identical, identifying fingerprints.

    Entries with a non-identifying fingerprint (no title, no external id)
    are never grouped, so two malformed tracks are not taken for duplicates.
    """
    groups: list[_Group] = []
    by_fp: dict[Fingerprint, _Group] = {}
    for entry in entries:
        fp = fingerprint(entry.track)
        if fp.is_identifying and fp in by_fp:
            by_fp[fp].entries.append(entry)
            continue
        group = _Group(fp=fp, entries=[entry])
        groups.append(group)
        if fp.is_identifying:
            by_fp[fp] = group
    return groups


def _narrow_by_annotations(
    source: Fingerprint,
    candidates: list[tuple[Track, Fingerprint]],
) -> list[tuple[Track, Fingerprint]]:
    """Keep only candidates whose annotations equal the source's."""
    return [(t, fp) for t, fp in candidates if fp.annotations == source.annotations]


def _check_albums(source_entries: list[LibraryEntry], destination_tracks: list[Track]) -> None:
    source_albums = {e.album_id for e in source_entries}
    for track in destination_tracks:
        if track.album_id in source_albums:
            raise SameAlbumError(track.album_id)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def match(
    source_entries: Iterable[LibraryEntry],
    destination_tracks: Iterable[Track],
    *,
    tolerance: int = DURATION_TOLERANCE,
) -> list[MatchResult]:
    """Match source library entries to destination album tracks.

    Args:
        source_entries: Library entries attributed to the source version.
        destination_tracks: Full track listing of the destination version.
        tolerance: Duration window in seconds for tier 3.

    Returns:
        One result per source entry (in processing order: disc, track,
        added time, library id), followed by one ``UNMATCHED_DESTINATION``
        result per destination track that received no match (in disc/track
        order).

    Raises:
        SameAlbumError: If source and destination are the same album version.
    """
    entries = sorted(source_entries, key=lambda e: e.sort_key)
    tracks = sorted(destination_tracks, key=lambda t: (t.position, t.track_id))
    _check_albums(entries, tracks)

    dest_fps: list[tuple[Track, Fingerprint]] = [(t, fingerprint(t)) for t in tracks]
    pool: dict[str, tuple[Track, Fingerprint]] = {t.track_id: (t, fp) for t, fp in dest_fps}

    groups = _group_duplicates(entries)

    # An external id claimed by more than one distinct source group, or
    # carried by more than one destination track, is not trusted.
    source_id_groups: dict[str, int] = defaultdict(int)
    for group in groups:
        if group.fp.external_id is not None:
            source_id_groups[group.fp.external_id] += 1
    dest_by_id: dict[str, list[Track]] = defaultdict(list)
    for track, fp in dest_fps:
        if fp.external_id is not None:
            dest_by_id[fp.external_id].append(track)

    # Destination tracks that a trusted external id ties to one specific
    # source group are not offered to other entries at the title tiers.
    reserved: dict[str, str] = {}
    for group in groups:
        ext = group.fp.external_id
        if ext is not None and source_id_groups[ext] == 1 and len(dest_by_id.get(ext, ())) == 1:
            reserved[dest_by_id[ext][0].track_id] = group.primary.library_id

    logger.debug(
        "Matching %d source entries (%d distinct) against %d destination tracks",
        len(entries),
        len(groups),
        len(tracks),
    )

    by_library_id: dict[str, MatchResult] = {}
    consumed: set[str] = set()

    for group in groups:
        result = _match_one(
            group.primary,
            group.fp,
            pool,
            source_id_groups,
            dest_by_id,
            reserved,
            tolerance,
        )
        if result.is_match:
            assert result.track is not None
            del pool[result.track.track_id]
            consumed.add(result.track.track_id)
        by_library_id[group.primary.library_id] = result

        for duplicate in group.entries[1:]:
            if result.is_match:
                by_library_id[duplicate.library_id] = MatchResult(
                    entry=duplicate,
                    track=None,
                    tier=MatchTier.NONE,
                    reason=MatchReason.DUPLICATE_SOURCE,
                    duplicate_of=group.primary.library_id,
                )
            else:
                by_library_id[duplicate.library_id] = MatchResult(
                    entry=duplicate,
                    track=None,
                    tier=MatchTier.NONE,
                    reason=result.reason,
                    candidates=result.candidates,
                    duplicate_of=group.primary.library_id,
                )

    results = [by_library_id[e.library_id] for e in entries]
    results.extend(
        MatchResult(
            entry=None,
            track=track,
            reason=MatchReason.UNMATCHED_DESTINATION,
        )
        for track in tracks
        if track.track_id not in consumed
    )
    return results


def _match_one(
    entry: LibraryEntry,
    source: Fingerprint,
    pool: dict[str, tuple[Track, Fingerprint]],
    source_id_groups: dict[str, int],
    dest_by_id: dict[str, list[Track]],
    reserved: dict[str, str],
    tolerance: int,
) -> MatchResult:
    """Match a single (primary) source entry against the remaining pool."""
    # Tier 1: external identifier
    if source.external_id is not None and source.external_id in dest_by_id:
        carriers = dest_by_id[source.external_id]
        if source_id_groups[source.external_id] > 1 or len(carriers) > 1:
            logger.debug(
                "%s: external id %s collides, not trusted", entry.library_id, source.external_id
            )
            return MatchResult(
                entry=entry,
                track=None,
                tier=MatchTier.EXTERNAL_ID,
                reason=MatchReason.AMBIGUOUS,
                candidates=tuple(carriers),
            )
        target = carriers[0]
        if target.track_id in pool:
            return MatchResult(entry=entry, track=target, tier=MatchTier.EXTERNAL_ID)

    available = [
        (t, fp)
        for t, fp in pool.values()
        if reserved.get(t.track_id, entry.library_id) == entry.library_id
    ]

    # Tier 2: exact title + duration
    exact = [
        (t, fp)
        for t, fp in available
        if source.same_title(fp) and not source.artist_conflicts(fp) and source.same_duration(fp)
    ]
    if exact:
        return _resolve(entry, source, exact, MatchTier.EXACT)

    # Tier 3: exact title, duration within tolerance
    near = [
        (t, fp)
        for t, fp in available
        if source.same_title(fp)
        and not source.artist_conflicts(fp)
        and source.duration_within(fp, tolerance)
    ]
    if near:
        return _resolve(entry, source, near, MatchTier.TOLERANCE)

    logger.debug("%s: no candidate for %r", entry.library_id, entry.track.title)
    return MatchResult(entry=entry, track=None, reason=MatchReason.NO_CANDIDATE)


def _resolve(
    entry: LibraryEntry,
    source: Fingerprint,
    candidates: list[tuple[Track, Fingerprint]],
    tier: MatchTier,
) -> MatchResult:
    """Accept a single candidate, or reject the tier as ambiguous."""
    if len(candidates) > 1:
        narrowed = _narrow_by_annotations(source, candidates)
        if len(narrowed) == 1:
            candidates = narrowed
    if len(candidates) == 1:
        return MatchResult(entry=entry, track=candidates[0][0], tier=tier)

    logger.debug(
        "%s: %d candidates tie at tier %s, leaving unmatched",
        entry.library_id,
        len(candidates),
        tier.value,
    )
    return MatchResult(
        entry=entry,
        track=None,
        tier=tier,
        reason=MatchReason.AMBIGUOUS,
        candidates=tuple(t for t, _ in candidates),
    )
