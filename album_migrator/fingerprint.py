"""Track fingerprinting: comparable identity signatures for tracks.

A fingerprint is compared for equality and for the tiered candidate relations
used by the matcher. It is never scored: missing fields simply make the
fingerprint less discriminating and never raise.
"""

from __future__ import annotations

import math
import re
import unicodedata
from dataclasses import dataclass

from album_migrator.models import Track

# ---------------------------------------------------------------------------
# Pre-compiled patterns
# ---------------------------------------------------------------------------

_MULTI_SPACE = re.compile(r"\s+")
_NON_ALNUM_SPACE = re.compile(r"[^\w\s]", re.UNICODE)
_ZERO_WIDTH = re.compile(r"[\u200b\u200c\u200d\ufeff]")
_APOSTROPHES = re.compile(r"['\u2018\u2019\u02bc`]")
_DASHES = re.compile(r"[\u2010\u2011\u2012\u2013\u2014\u2015\-_]")
_BRACKETED = re.compile(r"[\(\[\{]([^\(\)\[\]\{\}]*)[\)\]\}]")
_DASH_SUFFIX = re.compile(r"\s+[-\u2013\u2014]\s+([^-\u2013\u2014]+)$")
_BARE_FEATURE = re.compile(r"\s+((?:feat\.?|ft\.|featuring)\s+.+)$", re.IGNORECASE)

# Qualifiers that describe an edition or a credit rather than a different
# recording. Anything else in brackets ("Remix", "Live", "Radio Edit") stays
# part of the title.
_ANNOTATION = re.compile(
    r"^(?:"
    r"(?:\d{4}\s+)?(?:digital(?:ly)?\s+)?remaster(?:ed)?(?:\s+\d{4})?(?:\s+version)?"
    r"|(?:feat\.?|ft\.|featuring|with)\s+.+"
    r"|(?:super\s+)?deluxe(?:\s+edition)?(?:\s+version)?"
    r"|bonus(?:\s+track)?(?:\s+version)?"
    r"|expanded(?:\s+edition)?"
    r"|(?:\d+(?:st|nd|rd|th)\s+)?anniversary(?:\s+edition)?"
    r"|explicit|clean"
    r"|album\s+version"
    r")$",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Text normalization
# ---------------------------------------------------------------------------


def normalize_text(s: str) -> str:
    """Case-fold, strip punctuation and collapse whitespace.

    Handles formatting drift common between album releases: compatibility
    forms, zero-width characters, curly apostrophes, dash variants, colons.
    """
    s = unicodedata.normalize("NFKC", s)
    s = _ZERO_WIDTH.sub("", s)
    s = _APOSTROPHES.sub("", s)
    s = _DASHES.sub(" ", s)
    s = s.replace(":", " ").replace("/", " ")
    s = _NON_ALNUM_SPACE.sub("", s.casefold())
    return _MULTI_SPACE.sub(" ", s).strip()


def is_annotation(qualifier: str) -> bool:
    """Return whether a bracketed qualifier only annotates the recording."""
    return bool(_ANNOTATION.match(_MULTI_SPACE.sub(" ", qualifier.strip())))


def split_title(title: str) -> tuple[str, tuple[str, ...]]:
    """Split a raw title into (normalized title, normalized annotations).

    Examples:
        "Song A (Remastered 2011)" -> ("song a", ("remastered 2011",))
        "Song A (Remix)"           -> ("song a remix", ())
        "Song A - Bonus Track"     -> ("song a", ("bonus track",))
    """
    annotations: list[str] = []

    def _take(match: re.Match[str]) -> str:
        content = match.group(1)
        if is_annotation(content):
            annotations.append(normalize_text(content))
            return " "
        return f" {content} "

    remaining = _BRACKETED.sub(_take, title)

    m = _DASH_SUFFIX.search(remaining)
    if m and is_annotation(m.group(1)):
        annotations.append(normalize_text(m.group(1)))
        remaining = remaining[: m.start()]

    m = _BARE_FEATURE.search(remaining)
    if m:
        annotations.append(normalize_text(m.group(1)))
        remaining = remaining[: m.start()]

    return normalize_text(remaining), tuple(sorted(a for a in annotations if a))


def normalize_artist(artist: str) -> str:
    """Normalize an artist credit, dropping featured-artist suffixes."""
    base, _annotations = split_title(artist)
    return base


def round_duration(seconds: float | None) -> int | None:
    """Round a duration to the nearest second (half up); unknown -> None."""
    if seconds is None:
        return None
    if math.isnan(seconds) or seconds <= 0:
        return None
    return int(math.floor(seconds + 0.5))


# ---------------------------------------------------------------------------
# Fingerprint
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Fingerprint:
    """Comparable identity of a track.

    Attributes:
        external_id: Upper-cased ISRC-like code, or None.
        title: Normalized title without annotations, or None if missing.
        annotations: Sorted normalized edition/credit qualifiers.
        duration: Whole seconds, or None if unknown.
        disc_number: Disc position, or None.
        track_number: Track position, or None.
        artist: Normalized primary artist credit, or None.
    """

    external_id: str | None
    title: str | None
    annotations: tuple[str, ...]
    duration: int | None
    disc_number: int | None
    track_number: int | None
    artist: str | None

    @property
    def is_identifying(self) -> bool:
        """True when the fingerprint carries a title or external id."""
        return self.title is not None or self.external_id is not None

    def same_title(self, other: Fingerprint) -> bool:
        """Normalized titles are equal; a missing title never matches."""
        return self.title is not None and self.title == other.title

    def artist_conflicts(self, other: Fingerprint) -> bool:
        """Both artist credits are known and differ."""
        return self.artist is not None and other.artist is not None and self.artist != other.artist

    def same_duration(self, other: Fingerprint) -> bool:
        """Durations are equal, or both unknown."""
        return self.duration == other.duration

    def duration_within(self, other: Fingerprint, tolerance: int) -> bool:
        """Both durations known and no more than *tolerance* seconds apart."""
        if self.duration is None or other.duration is None:
            return False
        return abs(self.duration - other.duration) <= tolerance


def fingerprint(track: Track) -> Fingerprint:
    """Derive the fingerprint of a track. Never raises."""
    title: str | None = None
    annotations: tuple[str, ...] = ()
    if track.title and track.title.strip():
        normalized, annotations = split_title(track.title)
        title = normalized or None

    artist: str | None = None
    if track.artist and track.artist.strip():
        artist = normalize_artist(track.artist) or None

    external_id: str | None = None
    if track.isrc and track.isrc.strip():
        external_id = track.isrc.strip().upper()

    return Fingerprint(
        external_id=external_id,
        title=title,
        annotations=annotations,
        duration=round_duration(track.duration),
        disc_number=track.disc_number,
        track_number=track.track_number,
        artist=artist,
    )
