"""Exception hierarchy for album-migrator."""

from pathlib import Path


class AlbumMigratorError(Exception):
    """Base exception for all album-migrator errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all album-migrator errors with
    a single except clause.
    """

    pass


# Configuration Errors
class ConfigError(AlbumMigratorError):
    """Configuration-related errors."""

    pass


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


# Matching / planning Errors
class MatchingError(AlbumMigratorError):
    """Inputs to the matcher or plan builder are unusable."""

    pass


class SameAlbumError(MatchingError):
    """Source and destination are the same album version."""

    def __init__(self, album_id: str) -> None:
        self.album_id = album_id
        super().__init__(f"Source and destination are the same album version: {album_id}")


class PlanConsistencyError(MatchingError):
    """Match results do not line up with the entries and tracks they came from."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Inconsistent match results: {detail}")


# Apple Music Errors
class AppleMusicError(AlbumMigratorError):
    """Apple Music API errors."""

    pass


class AppleMusicAuthError(AppleMusicError):
    """Developer or user token rejected."""

    pass


class AppleMusicParseError(AppleMusicError):
    """API response could not be turned into album data."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Unexpected response from {url}: {reason}")


# Snapshot Errors
class SnapshotError(AlbumMigratorError):
    """Snapshot file is missing or malformed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load snapshot {path}: {reason}")


# Journal Errors
class JournalError(AlbumMigratorError):
    """Migration journal database errors."""

    pass


# Validation Errors
class ValidationError(AlbumMigratorError):
    """Invalid input value."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")
