"""Configuration management for album-migrator."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from album_migrator.apple_music.validators import validate_developer_token, validate_storefront
from album_migrator.exceptions import (
    ConfigParseError,
    ConfigValidationError,
)
from album_migrator.matcher import DURATION_TOLERANCE
from album_migrator.utils.fileops import secure_atomic_write


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "album-migrator" / "config.toml"


def get_default_journal_path() -> Path:
    """Get the default migration journal path."""
    return Path.home() / ".local" / "share" / "album-migrator" / "journal.db"


@dataclass
class Config:
    """Application configuration.

    Attributes:
        developer_token: MusicKit developer token (JWT).
        user_token: Media user token for library access.
        storefront: Storefront used for catalog lookups.
        origin: Optional Origin header sent with API requests.
        duration_tolerance: Seconds of duration difference accepted by
            the tolerance tier of the matcher.
        journal_path: SQLite file recording executed migrations.
        colored_output: Whether to use colored terminal output.
        config_path: Path where config was loaded from (None if defaults).
    """

    developer_token: str | None = None
    user_token: str | None = None
    storefront: str = "us"
    origin: str | None = None
    duration_tolerance: int = DURATION_TOLERANCE
    journal_path: Path = field(default_factory=get_default_journal_path)
    colored_output: bool = True
    config_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns:
            List of warning messages for non-fatal issues.

        Raises:
            ConfigValidationError: If a critical validation fails.
        """
        warnings: list[str] = []

        self.journal_path = self.journal_path.expanduser()

        if not validate_storefront(self.storefront):
            raise ConfigValidationError(
                "apple_music.storefront", self.storefront, "must be two lower-case letters"
            )

        if self.duration_tolerance < 0:
            raise ConfigValidationError(
                "matching.duration_tolerance", self.duration_tolerance, "must not be negative"
            )
        if self.duration_tolerance > 10:
            warnings.append(
                f"matching.duration_tolerance={self.duration_tolerance} is unusually large; "
                f"different edits of a song may be paired"
            )

        if self.developer_token is not None and not validate_developer_token(self.developer_token):
            warnings.append("apple_music.developer_token does not look like a JWT")

        return warnings


def load_config(config_path: Path | None = None) -> tuple[Config, list[str]]:
    """Load configuration from file or use defaults.

    Args:
        config_path: Explicit config file path. If None, uses default location.

    Returns:
        Tuple of (Config object, list of warning messages).

    Raises:
        ConfigParseError: If config file exists but has invalid syntax.
        ConfigValidationError: If config values are invalid.
    """
    warnings: list[str] = []

    if config_path is None:
        config_path = get_default_config_path()

    config_path = config_path.expanduser().resolve()

    if not config_path.exists():
        config = Config()
        warnings.append(
            f"No config file found at {config_path}. Using defaults. "
            f"Create config with: album-migrator init-config"
        )
        config_warnings = config.validate()
        return config, warnings + config_warnings

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(config_path, str(e)) from e

    config = _parse_config_dict(data, config_path)
    config_warnings = config.validate()

    return config, warnings + config_warnings


def _optional_str(section: dict[str, Any], name: str, key: str) -> str | None:
    value = section[name]
    if value is not None and not isinstance(value, str):
        raise ConfigValidationError(key, value, "must be a string")
    return value


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [apple_music] section
    apple_music = data.get("apple_music", {})
    if "developer_token" in apple_music:
        config.developer_token = _optional_str(
            apple_music, "developer_token", "apple_music.developer_token"
        )
    if "user_token" in apple_music:
        config.user_token = _optional_str(apple_music, "user_token", "apple_music.user_token")
    if "origin" in apple_music:
        config.origin = _optional_str(apple_music, "origin", "apple_music.origin")
    if "storefront" in apple_music:
        value = apple_music["storefront"]
        if not isinstance(value, str):
            raise ConfigValidationError("apple_music.storefront", value, "must be a string")
        config.storefront = value

    # Parse [matching] section
    matching = data.get("matching", {})
    if "duration_tolerance" in matching:
        value = matching["duration_tolerance"]
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigValidationError(
                "matching.duration_tolerance", value, "must be an integer"
            )
        config.duration_tolerance = value

    # Parse [journal] section
    journal = data.get("journal", {})
    if "path" in journal:
        value = journal["path"]
        if not isinstance(value, str):
            raise ConfigValidationError("journal.path", value, "must be a string path")
        config.journal_path = Path(value)

    # Parse [display] section
    display = data.get("display", {})
    if "colored_output" in display:
        value = display["colored_output"]
        if not isinstance(value, bool):
            raise ConfigValidationError("display.colored_output", value, "must be a boolean")
        config.colored_output = value

    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Path to save to. If None, uses config.config_path or default.
    """
    if config_path is None:
        config_path = config.config_path or get_default_config_path()

    config_path = config_path.expanduser().resolve()

    apple_music: dict[str, Any] = {"storefront": config.storefront}
    if config.developer_token is not None:
        apple_music["developer_token"] = config.developer_token
    if config.user_token is not None:
        apple_music["user_token"] = config.user_token
    if config.origin is not None:
        apple_music["origin"] = config.origin

    data: dict[str, Any] = {
        "apple_music": apple_music,
        "matching": {"duration_tolerance": config.duration_tolerance},
        "journal": {"path": str(config.journal_path)},
        "display": {"colored_output": config.colored_output},
    }

    # Tokens are secrets: owner-only permissions
    secure_atomic_write(config_path, tomli_w.dumps(data))
