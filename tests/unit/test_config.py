"""Unit tests for configuration loading."""

from __future__ import annotations

import stat
from pathlib import Path

import pytest

from album_migrator.config import Config, load_config, save_config
from album_migrator.exceptions import ConfigParseError, ConfigValidationError
from album_migrator.matcher import DURATION_TOLERANCE


class TestConfigDefaults:
    def test_default_values(self) -> None:
        config = Config()
        assert config.developer_token is None
        assert config.storefront == "us"
        assert config.duration_tolerance == DURATION_TOLERANCE
        assert config.colored_output is True
        assert config.journal_path.name == "journal.db"

    def test_missing_file_uses_defaults(self, temp_dir: Path) -> None:
        config, warnings = load_config(temp_dir / "nope.toml")
        assert config.config_path is None
        assert any("init-config" in w for w in warnings)


class TestLoadConfig:
    def test_sample_config(self, sample_config: Path, temp_dir: Path) -> None:
        config, warnings = load_config(sample_config)
        assert warnings == []
        assert config.developer_token == "aaa.bbb.ccc"
        assert config.user_token == "user-token"
        assert config.storefront == "gb"
        assert config.origin == "https://music.apple.com"
        assert config.duration_tolerance == 3
        assert config.journal_path == temp_dir / "journal.db"
        assert config.colored_output is False
        assert config.config_path == sample_config.resolve()

    def test_invalid_toml(self, temp_dir: Path) -> None:
        path = temp_dir / "config.toml"
        path.write_text("[apple_music\nstorefront = ")
        with pytest.raises(ConfigParseError):
            load_config(path)

    @pytest.mark.parametrize(
        "content",
        [
            '[matching]\nduration_tolerance = "2"\n',
            "[matching]\nduration_tolerance = true\n",
            "[matching]\nduration_tolerance = -1\n",
            '[apple_music]\nstorefront = "USA"\n',
            "[apple_music]\nstorefront = 1\n",
            "[apple_music]\ndeveloper_token = 5\n",
            '[display]\ncolored_output = "yes"\n',
            "[journal]\npath = 3\n",
        ],
    )
    def test_invalid_values(self, temp_dir: Path, content: str) -> None:
        path = temp_dir / "config.toml"
        path.write_text(content)
        with pytest.raises(ConfigValidationError):
            load_config(path)

    def test_token_type_message(self, temp_dir: Path) -> None:
        path = temp_dir / "config.toml"
        path.write_text("[apple_music]\nuser_token = 5\n")
        with pytest.raises(ConfigValidationError, match="must be a string$"):
            load_config(path)

    def test_non_fatal_warnings(self, temp_dir: Path) -> None:
        path = temp_dir / "config.toml"
        path.write_text('[apple_music]\ndeveloper_token = "abc"\n[matching]\nduration_tolerance = 30\n')
        config, warnings = load_config(path)
        assert config.duration_tolerance == 30
        assert len(warnings) == 2


class TestSaveConfig:
    def test_round_trip(self, temp_dir: Path) -> None:
        path = temp_dir / "out" / "config.toml"
        original = Config(
            developer_token="aaa.bbb.ccc",
            user_token="secret",
            storefront="de",
            duration_tolerance=4,
            journal_path=temp_dir / "j.db",
            colored_output=False,
        )
        save_config(original, path)

        loaded, _ = load_config(path)
        assert loaded.developer_token == "aaa.bbb.ccc"
        assert loaded.user_token == "secret"
        assert loaded.storefront == "de"
        assert loaded.duration_tolerance == 4
        assert loaded.journal_path == temp_dir / "j.db"
        assert loaded.colored_output is False

    def test_file_is_owner_only(self, temp_dir: Path) -> None:
        path = temp_dir / "config.toml"
        save_config(Config(user_token="secret"), path)
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
