"""Initialize configuration file for album-migrator."""

from __future__ import annotations

from importlib import resources
from pathlib import Path

import click

from album_migrator.cli import Context, pass_context
from album_migrator.commands._review import EXIT_ERROR
from album_migrator.config import get_default_config_path
from album_migrator.utils.fileops import secure_atomic_write
from album_migrator.utils.output import error, info, success


def _load_example_config() -> str:
    """Load the example configuration from package data."""
    return resources.files("album_migrator").joinpath("config.example.toml").read_text()


@click.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    default=False,
    help="Overwrite existing config file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for config file (default: ~/.config/album-migrator/config.toml)",
)
@pass_context
def cli(ctx: Context, force: bool, output: Path | None) -> None:
    """Create a new configuration file with default settings.

    Creates a configuration file at the default location
    (~/.config/album-migrator/config.toml) or at a custom path
    specified with --output. The file is readable by you only, since
    it will hold your Apple Music tokens.

    Examples:

    \b
      # Create config at default location
      album-migrator init-config

    \b
      # Create config at custom location
      album-migrator init-config --output ./my-config.toml

    \b
      # Overwrite existing config
      album-migrator init-config --force
    """
    config_path = output if output is not None else get_default_config_path()
    config_path = config_path.expanduser().resolve()

    if config_path.exists() and not force:
        error(
            f"Config file already exists: {config_path}",
            hint="Use --force to overwrite",
        )
        raise SystemExit(EXIT_ERROR)

    try:
        secure_atomic_write(config_path, _load_example_config())
    except OSError as e:
        error(f"Failed to write config file: {e}")
        raise SystemExit(EXIT_ERROR)

    success(f"Created config file: {config_path}")
    info("Add your developer and user tokens under [apple_music] before running migrate.")
