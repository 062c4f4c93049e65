"""Review a migration plan offline from a saved snapshot."""

from __future__ import annotations

import json
from pathlib import Path

import click

from album_migrator.cli import Context, pass_context
from album_migrator.commands._review import EXIT_ERROR, EXIT_SUCCESS, show_plan
from album_migrator.exceptions import AlbumMigratorError
from album_migrator.plan import plan_migration
from album_migrator.reviewer import plan_to_dict
from album_migrator.snapshot import load_snapshot
from album_migrator.utils.output import error, print_path


@click.command("plan")
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--tolerance",
    "-t",
    type=click.IntRange(min=0),
    default=None,
    help="Duration tolerance in seconds (overrides config)",
)
@click.option(
    "--json",
    "json_path",
    type=click.Path(dir_okay=False, allow_dash=True, path_type=Path),
    default=None,
    help="Also write the plan as JSON ('-' for stdout)",
)
@pass_context
def cli(ctx: Context, snapshot: Path, tolerance: int | None, json_path: Path | None) -> None:
    """Show the plan for a snapshot saved with migrate --save-snapshot.

    Nothing is fetched and nothing is changed; the same snapshot always
    produces the same plan.

    Examples:

    \b
      album-migrator plan state.json

    \b
      album-migrator plan state.json --tolerance 3 --json plan.json
    """
    config = ctx.config
    assert config is not None
    tolerance = config.duration_tolerance if tolerance is None else tolerance

    try:
        state = load_snapshot(snapshot)
        plan = plan_migration(
            state.source_entries,
            state.destination,
            destination_entries=state.destination_entries,
            tolerance=tolerance,
        )
    except AlbumMigratorError as e:
        error(str(e))
        raise SystemExit(EXIT_ERROR)

    to_stdout = json_path is not None and str(json_path) == "-"
    if not to_stdout:
        title = (
            f"{state.source_album_id} -> {state.destination.album_id} "
            f"({state.destination.name})"
        )
        show_plan(plan, title=title, quiet=ctx.quiet)

    if json_path is not None:
        text = json.dumps(plan_to_dict(plan), indent=2, ensure_ascii=False)
        if to_stdout:
            click.echo(text)
        else:
            json_path.write_text(text + "\n", encoding="utf-8")
            print_path(str(json_path), prefix="Plan written to")

    raise SystemExit(EXIT_SUCCESS)
