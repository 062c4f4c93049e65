"""List past migrations recorded in the journal."""

from __future__ import annotations

import click
from rich.markup import escape

from album_migrator.cli import Context, pass_context
from album_migrator.commands._review import EXIT_ERROR, EXIT_SUCCESS
from album_migrator.exceptions import JournalError
from album_migrator.journal import get_journal_session, get_run, list_runs
from album_migrator.utils.output import console, create_table, error, info

_STATUS_STYLE = {
    "completed": "success",
    "partial": "warning",
    "failed": "error",
    "running": "warning",
    "interrupted": "error",
}


@click.command("history")
@click.option(
    "--limit",
    "-n",
    type=click.IntRange(min=1),
    default=20,
    show_default=True,
    help="Number of runs to show",
)
@click.option(
    "--run",
    "run_id",
    type=int,
    default=None,
    help="Show the operations of one run",
)
@pass_context
def cli(ctx: Context, limit: int, run_id: int | None) -> None:
    """Show recent migrations and their outcomes.

    Examples:

    \b
      album-migrator history

    \b
      album-migrator history --run 12
    """
    config = ctx.config
    assert config is not None

    if not config.journal_path.exists():
        info("No migrations recorded yet.")
        raise SystemExit(EXIT_SUCCESS)

    try:
        with get_journal_session(config.journal_path) as session:
            if run_id is not None:
                run = get_run(session, run_id)
                if run is None:
                    error(f"No run with id {run_id}")
                    raise SystemExit(EXIT_ERROR)
                table = create_table(
                    title=f"Run {run.id}: {run.source_album_id} -> {run.destination_album_id}"
                )
                table.add_column("#", justify="right")
                table.add_column("Op")
                table.add_column("Target")
                table.add_column("Title")
                table.add_column("Status")
                table.add_column("Error")
                for op in run.operations:
                    table.add_row(
                        str(op.position),
                        op.kind,
                        op.target_id,
                        escape(op.title or ""),
                        op.status,
                        escape(op.error or ""),
                    )
                console.print(table)
            elif not (runs := list_runs(session, limit=limit)):
                info("No migrations recorded yet.")
            else:
                table = create_table(title="Migrations")
                table.add_column("Run", justify="right")
                table.add_column("Started")
                table.add_column("Source")
                table.add_column("Destination")
                table.add_column("Adds", justify="right")
                table.add_column("Removes", justify="right")
                table.add_column("Warnings", justify="right")
                table.add_column("Status")
                for run in runs:
                    style = _STATUS_STYLE.get(run.status, "info")
                    table.add_row(
                        str(run.id),
                        run.started_at,
                        run.source_album_id,
                        run.destination_album_id,
                        str(run.adds),
                        str(run.removes),
                        str(run.warnings),
                        f"[{style}]{run.status}[/{style}]",
                    )
                console.print(table)
    except JournalError as e:
        error(str(e))
        raise SystemExit(EXIT_ERROR)

    raise SystemExit(EXIT_SUCCESS)
