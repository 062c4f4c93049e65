"""Migrate library songs from one album version to another."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import click

from album_migrator.apple_music import AppleMusicClient
from album_migrator.apple_music.validators import (
    validate_catalog_id,
    validate_library_album_id,
    validate_storefront,
)
from album_migrator.cli import Context, pass_context
from album_migrator.commands._review import (
    EXIT_ABORTED,
    EXIT_ERROR,
    EXIT_PARTIAL,
    EXIT_SUCCESS,
    show_plan,
)
from album_migrator.exceptions import AlbumMigratorError, AppleMusicAuthError, ValidationError
from album_migrator.executor import ExecutionReport, OperationOutcome, OutcomeStatus, execute_plan
from album_migrator.journal import (
    finish_run,
    get_journal_session,
    mark_interrupted,
    record_outcome,
    start_run,
)
from album_migrator.models import LibraryEntry
from album_migrator.plan import MigrationPlan, plan_migration
from album_migrator.snapshot import Snapshot, save_snapshot
from album_migrator.utils.output import (
    create_progress,
    error,
    info,
    print_path,
    success,
    verbose,
    warning,
)


def _check_ids(source: str, destination: str, library: str | None, storefront: str) -> None:
    if not validate_library_album_id(source):
        raise ValidationError("source library album id", source, "expected an id like l.AbC123")
    if not validate_catalog_id(destination):
        raise ValidationError("destination album id", destination, "expected a numeric catalog id")
    if library is not None and not validate_library_album_id(library):
        raise ValidationError(
            "destination library album id", library, "expected an id like l.AbC123"
        )
    if not validate_storefront(storefront):
        raise ValidationError("storefront", storefront, "expected two lower-case letters")


def fetch_snapshot(
    client: AppleMusicClient,
    source_library_album: str,
    destination_album: str,
    destination_library_album: str | None = None,
) -> Snapshot:
    """Fetch everything a migration plan is built from.

    Args:
        client: Authenticated Apple Music client.
        source_library_album: Library album holding the songs to move.
        destination_album: Catalog id of the album version to move to.
        destination_library_album: Library album already holding songs of
            the destination, if any.

    Returns:
        Snapshot of the source entries and destination album.
    """
    source_entries, source_album = client.fetch_source_entries(source_library_album)
    verbose(f"Source: {source_album.artist} - {source_album.name} ({len(source_entries)} songs)")

    destination = client.fetch_catalog_album(destination_album)
    verbose(
        f"Destination: {destination.artist} - {destination.name} "
        f"({len(destination.tracks)} tracks)"
    )

    destination_entries: list[LibraryEntry] = []
    if destination_library_album is not None:
        destination_entries, present_album = client.fetch_source_entries(destination_library_album)
        if present_album.album_id != destination.album_id:
            warning(
                f"Library album {destination_library_album} belongs to album "
                f"{present_album.album_id}, not {destination.album_id}; ignoring it"
            )
            destination_entries = []

    return Snapshot(
        source_album_id=source_album.album_id,
        source_entries=tuple(source_entries),
        destination=destination,
        destination_entries=tuple(destination_entries),
    )


def apply_plan(
    plan: MigrationPlan,
    client: AppleMusicClient,
    *,
    quiet: bool = False,
    record: Callable[[OperationOutcome], None] | None = None,
) -> ExecutionReport:
    """Execute a plan with a progress bar.

    *record* is called with each outcome as soon as it is known.
    """
    if quiet:
        return execute_plan(plan, client, on_outcome=record)

    with create_progress() as progress:
        task = progress.add_task("Migrating...", total=len(plan.operations))

        def on_outcome(outcome: OperationOutcome) -> None:
            if record is not None:
                record(outcome)
            if outcome.status is not OutcomeStatus.COMMITTED:
                progress.console.print(
                    f"  [error]{outcome.status.value}[/error] "
                    f"{outcome.operation.key}: {outcome.error}"
                )
            progress.advance(task)

        return execute_plan(plan, client, on_outcome=on_outcome)


@click.command("migrate")
@click.argument("source")
@click.argument("destination")
@click.option(
    "--destination-library-album",
    "-L",
    default=None,
    help="Library album already holding songs of DESTINATION (skips re-adding them)",
)
@click.option(
    "--storefront",
    "-s",
    default=None,
    help="Storefront for catalog lookups (overrides config)",
)
@click.option(
    "--tolerance",
    "-t",
    type=click.IntRange(min=0),
    default=None,
    help="Duration tolerance in seconds (overrides config)",
)
@click.option(
    "--save-snapshot",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the fetched state to a JSON file for offline review",
)
@click.option(
    "--dry-run",
    "-n",
    is_flag=True,
    default=False,
    help="Show the plan without changing the library",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    default=False,
    help="Apply the plan without asking for confirmation",
)
@pass_context
def cli(
    ctx: Context,
    source: str,
    destination: str,
    destination_library_album: str | None,
    storefront: str | None,
    tolerance: int | None,
    save_snapshot: Path | None,
    dry_run: bool,
    yes: bool,
) -> None:
    """Move songs from one album version to another.

    SOURCE is the library album id (l.xxxx) holding your songs; DESTINATION
    is the catalog id of the album version to move them to. Songs are paired
    by ISRC, then by title and duration; every pairing is shown before
    anything changes. Songs without a counterpart stay where they are.

    Examples:

    \b
      # Review, confirm and apply
      album-migrator migrate l.AbCdEf1 1440857781

    \b
      # Only show what would happen, keep the fetched state
      album-migrator migrate l.AbCdEf1 1440857781 --dry-run --save-snapshot state.json
    """
    config = ctx.config
    assert config is not None
    storefront = storefront or config.storefront
    tolerance = config.duration_tolerance if tolerance is None else tolerance

    if not config.developer_token:
        error(
            "No Apple Music developer token configured",
            hint="Set apple_music.developer_token in the config file (album-migrator init-config)",
        )
        raise SystemExit(EXIT_ERROR)

    try:
        _check_ids(source, destination, destination_library_album, storefront)

        client = AppleMusicClient(
            config.developer_token,
            user_token=config.user_token,
            storefront=storefront,
            origin=config.origin,
        )
        snapshot = fetch_snapshot(client, source, destination, destination_library_album)

        if save_snapshot is not None:
            save_snapshot_file(snapshot, save_snapshot)

        plan = plan_migration(
            snapshot.source_entries,
            snapshot.destination,
            destination_entries=snapshot.destination_entries,
            tolerance=tolerance,
        )
    except AppleMusicAuthError as e:
        error(str(e), hint="Refresh the tokens in your config file")
        raise SystemExit(EXIT_ERROR)
    except AlbumMigratorError as e:
        error(str(e))
        raise SystemExit(EXIT_ERROR)

    title = (
        f"{snapshot.source_album_id} -> {snapshot.destination.album_id} "
        f"({snapshot.destination.name})"
    )
    show_plan(plan, title=title, quiet=ctx.quiet)

    if plan.is_empty:
        info("Nothing to migrate.")
        raise SystemExit(EXIT_SUCCESS)

    if dry_run:
        info("Dry run: library not changed.")
        raise SystemExit(EXIT_SUCCESS)

    if not yes and not click.confirm(
        f"Apply {len(plan.adds)} additions and {len(plan.removes)} removals?", default=False
    ):
        info("Aborted.")
        raise SystemExit(EXIT_ABORTED)

    run_id = None
    try:
        with get_journal_session(config.journal_path) as session:
            run = start_run(session, plan, snapshot.source_album_id, snapshot.destination.album_id)
            run_id = run.id
            finished = False
            try:
                report = apply_plan(
                    plan,
                    client,
                    quiet=ctx.quiet,
                    record=lambda outcome: record_outcome(session, run, outcome),
                )
                finish_run(session, run, report)
                finished = True
            finally:
                if not finished:
                    mark_interrupted(session, run)
    except AlbumMigratorError as e:
        error(str(e))
        raise SystemExit(EXIT_ERROR)
    except KeyboardInterrupt:
        error(
            f"Interrupted (run {run_id})",
            hint="Check the run with 'history', then run the same command again",
        )
        raise SystemExit(EXIT_ABORTED)

    if report.ok:
        success(f"Migrated: {len(report.committed)} operations committed (run {run_id})")
        raise SystemExit(EXIT_SUCCESS)

    error(
        f"{len(report.failed)} operations failed and {len(report.skipped)} were skipped "
        f"(run {run_id})",
        hint="Run the same command again; the plan is rebuilt from the current library",
    )
    raise SystemExit(EXIT_PARTIAL)


def save_snapshot_file(snapshot: Snapshot, path: Path) -> None:
    """Save *snapshot* and tell the user where it went."""
    save_snapshot(snapshot, path)
    print_path(str(path), prefix="Snapshot saved to")
