"""Journal database session management and run recording."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from album_migrator.exceptions import JournalError
from album_migrator.executor import ExecutionReport, OperationOutcome
from album_migrator.journal.models import JournalBase, MigrationRun, OperationRecord
from album_migrator.plan import AddOperation, MigrationPlan

log = logging.getLogger(__name__)

# Sentinel path for a throwaway in-memory journal.
MEMORY = Path(":memory:")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def get_journal_engine(db_path: Path):
    """Create SQLAlchemy engine for the journal database.

    Args:
        db_path: Path to the SQLite file, or :data:`MEMORY`.

    Returns:
        SQLAlchemy engine for the journal database.
    """
    if db_path == MEMORY:
        return create_engine("sqlite://")
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"timeout": 30},
    )


@contextmanager
def get_journal_session(db_path: Path) -> Generator[Session, None, None]:
    """Create a session for the journal database.

    Auto-creates tables on first use.

    Args:
        db_path: Path to the SQLite file.

    Yields:
        SQLAlchemy Session for the journal database.

    Raises:
        JournalError: If the database cannot be opened or written.
    """
    try:
        engine = get_journal_engine(db_path)
        JournalBase.metadata.create_all(engine)
    except (OSError, SQLAlchemyError) as e:
        raise JournalError(f"Cannot open journal {db_path}: {e}") from e

    session = sessionmaker(bind=engine)()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise JournalError(f"Journal write failed: {e}") from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def start_run(
    session: Session,
    plan: MigrationPlan,
    source_album_id: str,
    destination_album_id: str,
) -> MigrationRun:
    """Insert a running MigrationRun for *plan*, commit it and return it.

    The row is committed before any operation runs, so a run that dies
    part-way still leaves a trace in the journal.
    """
    run = MigrationRun(
        started_at=_now(),
        source_album_id=source_album_id,
        destination_album_id=destination_album_id,
        status="running",
        adds=len(plan.adds),
        removes=len(plan.removes),
        warnings=len(plan.warnings),
    )
    session.add(run)
    session.commit()
    log.debug("Started journal run %d", run.id)
    return run


def _record(position: int, outcome: OperationOutcome) -> OperationRecord:
    op = outcome.operation
    if isinstance(op, AddOperation):
        kind, target, title = "add", op.track.track_id, op.track.title
    else:
        kind, target, title = "remove", op.entry.library_id, op.entry.track.title
    return OperationRecord(
        position=position,
        kind=kind,
        target_id=target,
        title=title,
        status=outcome.status.value,
        error=outcome.error,
    )


def record_outcome(session: Session, run: MigrationRun, outcome: OperationOutcome) -> None:
    """Append one operation outcome to *run* and commit it."""
    run.operations.append(_record(len(run.operations), outcome))
    session.commit()


def finish_run(
    session: Session,
    run: MigrationRun,
    report: ExecutionReport,
) -> None:
    """Record outcomes not yet journaled and the final status of *run*."""
    recorded = len(run.operations)
    for position, outcome in enumerate(report.outcomes[recorded:], start=recorded):
        run.operations.append(_record(position, outcome))
    if report.ok:
        run.status = "completed"
    else:
        run.status = "partial" if report.committed else "failed"
    run.finished_at = _now()
    session.commit()


def mark_interrupted(session: Session, run: MigrationRun) -> None:
    """Close a run that stopped before finishing.

    Outcomes committed so far are kept; anything pending is discarded.
    """
    session.rollback()
    if run.status != "running":
        return
    run.status = "interrupted"
    run.finished_at = _now()
    session.commit()
    log.warning("Journal run %d interrupted after %d operations", run.id, len(run.operations))


def list_runs(session: Session, limit: int = 20) -> list[MigrationRun]:
    """Most recent runs first, with their operations loaded."""
    stmt = (
        select(MigrationRun)
        .options(selectinload(MigrationRun.operations))
        .order_by(MigrationRun.id.desc())
        .limit(limit)
    )
    return list(session.scalars(stmt))


def get_run(session: Session, run_id: int) -> MigrationRun | None:
    """One run by id, or None."""
    return session.get(MigrationRun, run_id)
