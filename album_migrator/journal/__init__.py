"""Local record of executed migrations."""

from album_migrator.journal.models import JournalBase, MigrationRun, OperationRecord
from album_migrator.journal.session import (
    MEMORY,
    finish_run,
    mark_interrupted,
    record_outcome,
    get_journal_session,
    get_run,
    list_runs,
    start_run,
)

__all__ = [
    "JournalBase",
    "MEMORY",
    "MigrationRun",
    "OperationRecord",
    "finish_run",
    "mark_interrupted",
    "record_outcome",
    "get_journal_session",
    "get_run",
    "list_runs",
    "start_run",
]
