"""Plan execution against a host library.

Operations run in plan order. A Remove only runs once the Add it depends on
has committed, so a failure partway through never leaves a song in neither
album version. Every operation gets an outcome, which makes a partial failure
attributable; recovery is a fresh snapshot and a rebuilt plan.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from album_migrator.models import LibraryEntry, Track
from album_migrator.plan import AddOperation, MigrationPlan, Operation, RemoveOperation

logger = logging.getLogger(__name__)


class LibraryBackend(Protocol):
    """Host library mutation calls used by the executor."""

    def add_track(self, track: Track) -> None: ...

    def remove_entry(self, entry: LibraryEntry) -> None: ...


class OutcomeStatus(enum.Enum):
    COMMITTED = "committed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class OperationOutcome:
    """Result of applying (or not applying) one operation."""

    operation: Operation
    status: OutcomeStatus
    error: str | None = None


@dataclass(slots=True)
class ExecutionReport:
    """Per-operation outcomes of one execution."""

    outcomes: list[OperationOutcome] = field(default_factory=list)

    def _with(self, status: OutcomeStatus) -> list[OperationOutcome]:
        return [o for o in self.outcomes if o.status is status]

    @property
    def committed(self) -> list[OperationOutcome]:
        return self._with(OutcomeStatus.COMMITTED)

    @property
    def failed(self) -> list[OperationOutcome]:
        return self._with(OutcomeStatus.FAILED)

    @property
    def skipped(self) -> list[OperationOutcome]:
        return self._with(OutcomeStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.skipped


def execute_plan(
    plan: MigrationPlan,
    backend: LibraryBackend,
    *,
    on_outcome: Callable[[OperationOutcome], None] | None = None,
) -> ExecutionReport:
    """Apply a plan's operations through *backend*.

    Backend errors are recorded against the failing operation rather than
    raised, so the caller learns exactly which operations committed.

    Args:
        plan: The plan to apply.
        backend: Host library mutation calls.
        on_outcome: Optional callback invoked after each operation.

    Returns:
        ExecutionReport with one outcome per operation, in plan order.
    """
    report = ExecutionReport()
    committed_adds: set[str] = set()

    for op in plan.operations:
        if isinstance(op, RemoveOperation) and op.depends_on is not None:
            if op.depends_on not in committed_adds:
                outcome = OperationOutcome(
                    operation=op,
                    status=OutcomeStatus.SKIPPED,
                    error=f"{op.depends_on} did not commit",
                )
                logger.warning("Skipping %s: %s", op.key, outcome.error)
                report.outcomes.append(outcome)
                if on_outcome is not None:
                    on_outcome(outcome)
                continue

        try:
            if isinstance(op, AddOperation):
                backend.add_track(op.track)
                committed_adds.add(op.key)
            else:
                backend.remove_entry(op.entry)
        except Exception as e:
            logger.warning("Operation %s failed: %s", op.key, e)
            outcome = OperationOutcome(operation=op, status=OutcomeStatus.FAILED, error=str(e))
        else:
            logger.debug("Committed %s", op.key)
            outcome = OperationOutcome(operation=op, status=OutcomeStatus.COMMITTED)

        report.outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)

    return report
