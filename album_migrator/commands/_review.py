"""Plan review helpers shared by the migrate and plan commands."""

from __future__ import annotations

from album_migrator.plan import MigrationPlan
from album_migrator.reviewer import render, summarize
from album_migrator.utils.output import print_review, print_summary, warning

# Exit codes per CLI contract
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 2
EXIT_ABORTED = 3


def show_plan(plan: MigrationPlan, title: str | None = None, *, quiet: bool = False) -> None:
    """Print the review table, the summary and any plan warnings."""
    if not quiet:
        print_review(render(plan), title=title)
        print_summary(summarize(plan))
    for plan_warning in plan.warnings:
        warning(plan_warning.message)
