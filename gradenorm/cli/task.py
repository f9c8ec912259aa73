"""The scheduled refresh of cached course totals."""

from __future__ import annotations

import gradenorm.lib.cli as click
from gradenorm.core import di
from gradenorm.grading import NormalizeGradesTask


@click.group("task")
def task():
    """Run the grade normalization task."""
    ...


@task.command("run")
@click.option("--course-id", "-c", type=int, default=None, help="Only normalize grades of this course")
@click.option("--user-id", "-u", type=int, default=None, help="Only normalize grades of this user")
@di.inject
def task_run(
    course_id: int | None,
    user_id: int | None,
    normalize: NormalizeGradesTask = di.Provide["grading.task"],
) -> int:
    """Normalize the course totals of every graded user."""
    with normalize.session:
        summary = normalize.run(course_id=course_id, user_id=user_id)

    click.echo(
        f"{summary.total} grades: {summary.inserted} inserted, {summary.updated} updated, "
        f"{summary.unchanged} unchanged, {summary.skipped} skipped, {summary.failed} failed"
    )
    return 1 if summary.failed else 0
