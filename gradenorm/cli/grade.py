"""Inspect and refresh single cached course totals."""

from __future__ import annotations

import decimal

from sqlalchemy.orm import Session

import gradenorm.lib.cli as click
import gradenorm.storage.normalized_grade as normalized_grade_store
from gradenorm.core import di
from gradenorm.grading import grade_for_course, NormalizeGradesTask
from gradenorm.model import CachedGradeRecord, NoGrade


@click.group("grade")
def grade():
    """Inspect normalized course totals."""
    ...


def echo_record(label: str, record: CachedGradeRecord | None) -> None:
    if record is None:
        click.echo(f"{label}: -")
        return
    click.echo(f"{label}: {record.limiter}" + (f" (id {record.id})" if record.id is not None else ""))
    click.echo(f"  original    {record.original_grade}")
    click.echo(f"  calculated  {record.calculated_grade}")
    click.echo(f"  numeric     {record.numeric_grade}")
    click.echo(f"  percent     {record.percent_grade}")
    click.echo(f"  letter      {record.letter_grade}")
    click.echo(f"  setting     {record.stored_setting}")
    click.echo(f"  modified    {record.time_modified}")


@grade.command("show")
@click.argument("course_id", type=int)
@click.argument("user_id", type=int)
@click.option("--save", "-s", is_flag=True, default=False, help="Store the computed grade in the cache")
@di.inject
def grade_show(
    course_id: int,
    user_id: int,
    save: bool,
    normalize: NormalizeGradesTask = di.Provide["grading.task"],
) -> int:
    """Compute the course total of USER_ID in COURSE_ID as the user sees it."""
    with normalize.session, normalize.session.begin():
        computed = grade_for_course(course_id, user_id, normalize.host, normalize.policy)
        if isinstance(computed, NoGrade):
            click.echo(f"computed: {computed}")
            return 1

        cached = normalized_grade_store.get(computed.limiter, session=normalize.session)
        echo_record("computed", computed)
        echo_record("cached", cached)

        if save:
            outcome = normalize.process(course_id, user_id)
            click.echo(f"saved: {outcome.value if outcome else 'skipped'}")
    return 0


@grade.command("check")
@click.argument("limiter")
@click.argument("original_grade", type=click.DecimalParamType())
@di.inject
def grade_check(
    limiter: str,
    original_grade: decimal.Decimal | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Check whether the cached row for LIMITER still matches ORIGINAL_GRADE.

    A stale row is deleted.
    """
    with session, session.begin():
        freshness = normalized_grade_store.check_fresh(limiter, original_grade, session=session)
    click.echo(freshness.value)
