"""Cached course totals, one row per limiter.

A row is the last known good computation for its (course, user, item); it is
valid while its original grade and time modified match the host's grade row.
All functions expect to run inside a transaction opened by the caller.
"""

from __future__ import annotations

import decimal
import logging
import typing as t

import sqlalchemy as sqla
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import IntegrityError

from gradenorm.core import di
from gradenorm.exceptions import ContentionError
from gradenorm.model import CachedGradeRecord, Freshness, ReconcileOutcome

from . import Session
from .table import normalize_grades

logger = logging.getLogger(__name__)

# record field -> column
COLUMNS: t.Final[dict[str, str]] = {
    "id": "id",
    "limiter": "limiter",
    "course_id": "courseid",
    "user_id": "userid",
    "item_id": "itemid",
    "grade_id": "gradeid",
    "original_grade": "originalgrade",
    "calculated_grade": "calculatedgrade",
    "numeric_grade": "numericgrade",
    "percent_grade": "percentgrade",
    "letter_grade": "lettergrade",
    "stored_setting": "storedsetting",
    "time_modified": "timemodified",
}


def _from_row(row: RowMapping) -> CachedGradeRecord:
    return CachedGradeRecord(**{field: row[column] for field, column in COLUMNS.items()})


def _values(record: CachedGradeRecord) -> dict[str, t.Any]:
    return {column: getattr(record, field) for field, column in COLUMNS.items() if field != "id"}


def get(
    limiter: str, *, for_update: bool = False, session: Session = di.Provide["storage.persistent.session"]
) -> CachedGradeRecord | None:
    stmt = sqla.select(normalize_grades.__table__).where(normalize_grades.limiter == limiter)
    if for_update:
        stmt = stmt.with_for_update()
    row = session.execute(stmt).mappings().one_or_none()
    return _from_row(row) if row else None


def find(
    *,
    course_id: int | None = None,
    user_id: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[CachedGradeRecord, ...]:
    stmt = sqla.select(normalize_grades.__table__).order_by(normalize_grades.courseid, normalize_grades.userid)
    if course_id is not None:
        stmt = stmt.where(normalize_grades.courseid == course_id)
    if user_id is not None:
        stmt = stmt.where(normalize_grades.userid == user_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(_from_row(row) for row in rows)


def create(record: CachedGradeRecord, session: Session = di.Provide["storage.persistent.session"]) -> CachedGradeRecord:
    """Insert a row for the record's limiter.

    Raises:
        IntegrityError: if a row with the same limiter exists
    """
    row = normalize_grades(**_values(record))
    session.add(row)
    session.flush()
    return get(record.limiter, session=session)  # type: ignore[return-value]


def update(
    record_id: int, record: CachedGradeRecord, session: Session = di.Provide["storage.persistent.session"]
) -> CachedGradeRecord:
    """Overwrite every field of row `record_id` with the record's values.

    Raises:
        KeyError: If record_id does not correspond to a row
    """
    stmt = sqla.update(normalize_grades).where(normalize_grades.id == record_id).values(**_values(record))
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Normalized grade {record_id} not found")
    session.flush()
    return get(record.limiter, session=session)  # type: ignore[return-value]


def delete(limiter: str, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    stmt = sqla.delete(normalize_grades).where(normalize_grades.limiter == limiter)
    result = session.execute(stmt)
    return result.rowcount > 0  # pyright: ignore[reportAttributeAccessIssue]


def reconcile(
    record: CachedGradeRecord, session: Session = di.Provide["storage.persistent.session"]
) -> tuple[CachedGradeRecord, ReconcileOutcome]:
    """Make the cached row for `record.limiter` hold the record's values.

    Inserts when no row exists, does nothing when the row already holds equal
    values, and otherwise updates the row in place keeping its id. The lookup
    and the write share one SAVEPOINT with the row locked, so a competing
    writer either waits or fails the unique constraint on limiter.

    Raises:
        ContentionError: if a concurrent writer inserted the same limiter first
    """
    try:
        with session.begin_nested():
            existing = get(record.limiter, for_update=True, session=session)
            if existing is None:
                created = create(record, session=session)
                logger.debug("inserted normalized grade", extra={"limiter": record.limiter, "id": created.id})
                return created, ReconcileOutcome.Inserted

            if existing.same_as(record):
                return existing, ReconcileOutcome.Unchanged

            # rows read back from the table always carry their id
            updated = update(t.cast(int, existing.id), record, session=session)
            logger.debug(
                "updated normalized grade",
                extra={
                    "limiter": record.limiter,
                    "id": updated.id,
                    "changed": [f for f in CachedGradeRecord.memo_fields if getattr(existing, f) != getattr(record, f)],
                },
            )
            return updated, ReconcileOutcome.Updated
    except IntegrityError as e:
        raise ContentionError(record.limiter) from e


def check_fresh(
    limiter: str,
    current_original_grade: decimal.Decimal | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Freshness:
    """Compare the cached original grade against the host's current one.

    A cached row whose original grade no longer matches is deleted, and the
    caller must recompute it.
    """
    existing = get(limiter, session=session)
    if existing is None:
        return Freshness.Absent

    if existing.original_grade != current_original_grade:
        delete(limiter, session=session)
        logger.debug(
            "deleted stale normalized grade",
            extra={
                "limiter": limiter,
                "cached": existing.original_grade,
                "current": current_original_grade,
            },
        )
        return Freshness.StaleDeleted

    return Freshness.Fresh
