from __future__ import annotations

import decimal
import typing as t

import pydantic as p

from .base import BaseModel, FrozenModel, WithTimeModified
from .enum import HiddenTotalsSetting, ReportKey


def limiter(course_id: int, user_id: int, item_id: int) -> str:
    """Composite key of a cached course total: `"<course> <user> <item>"`"""
    return f"{course_id} {user_id} {item_id}"


class NoGrade(object):
    """Marker for a course without a total item, or a user without a grade row"""

    _instance: t.ClassVar[NoGrade | None] = None

    def __new__(cls) -> NoGrade:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __str__(self) -> str:
        return "-"

    def __repr__(self) -> str:
        return "<NoGrade>"


class GradeContext(FrozenModel):
    course_id: int
    user_id: int
    course_total_item_id: int
    raw_final_grade: decimal.Decimal | None
    can_view_hidden: bool
    course_policy: ReportKey
    show_totals_if_hidden: HiddenTotalsSetting
    item_grade_min: decimal.Decimal
    item_grade_max: decimal.Decimal


class AdjustedGrade(FrozenModel):
    grade: decimal.Decimal | None
    grade_min: decimal.Decimal
    grade_max: decimal.Decimal


class FormattedGrade(FrozenModel):
    calculated: str | None = None
    numeric: str | None = None
    percent: str | None = None
    letter: str | None = None

    @p.model_validator(mode="after")
    def check_all_or_none(self) -> FormattedGrade:
        present = [v is not None for v in (self.calculated, self.numeric, self.percent, self.letter)]
        if any(present) and not all(present):
            raise ValueError("formatted grade values must be all set or all None")
        return self

    @property
    def is_empty(self) -> bool:
        return self.calculated is None


class CachedGradeRecord(WithTimeModified):
    id: int | None = None
    limiter: str
    course_id: int
    user_id: int
    item_id: int
    grade_id: int
    original_grade: decimal.Decimal | None = None
    calculated_grade: str | None = None
    numeric_grade: str | None = None
    percent_grade: str | None = None
    letter_grade: str | None = None
    stored_setting: str

    # fields compared by the memoized upsert; a difference in any one of them
    # means the cached row must be rewritten
    memo_fields: t.ClassVar[tuple[str, ...]] = (
        "original_grade",
        "calculated_grade",
        "numeric_grade",
        "percent_grade",
        "letter_grade",
        "stored_setting",
        "time_modified",
    )

    @p.model_validator(mode="after")
    def check_limiter(self) -> CachedGradeRecord:
        expected = limiter(self.course_id, self.user_id, self.item_id)
        if self.limiter != expected:
            raise ValueError(f"limiter {self.limiter!r} does not match {expected!r}")
        return self

    @classmethod
    def build(
        cls,
        *,
        course_id: int,
        user_id: int,
        item_id: int,
        grade_id: int,
        original_grade: decimal.Decimal | None,
        formatted: FormattedGrade,
        stored_setting: HiddenTotalsSetting,
        time_modified: int,
    ) -> CachedGradeRecord:
        return cls(
            limiter=limiter(course_id, user_id, item_id),
            course_id=course_id,
            user_id=user_id,
            item_id=item_id,
            grade_id=grade_id,
            original_grade=original_grade,
            calculated_grade=formatted.calculated,
            numeric_grade=formatted.numeric,
            percent_grade=formatted.percent,
            letter_grade=formatted.letter,
            stored_setting=stored_setting.value,
            time_modified=time_modified,
        )

    @property
    def formatted(self) -> FormattedGrade:
        return FormattedGrade(
            calculated=self.calculated_grade,
            numeric=self.numeric_grade,
            percent=self.percent_grade,
            letter=self.letter_grade,
        )

    def same_as(self, other: CachedGradeRecord) -> bool:
        return all(getattr(self, f) == getattr(other, f) for f in self.memo_fields)
