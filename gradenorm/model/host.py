from __future__ import annotations

import decimal

from .base import FrozenModel
from .enum import DisplayType


class GradeItem(FrozenModel):
    item_id: int
    course_id: int
    item_type: str = "course"
    grade_min: decimal.Decimal = decimal.Decimal(0)
    grade_max: decimal.Decimal = decimal.Decimal(100)
    decimals: int | None = None
    display: DisplayType = DisplayType.Default
    hidden: int = 0

    def bounded_grade(self, value: decimal.Decimal) -> decimal.Decimal:
        return max(self.grade_min, min(self.grade_max, value))

    def with_bounds(self, bounds: GradeBounds) -> GradeItem:
        return self.model_copy(update={"grade_min": bounds.grade_min, "grade_max": bounds.grade_max})


class GradeRow(FrozenModel):
    grade_id: int
    item_id: int
    user_id: int
    final_grade: decimal.Decimal | None = None
    raw_grade_min: decimal.Decimal | None = None
    raw_grade_max: decimal.Decimal | None = None
    hidden: int = 0
    excluded: int = 0
    time_modified: int | None = None

    def bounds(self, item: GradeItem) -> GradeBounds:
        """The row's own bounds, falling back to the item's"""
        return GradeBounds(
            grade_min=self.raw_grade_min if self.raw_grade_min is not None else item.grade_min,
            grade_max=self.raw_grade_max if self.raw_grade_max is not None else item.grade_max,
        )


class GradeBounds(FrozenModel):
    grade_min: decimal.Decimal
    grade_max: decimal.Decimal


class CourseGradeSource(FrozenModel):
    """One course-total grade row, as enumerated by the batch task"""

    limiter: str
    course_id: int
    user_id: int
    item_id: int
    original_grade: decimal.Decimal | None = None
    time_modified: int | None = None


class RoleAssignment(FrozenModel):
    role_id: int
    short_name: str | None = None


class GradeLetter(FrozenModel):
    lower_boundary: decimal.Decimal
    letter: str
