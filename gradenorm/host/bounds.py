from __future__ import annotations

import decimal
import logging
import typing as t

from gradenorm.model import GradeBounds, GradeContext, GradeItem, GradeRow, HiddenTotalsSetting

logger = logging.getLogger(__name__)


class CourseItems(t.Protocol):
    def course_items(self, course_id: int) -> tuple[GradeItem, ...]: ...

    def user_grade_rows(self, course_id: int, user_id: int) -> dict[int, GradeRow]: ...


def is_hidden(hidden: int, now: int) -> bool:
    """`1` hides indefinitely; any larger value is a "hidden until" timestamp"""
    return hidden == 1 or (hidden > 1 and hidden > now)


class NaturalBoundsResolver(object):
    """Course total bounds with hidden items left out.

    Only the natural (sum of grades) aggregation is modelled: when the course
    shows totals excluding hidden items, the bounds of every hidden graded item
    are subtracted from the course total's bounds. Under any other setting the
    course total keeps its own bounds.
    """

    def __init__(self, items: CourseItems, now: t.Callable[[], int]):
        self.items = items
        self.now = now

    def blank_hidden_total_and_adjust_bounds(self, context: GradeContext) -> GradeBounds:
        bounds = GradeBounds(grade_min=context.item_grade_min, grade_max=context.item_grade_max)
        if context.raw_final_grade is None:
            return bounds
        if context.show_totals_if_hidden is not HiddenTotalsSetting.ExcludeHidden:
            return bounds

        now = self.now()
        rows = self.items.user_grade_rows(context.course_id, context.user_id)
        hidden_min = hidden_max = decimal.Decimal(0)
        n_hidden = 0
        for item in self.items.course_items(context.course_id):
            row = rows.get(item.item_id)
            if row is not None and row.excluded:
                continue
            if is_hidden(item.hidden, now) or (row is not None and is_hidden(row.hidden, now)):
                hidden_min += item.grade_min
                hidden_max += item.grade_max
                n_hidden += 1

        if not n_hidden:
            return bounds

        grade_min = bounds.grade_min - hidden_min
        grade_max = max(grade_min, bounds.grade_max - hidden_max)
        logger.debug(
            "excluded hidden items from course total bounds",
            extra={
                "course_id": context.course_id,
                "user_id": context.user_id,
                "hidden_items": n_hidden,
                "grade_min": grade_min,
                "grade_max": grade_max,
            },
        )
        return GradeBounds(grade_min=grade_min, grade_max=grade_max)
