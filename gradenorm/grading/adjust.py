"""Course total as a given user is allowed to see it.

A user who cannot view hidden grades sees the course total against bounds
which account for the hidden items; the grade value itself is always the
user's true final grade.
"""

from __future__ import annotations

import logging
import typing as t

from gradenorm.host import BoundsResolver, CapabilityChecker, GradeBook, GradeFormatter
from gradenorm.model import AdjustedGrade, CachedGradeRecord, DisplayType, FormattedGrade, GradeBounds, \
    GradeContext, GradeItem, NoGrade

from .policy import PolicyResolver

logger = logging.getLogger(__name__)


def adjust(context: GradeContext, resolver: BoundsResolver, *, own_bounds: GradeBounds | None = None) -> AdjustedGrade:
    if context.raw_final_grade is None:
        return AdjustedGrade(grade=None, grade_min=context.item_grade_min, grade_max=context.item_grade_max)

    if not context.can_view_hidden:
        bounds = resolver.blank_hidden_total_and_adjust_bounds(context)
    else:
        bounds = own_bounds or GradeBounds(grade_min=context.item_grade_min, grade_max=context.item_grade_max)

    return AdjustedGrade(grade=context.raw_final_grade, grade_min=bounds.grade_min, grade_max=bounds.grade_max)


def format_grade(adjusted: AdjustedGrade, item: GradeItem, formatter: GradeFormatter) -> FormattedGrade:
    if adjusted.grade is None:
        return FormattedGrade()

    item = item.with_bounds(GradeBounds(grade_min=adjusted.grade_min, grade_max=adjusted.grade_max))
    return FormattedGrade(
        calculated=formatter.format(adjusted.grade, item, True),
        numeric=formatter.format(adjusted.grade, item, True, DisplayType.Real, item.decimals),
        percent=formatter.format(adjusted.grade, item, True, DisplayType.Percentage, item.decimals),
        letter=formatter.format(adjusted.grade, item, True, DisplayType.Letter, item.decimals),
    )


class GradeHost(GradeBook, CapabilityChecker, BoundsResolver, GradeFormatter, t.Protocol):
    """The collaborators `grade_for_course` needs"""


def grade_for_course(
    course_id: int, user_id: int, host: GradeHost, policy: PolicyResolver
) -> CachedGradeRecord | NoGrade:
    """The record to cache for a user's course total.

    A course without a total item, or a user without a grade row for it,
    yields `NoGrade`. A grade row without a final grade yields a record whose
    formatted values are all None.
    """
    item = host.course_total_item(course_id)
    if item is None:
        logger.debug("course has no total item", extra={"course_id": course_id})
        return NoGrade()

    row = host.grade_row(item.item_id, user_id)
    if row is None:
        logger.debug("user has no course total grade", extra={"course_id": course_id, "user_id": user_id})
        return NoGrade()

    report_key = policy.resolve_policy(course_id)
    setting = policy.resolve_setting(course_id, report_key)
    context = GradeContext(
        course_id=course_id,
        user_id=user_id,
        course_total_item_id=item.item_id,
        raw_final_grade=row.final_grade,
        can_view_hidden=host.can_view_hidden(user_id, course_id),
        course_policy=report_key,
        show_totals_if_hidden=setting,
        item_grade_min=item.grade_min,
        item_grade_max=item.grade_max,
    )

    adjusted = adjust(context, host, own_bounds=row.bounds(item))
    formatted = format_grade(adjusted, item, host)
    return CachedGradeRecord.build(
        course_id=course_id,
        user_id=user_id,
        item_id=item.item_id,
        grade_id=row.grade_id,
        original_grade=row.final_grade,
        formatted=formatted,
        stored_setting=setting,
        time_modified=row.time_modified or 0,
    )
