from __future__ import annotations

import decimal
import typing as t

from gradenorm.model import CourseGradeSource, DisplayType, GradeBounds, GradeContext, GradeItem, GradeLetter, \
    GradeRow, RoleAssignment


class GradeBook(t.Protocol):
    def course_total_item(self, course_id: int) -> GradeItem | None: ...

    def grade_row(self, item_id: int, user_id: int) -> GradeRow | None: ...


class CapabilityChecker(t.Protocol):
    def can_view_hidden(self, user_id: int, course_id: int) -> bool: ...


class SettingsLookup(t.Protocol):
    def course_setting(self, course_id: int, name: str) -> str | None: ...

    def site_setting(self, name: str) -> str | None: ...


class LetterLookup(t.Protocol):
    def grade_letters(self, course_id: int) -> tuple[GradeLetter, ...]: ...


class GradeFormatter(t.Protocol):
    def format(
        self,
        value: decimal.Decimal | None,
        item: GradeItem,
        localized: bool = True,
        display_type: DisplayType | None = None,
        decimals: int | None = None,
    ) -> str: ...


class BoundsResolver(t.Protocol):
    def blank_hidden_total_and_adjust_bounds(self, context: GradeContext) -> GradeBounds:
        """Bounds of the course total as seen by a user who cannot see hidden items"""
        ...


class RoleDirectory(t.Protocol):
    def roles_in_course(self, user_id: int, course_id: int) -> tuple[RoleAssignment, ...]: ...

    def gradebook_roles(self) -> tuple[int, ...]: ...


class CourseGradeSources(t.Protocol):
    def course_grades(
        self, *, course_id: int | None = None, user_id: int | None = None
    ) -> t.Iterator[CourseGradeSource]: ...


class Host(
    GradeBook,
    CapabilityChecker,
    SettingsLookup,
    GradeFormatter,
    BoundsResolver,
    RoleDirectory,
    CourseGradeSources,
    t.Protocol,
):
    """Everything the grade normalization needs from the LMS"""
