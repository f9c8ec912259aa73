"""Tests for gradenorm.grading.adjust module."""

from __future__ import annotations

import decimal
import typing as t

import pytest

from gradenorm.grading import adjust, format_grade, grade_for_course, PolicyDefaults, PolicyResolver
from gradenorm.host import MoodleGradeFormatter, MoodleHost
from gradenorm.model import AdjustedGrade, CachedGradeRecord, FormattedGrade, GradeBounds, GradeContext, \
    GradeItem, GradeLetter, HiddenTotalsSetting, NoGrade, ReportKey

if t.TYPE_CHECKING:
    from tests.conftest import MoodleSite

D = decimal.Decimal


class FixedBounds(object):
    def __init__(self, bounds: GradeBounds):
        self.bounds = bounds
        self.calls: list[GradeContext] = []

    def blank_hidden_total_and_adjust_bounds(self, context: GradeContext) -> GradeBounds:
        self.calls.append(context)
        return self.bounds


class NoSettings(object):
    def course_setting(self, course_id: int, name: str) -> str | None:
        return None

    def site_setting(self, name: str) -> str | None:
        return None

    def grade_letters(self, course_id: int) -> tuple[GradeLetter, ...]:
        return ()


def make_context(final_grade: decimal.Decimal | None, can_view_hidden: bool) -> GradeContext:
    return GradeContext(
        course_id=3,
        user_id=7,
        course_total_item_id=42,
        raw_final_grade=final_grade,
        can_view_hidden=can_view_hidden,
        course_policy=ReportKey.User,
        show_totals_if_hidden=HiddenTotalsSetting.ExcludeHidden,
        item_grade_min=D(0),
        item_grade_max=D(100),
    )


class TestAdjust(object):
    """Tests for adjust()."""

    def test_null_grade_propagates(self) -> None:
        resolver = FixedBounds(GradeBounds(grade_min=D(20), grade_max=D(100)))

        result = adjust(make_context(None, can_view_hidden=False), resolver)

        assert result.grade is None
        assert result.grade_min == D(0)
        assert result.grade_max == D(100)
        assert resolver.calls == []

    def test_restricted_user_gets_resolver_bounds(self) -> None:
        resolver = FixedBounds(GradeBounds(grade_min=D(20), grade_max=D(100)))

        result = adjust(make_context(D(85), can_view_hidden=False), resolver)

        assert result == AdjustedGrade(grade=D(85), grade_min=D(20), grade_max=D(100))
        assert len(resolver.calls) == 1

    def test_privileged_user_keeps_item_bounds(self) -> None:
        resolver = FixedBounds(GradeBounds(grade_min=D(20), grade_max=D(100)))

        result = adjust(make_context(D(85), can_view_hidden=True), resolver)

        assert result == AdjustedGrade(grade=D(85), grade_min=D(0), grade_max=D(100))
        assert resolver.calls == []

    def test_privileged_user_uses_row_bounds(self) -> None:
        resolver = FixedBounds(GradeBounds(grade_min=D(20), grade_max=D(100)))

        result = adjust(
            make_context(D(40), can_view_hidden=True),
            resolver,
            own_bounds=GradeBounds(grade_min=D(0), grade_max=D(50)),
        )

        assert result.grade_max == D(50)


class TestFormatGrade(object):
    """Tests for format_grade()."""

    @pytest.fixture
    def formatter(self) -> MoodleGradeFormatter:
        settings = NoSettings()
        return MoodleGradeFormatter(settings=settings, letters=settings)

    def test_null_grade_formats_as_empty(self, formatter: MoodleGradeFormatter) -> None:
        adjusted = AdjustedGrade(grade=None, grade_min=D(0), grade_max=D(100))

        result = format_grade(adjusted, GradeItem(item_id=42, course_id=3, decimals=2), formatter)

        assert result == FormattedGrade()
        assert result.is_empty

    def test_all_display_types(self, formatter: MoodleGradeFormatter) -> None:
        adjusted = AdjustedGrade(grade=D(85), grade_min=D(0), grade_max=D(100))

        result = format_grade(adjusted, GradeItem(item_id=42, course_id=3, decimals=2), formatter)

        assert result == FormattedGrade(calculated="85.00", numeric="85.00", percent="85.00 %", letter="B")

    def test_formats_against_adjusted_bounds(self, formatter: MoodleGradeFormatter) -> None:
        adjusted = AdjustedGrade(grade=D(85), grade_min=D(20), grade_max=D(100))

        result = format_grade(adjusted, GradeItem(item_id=42, course_id=3, decimals=2), formatter)

        assert result.percent == "81.25 %"
        assert result.letter == "B-"


class TestGradeForCourse(object):
    """Tests for grade_for_course() against the Moodle grade book."""

    @pytest.fixture
    def policy(self) -> PolicyResolver:
        return PolicyResolver(PolicyDefaults(), NoSettings())

    def test_course_without_total_item(self, host: MoodleHost, policy: PolicyResolver) -> None:
        with host.session.begin():
            result = grade_for_course(3, 7, host, policy)

        assert result is NoGrade()
        assert str(result) == "-"

    def test_user_without_grade_row(self, moodle: MoodleSite, host: MoodleHost, policy: PolicyResolver) -> None:
        moodle.course(3)

        with host.session.begin():
            result = grade_for_course(3, 7, host, policy)

        assert result is NoGrade()

    def test_null_final_grade(self, moodle: MoodleSite, host: MoodleHost, policy: PolicyResolver) -> None:
        item_id = moodle.course(3)
        grade_id = moodle.grade(item_id, 7, None)

        with host.session.begin():
            result = grade_for_course(3, 7, host, policy)

        assert isinstance(result, CachedGradeRecord)
        assert result.grade_id == grade_id
        assert result.original_grade is None
        assert result.formatted == FormattedGrade()

    def test_hidden_item_excluded_for_student(
        self, moodle: MoodleSite, host: MoodleHost, policy: PolicyResolver, student_role: int
    ) -> None:
        total_id = moodle.course(3)
        visible_id = moodle.item(3, grade_max=80)
        hidden_id = moodle.item(3, grade_max=20, hidden=1)
        moodle.grade(visible_id, 7, 60)
        moodle.grade(hidden_id, 7, 0)
        moodle.grade(total_id, 7, 60)
        moodle.enrol(7, 3, student_role)

        with host.session.begin():
            result = grade_for_course(3, 7, host, policy)

        assert isinstance(result, CachedGradeRecord)
        assert result.limiter == f"3 7 {total_id}"
        assert result.original_grade == D(60)
        assert result.numeric_grade == "60.00"
        assert result.percent_grade == "75.00 %"
        assert result.letter_grade == "C"
        assert result.stored_setting == HiddenTotalsSetting.ExcludeHidden.value

    def test_instructor_sees_unadjusted_total(
        self, moodle: MoodleSite, host: MoodleHost, policy: PolicyResolver, instructor_role: int
    ) -> None:
        total_id = moodle.course(3)
        visible_id = moodle.item(3, grade_max=80)
        moodle.item(3, grade_max=20, hidden=1)
        moodle.grade(visible_id, 9, 60)
        moodle.grade(total_id, 9, 60)
        moodle.enrol(9, 3, instructor_role)

        with host.session.begin():
            result = grade_for_course(3, 9, host, policy)

        assert isinstance(result, CachedGradeRecord)
        assert result.percent_grade == "60.00 %"
        assert result.letter_grade == "D"

    def test_include_hidden_keeps_bounds(self, moodle: MoodleSite, host: MoodleHost, student_role: int) -> None:
        total_id = moodle.course(3)
        moodle.item(3, grade_max=80)
        moodle.item(3, grade_max=20, hidden=1)
        moodle.grade(total_id, 7, 60)
        moodle.enrol(7, 3, student_role)
        moodle.course_setting(3, "report_user_showtotalsifcontainhidden", "2")
        policy = PolicyResolver(PolicyDefaults(), host)

        with host.session.begin():
            result = grade_for_course(3, 7, host, policy)

        assert isinstance(result, CachedGradeRecord)
        assert result.percent_grade == "60.00 %"
        assert result.stored_setting == "2"
