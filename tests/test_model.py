"""Tests for gradenorm.model module."""

from __future__ import annotations

import decimal

import pydantic as p
import pytest

from gradenorm.model import CachedGradeRecord, DisplayType, FormattedGrade, GradeItem, GradeRow, \
    HiddenTotalsSetting, limiter, NoGrade


class TestLimiter(object):
    def test_format(self) -> None:
        assert limiter(3, 7, 42) == "3 7 42"

    def test_record_rejects_inconsistent_limiter(self) -> None:
        with pytest.raises(p.ValidationError, match="does not match"):
            CachedGradeRecord(
                limiter="3 7 41",
                course_id=3,
                user_id=7,
                item_id=42,
                grade_id=1,
                stored_setting="1",
                time_modified=0,
            )


class TestNoGrade(object):
    def test_singleton(self) -> None:
        assert NoGrade() is NoGrade()
        assert str(NoGrade()) == "-"


class TestFormattedGrade(object):
    def test_all_or_none(self) -> None:
        with pytest.raises(p.ValidationError):
            FormattedGrade(calculated="85.00")

        assert FormattedGrade().is_empty
        assert not FormattedGrade(calculated="85.00", numeric="85.00", percent="85.00 %", letter="B").is_empty


class TestHiddenTotalsSetting(object):
    def test_shows_totals(self) -> None:
        assert HiddenTotalsSetting.Hide.shows_totals is False
        assert HiddenTotalsSetting.ExcludeHidden.shows_totals is True
        assert HiddenTotalsSetting.IncludeHidden.shows_totals is True


class TestDisplayType(object):
    def test_parts(self) -> None:
        assert DisplayType.Real.parts == (DisplayType.Real,)
        assert DisplayType.PercentageLetter.parts == (DisplayType.Percentage, DisplayType.Letter)


class TestGradeRow(object):
    def test_bounds_fall_back_to_item(self) -> None:
        item = GradeItem(item_id=42, course_id=3, grade_max=decimal.Decimal(80))
        row = GradeRow(grade_id=1, item_id=42, user_id=7, raw_grade_min=decimal.Decimal(10))

        bounds = row.bounds(item)

        assert bounds.grade_min == decimal.Decimal(10)
        assert bounds.grade_max == decimal.Decimal(80)
