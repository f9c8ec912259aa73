"""Display formatting of grade values, following the host's grade report rules.

Display types and decimal places come from the item, falling back to the
course setting (`displaytype`, `decimalpoints`) and then the site setting
(`grade_displaytype`, `grade_decimalpoints`).
"""

from __future__ import annotations

import decimal
import typing as t

from gradenorm.model import DisplayType, GradeItem, GradeLetter

from .protocol import LetterLookup, SettingsLookup

DEFAULT_DISPLAY_TYPE: t.Final = DisplayType.Real
DEFAULT_DECIMALS: t.Final = 2
HUNDRED: t.Final = decimal.Decimal(100)

DEFAULT_LETTERS: t.Final[tuple[GradeLetter, ...]] = tuple(
    GradeLetter(lower_boundary=decimal.Decimal(b), letter=letter)
    for b, letter in (
        ("93", "A"),
        ("90", "A-"),
        ("87", "B+"),
        ("83", "B"),
        ("80", "B-"),
        ("77", "C+"),
        ("73", "C"),
        ("70", "C-"),
        ("67", "D+"),
        ("60", "D"),
        ("0", "F"),
    )
)


def format_float(value: decimal.Decimal, decimals: int, separator: str = ".") -> str:
    quantum = decimal.Decimal(1).scaleb(-decimals)
    s = str(value.quantize(quantum, rounding=decimal.ROUND_HALF_UP))
    if s.startswith("-") and not any(c in "123456789" for c in s):
        # rounding turned a small negative into zero
        s = s[1:]
    return s.replace(".", separator) if separator != "." else s


def standardise_score(
    value: decimal.Decimal,
    source_min: decimal.Decimal,
    source_max: decimal.Decimal,
    target_min: decimal.Decimal,
    target_max: decimal.Decimal,
) -> decimal.Decimal:
    if source_max == source_min or target_min == target_max:
        return target_max
    factor = (value - source_min) / (source_max - source_min)
    return factor * (target_max - target_min) + target_min


class MoodleGradeFormatter(object):
    def __init__(self, settings: SettingsLookup, letters: LetterLookup, decimal_separator: str = "."):
        self.settings = settings
        self.letters = letters
        self.decimal_separator = decimal_separator

    def display_type(self, item: GradeItem) -> DisplayType:
        if item.display is not DisplayType.Default:
            return item.display
        value = self.settings.course_setting(item.course_id, "displaytype")
        if value is None or int(value) == DisplayType.Default:
            value = self.settings.site_setting("grade_displaytype")
        return DisplayType(int(value)) if value is not None else DEFAULT_DISPLAY_TYPE

    def decimals(self, item: GradeItem) -> int:
        if item.decimals is not None:
            return item.decimals
        value = self.settings.course_setting(item.course_id, "decimalpoints")
        if value is None:
            value = self.settings.site_setting("grade_decimalpoints")
        return int(value) if value is not None else DEFAULT_DECIMALS

    def format(
        self,
        value: decimal.Decimal | None,
        item: GradeItem,
        localized: bool = True,
        display_type: DisplayType | None = None,
        decimals: int | None = None,
    ) -> str:
        if value is None:
            return "-"
        if display_type is None or display_type is DisplayType.Default:
            display_type = self.display_type(item)
        if decimals is None:
            decimals = self.decimals(item)

        first, *rest = display_type.parts
        s = self._format(first, value, item, localized, decimals)
        if rest:
            s = f"{s} ({self._format(rest[0], value, item, localized, decimals)})"
        return s

    def _format(
        self, display_type: DisplayType, value: decimal.Decimal, item: GradeItem, localized: bool, decimals: int
    ) -> str:
        match display_type:
            case DisplayType.Real:
                return self.format_real(value, item, decimals, localized)
            case DisplayType.Percentage:
                return self.format_percentage(value, item, decimals, localized)
            case DisplayType.Letter:
                return self.format_letter(value, item)
            case _:
                raise ValueError(f"not a simple display type: {display_type!r}")

    def _separator(self, localized: bool) -> str:
        return self.decimal_separator if localized else "."

    def format_real(self, value: decimal.Decimal, item: GradeItem, decimals: int, localized: bool) -> str:
        return format_float(item.bounded_grade(value), decimals, self._separator(localized))

    def format_percentage(self, value: decimal.Decimal, item: GradeItem, decimals: int, localized: bool) -> str:
        if item.grade_min == item.grade_max:
            return ""
        value = item.bounded_grade(value)
        percentage = (value - item.grade_min) * HUNDRED / (item.grade_max - item.grade_min)
        return f"{format_float(percentage, decimals, self._separator(localized))} %"

    def format_letter(self, value: decimal.Decimal, item: GradeItem) -> str:
        value = standardise_score(item.bounded_grade(value), item.grade_min, item.grade_max, decimal.Decimal(0), HUNDRED)
        value = max(decimal.Decimal(0), min(HUNDRED, value))
        # boundaries are stored with five decimal places, compare at the same precision
        value = value.quantize(decimal.Decimal("0.00001"), rounding=decimal.ROUND_HALF_UP)
        letters = self.letters.grade_letters(item.course_id) or DEFAULT_LETTERS
        for gl in sorted(letters, key=lambda gl: gl.lower_boundary, reverse=True):
            if value >= gl.lower_boundary:
                return gl.letter
        return "-"
