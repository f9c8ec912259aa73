from __future__ import annotations

import typing as t

import annotated_types as ant

from gradenorm.model import HiddenTotalsSetting, ReportKey

from .base import BaseSettings


class GradingSettings(BaseSettings):
    """Normalization policy.

    Every value left unset here falls back to the corresponding site setting
    of the host (`normalize_grades_reportkey`, `gradebookroles`,
    `grade_report_<key>_showtotalsifcontainhidden`).
    """

    report_key: ReportKey | None = None
    gradebook_roles: list[int] | None = None
    overview_show_totals_if_hidden: HiddenTotalsSetting | None = None
    user_show_totals_if_hidden: HiddenTotalsSetting | None = None

    # attempts per record when a concurrent writer holds the same limiter
    max_retries: t.Annotated[int, ant.Ge(0)] = 3
