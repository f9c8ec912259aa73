"""Which report's "show totals if they contain hidden items" setting applies.

The overview and user reports each carry their own copy of the setting and an
instructor may set them differently, which yields different totals depending
on the report asked. An administrator picks one report as authoritative; when
none is picked the user report is used.
"""

from __future__ import annotations

import logging
import typing as t

from gradenorm.core.config import GradingSettings
from gradenorm.exceptions import HostSettingError
from gradenorm.host import SettingsLookup
from gradenorm.model import FrozenModel, HiddenTotalsSetting, ReportKey

logger = logging.getLogger(__name__)

REPORT_KEY_SETTING: t.Final = "normalize_grades_reportkey"
# shipped default of the host for both reports
DEFAULT_HIDDEN_TOTALS: t.Final = HiddenTotalsSetting.ExcludeHidden


def course_setting_name(policy: ReportKey) -> str:
    return f"report_{policy.value}_showtotalsifcontainhidden"


def site_setting_name(policy: ReportKey) -> str:
    return f"grade_report_{policy.value}_showtotalsifcontainhidden"


def parse_hidden_totals(name: str, value: object) -> HiddenTotalsSetting:
    if isinstance(value, HiddenTotalsSetting):
        return value
    if isinstance(value, bool):
        return HiddenTotalsSetting.ExcludeHidden if value else HiddenTotalsSetting.Hide
    s = str(value).strip().lower()
    match s:
        case "true":
            return HiddenTotalsSetting.ExcludeHidden
        case "false" | "":
            return HiddenTotalsSetting.Hide
    try:
        return HiddenTotalsSetting(s)
    except ValueError:
        raise HostSettingError(name, value) from None


def parse_report_key(value: str | None) -> ReportKey | None:
    if not value:
        return None
    try:
        return ReportKey(value.strip().lower())
    except ValueError:
        raise HostSettingError(REPORT_KEY_SETTING, value) from None


class PolicyDefaults(FrozenModel):
    """Site-wide values the resolver falls back on"""

    report_key: ReportKey | None = None
    overview: HiddenTotalsSetting = DEFAULT_HIDDEN_TOTALS
    user: HiddenTotalsSetting = DEFAULT_HIDDEN_TOTALS

    def for_policy(self, policy: ReportKey) -> HiddenTotalsSetting:
        return self.overview if policy is ReportKey.Overview else self.user

    @classmethod
    def load(cls, settings: GradingSettings, site: SettingsLookup) -> PolicyDefaults:
        """Configured values first, then the host's site settings"""
        report_key = settings.report_key or parse_report_key(site.site_setting(REPORT_KEY_SETTING))

        def default(policy: ReportKey, configured: HiddenTotalsSetting | None) -> HiddenTotalsSetting:
            if configured is not None:
                return configured
            name = site_setting_name(policy)
            value = site.site_setting(name)
            return parse_hidden_totals(name, value) if value is not None else DEFAULT_HIDDEN_TOTALS

        return cls(
            report_key=report_key,
            overview=default(ReportKey.Overview, settings.overview_show_totals_if_hidden),
            user=default(ReportKey.User, settings.user_show_totals_if_hidden),
        )


class PolicyResolver(object):
    def __init__(self, defaults: PolicyDefaults, settings: SettingsLookup):
        self.defaults = defaults
        self.settings = settings
        self._resolved: dict[tuple[int, ReportKey], HiddenTotalsSetting] = {}

    def resolve_policy(self, course_id: int) -> ReportKey:
        # the report key is site-wide; course_id is accepted so a per-course
        # choice can be introduced without changing callers
        return self.defaults.report_key or ReportKey.User

    def resolve_setting(self, course_id: int, policy: ReportKey) -> HiddenTotalsSetting:
        key = (course_id, policy)
        if key not in self._resolved:
            self._resolved[key] = self._lookup(course_id, policy)
            other = ReportKey.Overview if policy is ReportKey.User else ReportKey.User
            if (theirs := self._lookup(course_id, other)) is not self._resolved[key]:
                logger.debug(
                    "report settings diverge",
                    extra={
                        "course_id": course_id,
                        policy.value: self._resolved[key].value,
                        other.value: theirs.value,
                    },
                )
        return self._resolved[key]

    def _lookup(self, course_id: int, policy: ReportKey) -> HiddenTotalsSetting:
        name = course_setting_name(policy)
        value = self.settings.course_setting(course_id, name)
        if value is None:
            return self.defaults.for_policy(policy)
        try:
            return parse_hidden_totals(name, value)
        except HostSettingError:
            logger.warning(
                "ignoring unrecognized course setting",
                extra={"course_id": course_id, "setting": name, "value": value},
            )
            return self.defaults.for_policy(policy)

    def resolve_show_totals_if_hidden(self, course_id: int, policy: ReportKey) -> bool:
        return self.resolve_setting(course_id, policy).shows_totals
