from __future__ import annotations

import decimal
import logging
import typing as t

import sqlalchemy as sqla
from sqlalchemy.orm import Session

import gradenorm.lib.util as util
from gradenorm.model import CourseGradeSource, DisplayType, GradeBounds, GradeContext, GradeItem, GradeLetter, \
    GradeRow, limiter, RoleAssignment

from .bounds import NaturalBoundsResolver
from .format import MoodleGradeFormatter
from .table import host_tables

logger = logging.getLogger(__name__)

CONTEXT_SYSTEM: t.Final = 10
CONTEXT_COURSE: t.Final = 50

CAP_ALLOW: t.Final = 1
CAP_PROHIBIT: t.Final = -1000

# grade items aggregated into a course total
GRADED_ITEM_TYPES: t.Final = ("mod", "manual")


class MoodleHost(object):
    """Reads the grade book of a Moodle database through the given session.

    Every method runs inside the transaction of the caller.
    """

    def __init__(
        self,
        session: Session,
        *,
        table_prefix: str = "mdl_",
        view_hidden_capability: str = "moodle/grade:viewhidden",
        now: t.Callable[[], int],
    ):
        self.session = session
        self.tables = host_tables(table_prefix)
        self.view_hidden_capability = view_hidden_capability
        self.formatter = MoodleGradeFormatter(settings=self, letters=self)
        self.bounds = NaturalBoundsResolver(items=self, now=now)

    # grade book

    def course_total_item(self, course_id: int) -> GradeItem | None:
        gi = self.tables.grade_items
        stmt = sqla.select(gi).where(gi.c.courseid == course_id, gi.c.itemtype == "course")
        row = self.session.execute(stmt).mappings().first()
        return self._grade_item(row) if row else None

    def course_items(self, course_id: int) -> tuple[GradeItem, ...]:
        gi = self.tables.grade_items
        stmt = (
            sqla.select(gi)
            .where(gi.c.courseid == course_id, gi.c.itemtype.in_(GRADED_ITEM_TYPES))
            .order_by(gi.c.id)
        )
        return tuple(self._grade_item(row) for row in self.session.execute(stmt).mappings())

    def grade_row(self, item_id: int, user_id: int) -> GradeRow | None:
        gg = self.tables.grade_grades
        stmt = sqla.select(gg).where(gg.c.itemid == item_id, gg.c.userid == user_id)
        row = self.session.execute(stmt).mappings().first()
        return self._grade_row(row) if row else None

    def user_grade_rows(self, course_id: int, user_id: int) -> dict[int, GradeRow]:
        gi, gg = self.tables.grade_items, self.tables.grade_grades
        stmt = (
            sqla.select(gg)
            .join(gi, gi.c.id == gg.c.itemid)
            .where(gi.c.courseid == course_id, gg.c.userid == user_id)
        )
        rows = (self._grade_row(row) for row in self.session.execute(stmt).mappings())
        return {row.item_id: row for row in rows}

    def course_grades(
        self, *, course_id: int | None = None, user_id: int | None = None
    ) -> t.Iterator[CourseGradeSource]:
        """Course total grade rows of every user, optionally narrowed to a course or user"""
        gi, gg = self.tables.grade_items, self.tables.grade_grades
        stmt = (
            sqla.select(
                gi.c.courseid,
                gg.c.userid,
                gi.c.id.label("itemid"),
                gg.c.finalgrade,
                gg.c.timemodified,
            )
            .join(gg, gg.c.itemid == gi.c.id)
            .where(gi.c.itemtype == "course")
            .order_by(gi.c.courseid, gg.c.userid)
        )
        if course_id is not None:
            stmt = stmt.where(gi.c.courseid == course_id)
        if user_id is not None:
            stmt = stmt.where(gg.c.userid == user_id)

        for row in self.session.execute(stmt).mappings():
            yield CourseGradeSource(
                limiter=limiter(row["courseid"], row["userid"], row["itemid"]),
                course_id=row["courseid"],
                user_id=row["userid"],
                item_id=row["itemid"],
                original_grade=row["finalgrade"],
                time_modified=row["timemodified"],
            )

    # settings

    def course_setting(self, course_id: int, name: str) -> str | None:
        gs = self.tables.grade_settings
        stmt = sqla.select(gs.c.value).where(gs.c.courseid == course_id, gs.c.name == name)
        return self.session.execute(stmt).scalars().first()

    def site_setting(self, name: str) -> str | None:
        cfg = self.tables.config
        stmt = sqla.select(cfg.c.value).where(cfg.c.name == name)
        return self.session.execute(stmt).scalars().first()

    def grade_letters(self, course_id: int) -> tuple[GradeLetter, ...]:
        gl = self.tables.grade_letters
        for context_id in (self._course_context_id(course_id), self._system_context_id()):
            if context_id is None:
                continue
            stmt = sqla.select(gl).where(gl.c.contextid == context_id).order_by(gl.c.lowerboundary.desc())
            rows = self.session.execute(stmt).mappings().all()
            if rows:
                return tuple(GradeLetter(lower_boundary=row["lowerboundary"], letter=row["letter"]) for row in rows)
        return ()

    # roles and capabilities

    def roles_in_course(self, user_id: int, course_id: int) -> tuple[RoleAssignment, ...]:
        context_id = self._course_context_id(course_id)
        if context_id is None:
            return ()
        ra, role = self.tables.role_assignments, self.tables.role
        stmt = (
            sqla.select(ra.c.roleid, role.c.shortname)
            .join(role, role.c.id == ra.c.roleid, isouter=True)
            .where(ra.c.userid == user_id, ra.c.contextid == context_id)
            .order_by(ra.c.roleid)
        )
        return tuple(
            RoleAssignment(role_id=row["roleid"], short_name=row["shortname"])
            for row in self.session.execute(stmt).mappings()
        )

    def gradebook_roles(self) -> tuple[int, ...]:
        return util.split_ids(self.site_setting("gradebookroles"))

    def can_view_hidden(self, user_id: int, course_id: int) -> bool:
        if user_id in util.split_ids(self.site_setting("siteadmins")):
            return True

        context_ids = [c for c in (self._system_context_id(), self._course_context_id(course_id)) if c is not None]
        if not context_ids:
            return False
        ra, rc = self.tables.role_assignments, self.tables.role_capabilities

        stmt = sqla.select(ra.c.roleid).where(ra.c.userid == user_id, ra.c.contextid.in_(context_ids))
        role_ids = set(self.session.execute(stmt).scalars())
        if not role_ids:
            return False

        stmt = sqla.select(rc.c.roleid, rc.c.contextid, rc.c.permission).where(
            rc.c.capability == self.view_hidden_capability,
            rc.c.roleid.in_(role_ids),
            rc.c.contextid.in_(context_ids),
        )
        # the most specific context wins, except that a prohibit anywhere wins outright
        depth = {cid: i for i, cid in enumerate(context_ids)}
        permissions: dict[int, tuple[int, int]] = {}
        for row in self.session.execute(stmt).mappings():
            if row["permission"] == CAP_PROHIBIT:
                return False
            current = permissions.get(row["roleid"])
            if current is None or depth[row["contextid"]] > current[0]:
                permissions[row["roleid"]] = (depth[row["contextid"]], row["permission"])
        return any(permission == CAP_ALLOW for _, permission in permissions.values())

    # formatting and bounds

    def format(
        self,
        value: decimal.Decimal | None,
        item: GradeItem,
        localized: bool = True,
        display_type: DisplayType | None = None,
        decimals: int | None = None,
    ) -> str:
        return self.formatter.format(value, item, localized, display_type, decimals)

    def blank_hidden_total_and_adjust_bounds(self, context: GradeContext) -> GradeBounds:
        return self.bounds.blank_hidden_total_and_adjust_bounds(context)

    # helpers

    def _course_context_id(self, course_id: int) -> int | None:
        ctx = self.tables.context
        stmt = sqla.select(ctx.c.id).where(ctx.c.contextlevel == CONTEXT_COURSE, ctx.c.instanceid == course_id)
        return self.session.execute(stmt).scalars().first()

    def _system_context_id(self) -> int | None:
        ctx = self.tables.context
        stmt = sqla.select(ctx.c.id).where(ctx.c.contextlevel == CONTEXT_SYSTEM)
        return self.session.execute(stmt).scalars().first()

    @staticmethod
    def _grade_item(row: sqla.RowMapping) -> GradeItem:
        return GradeItem(
            item_id=row["id"],
            course_id=row["courseid"],
            item_type=row["itemtype"],
            grade_min=row["grademin"],
            grade_max=row["grademax"],
            decimals=row["decimals"],
            display=DisplayType(row["display"] or 0),
            hidden=row["hidden"] or 0,
        )

    @staticmethod
    def _grade_row(row: sqla.RowMapping) -> GradeRow:
        return GradeRow(
            grade_id=row["id"],
            item_id=row["itemid"],
            user_id=row["userid"],
            final_grade=row["finalgrade"],
            raw_grade_min=row["rawgrademin"],
            raw_grade_max=row["rawgrademax"],
            hidden=row["hidden"] or 0,
            excluded=row["excluded"] or 0,
            time_modified=row["timemodified"],
        )
