"""Pytest fixtures for gradenorm tests.

Tests run against an in-memory SQLite database holding both the
normalize_grades table and the subset of the Moodle grade book which
gradenorm reads. Each test runs within a transaction that is rolled back
after the test, so the host rows it creates never leak into the next test.

Usage:
    def test_course_total(moodle: MoodleSite, host: MoodleHost):
        item_id = moodle.course(2)
        moodle.grade(item_id, user_id=7, final_grade=85)
"""

from __future__ import annotations

import decimal
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
import sqlalchemy as sqla
from sqlalchemy.orm import Session

import gradenorm
from gradenorm.core import GradeNormContainer
from gradenorm.core.config import GradingSettings
from gradenorm.host import host_tables, MoodleHost
from gradenorm.model import CachedGradeRecord, DeploymentEnvironment, FormattedGrade, HiddenTotalsSetting
from gradenorm.storage.table import metadata

NOW: t.Final = 1_700_000_000

CONTEXT_SYSTEM: t.Final = 10
CONTEXT_COURSE: t.Final = 50


@pytest.fixture(scope="session")
def container() -> t.Generator[GradeNormContainer]:
    """Boot the DI container for the test session.

    Uses the Test environment, whose storage is an in-memory SQLite
    database shared by every connection of the engine.
    """
    ct = GradeNormContainer()
    root = Path(os.path.dirname(gradenorm.__file__)).parent

    GradeNormContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )

    engine = ct.storage().persistent().engine()
    metadata.create_all(engine)
    host_tables("mdl_").metadata.create_all(engine)

    yield ct

    ct.shutdown_resources()


@pytest.fixture
def db_session(container: GradeNormContainer) -> t.Generator[Session]:
    """Provide a database session wrapped in a transaction.

    Uses join_transaction_mode="create_savepoint" so that session.begin()
    creates savepoints instead of failing when already in a transaction,
    which lets code that opens its own transactions run unchanged.
    """
    engine = container.storage().persistent().engine()

    connection = engine.connect()
    transaction = connection.begin()

    session = Session(
        bind=connection,
        autobegin=False,
        join_transaction_mode="create_savepoint",
    )

    yield session

    session.close()
    transaction.rollback()
    connection.close()


class MoodleSite(object):
    """Writes rows of a minimal Moodle grade book"""

    def __init__(self, session: Session):
        self.session = session
        self.tables = host_tables("mdl_")
        self.contexts: dict[int, int] = {}
        self._system_context: int | None = None

    def _insert(self, table: sqla.Table, **values: t.Any) -> int:
        with self.session.begin():
            result = self.session.execute(sqla.insert(table).values(**values))
            return t.cast(int, result.inserted_primary_key[0])  # pyright: ignore [reportOptionalSubscript]

    def setting(self, name: str, value: str) -> None:
        self._insert(self.tables.config, name=name, value=value)

    def course_setting(self, course_id: int, name: str, value: str) -> None:
        self._insert(self.tables.grade_settings, courseid=course_id, name=name, value=value)

    @property
    def system_context(self) -> int:
        if self._system_context is None:
            self._system_context = self._insert(self.tables.context, contextlevel=CONTEXT_SYSTEM, instanceid=0)
        return self._system_context

    def course_context(self, course_id: int) -> int:
        if course_id not in self.contexts:
            self.contexts[course_id] = self._insert(
                self.tables.context, contextlevel=CONTEXT_COURSE, instanceid=course_id
            )
        return self.contexts[course_id]

    def course(
        self,
        course_id: int,
        *,
        grade_min: decimal.Decimal | int = 0,
        grade_max: decimal.Decimal | int = 100,
        decimals: int | None = 2,
        display: int = 0,
    ) -> int:
        """Create a course context and the course total item; returns the item id"""
        self.course_context(course_id)
        return self._insert(
            self.tables.grade_items,
            courseid=course_id,
            itemtype="course",
            grademin=grade_min,
            grademax=grade_max,
            decimals=decimals,
            display=display,
            hidden=0,
        )

    def item(
        self,
        course_id: int,
        *,
        grade_min: decimal.Decimal | int = 0,
        grade_max: decimal.Decimal | int = 100,
        hidden: int = 0,
        item_type: str = "mod",
    ) -> int:
        return self._insert(
            self.tables.grade_items,
            courseid=course_id,
            itemtype=item_type,
            grademin=grade_min,
            grademax=grade_max,
            display=0,
            hidden=hidden,
        )

    def grade(
        self,
        item_id: int,
        user_id: int,
        final_grade: decimal.Decimal | int | str | None,
        *,
        hidden: int = 0,
        excluded: int = 0,
        time_modified: int | None = NOW,
    ) -> int:
        return self._insert(
            self.tables.grade_grades,
            itemid=item_id,
            userid=user_id,
            finalgrade=decimal.Decimal(final_grade) if final_grade is not None else None,
            hidden=hidden,
            excluded=excluded,
            timemodified=time_modified,
        )

    def set_grade(self, grade_id: int, final_grade: decimal.Decimal | int | str | None, time_modified: int) -> None:
        gg = self.tables.grade_grades
        with self.session.begin():
            self.session.execute(
                sqla.update(gg)
                .where(gg.c.id == grade_id)
                .values(
                    finalgrade=decimal.Decimal(final_grade) if final_grade is not None else None,
                    timemodified=time_modified,
                )
            )

    def set_hidden(self, item_id: int, hidden: int) -> None:
        gi = self.tables.grade_items
        with self.session.begin():
            self.session.execute(sqla.update(gi).where(gi.c.id == item_id).values(hidden=hidden))

    def role(self, short_name: str) -> int:
        return self._insert(self.tables.role, shortname=short_name)

    def enrol(self, user_id: int, course_id: int, role_id: int) -> None:
        self._insert(
            self.tables.role_assignments, roleid=role_id, contextid=self.course_context(course_id), userid=user_id
        )

    def assign_system(self, user_id: int, role_id: int) -> None:
        self._insert(self.tables.role_assignments, roleid=role_id, contextid=self.system_context, userid=user_id)

    def permit(self, role_id: int, context_id: int, capability: str, permission: int) -> None:
        self._insert(
            self.tables.role_capabilities,
            roleid=role_id,
            contextid=context_id,
            capability=capability,
            permission=permission,
        )

    def letter(self, context_id: int, lower_boundary: decimal.Decimal | int, letter: str) -> None:
        self._insert(self.tables.grade_letters, contextid=context_id, lowerboundary=lower_boundary, letter=letter)


@pytest.fixture
def moodle(db_session: Session) -> MoodleSite:
    return MoodleSite(db_session)


@pytest.fixture
def host(db_session: Session) -> MoodleHost:
    return MoodleHost(db_session, now=lambda: NOW)


@pytest.fixture
def student_role(moodle: MoodleSite) -> int:
    """The `student` role, listed in the site's gradebook roles"""
    role_id = moodle.role("student")
    moodle.setting("gradebookroles", str(role_id))
    return role_id


@pytest.fixture
def instructor_role(moodle: MoodleSite) -> int:
    """The `manager` role, allowed to view hidden grades in every course"""
    role_id = moodle.role("manager")
    moodle.permit(role_id, moodle.system_context, "moodle/grade:viewhidden", 1)
    return role_id


@pytest.fixture
def grading_settings() -> GradingSettings:
    return GradingSettings()


@pytest.fixture
def record_factory() -> t.Callable[..., CachedGradeRecord]:
    """Factory fixture for cached grade records with sensible defaults.

    Usage:
        def test_something(record_factory):
            record = record_factory(original_grade="85")
    """

    def create_record(
        course_id: int = 3,
        user_id: int = 7,
        item_id: int = 42,
        grade_id: int = 100,
        original_grade: decimal.Decimal | str | None = "85",
        formatted: FormattedGrade | None = None,
        stored_setting: HiddenTotalsSetting = HiddenTotalsSetting.ExcludeHidden,
        time_modified: int = NOW,
    ) -> CachedGradeRecord:
        value = decimal.Decimal(original_grade) if original_grade is not None else None
        if formatted is None and value is not None:
            formatted = FormattedGrade(
                calculated=f"{value:.2f}",
                numeric=f"{value:.2f}",
                percent=f"{value:.2f} %",
                letter="B",
            )
        return CachedGradeRecord.build(
            course_id=course_id,
            user_id=user_id,
            item_id=item_id,
            grade_id=grade_id,
            original_grade=value,
            formatted=formatted or FormattedGrade(),
            stored_setting=stored_setting,
            time_modified=time_modified,
        )

    return create_record
