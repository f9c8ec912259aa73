from __future__ import annotations

import logging

from sqlalchemy.orm import Session

import gradenorm.storage.normalized_grade as normalized_grade_store
from gradenorm.core.config import GradingSettings
from gradenorm.exceptions import ContentionError
from gradenorm.host import Host
from gradenorm.model import BaseModel, CourseGradeSource, NoGrade, ReconcileOutcome

from .adjust import grade_for_course
from .policy import PolicyDefaults, PolicyResolver

logger = logging.getLogger(__name__)


class TaskSummary(BaseModel):
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0

    def add(self, outcome: ReconcileOutcome | None) -> None:
        if outcome is None:
            self.skipped += 1
        else:
            setattr(self, outcome.value, getattr(self, outcome.value) + 1)

    @property
    def total(self) -> int:
        return self.inserted + self.updated + self.unchanged + self.skipped + self.failed


class NormalizeGradesTask(object):
    """Refreshes the cached course totals of every graded user.

    The host and the task share `session`; each record is reconciled in its own
    transaction so that an aborted run keeps what it already wrote.
    """

    def __init__(self, host: Host, session: Session, settings: GradingSettings):
        self.host = host
        self.session = session
        self.settings = settings
        self._policy: PolicyResolver | None = None
        self._gradebook_roles: frozenset[int] | None = None

    @property
    def policy(self) -> PolicyResolver:
        if self._policy is None:
            defaults = PolicyDefaults.load(self.settings, self.host)
            self._policy = PolicyResolver(defaults, self.host)
        return self._policy

    @property
    def gradebook_roles(self) -> frozenset[int]:
        if self._gradebook_roles is None:
            configured = self.settings.gradebook_roles
            self._gradebook_roles = frozenset(configured if configured is not None else self.host.gradebook_roles())
        return self._gradebook_roles

    def is_graded(self, course_id: int, user_id: int) -> bool:
        assignments = self.host.roles_in_course(user_id, course_id)
        if not assignments:
            logger.info(
                "skipping user without a role in course",
                extra={"identity": f"NoRole user:{user_id} course:{course_id}"},
            )
            return False
        return any(a.role_id in self.gradebook_roles for a in assignments)

    def process(self, course_id: int, user_id: int) -> ReconcileOutcome | None:
        """Compute and cache one user's course total.

        Returns None when the user is not graded in the course or has no course
        total. Must be called inside a transaction.
        """
        if not self.is_graded(course_id, user_id):
            return None

        record = grade_for_course(course_id, user_id, self.host, self.policy)
        if isinstance(record, NoGrade):
            return None

        _, outcome = normalized_grade_store.reconcile(record, session=self.session)
        return outcome

    def run(self, course_id: int | None = None, user_id: int | None = None) -> TaskSummary:
        summary = TaskSummary()
        with self.session.begin():
            sources = list(self.host.course_grades(course_id=course_id, user_id=user_id))

        logger.info(
            "normalizing course totals",
            extra={"course_id": course_id, "user_id": user_id, "grades": len(sources)},
        )
        seen: set[tuple[int, int]] = set()
        for source in sources:
            key = (source.course_id, source.user_id)
            if key in seen:
                continue
            seen.add(key)

            try:
                summary.add(self._process_with_retries(source))
            except ContentionError as e:
                logger.error(
                    "gave up on normalized grade",
                    extra={"limiter": e.limiter, "attempts": self.settings.max_retries + 1},
                )
                summary.failed += 1

        logger.info("normalized course totals", extra=summary.model_dump())
        return summary

    def _process_with_retries(self, source: CourseGradeSource) -> ReconcileOutcome | None:
        attempt = 0
        while True:
            try:
                with self.session.begin():
                    return self.process(source.course_id, source.user_id)
            except ContentionError:
                if attempt >= self.settings.max_retries:
                    raise
                attempt += 1
                logger.warning("retrying contended normalized grade", extra={"limiter": source.limiter, "attempt": attempt})
