__all__ = [
    "GradeHost",
    "NormalizeGradesTask",
    "PolicyDefaults",
    "PolicyResolver",
    "TaskSummary",
    "adjust",
    "format_grade",
    "grade_for_course",
]

from .adjust import adjust, format_grade, grade_for_course, GradeHost
from .policy import PolicyDefaults, PolicyResolver
from .task import NormalizeGradesTask, TaskSummary
