__all__ = [
    # Base
    "BaseModel",
    "FrozenModel",
    "WithTimeModified",
    # Enums
    "DeploymentEnvironment",
    "DisplayType",
    "Freshness",
    "HiddenTotalsSetting",
    "ReconcileOutcome",
    "ReportKey",
    # Grades
    "AdjustedGrade",
    "CachedGradeRecord",
    "FormattedGrade",
    "GradeContext",
    "NoGrade",
    "limiter",
    # Host records
    "CourseGradeSource",
    "GradeBounds",
    "GradeItem",
    "GradeLetter",
    "GradeRow",
    "RoleAssignment",
]

from .base import BaseModel, FrozenModel, WithTimeModified
from .enum import DeploymentEnvironment, DisplayType, Freshness, HiddenTotalsSetting, ReconcileOutcome, ReportKey
from .grade import AdjustedGrade, CachedGradeRecord, FormattedGrade, GradeContext, limiter, NoGrade
from .host import CourseGradeSource, GradeBounds, GradeItem, GradeLetter, GradeRow, RoleAssignment
