__all__ = [
    "BootConfiguration",
    "GradeNormContainer",
    "GradingContainer",
    "StorageContainer",
]

from .gradenorm import BootConfiguration, GradeNormContainer
from .grading import GradingContainer
from .storage import StorageContainer
