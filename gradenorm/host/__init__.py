__all__ = [
    "BoundsResolver",
    "CapabilityChecker",
    "CourseGradeSources",
    "GradeBook",
    "GradeFormatter",
    "Host",
    "LetterLookup",
    "MoodleGradeFormatter",
    "MoodleHost",
    "NaturalBoundsResolver",
    "RoleDirectory",
    "SettingsLookup",
    "host_tables",
]

from .bounds import NaturalBoundsResolver
from .format import MoodleGradeFormatter
from .moodle import MoodleHost
from .protocol import BoundsResolver, CapabilityChecker, CourseGradeSources, GradeBook, GradeFormatter, Host, \
    LetterLookup, RoleDirectory, SettingsLookup
from .table import host_tables
