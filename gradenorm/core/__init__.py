__all__ = [
    "BootConfiguration",
    "di",
    "GradeNormContainer",
    "LoggingProvider",
    "Settings",
    "TimestampProvider",
]


from . import di
from .config import Settings
from .provider import LoggingProvider, TimestampProvider
from .container import BootConfiguration, GradeNormContainer  # noqa: I001
