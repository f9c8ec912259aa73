__all__ = [
    "DatabaseSettings",
    "GradingSettings",
    "HostSettings",
    "LoggingSettings",
    "Settings",
    "StorageSettings",
]


from .grading import GradingSettings
from .host import HostSettings
from .logging import LoggingSettings
from .settings import Settings
from .storage import DatabaseSettings, StorageSettings
