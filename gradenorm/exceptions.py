class GradeNormError(Exception):
    """Base class of errors raised by gradenorm"""


class ContentionError(GradeNormError):
    """Another writer holds or has just created the row for this limiter.

    Retryable: the reconcile of this single record may be attempted again.
    """

    def __init__(self, limiter: str):
        self.limiter = limiter
        super().__init__(f"concurrent write to normalized grade {limiter!r}")


class HostSettingError(GradeNormError):
    """A host setting holds a value which cannot be interpreted"""

    def __init__(self, name: str, value: object):
        self.name = name
        self.value = value
        super().__init__(f"unrecognized value for host setting {name!r}: {value!r}")
