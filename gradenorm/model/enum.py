import enum


class DeploymentEnvironment(enum.Enum):
    Production = "production"
    Development = "development"
    Staging = "staging"
    Test = "test"
    Local = "local"


class ReportKey(enum.Enum):
    """The grade report whose hidden-items setting is authoritative"""

    Overview = "overview"
    User = "user"


class HiddenTotalsSetting(enum.Enum):
    """Values of the `showtotalsifcontainhidden` report setting"""

    Hide = "0"
    ExcludeHidden = "1"
    IncludeHidden = "2"

    @property
    def shows_totals(self) -> bool:
        return self is not HiddenTotalsSetting.Hide


class DisplayType(enum.IntEnum):
    Default = 0
    Real = 1
    Percentage = 2
    Letter = 3
    RealPercentage = 12
    RealLetter = 13
    LetterReal = 31
    LetterPercentage = 32
    PercentageLetter = 23
    PercentageReal = 21

    @property
    def parts(self) -> tuple["DisplayType", ...]:
        if self.value < 10:
            return (self,)
        return DisplayType(self.value // 10), DisplayType(self.value % 10)


class Freshness(enum.Enum):
    StaleDeleted = "stale_deleted"
    Fresh = "fresh"
    Absent = "absent"


class ReconcileOutcome(enum.Enum):
    Inserted = "inserted"
    Updated = "updated"
    Unchanged = "unchanged"
