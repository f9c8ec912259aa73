import decimal

from sqlalchemy import BigInteger, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import Numeric, String

metadata = MetaData()


class base(MappedAsDataclass, DeclarativeBase):
    metadata = metadata
    type_annotation_map = {
        decimal.Decimal: Numeric(10, 5),
        str: String(255),
    }


class normalize_grades(base):
    __tablename__ = "normalize_grades"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True, init=False)
    limiter: Mapped[str] = mapped_column(unique=True)
    courseid: Mapped[int] = mapped_column(index=True)
    userid: Mapped[int] = mapped_column(index=True)
    itemid: Mapped[int]
    gradeid: Mapped[int]
    storedsetting: Mapped[str] = mapped_column(String(32))
    timemodified: Mapped[int] = mapped_column(BigInteger)
    originalgrade: Mapped[decimal.Decimal | None] = mapped_column(default=None)
    calculatedgrade: Mapped[str | None] = mapped_column(default=None)
    numericgrade: Mapped[str | None] = mapped_column(default=None)
    percentgrade: Mapped[str | None] = mapped_column(default=None)
    lettergrade: Mapped[str | None] = mapped_column(default=None)
