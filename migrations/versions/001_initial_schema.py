"""Cache table of normalized course totals

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

import typing as t

from alembic import op
from sqlalchemy.schema import Column
from sqlalchemy.types import BigInteger, Integer, Numeric, String

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "normalize_grades",
        Column("id", Integer, primary_key=True, autoincrement=True),
        # "<courseid> <userid> <itemid>"
        Column("limiter", String(255), nullable=False, unique=True),
        Column("courseid", Integer, nullable=False),
        Column("userid", Integer, nullable=False),
        Column("itemid", Integer, nullable=False),
        Column("gradeid", Integer, nullable=False),
        Column("originalgrade", Numeric(10, 5), nullable=True),
        Column("calculatedgrade", String(255), nullable=True),
        Column("numericgrade", String(255), nullable=True),
        Column("percentgrade", String(255), nullable=True),
        Column("lettergrade", String(255), nullable=True),
        Column("storedsetting", String(32), nullable=False),
        Column("timemodified", BigInteger, nullable=False),
    )
    op.create_index("ix_normalize_grades_courseid", "normalize_grades", ["courseid"])
    op.create_index("ix_normalize_grades_userid", "normalize_grades", ["userid"])


def downgrade() -> None:
    op.drop_index("ix_normalize_grades_userid", table_name="normalize_grades")
    op.drop_index("ix_normalize_grades_courseid", table_name="normalize_grades")
    op.drop_table("normalize_grades")
