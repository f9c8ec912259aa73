"""The subset of the host's grade book schema read by gradenorm.

The host owns these tables; they are never created or migrated here outside
of tests. Table names carry the host's configurable prefix.
"""

from __future__ import annotations

import dataclasses
import functools
import typing as t

from sqlalchemy import BigInteger, Column, Integer, MetaData, Numeric, String, Table, Text


@dataclasses.dataclass(frozen=True)
class HostTables(object):
    metadata: MetaData
    config: Table
    context: Table
    grade_items: Table
    grade_grades: Table
    grade_settings: Table
    grade_letters: Table
    role: Table
    role_assignments: Table
    role_capabilities: Table


@functools.cache
def host_tables(prefix: str = "mdl_") -> HostTables:
    metadata = MetaData()

    def table(name: str, *columns: Column[t.Any]) -> Table:
        # sqlite only autoincrements INTEGER PRIMARY KEY
        pk = Column("id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
        return Table(f"{prefix}{name}", metadata, pk, *columns)

    return HostTables(
        metadata=metadata,
        config=table(
            "config",
            Column("name", String(255), nullable=False, unique=True),
            Column("value", Text, nullable=False),
        ),
        context=table(
            "context",
            Column("contextlevel", BigInteger, nullable=False),
            Column("instanceid", BigInteger, nullable=False),
        ),
        grade_items=table(
            "grade_items",
            Column("courseid", BigInteger),
            Column("itemtype", String(30), nullable=False),
            Column("itemname", String(255)),
            Column("grademin", Numeric(10, 5), nullable=False, default=0),
            Column("grademax", Numeric(10, 5), nullable=False, default=100),
            Column("decimals", Integer),
            Column("display", BigInteger, nullable=False, default=0),
            Column("hidden", BigInteger, nullable=False, default=0),
        ),
        grade_grades=table(
            "grade_grades",
            Column("itemid", BigInteger, nullable=False),
            Column("userid", BigInteger, nullable=False),
            Column("rawgrademin", Numeric(10, 5)),
            Column("rawgrademax", Numeric(10, 5)),
            Column("finalgrade", Numeric(10, 5)),
            Column("hidden", BigInteger, nullable=False, default=0),
            Column("excluded", BigInteger, nullable=False, default=0),
            Column("timemodified", BigInteger),
        ),
        grade_settings=table(
            "grade_settings",
            Column("courseid", BigInteger, nullable=False),
            Column("name", String(255), nullable=False),
            Column("value", Text),
        ),
        grade_letters=table(
            "grade_letters",
            Column("contextid", BigInteger, nullable=False),
            Column("lowerboundary", Numeric(10, 5), nullable=False),
            Column("letter", String(255), nullable=False),
        ),
        role=table(
            "role",
            Column("shortname", String(100), nullable=False),
        ),
        role_assignments=table(
            "role_assignments",
            Column("roleid", BigInteger, nullable=False),
            Column("contextid", BigInteger, nullable=False),
            Column("userid", BigInteger, nullable=False),
        ),
        role_capabilities=table(
            "role_capabilities",
            Column("contextid", BigInteger, nullable=False),
            Column("roleid", BigInteger, nullable=False),
            Column("capability", String(255), nullable=False),
            Column("permission", BigInteger, nullable=False, default=0),
        ),
    )
