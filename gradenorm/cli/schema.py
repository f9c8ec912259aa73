"""Migrations of the normalize_grades table.

The host's own tables are never touched; only the cache table is versioned.
"""

from __future__ import annotations

import alembic.command
import alembic.config
import alembic.util

import gradenorm.lib.cli as click
from gradenorm.core import di

pass_alembic = click.make_pass_decorator(alembic.config.Config)


@click.group("schema")
@click.pass_context
@di.inject
def schema(ctx: click.Context, alembic_conf: alembic.config.Config = di.Provide["storage.persistent.alembic_config"]):
    """Manage the normalize_grades table with alembic."""
    ctx.obj = alembic_conf


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@pass_alembic
def current(alembic_conf: alembic.config.Config, verbose: bool):
    """Show the revision the cache table is at."""
    alembic.command.current(alembic_conf, verbose=verbose)


@schema.command()
@pass_alembic
def check(alembic_conf: alembic.config.Config):
    """Exit non-zero when the cache table differs from its mapping."""
    try:
        alembic.command.check(alembic_conf)
    except alembic.util.AutogenerateDiffsDetected as e:
        raise click.ClickException(str(e)) from e


@schema.command()
@click.argument("message")
@click.option("--autogenerate/--empty", "-a", default=True, help="Diff the mapped tables against the database")
@pass_alembic
def generate(alembic_conf: alembic.config.Config, message: str, autogenerate: bool):
    alembic.command.revision(alembic_conf, message, autogenerate=autogenerate)


@schema.command()
@click.argument("revision", default="head")
@click.option("--sql", is_flag=True, default=False, help="Print the DDL instead of running it")
@pass_alembic
def up(alembic_conf: alembic.config.Config, revision: str, sql: bool):
    alembic.command.upgrade(alembic_conf, revision, sql=sql)


@schema.command()
@click.argument("revision")
@click.option("--sql", is_flag=True, default=False, help="Print the DDL instead of running it")
@pass_alembic
def down(alembic_conf: alembic.config.Config, revision: str, sql: bool):
    # offline downgrades need an explicit starting point, e.g. 001_initial:base
    alembic.command.downgrade(alembic_conf, revision, sql=sql)


@schema.command()
@click.option("--verbose", "-v", is_flag=True, default=False)
@pass_alembic
def history(alembic_conf: alembic.config.Config, verbose: bool):
    alembic.command.history(alembic_conf, verbose=verbose, indicate_current=True)


@schema.command()
@click.argument("revision")
@pass_alembic
def stamp(alembic_conf: alembic.config.Config, revision: str):
    """Record REVISION as applied, for a cache table created outside alembic."""
    alembic.command.stamp(alembic_conf, revision)
