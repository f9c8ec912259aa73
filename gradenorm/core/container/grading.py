from __future__ import annotations

import typing as t

import sqlalchemy.orm
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Dependency, Factory, Provider

from gradenorm.host import MoodleHost

from ..config import GradingSettings, HostSettings
from ..provider import UnixTimeProvider

if t.TYPE_CHECKING:
    from gradenorm.grading import NormalizeGradesTask


def provide_host(session: sqlalchemy.orm.Session, settings: HostSettings, now: UnixTimeProvider) -> MoodleHost:
    return MoodleHost(
        session,
        table_prefix=settings.table_prefix,
        view_hidden_capability=settings.view_hidden_capability,
        now=now,
    )


def provide_task(
    session: sqlalchemy.orm.Session, host_settings: HostSettings, settings: GradingSettings, now: UnixTimeProvider
) -> NormalizeGradesTask:
    """The task and the host it reads from share one session"""
    # gradenorm.grading imports gradenorm.core, which imports this module
    from gradenorm.grading import NormalizeGradesTask

    return NormalizeGradesTask(provide_host(session, host_settings, now), session, settings)


class GradingContainer(DeclarativeContainer):
    config = Configuration()
    session: Provider[sqlalchemy.orm.Session] = Dependency()
    now: Provider[UnixTimeProvider] = Dependency()

    host: Provider[MoodleHost] = Factory(
        provide_host,
        session=session,
        settings=config.host.as_(HostSettings),
        now=now,
    )
    task: Provider[NormalizeGradesTask] = Factory(
        provide_task,
        session=session,
        host_settings=config.host.as_(HostSettings),
        settings=config.grading.as_(GradingSettings),
        now=now,
    )
