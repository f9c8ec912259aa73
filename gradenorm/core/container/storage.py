from __future__ import annotations

import typing as t
from pathlib import Path

import alembic.config
import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm
import sqlalchemy.pool
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Factory, Object, Provider, Resource, Singleton
from sqlalchemy.engine.url import URL as DSN

from ..config.storage import DatabaseSettings, StorageSettings
from ..di import NotReady
from ..provider import LoggingProvider


def make_dsn(config: DatabaseSettings) -> DSN:
    return DSN.create(
        config.driver,
        host=str(config.host) if config.host else None,
        port=config.port,
        username=config.username,
        password=config.password.get_secret_value() if config.password else None,
        database=config.database,
    )


def provide_alembic_conf(migration_path: str, config: DatabaseSettings, root: Path | NotReady) -> alembic.config.Config:
    if isinstance(root, NotReady):
        raise RuntimeError("root path is unavailable")

    escaped_str = make_dsn(config).render_as_string(hide_password=False).replace("%", "%%")

    ac = alembic.config.Config()
    ac.set_main_option("script_location", str(root / migration_path))
    ac.set_section_option("alembic", "sqlalchemy.url", escaped_str)
    ac.set_section_option("alembic", "file_template", "%%(year)d-%%(month).2d-%%(day).2d-%%(slug)s-%%(rev)s")
    return ac


def provide_engine(config: DatabaseSettings, logging: LoggingProvider) -> sqlalchemy.Engine:
    logger = logging.get_logger()

    kwargs: dict[str, t.Any] = {"echo": config.echo}
    if config.driver == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if config.is_memory:
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = sqlalchemy.pool.StaticPool
    else:
        kwargs["pool_pre_ping"] = True
        kwargs["pool_recycle"] = 3600

    engine = sqlalchemy.create_engine(make_dsn(config), **kwargs)
    if config.driver == "sqlite":
        sqlalchemy.event.listen(engine, "connect", sqlite_disable_autobegin)
        sqlalchemy.event.listen(engine, "begin", sqlite_emit_begin)
    elif config.driver == "mysql+pymysql":
        sqlalchemy.event.listen(engine, "connect", mysql_set_names)

    logger.info(
        "initialized SQLAlchemy engine",
        extra={
            "driver": config.driver,
            "database": config.database,
            "host": config.host,
            "port": config.port,
        },
    )
    return engine


def provide_session(engine: sqlalchemy.Engine) -> sqlalchemy.orm.Session:
    """Create a new session. Caller is responsible for closing it."""
    maker = sqlalchemy.orm.sessionmaker(engine, expire_on_commit=False, autoflush=False)
    return maker(autobegin=False)


class PersistentContainer(DeclarativeContainer):
    config = Configuration()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    alembic_config: Provider[alembic.config.Config] = Singleton(
        provide_alembic_conf,
        migration_path=config.migration_path,
        config=config.database.as_(DatabaseSettings),
        root=root,
    )
    engine: Provider[sqlalchemy.Engine] = Singleton(
        provide_engine,
        config=config.database.as_(DatabaseSettings),
        logging=logging,
    )
    session: Provider[sqlalchemy.orm.Session] = Factory(provide_session, engine=engine)


class StorageContainer(DeclarativeContainer):
    config: Provider[StorageSettings] = Configuration(strict=True)
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    persistent: Provider[PersistentContainer] = Container(
        PersistentContainer, config=config.persistent, logging=logging, root=root
    )


def sqlite_disable_autobegin(dbapi_conn: t.Any, _: t.Any) -> None:
    """Stop pysqlite from issuing its own BEGIN, which breaks SAVEPOINT.

    https://docs.sqlalchemy.org/en/20/dialects/sqlite.html#serializable-isolation-savepoints-transactional-ddl
    """
    dbapi_conn.isolation_level = None


def sqlite_emit_begin(conn: sqlalchemy.Connection) -> None:
    conn.exec_driver_sql("BEGIN")


def mysql_set_names(dbapi_conn: t.Any, _: t.Any) -> None:
    with dbapi_conn.cursor() as cur:
        cur.execute("SET NAMES utf8mb4 COLLATE utf8mb4_unicode_ci;")
