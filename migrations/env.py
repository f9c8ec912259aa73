from logging.config import fileConfig

import sqlalchemy
from alembic import context
from sqlalchemy.pool import NullPool

from gradenorm.storage.table import metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = metadata


def include_name(name: str | None, type_: str, parent_names: dict[str, str | None]) -> bool:
    # only the cache table is versioned
    if type_ == "table":
        return name in target_metadata.tables
    return True


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_section_option("alembic", "sqlalchemy.url"),
        target_metadata=target_metadata,
        include_name=include_name,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = config.get_section_option("alembic", "sqlalchemy.url")
    assert url is not None
    engine = sqlalchemy.create_engine(url, poolclass=NullPool)

    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, include_name=include_name)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
