from __future__ import annotations

import typing as t

import pydantic as p

from .base import BaseSettings


class StorageSettings(BaseSettings):
    persistent: PersistentSettings


class PersistentSettings(BaseSettings):
    database: DatabaseSettings
    # DDL for normalize_grades is managed by the migrations in this directory
    migration_path: str = "migrations/"


class DatabaseSettings(BaseSettings):
    driver: t.Literal["postgresql+psycopg", "mysql+pymysql", "sqlite"] = "postgresql+psycopg"
    host: p.IPvAnyAddress | str | None = None
    port: int | None = None
    database: str | None = None
    username: str | None = None
    password: p.Secret[str] | None = None
    echo: bool = False

    @property
    def is_memory(self) -> bool:
        return self.driver == "sqlite" and self.database in (None, "", ":memory:")
