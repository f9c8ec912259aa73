"""Tests for the command line parameter types and the schema commands."""

from __future__ import annotations

import decimal

import alembic.command
import alembic.config
import alembic.util
import pytest
from click.testing import CliRunner

import gradenorm.lib.cli as click
from gradenorm.cli.schema import schema
from gradenorm.core import GradeNormContainer
from gradenorm.model import ReportKey


class TestEnumType(object):
    def test_convert(self) -> None:
        assert click.EnumType(ReportKey).convert("user", None, None) is ReportKey.User

    def test_invalid_value(self) -> None:
        with pytest.raises(click.BadParameter, match="overview"):
            click.EnumType(ReportKey).convert("grader", None, None)


class TestDecimalParamType(object):
    def test_convert(self) -> None:
        assert click.DecimalParamType().convert("85.5", None, None) == decimal.Decimal("85.5")
        assert click.DecimalParamType().convert("null", None, None) is None

    def test_invalid_value(self) -> None:
        with pytest.raises(click.BadParameter):
            click.DecimalParamType().convert("eighty", None, None)


class TestSchema(object):
    def test_commands(self) -> None:
        result = CliRunner().invoke(schema, ["--help"])

        assert result.exit_code == 0
        for name in ("check", "current", "down", "generate", "history", "stamp", "up"):
            assert name in result.output

    def test_up_uses_container_config(self, container: GradeNormContainer, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[tuple[alembic.config.Config, str, bool]] = []
        monkeypatch.setattr(alembic.command, "upgrade", lambda conf, rev, sql=False: calls.append((conf, rev, sql)))

        result = CliRunner().invoke(schema, ["up", "--sql"])

        assert result.exit_code == 0, result.output
        [(conf, revision, sql)] = calls
        assert conf is container.storage.persistent.alembic_config()
        assert str(conf.get_main_option("script_location")).rstrip("/").endswith("migrations")
        assert revision == "head"
        assert sql is True

    def test_check_reports_drift(self, container: GradeNormContainer, monkeypatch: pytest.MonkeyPatch) -> None:
        def drifted(conf: alembic.config.Config) -> None:
            raise alembic.util.AutogenerateDiffsDetected("New upgrade operations detected")

        monkeypatch.setattr(alembic.command, "check", drifted)

        result = CliRunner().invoke(schema, ["check"])

        assert result.exit_code == 1
        assert "New upgrade operations detected" in result.output
