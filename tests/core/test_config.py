"""Tests for gradenorm.core.config module."""

from __future__ import annotations

import os
from pathlib import Path

import pydantic as p
import pytest
from pydantic_settings import SettingsError

import gradenorm
from gradenorm.core import GradeNormContainer, Settings
from gradenorm.core.config import GradingSettings
from gradenorm.core.config.source import parse_overrides, section_paths
from gradenorm.model import DeploymentEnvironment, ReportKey

CONFIG_ROOT = p.FileUrl(f"file://{Path(os.path.dirname(gradenorm.__file__)).parent}/config")


class TestSettings(object):
    def test_environment_files_replace_root_files(self) -> None:
        settings = Settings(env=DeploymentEnvironment.Test, root=CONFIG_ROOT, override=())

        assert settings.storage.persistent.database.driver == "sqlite"
        assert settings.storage.persistent.database.is_memory
        assert settings.host.table_prefix == "mdl_"

    def test_local_uses_root_files(self) -> None:
        settings = Settings(env=DeploymentEnvironment.Local, root=CONFIG_ROOT, override=())

        assert settings.storage.persistent.database.driver == "postgresql+psycopg"

    def test_overrides(self) -> None:
        settings = Settings(
            env=DeploymentEnvironment.Test,
            root=CONFIG_ROOT,
            override=("grading.max_retries=5", "grading.report_key=overview", "host.table_prefix=m_"),
        )

        assert settings.grading.max_retries == 5
        assert settings.grading.report_key is ReportKey.Overview
        assert settings.host.table_prefix == "m_"

    def test_malformed_override(self) -> None:
        with pytest.raises(SettingsError):
            Settings(env=DeploymentEnvironment.Test, root=CONFIG_ROOT, override=("grading.max_retries",))


class TestSources(object):
    def test_parse_overrides(self) -> None:
        parsed = parse_overrides(["grading.max_retries=5", "grading.gradebook_roles=[5, 7]", "host.table_prefix = m_"])

        assert parsed == {"grading": {"max_retries": 5, "gradebook_roles": [5, 7]}, "host": {"table_prefix": "m_"}}

    @pytest.mark.parametrize("option", ["grading.max_retries", "=5"])
    def test_malformed_override(self, option: str) -> None:
        with pytest.raises(ValueError, match="key=value"):
            parse_overrides([option])

    def test_section_paths(self) -> None:
        root = Path(CONFIG_ROOT.path or "")

        assert section_paths(CONFIG_ROOT, DeploymentEnvironment.Local) == [root]
        assert section_paths(CONFIG_ROOT, DeploymentEnvironment.Test) == [root, root / "env.d" / "test"]

    def test_remote_root_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="local directory"):
            section_paths(p.AnyUrl("https://example.com/config"), DeploymentEnvironment.Local)


class TestContainer(object):
    def test_grading_settings(self, container: GradeNormContainer) -> None:
        settings = GradingSettings(container.config.grading())

        assert settings.max_retries == 3
        assert settings.gradebook_roles is None

    def test_task_shares_session_with_host(self, container: GradeNormContainer) -> None:
        normalize = container.grading().task()

        try:
            assert normalize.host.session is normalize.session
        finally:
            normalize.session.close()

    def test_task_reads_grading_and_host_sections(self, container: GradeNormContainer) -> None:
        normalize = container.grading().task()

        try:
            assert isinstance(normalize.settings, GradingSettings)
            assert normalize.settings.max_retries == 3
            assert normalize.host.tables.grade_items.name == "mdl_grade_items"
        finally:
            normalize.session.close()
