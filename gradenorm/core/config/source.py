"""Settings sources: command line overrides and the YAML tree under `config/`.

Each top-level field of `Settings` (logging, storage, host, grading) is one
section. A section is read from `<root>/<section>.yaml`, or wholly from
`<root>/env.d/<env>/<section>.yaml` when that file exists.
"""

import functools
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from pydantic_settings import PydanticBaseSettingsSource
from pydantic_settings import SettingsError

import gradenorm.lib.util as util
from gradenorm.model import DeploymentEnvironment

# fields of Settings which locate the sources rather than being read from them
BootKeys = frozenset({"env", "root", "override"})


class BootState(t.TypedDict):
    root: p.AnyUrl
    env: DeploymentEnvironment
    override: tuple[str, ...]


def parse_overrides(options: t.Iterable[str]) -> dict[str, t.Any]:
    """`["grading.max_retries=5"]` becomes `{"grading": {"max_retries": 5}}`"""
    parsed: dict[str, t.Any] = {}
    for option in options:
        path, sep, raw = option.partition("=")
        if not sep or not path.strip():
            raise ValueError(f"override must be of the form key=value: {option!r}")
        *parents, leaf = path.strip().split(".")
        target = parsed
        for key in parents:
            target = target.setdefault(key, {})
        target[leaf] = yaml.safe_load(raw.strip())
    return parsed


def section_paths(root: p.AnyUrl, env: DeploymentEnvironment) -> list[Path]:
    """Directories searched for section files, in increasing precedence"""
    if root.scheme != "file" or root.path is None:
        raise ValueError(f"config root is not a local directory: {root}")
    base = Path(root.path)
    if env is DeploymentEnvironment.Local:
        return [base]
    return [base, base / "env.d" / env.value]


class SectionSource(PydanticBaseSettingsSource):
    """Yields one value per settings section the source knows about"""

    @property
    def boot(self) -> BootState:
        return t.cast(BootState, self.current_state)

    def section(self, name: str) -> t.Any:
        """The section's value; KeyError when this source has none"""
        raise NotImplementedError

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        return self.section(field_name), field_name, True

    def __call__(self) -> dict[str, t.Any]:
        data: dict[str, t.Any] = {}
        for name in self.settings_cls.model_fields:
            if name in BootKeys:
                continue
            try:
                data[name] = self.section(name)
            except KeyError:
                continue
            except Exception as e:
                raise SettingsError(f"cannot read settings section {name!r} from {type(self).__name__}") from e
        return data


class OverrideSettingsSource(SectionSource):
    """Settings given on the command line as `-o dotted.path=yaml-value`"""

    @functools.cached_property
    def overrides(self) -> dict[str, t.Any]:
        return parse_overrides(self.boot.get("override") or ())

    def section(self, name: str) -> t.Any:
        value = self.overrides[name]
        current = self.current_state.get(name)
        if isinstance(value, dict) and isinstance(current, dict):
            # the YAML sources run later, so an override only patches init values here
            return util.deep_update(t.cast(dict[t.Any, t.Any], current), t.cast(dict[t.Any, t.Any], value))
        return value


class YAMLCascadingSettingsSource(SectionSource):
    """Sections read from `<section>.yaml`, the environment's copy winning"""

    @functools.cached_property
    def paths(self) -> list[Path]:
        return section_paths(self.boot["root"], self.boot["env"])

    def section(self, name: str) -> t.Any:
        found = [fn for fn in (path / f"{name}.yaml" for path in self.paths) if fn.exists()]
        if not found:
            raise KeyError(name)
        return yaml.safe_load(found[-1].read_text(encoding="utf8"))
