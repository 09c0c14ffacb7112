"""Build configuration model for buildbox.

A workspace holds one JSON file per build configuration. Each file
describes the product, the context variables it contributes, the ordered
build tasks and the optional deploy/upload/setup/sync commands.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from .constants import NOT_AVAILABLE
from .context import expand
from .errors import (
    ConfigParseError,
    InvalidEnumValueError,
    InvalidEnvTypeError,
    InvalidPullPolicyError,
    InvalidVariantError,
)

_REQUIRED = object()
_E = TypeVar("_E", bound="_LiteralEnum")

# Commands a build config may define in addition to its tasks
CUSTOM_COMMANDS = ("deploy", "upload", "setup", "sync")


class _LiteralEnum(str, Enum):
    """Enum parsed from, and printed as, its exact lowercase literal."""

    @classmethod
    def parse(cls: type[_E], value: str) -> _E:
        for member in cls:
            if member.value == value:
                return member
        choices = ", ".join(m.value for m in cls)
        raise cls._error_class()(f"Invalid {cls._label()} '{value}' (expected one of: {choices})")

    @classmethod
    def _error_class(cls) -> type[InvalidEnumValueError]:
        return InvalidEnumValueError

    @classmethod
    def _label(cls) -> str:
        return cls.__name__.lower()

    def __str__(self) -> str:
        return self.value


class Variant(_LiteralEnum):
    """Build flavor passed through to child environments."""

    USER = "user"
    USERDEBUG = "userdebug"
    ENG = "eng"

    @classmethod
    def _error_class(cls) -> type[InvalidEnumValueError]:
        return InvalidVariantError


class EnvType(_LiteralEnum):
    """Environment flavor a shell is opened for."""

    AOSP = "aosp"
    VENDOR = "vendor"
    QSSI = "qssi"
    KERNEL = "kernel"
    HLOS = "hlos"
    NONHLOS = "non-hlos"

    @classmethod
    def _error_class(cls) -> type[InvalidEnumValueError]:
        return InvalidEnvTypeError

    @classmethod
    def _label(cls) -> str:
        return "type"


class PullPolicy(_LiteralEnum):
    """What a failed image pull means before bootstrapping."""

    STRICT = "strict"  # abort the invocation
    TOLERANT = "tolerant"  # log and continue with the local image

    @classmethod
    def _error_class(cls) -> type[InvalidEnumValueError]:
        return InvalidPullPolicyError

    @classmethod
    def _label(cls) -> str:
        return "pull policy"


def parse_json(json_string: str, source: str = "config") -> dict[str, Any]:
    """Parse a JSON document that must contain an object."""
    try:
        data = json.loads(json_string)
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"Failed to parse {source}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigParseError(f"Failed to parse {source}: expected a JSON object")
    return data


def get_str_value(key: str, data: dict[str, Any], default: Any = _REQUIRED) -> Any:
    """Read a string field, returning ``default`` when it is absent.

    Raises:
        ConfigParseError: The field is required and missing, or not a string.
    """
    if key not in data:
        if default is _REQUIRED:
            raise ConfigParseError(f"Missing required field '{key}'")
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ConfigParseError(f"Field '{key}' must be a string")
    return str(value)


def get_optional_str(data: dict[str, Any], *keys: str) -> str | None:
    """Read the first present key, mapping empty and "NA" to None."""
    for key in keys:
        if key in data:
            value = get_str_value(key, data)
            if value in ("", NOT_AVAILABLE):
                return None
            return value
    return None


def get_str_list(key: str, data: dict[str, Any]) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigParseError(f"Field '{key}' must be a list of strings")
    return list(value)


@dataclass(frozen=True)
class TaskData:
    """One build step of a build config."""

    index: int
    name: str
    build_dir: str
    build_cmd: str
    clean_cmd: str
    docker_image: str | None = None

    @classmethod
    def from_value(cls, data: dict[str, Any]) -> TaskData:
        if not isinstance(data, dict):
            raise ConfigParseError("Task entries must be JSON objects")
        name = get_str_value("name", data)
        raw_index = get_str_value("index", data, "0")
        try:
            index = int(raw_index)
        except ValueError as e:
            raise ConfigParseError(f"Task '{name}' has a non-numeric index '{raw_index}'") from e
        return cls(
            index=index,
            name=name,
            build_dir=get_str_value("builddir", data, ""),
            build_cmd=get_str_value("build", data, ""),
            clean_cmd=get_str_value("clean", data, ""),
            docker_image=get_optional_str(data, "docker"),
        )

    @classmethod
    def from_str(cls, json_string: str) -> TaskData:
        return cls.from_value(parse_json(json_string, "task config"))

    @property
    def runs_in_container(self) -> bool:
        return self.docker_image is not None

    def expand(self, context: Mapping[str, str], work_dir: Path) -> TaskData:
        """Resolve tokens; a relative build dir is anchored at ``work_dir``."""
        build_dir = Path(expand(self.build_dir, context))
        if not build_dir.is_absolute():
            build_dir = work_dir / build_dir
        return replace(
            self,
            build_dir=str(build_dir),
            build_cmd=expand(self.build_cmd, context),
            clean_cmd=expand(self.clean_cmd, context),
            docker_image=expand(self.docker_image, context) if self.docker_image else None,
        )


@dataclass(frozen=True)
class CustomCommandData:
    """A deploy/upload/setup/sync command defined by a build config."""

    name: str
    cmd: str
    docker_image: str | None = None

    @classmethod
    def from_value(cls, name: str, data: Any) -> CustomCommandData:
        if isinstance(data, str):
            return cls(name=name, cmd=data)
        if isinstance(data, dict):
            return cls(
                name=name,
                cmd=get_str_value("cmd", data),
                docker_image=get_optional_str(data, "docker"),
            )
        raise ConfigParseError(f"Field '{name}' must be a command string or an object")

    def expand(self, context: Mapping[str, str]) -> CustomCommandData:
        return replace(
            self,
            cmd=expand(self.cmd, context),
            docker_image=expand(self.docker_image, context) if self.docker_image else None,
        )


@dataclass(frozen=True)
class BuildConfig:
    """A parsed build configuration.

    Values are kept exactly as written in the file. Optional fields that are
    absent (or hold the legacy "NA" marker) are None.
    """

    version: str
    name: str | None = None
    init_env: str | None = None
    product: str | None = None
    arch: str | None = None
    description: str | None = None
    context: tuple[str, ...] = ()
    tasks: tuple[TaskData, ...] = ()
    custom: dict[str, CustomCommandData] = field(default_factory=dict)

    @classmethod
    def from_str(cls, json_string: str) -> BuildConfig:
        return cls.from_value(parse_json(json_string, "build config"))

    @classmethod
    def from_file(cls, path: Path) -> BuildConfig:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigParseError(f"Failed to read {path}: {e}") from e
        try:
            return cls.from_value(parse_json(text, str(path)))
        except ConfigParseError as e:
            raise ConfigParseError(f"{path}: {e}") from e

    @classmethod
    def from_value(cls, data: dict[str, Any]) -> BuildConfig:
        tasks_value = data.get("tasks", [])
        if isinstance(tasks_value, dict):
            tasks_value = list(tasks_value.values())
        if not isinstance(tasks_value, list):
            raise ConfigParseError("Field 'tasks' must be a list of task objects")
        tasks = sorted((TaskData.from_value(t) for t in tasks_value), key=lambda t: t.index)

        return cls(
            version=get_str_value("version", data),
            name=get_optional_str(data, "name"),
            init_env=get_optional_str(data, "initenv", "init_env"),
            product=get_optional_str(data, "product"),
            arch=get_optional_str(data, "arch"),
            description=get_optional_str(data, "description"),
            context=tuple(get_str_list("context", data)),
            tasks=tuple(tasks),
            custom={
                name: CustomCommandData.from_value(name, data[name])
                for name in CUSTOM_COMMANDS
                if name in data
            },
        )

    def task(self, name: str) -> TaskData | None:
        for task in self.tasks:
            if task.name == name:
                return task
        return None
