"""Workspace model for buildbox.

A workspace is a directory holding an optional ``buildbox.json`` settings
file and a directory of build configs. It is loaded once per invocation;
the only mutation afterwards is context expansion of the selected config.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .config import (
    BuildConfig,
    PullPolicy,
    TaskData,
    Variant,
    get_str_list,
    get_str_value,
    parse_json,
)
from .constants import (
    DEFAULT_BUILDS_DIR,
    DEFAULT_CONFIGS_DIR,
    DEFAULT_ENGINE,
    SETTINGS_FILE,
)
from .context import Context, expand, parse_key_values
from .docker import DockerImage
from .errors import ConfigParseError, TaskNotFoundError, UnsupportedConfigError
from .logging import get_logger

logger = get_logger(__name__)


def _get_bool(key: str, data: dict[str, Any], default: bool) -> bool:
    value = data.get(key, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise ConfigParseError(f"Field '{key}' must be a boolean")


def _resolve(work_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else work_dir / path


@dataclass(frozen=True)
class Settings:
    """Workspace-wide settings."""

    work_dir: Path
    configs_dir: Path
    builds_dir: Path
    docker_image: DockerImage | None = None
    docker_disabled: bool = False
    docker_args: tuple[str, ...] = ()
    docker_top_dir: Path | None = None
    docker_engine: str = DEFAULT_ENGINE
    pull_policy: PullPolicy = PullPolicy.TOLERANT

    @property
    def docker_enabled(self) -> bool:
        """Containerization is on when not disabled and an image is configured."""
        return not self.docker_disabled and self.docker_image is not None

    def top_dir(self) -> Path:
        return self.docker_top_dir or self.work_dir

    @classmethod
    def defaults(cls, work_dir: Path) -> Settings:
        return cls(
            work_dir=work_dir,
            configs_dir=work_dir / DEFAULT_CONFIGS_DIR,
            builds_dir=work_dir / DEFAULT_BUILDS_DIR,
        )

    @classmethod
    def from_value(cls, work_dir: Path, data: dict[str, Any]) -> Settings:
        docker = data.get("docker", {})
        if not isinstance(docker, dict):
            raise ConfigParseError("Field 'docker' must be an object")

        image_ref = get_str_value("image", docker, "")
        top_dir = get_str_value("topdir", docker, "")
        return cls(
            work_dir=work_dir,
            configs_dir=_resolve(work_dir, get_str_value("configsdir", data, DEFAULT_CONFIGS_DIR)),
            builds_dir=_resolve(work_dir, get_str_value("buildsdir", data, DEFAULT_BUILDS_DIR)),
            docker_image=DockerImage.parse(image_ref) if image_ref.strip() else None,
            docker_disabled=_get_bool("disabled", docker, False),
            docker_args=tuple(get_str_list("args", docker)),
            docker_top_dir=_resolve(work_dir, top_dir) if top_dir else None,
            docker_engine=get_str_value("engine", docker, DEFAULT_ENGINE),
            pull_policy=PullPolicy.parse(get_str_value("pullpolicy", docker, "tolerant")),
        )

    @classmethod
    def load(cls, work_dir: Path) -> Settings:
        """Load ``buildbox.json`` from ``work_dir``, or return defaults."""
        path = work_dir / SETTINGS_FILE
        if not path.exists():
            logger.debug("No settings file at %s, using defaults", path)
            return cls.defaults(work_dir)
        try:
            data = parse_json(path.read_text(encoding="utf-8"), str(path))
        except OSError as e:
            raise ConfigParseError(f"Failed to read {path}: {e}") from e
        return cls.from_value(work_dir, data)


@dataclass
class Workspace:
    """Settings plus the build configs discovered in the workspace."""

    settings: Settings
    configs: dict[str, BuildConfig] = field(default_factory=dict)
    _selected: str | None = field(default=None, init=False, repr=False)
    _expanded: BuildConfig | None = field(default=None, init=False, repr=False)

    @classmethod
    def load(cls, work_dir: Path) -> Workspace:
        """Load settings and every ``*.json`` build config of a workspace."""
        work_dir = work_dir.resolve()
        settings = Settings.load(work_dir)
        configs: dict[str, BuildConfig] = {}
        if settings.configs_dir.is_dir():
            for path in sorted(settings.configs_dir.glob("*.json")):
                config = BuildConfig.from_file(path)
                name = config.name or path.stem
                if name in configs:
                    raise ConfigParseError(f"Duplicate build config '{name}' in {path}")
                configs[name] = config
        logger.debug("Loaded %d build config(s) from %s", len(configs), settings.configs_dir)
        return cls(settings=settings, configs=configs)

    def config_names(self) -> list[str]:
        return list(self.configs)

    def valid_config(self, name: str) -> bool:
        return name in self.configs

    def select_config(self, name: str) -> BuildConfig:
        """Select the build config used by the rest of the invocation.

        Raises:
            UnsupportedConfigError: No build config of that name exists.
        """
        if not self.valid_config(name):
            raise UnsupportedConfigError(f"Unsupported build config '{name}'")
        self._selected = name
        self._expanded = None
        return self.configs[name]

    def config_name(self) -> str:
        if self._selected is None:
            raise UnsupportedConfigError("No build config selected")
        return self._selected

    def config(self) -> BuildConfig:
        """The selected build config, expanded once ``expand_ctx`` ran."""
        if self._expanded is not None:
            return self._expanded
        return self.configs[self.config_name()]

    def build_context(self, variant: Variant, cli_context: dict[str, str] | None = None) -> Context:
        """Context for the selected config.

        Workspace variables come first, then the config's own ``context``
        entries, then pairs from the command line which win on conflict.
        """
        config = self.configs[self.config_name()]
        workspace_vars = {
            "WORK_DIR": str(self.settings.work_dir),
            "BUILDS_DIR": str(self.settings.builds_dir),
            "CONFIGS_DIR": str(self.settings.configs_dir),
            "BUILD_CONFIG": self.config_name(),
            "BUILD_VARIANT": str(variant),
        }
        if config.product:
            workspace_vars["PRODUCT_NAME"] = config.product
        if config.arch:
            workspace_vars["ARCH"] = config.arch
        cli_vars = dict(cli_context or {})
        config_vars: dict[str, str] = {}
        for key, value in parse_key_values(config.context, "context").items():
            # Entries see workspace variables, earlier entries and CLI pairs
            config_vars[key] = expand(value, Context.layered(workspace_vars, config_vars, cli_vars))
        return Context.layered(workspace_vars, config_vars, cli_vars)

    def expand_ctx(self, context: Context) -> BuildConfig:
        """Resolve every token of the selected config against ``context``.

        Raises:
            ContextExpansionError: A token could not be resolved.
        """
        config = self.configs[self.config_name()]
        work_dir = self.settings.work_dir
        self._expanded = replace(
            config,
            init_env=expand(config.init_env, context) if config.init_env else None,
            tasks=tuple(task.expand(context, work_dir) for task in config.tasks),
            custom={name: cmd.expand(context) for name, cmd in config.custom.items()},
        )
        return self._expanded

    def tasks(self, names: tuple[str, ...] | list[str] = ()) -> list[TaskData]:
        """Tasks of the selected config in index order, optionally filtered.

        Raises:
            TaskNotFoundError: A requested task does not exist.
        """
        config = self.config()
        if not names:
            return list(config.tasks)
        for name in names:
            if config.task(name) is None:
                raise TaskNotFoundError(
                    f"Task '{name}' is not part of build config '{self.config_name()}'"
                )
        return [task for task in config.tasks if task.name in names]
