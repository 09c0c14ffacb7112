"""Contract shared by every buildbox subcommand.

A command declares its click options, reads them back through the
``get_arg_*`` accessors and implements ``execute``. The base class carries
the default behaviour: config name, context setup, the container bootstrap
decision and the build environment.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

import click

from ..bootstrap import rebuild_command_line, should_bootstrap
from ..config import BuildConfig, EnvType, Variant
from ..constants import DEFAULT_CONFIG_NAME
from ..context import parse_key_values
from ..docker import Docker, DockerImage, inside_container
from ..environment import compose_environment, derived_environment
from ..errors import CliArgumentError

if TYPE_CHECKING:
    from ..invocation import Invocation
    from ..workspace import Workspace


class Command:
    """Base class for subcommands.

    Subclasses set ``name`` and ``about`` and override ``params`` and
    ``execute``.
    """

    name = ""
    about = ""
    require_docker = False
    interactive = False

    def cmd_str(self) -> str:
        return self.name

    def params(self) -> list[click.Parameter]:
        return []

    def is_docker_required(self) -> bool:
        return self.require_docker

    def is_interactive(self) -> bool:
        return self.interactive

    def setup_context(self, ctx: Iterable[str]) -> dict[str, str]:
        """Turn ``KEY=VALUE`` arguments into context variables."""
        return parse_key_values(ctx, "context")

    def execute(self, cli: Invocation, workspace: Workspace) -> None:
        cli.info(f"Execute command {self.cmd_str()}")

    def get_config_name(self, cli: Invocation) -> str:
        return DEFAULT_CONFIG_NAME

    # --- argument accessors -------------------------------------------------

    def _arg(self, cli: Invocation, id: str, cmd: str | None) -> Any:
        matches = cli.args.subcommand_matches(cmd or self.cmd_str())
        if matches is None or id not in matches:
            raise CliArgumentError(f"Failed to read arg {id}")
        return matches[id]

    def get_arg_str(self, cli: Invocation, id: str, cmd: str | None = None) -> str:
        value = self._arg(cli, id, cmd)
        return "" if value is None else str(value)

    def get_arg_flag(self, cli: Invocation, id: str, cmd: str | None = None) -> bool:
        return bool(self._arg(cli, id, cmd))

    def get_arg_many(self, cli: Invocation, id: str, cmd: str | None = None) -> list[str]:
        value = self._arg(cli, id, cmd)
        return [str(v) for v in value or ()]

    def get_arg_variant(self, cli: Invocation, id: str, cmd: str | None = None) -> Variant:
        """Read a build variant.

        Raises:
            InvalidVariantError: The value is not user, userdebug or eng.
        """
        return Variant.parse(self.get_arg_str(cli, id, cmd))

    def get_arg_etype(self, cli: Invocation, id: str, cmd: str | None = None) -> EnvType | None:
        value = self._arg(cli, id, cmd)
        if value is None or value == "":
            return None
        return EnvType.parse(str(value))

    # --- container bootstrap ------------------------------------------------

    def bootstrap_image(self, workspace: Workspace, override: str = "") -> DockerImage | None:
        """Image to bootstrap into: the ``-d`` override or the workspace image."""
        if override:
            return DockerImage.parse(override)
        return workspace.settings.docker_image

    def should_bootstrap(self, workspace: Workspace, image: DockerImage | None) -> bool:
        docker_enabled = not workspace.settings.docker_disabled and image is not None
        return should_bootstrap(docker_enabled, self.is_docker_required(), inside_container())

    def rebuild_cmd_line(self, cli: Invocation) -> list[str]:
        return rebuild_command_line(
            self.cmd_str(),
            self.params(),
            cli.args.values,
            cli.args.supplied,
            cli.args.global_args,
        )

    def docker_pull(self, cli: Invocation, workspace: Workspace, image: DockerImage) -> None:
        settings = workspace.settings
        docker = Docker(image, engine=settings.docker_engine)
        docker.pull(cli.system, cli.logger, settings.pull_policy)

    def bootstrap(
        self,
        cmd_line: list[str],
        cli: Invocation,
        workspace: Workspace,
        volumes: list[str],
        interactive: bool,
        image: DockerImage,
    ) -> None:
        """Re-run ``cmd_line`` inside ``image``; blocks until it exits."""
        settings = workspace.settings
        docker = Docker(image, interactive, settings.docker_engine)
        # The inner invocation gets the entire environment of this one
        docker.bootstrap(
            cmd_line,
            cli.system,
            cli.logger,
            top_dir=settings.top_dir(),
            work_dir=settings.work_dir,
            docker_args=settings.docker_args,
            volumes=volumes,
            env=cli.env(),
        )

    # --- build environment --------------------------------------------------

    def prepare(
        self,
        cli: Invocation,
        workspace: Workspace,
        config: str,
        context: Mapping[str, str],
        variant: Variant,
    ) -> BuildConfig:
        """Select ``config`` and expand its context.

        Raises:
            UnsupportedConfigError: ``config`` is not part of the workspace.
            ContextExpansionError: A config value references an unknown variable.
        """
        workspace.select_config(config)
        ctx = workspace.build_context(variant, dict(context))
        cli.debug(f"context: {dict(ctx)}")
        return workspace.expand_ctx(ctx)

    def build_env(
        self,
        cli: Invocation,
        workspace: Workspace,
        overrides: Mapping[str, str],
        variant: Variant,
        env_type: EnvType | None = None,
    ) -> dict[str, str]:
        """Environment for child processes of the selected config."""
        config = workspace.config()
        init_env: dict[str, str] = {}
        if config.init_env:
            cli.info(f"Sourcing init env '{config.init_env.strip()}'")
            init_env = cli.system.source_init_env(config.init_env, workspace.settings.work_dir)
        return compose_environment(
            cli.env(),
            init_env,
            overrides,
            derived_environment(workspace, variant, env_type),
        )
