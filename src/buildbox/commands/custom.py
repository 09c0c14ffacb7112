"""deploy, upload, setup and sync commands.

Each runs the command of the same name defined by the selected build
config, from the workspace directory.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ..context import parse_key_values
from ..errors import CommandNotDefinedError
from ..executors import CustomSubCmdExecutor
from .base import Command
from .options import (
    config_option,
    context_option,
    docker_option,
    docker_pull_option,
    dry_run_option,
    env_option,
    interactive_option,
    variant_option,
    volume_option,
)

if TYPE_CHECKING:
    from ..invocation import Invocation
    from ..workspace import Workspace


class CustomCommand(Command):
    """Runs a command string taken from the build config."""

    def params(self) -> list[click.Parameter]:
        params = [
            config_option(),
            dry_run_option(),
            interactive_option(),
            context_option(),
            env_option(),
            variant_option(),
        ]
        if self.is_docker_required():
            params += [volume_option(), docker_option(), docker_pull_option()]
        return params

    def get_config_name(self, cli: Invocation) -> str:
        return self.get_arg_str(cli, "config")

    def execute(self, cli: Invocation, workspace: Workspace) -> None:
        config = self.get_arg_str(cli, "config")
        dry_run = self.get_arg_flag(cli, "dry_run")
        interactive = self.get_arg_flag(cli, "interactive")
        ctx = self.get_arg_many(cli, "context")
        env = self.get_arg_many(cli, "env")
        variant = self.get_arg_variant(cli, "variant")
        context = self.setup_context(ctx)
        overrides = parse_key_values(env, "env")

        if self.is_docker_required():
            volumes = self.get_arg_many(cli, "volume")
            docker = self.get_arg_str(cli, "docker")
            docker_pull = self.get_arg_flag(cli, "docker_pull")
            image = self.bootstrap_image(workspace, docker)
            if image is not None and self.should_bootstrap(workspace, image):
                if docker_pull:
                    self.docker_pull(cli, workspace, image)
                return self.bootstrap(
                    self.rebuild_cmd_line(cli), cli, workspace, volumes, interactive, image
                )

        build_config = self.prepare(cli, workspace, config, context, variant)
        cmd_data = build_config.custom.get(self.cmd_str())
        if cmd_data is None:
            raise CommandNotDefinedError(
                f"Build config '{config}' does not define a '{self.cmd_str()}' command"
            )

        cmd_env = self.build_env(cli, workspace, overrides, variant)
        executor = CustomSubCmdExecutor(
            cli,
            cmd_data,
            str(workspace.settings.work_dir),
            workspace.settings.docker_engine,
        )
        executor.exec(cmd_env, dry_run, interactive)
        return None


class DeployCommand(CustomCommand):
    name = "deploy"
    about = "Deploy the build artifacts to a target, e.g. flash a device."


class UploadCommand(CustomCommand):
    name = "upload"
    about = "Upload the build artifacts to an artifact server."


class SetupCommand(CustomCommand):
    name = "setup"
    about = "Prepare the workspace, e.g. fetch or initialize sources."
    require_docker = True


class SyncCommand(CustomCommand):
    name = "sync"
    about = "Synchronize the workspace sources."
    require_docker = True
