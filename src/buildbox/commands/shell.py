"""shell command.

Opens an interactive shell, or runs a single command, inside the build
environment of a build config. Without a config it is a plain shell.
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from typing import TYPE_CHECKING

import click

from ..constants import DEFAULT_SHELL, NOT_AVAILABLE
from ..context import parse_key_values
from ..docker import Docker, DockerImage
from .base import Command
from .options import (
    config_option,
    docker_option,
    docker_pull_option,
    env_option,
    env_type_option,
    run_cmd_option,
    variant_option,
    volume_option,
)

if TYPE_CHECKING:
    from ..invocation import Invocation
    from ..workspace import Workspace


class ShellCommand(Command):
    name = "shell"
    about = "Initiate a shell within Docker or execute any command within the environment."
    require_docker = True
    interactive = True

    def params(self) -> list[click.Parameter]:
        return [
            config_option(
                NOT_AVAILABLE,
                help="Set up the build environment of this config; plain shell if omitted.",
            ),
            volume_option(),
            variant_option(),
            env_option(),
            docker_option(help="Use a custom docker image when creating a shell."),
            docker_pull_option(),
            run_cmd_option(),
            env_type_option(),
        ]

    def get_config_name(self, cli: Invocation) -> str:
        return self.get_arg_str(cli, "config")

    def execute(self, cli: Invocation, workspace: Workspace) -> None:
        config = self.get_arg_str(cli, "config")
        docker = self.get_arg_str(cli, "docker")
        volumes = self.get_arg_many(cli, "volume")
        env = self.get_arg_many(cli, "env")
        cmd = self.get_arg_str(cli, "run")
        docker_pull = self.get_arg_flag(cli, "docker_pull")
        variant = self.get_arg_variant(cli, "variant")
        env_type = self.get_arg_etype(cli, "etype")
        overrides = parse_key_values(env, "env")

        # -d picks the image of the shell itself, bootstrap uses the workspace image
        image = self.bootstrap_image(workspace)
        if image is not None and self.should_bootstrap(workspace, image):
            if docker_pull:
                self.docker_pull(cli, workspace, image)
            return self.bootstrap(
                self.rebuild_cmd_line(cli), cli, workspace, volumes, True, image
            )

        if config in ("", NOT_AVAILABLE):
            return self.run_shell(cli, workspace, docker)

        self.prepare(cli, workspace, config, {}, variant)
        shell_env = self.build_env(cli, workspace, overrides, variant, env_type)

        if not cmd:
            return self.run_build_shell(cli, workspace, shell_env, docker)
        return self.run_cmd(cmd, cli, workspace, shell_env, docker)

    def _call(
        self,
        cmd_line: list[str],
        cli: Invocation,
        workspace: Workspace,
        env: Mapping[str, str],
        docker: str,
    ) -> None:
        if docker:
            executer = Docker(DockerImage.parse(docker), True, workspace.settings.docker_engine)
            # run_cmd hands a single string to bash -c inside the container
            quoted = [shlex.quote(part) for part in cmd_line]
            executer.run_cmd(quoted, env, workspace.settings.work_dir, cli.system)
            return
        cli.check_call(cmd_line, env, False, workspace.settings.work_dir)

    def run_build_shell(
        self,
        cli: Invocation,
        workspace: Workspace,
        env: Mapping[str, str],
        docker: str,
    ) -> None:
        cli.info("Start shell setting up build env")
        self._call([DEFAULT_SHELL, "-i"], cli, workspace, env, docker)

    def run_cmd(
        self,
        cmd: str,
        cli: Invocation,
        workspace: Workspace,
        env: Mapping[str, str],
        docker: str,
    ) -> None:
        # The command does not have to be a build command, the env is set up anyway
        cli.info(f"Running command '{cmd}'")
        self._call([DEFAULT_SHELL, "-i", "-c", cmd], cli, workspace, env, docker)

    def run_shell(self, cli: Invocation, workspace: Workspace, docker: str) -> None:
        cli.info("Starting shell")
        self._call([DEFAULT_SHELL, "-i"], cli, workspace, cli.env(), docker)
