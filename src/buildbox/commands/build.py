"""build and clean commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ..context import parse_key_values
from ..executors import BuildExecutor, CleanExecutor
from .base import Command
from .options import (
    config_option,
    context_option,
    docker_option,
    docker_pull_option,
    dry_run_option,
    env_option,
    interactive_option,
    task_option,
    variant_option,
    volume_option,
)

if TYPE_CHECKING:
    from ..invocation import Invocation
    from ..workspace import Workspace


class BuildCommand(Command):
    name = "build"
    about = "Execute the build tasks of a build config."
    require_docker = True

    def params(self) -> list[click.Parameter]:
        return [
            config_option(),
            task_option(),
            dry_run_option(),
            interactive_option(),
            context_option(),
            env_option(),
            volume_option(),
            docker_option(),
            docker_pull_option(),
            variant_option(),
        ]

    def get_config_name(self, cli: Invocation) -> str:
        return self.get_arg_str(cli, "config")

    def execute(self, cli: Invocation, workspace: Workspace) -> None:
        config = self.get_arg_str(cli, "config")
        tasks = self.get_arg_many(cli, "tasks")
        dry_run = self.get_arg_flag(cli, "dry_run")
        interactive = self.get_arg_flag(cli, "interactive")
        ctx = self.get_arg_many(cli, "context")
        env = self.get_arg_many(cli, "env")
        volumes = self.get_arg_many(cli, "volume")
        docker = self.get_arg_str(cli, "docker")
        docker_pull = self.get_arg_flag(cli, "docker_pull")
        variant = self.get_arg_variant(cli, "variant")
        context = self.setup_context(ctx)
        overrides = parse_key_values(env, "env")

        image = self.bootstrap_image(workspace, docker)
        if image is not None and self.should_bootstrap(workspace, image):
            if docker_pull:
                self.docker_pull(cli, workspace, image)
            return self.bootstrap(
                self.rebuild_cmd_line(cli), cli, workspace, volumes, interactive, image
            )

        self.prepare(cli, workspace, config, context, variant)
        build_env = self.build_env(cli, workspace, overrides, variant)
        engine = workspace.settings.docker_engine
        for task in workspace.tasks(tasks):
            BuildExecutor(cli, task, engine).exec(build_env, dry_run, interactive)
        return None


class CleanCommand(Command):
    name = "clean"
    about = "Execute the clean commands of a build config."
    require_docker = True

    def params(self) -> list[click.Parameter]:
        return [
            config_option(),
            task_option(),
            interactive_option(),
            context_option(),
            env_option(),
            volume_option(),
            docker_option(),
            docker_pull_option(),
            variant_option(),
        ]

    def get_config_name(self, cli: Invocation) -> str:
        return self.get_arg_str(cli, "config")

    def execute(self, cli: Invocation, workspace: Workspace) -> None:
        config = self.get_arg_str(cli, "config")
        tasks = self.get_arg_many(cli, "tasks")
        interactive = self.get_arg_flag(cli, "interactive")
        ctx = self.get_arg_many(cli, "context")
        env = self.get_arg_many(cli, "env")
        volumes = self.get_arg_many(cli, "volume")
        docker = self.get_arg_str(cli, "docker")
        docker_pull = self.get_arg_flag(cli, "docker_pull")
        variant = self.get_arg_variant(cli, "variant")
        context = self.setup_context(ctx)
        overrides = parse_key_values(env, "env")

        image = self.bootstrap_image(workspace, docker)
        if image is not None and self.should_bootstrap(workspace, image):
            if docker_pull:
                self.docker_pull(cli, workspace, image)
            return self.bootstrap(
                self.rebuild_cmd_line(cli), cli, workspace, volumes, interactive, image
            )

        self.prepare(cli, workspace, config, context, variant)
        clean_env = self.build_env(cli, workspace, overrides, variant)
        engine = workspace.settings.docker_engine
        for task in workspace.tasks(tasks):
            CleanExecutor(cli, task, engine).exec(clean_env, False, interactive)
        return None
