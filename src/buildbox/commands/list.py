"""list command."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

from .base import Command
from .options import config_option

if TYPE_CHECKING:
    from ..invocation import Invocation
    from ..workspace import Workspace


class ListCommand(Command):
    name = "list"
    about = "List the build configs of the workspace, or the tasks of one config."

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def params(self) -> list[click.Parameter]:
        return [config_option(None, help="List the tasks and commands of this build config.")]

    def execute(self, cli: Invocation, workspace: Workspace) -> None:
        config = self.get_arg_str(cli, "config")
        if config:
            self._list_tasks(workspace, config)
            return

        names = workspace.config_names()
        if not names:
            configs_dir = workspace.settings.configs_dir
            self.console.print(f"[yellow]No build configs in {configs_dir}[/yellow]")
            return

        table = Table(title="Build Configs")
        table.add_column("Config", style="cyan")
        table.add_column("Product")
        table.add_column("Version", justify="right")
        table.add_column("Description", style="dim")
        for name in names:
            build_config = workspace.configs[name]
            table.add_row(
                name,
                build_config.product or "",
                build_config.version,
                build_config.description or "",
            )
        self.console.print(table)
        self.console.print("\n[dim]Usage: buildbox build -c <config>[/dim]")

    def _list_tasks(self, workspace: Workspace, config: str) -> None:
        build_config = workspace.select_config(config)

        table = Table(title=f"Tasks of '{config}'")
        table.add_column("Index", justify="right")
        table.add_column("Task", style="cyan")
        table.add_column("Build dir")
        table.add_column("Build")
        table.add_column("Clean")
        table.add_column("Docker", style="dim")
        for task in build_config.tasks:
            table.add_row(
                str(task.index),
                task.name,
                task.build_dir,
                task.build_cmd,
                task.clean_cmd,
                task.docker_image or "",
            )
        self.console.print(table)

        for name, cmd in build_config.custom.items():
            self.console.print(f"  [green]{name}[/green]: {cmd.cmd}")
