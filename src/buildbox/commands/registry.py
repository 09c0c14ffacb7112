"""Command registry and dispatcher."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING

from ..errors import BuildboxError, CliArgumentError
from .base import Command
from .build import BuildCommand, CleanCommand
from .custom import DeployCommand, SetupCommand, SyncCommand, UploadCommand
from .list import ListCommand
from .shell import ShellCommand

if TYPE_CHECKING:
    from ..invocation import Invocation
    from ..workspace import Workspace


class CommandRegistry:
    """Name -> command map, built once and passed to the CLI and handler."""

    def __init__(self, commands: Iterable[Command] = ()) -> None:
        self._commands: dict[str, Command] = {}
        for command in commands:
            self.register(command)

    @classmethod
    def default(cls) -> CommandRegistry:
        return cls(
            [
                BuildCommand(),
                CleanCommand(),
                ListCommand(),
                ShellCommand(),
                DeployCommand(),
                UploadCommand(),
                SetupCommand(),
                SyncCommand(),
            ]
        )

    def register(self, command: Command) -> None:
        name = command.cmd_str()
        if name in self._commands:
            raise ValueError(f"Command '{name}' registered twice")
        self._commands[name] = command

    def get(self, name: str) -> Command:
        try:
            return self._commands[name]
        except KeyError as e:
            raise CliArgumentError(f"Unsupported command '{name}'") from e

    def names(self) -> list[str]:
        return list(self._commands)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands.values())

    def __len__(self) -> int:
        return len(self._commands)


class CommandHandler:
    """Resolves the invoked command and runs it against the workspace."""

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry

    def run(self, cli: Invocation, load_workspace: Callable[[], Workspace]) -> None:
        """Execute the command named in ``cli.args``.

        Failures are logged through the invocation logger and re-raised
        unchanged for the entry point to turn into an exit status.
        """
        try:
            command = self.registry.get(cli.args.command)
            workspace = load_workspace()
            cli.debug(f"Execute command {command.cmd_str()}")
            command.execute(cli, workspace)
        except BuildboxError as e:
            cli.error(str(e))
            raise
