"""Per-invocation state handed to every command.

``ParsedArgs`` bundles what click parsed for the selected subcommand into
a single immutable object; ``Invocation`` adds the injected logger and
process runner ports.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .logging import ConsoleLogger
from .system import System


@dataclass(frozen=True)
class ParsedArgs:
    """Arguments of one parsed command line.

    ``supplied`` holds the parameter names the user actually passed, as
    opposed to values click filled in from defaults.
    """

    command: str
    values: Mapping[str, Any] = field(default_factory=dict)
    supplied: frozenset[str] = frozenset()
    global_args: tuple[str, ...] = ()

    def subcommand_matches(self, cmd: str) -> Mapping[str, Any] | None:
        """Values parsed for ``cmd``, or None when another command ran."""
        if cmd != self.command:
            return None
        return self.values

    def was_supplied(self, name: str) -> bool:
        return name in self.supplied


@dataclass
class Invocation:
    """Parsed arguments plus the logger and process runner ports."""

    args: ParsedArgs
    system: System = field(default_factory=System)
    logger: ConsoleLogger = field(default_factory=ConsoleLogger)
    work_dir: Path = field(default_factory=Path.cwd)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def env(self) -> dict[str, str]:
        return self.system.env()

    def check_call(
        self,
        cmd_line: Sequence[str],
        env: Mapping[str, str] | None = None,
        shell: bool = False,
        cwd: Path | str | None = None,
    ) -> None:
        self.system.check_call(cmd_line, env=env, shell=shell, cwd=cwd)
