"""CLI entry point for buildbox.

The click group is assembled from a ``CommandRegistry``: every registered
command contributes one subcommand with its own option list. Parsed values
are bundled into an ``Invocation`` and dispatched through the
``CommandHandler``.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
from click.core import ParameterSource

from .. import __version__
from ..bootstrap import serialize_params
from ..commands import Command, CommandHandler, CommandRegistry
from ..constants import PROG_NAME
from ..errors import BuildboxError
from ..invocation import Invocation, ParsedArgs
from ..logging import ConsoleLogger, get_logger, set_debug
from ..system import System
from ..workspace import Workspace

logger = get_logger(__name__)


def _supplied(ctx: click.Context) -> frozenset[str]:
    """Names of the parameters given on the command line, not defaulted."""
    return frozenset(
        name
        for name in ctx.params
        if ctx.get_parameter_source(name) is ParameterSource.COMMANDLINE
    )


def _make_callback(
    command: Command,
    handler: CommandHandler,
    system_factory: Callable[[], System],
) -> Callable[..., None]:
    def callback(**values: Any) -> None:
        ctx = click.get_current_context()
        obj = ctx.find_root().obj or {}
        work_dir: Path = obj.get("work_dir") or Path.cwd()
        args = ParsedArgs(
            command=command.cmd_str(),
            values=values,
            supplied=_supplied(ctx),
            global_args=tuple(obj.get("global_args", ())),
        )
        cli = Invocation(args, system=system_factory(), logger=ConsoleLogger(), work_dir=work_dir)
        logger.debug("Parsed %s: %s", command.cmd_str(), values)
        try:
            handler.run(cli, lambda: Workspace.load(work_dir))
        except BuildboxError as e:
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            cli.error("Interrupted")
            sys.exit(130)

    return callback


def build_cli(
    registry: CommandRegistry | None = None,
    system_factory: Callable[[], System] = System,
) -> click.Group:
    """Build the ``buildbox`` click group from ``registry``."""
    registry = registry or CommandRegistry.default()
    handler = CommandHandler(registry)

    @click.group(context_settings={"help_option_names": ["-h", "--help"]})
    @click.option(
        "--workdir",
        "-w",
        type=click.Path(exists=True, file_okay=False, resolve_path=True),
        help="Workspace directory (default: current directory)",
    )
    @click.option("--debug", is_flag=True, help="Show debug logs")
    @click.version_option(version=__version__, prog_name=PROG_NAME)
    @click.pass_context
    def group(ctx: click.Context, workdir: str | None, debug: bool) -> None:
        """buildbox - Run workspace build tasks, optionally inside a docker image.

        Build configs live in the workspace 'configs' directory; run
        'buildbox list' to see them.
        """
        if debug:
            set_debug(True)
        ctx.ensure_object(dict)
        ctx.obj["work_dir"] = Path(workdir) if workdir else Path.cwd()
        # Forwarded verbatim when the command re-runs inside a container
        ctx.obj["global_args"] = serialize_params(group.params, ctx.params, _supplied(ctx))

    for command in registry:
        group.add_command(
            click.Command(
                command.cmd_str(),
                params=command.params(),
                callback=_make_callback(command, handler, system_factory),
                help=command.about,
                short_help=command.about,
            )
        )
    return group


cli = build_cli()


def main() -> None:
    cli(prog_name=PROG_NAME)


__all__ = ["build_cli", "cli", "main"]


if __name__ == "__main__":  # pragma: no cover
    main()
