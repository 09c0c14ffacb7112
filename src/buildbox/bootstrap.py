"""Container bootstrap decision and command line reconstruction.

When the workspace asks for containerized builds, buildbox re-runs itself
inside the toolchain image with an equivalent command line.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import click

from .constants import PROG_NAME


def should_bootstrap(docker_enabled: bool, docker_required: bool, in_container: bool) -> bool:
    """Decide whether this invocation must be re-run inside a container.

    | condition                            | result    |
    |--------------------------------------|-----------|
    | containerization disabled            | native    |
    | command does not need a container    | native    |
    | already inside a container           | native    |
    | otherwise                            | bootstrap |
    """
    if not docker_enabled:
        return False
    if not docker_required:
        return False
    return not in_container


def _flag_name(option: click.Option) -> str:
    # Prefer the long form so rebuilt command lines read well in logs
    long_opts = [o for o in option.opts if o.startswith("--")]
    return long_opts[0] if long_opts else option.opts[0]


def serialize_params(
    params: Iterable[click.Parameter],
    values: Mapping[str, Any],
    supplied: Iterable[str],
) -> list[str]:
    """Re-serialize the options the user actually supplied.

    Options left at their default are omitted. Repeatable options are
    repeated once per value and boolean flags are emitted bare. Every value
    stays a single argv item, so a free-form command is never word-split.
    """
    supplied = set(supplied)
    argv: list[str] = []
    for param in params:
        if not isinstance(param, click.Option) or param.name not in supplied:
            continue
        value = values.get(param.name)
        flag = _flag_name(param)
        if param.is_flag:
            if value:
                argv.append(flag)
            elif param.secondary_opts:
                argv.append(param.secondary_opts[0])
        elif param.multiple:
            for item in value or ():
                argv.extend([flag, str(item)])
        elif value is not None:
            argv.extend([flag, str(value)])
    return argv


def rebuild_command_line(
    command: str,
    params: Iterable[click.Parameter],
    values: Mapping[str, Any],
    supplied: Iterable[str],
    global_args: Iterable[str] = (),
) -> list[str]:
    """Command line equivalent to the current invocation of ``command``."""
    return [PROG_NAME, *global_args, command, *serialize_params(params, values, supplied)]
