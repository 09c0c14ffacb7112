"""Click options shared by the buildbox subcommands.

Each helper returns a fresh ``click.Option`` so commands can assemble
their own parameter lists.
"""

from __future__ import annotations

import click

from ..constants import DEFAULT_CONFIG_NAME


def config_option(
    default: str | None = DEFAULT_CONFIG_NAME, help: str | None = None
) -> click.Option:
    return click.Option(
        ["-c", "--config", "config"],
        default=default,
        metavar="NAME",
        show_default=default is not None,
        help=help or "Build config to use.",
    )


def variant_option() -> click.Option:
    # Plain string: an unknown variant is reported by the command itself
    return click.Option(
        ["-a", "--variant", "variant"],
        default="userdebug",
        metavar="[user|userdebug|eng]",
        show_default=True,
        help="Build variant, available as context variable BUILD_VARIANT.",
    )


def env_option() -> click.Option:
    return click.Option(
        ["-e", "--env", "env"],
        multiple=True,
        metavar="KEY=VALUE",
        help="Extra variable for the build environment (repeatable).",
    )


def context_option() -> click.Option:
    return click.Option(
        ["-x", "--context", "context"],
        multiple=True,
        metavar="KEY=VALUE",
        help="Context variable for $#[KEY] expansion (repeatable).",
    )


def volume_option() -> click.Option:
    return click.Option(
        ["-v", "--docker-volume", "volume"],
        multiple=True,
        metavar="path:path",
        help="Volume to bind mount when bootstrapping into docker (repeatable).",
    )


def docker_option(help: str | None = None) -> click.Option:
    return click.Option(
        ["-d", "--docker", "docker"],
        default="",
        metavar="registry/image:tag",
        help=help or "Docker image to bootstrap into instead of the workspace image.",
    )


def docker_pull_option() -> click.Option:
    return click.Option(
        ["--docker-pull", "docker_pull"],
        is_flag=True,
        help="Pull the latest docker image from the registry before bootstrapping.",
    )


def dry_run_option() -> click.Option:
    return click.Option(
        ["--dry-run", "dry_run"],
        is_flag=True,
        help="Show what would run without executing anything.",
    )


def interactive_option() -> click.Option:
    return click.Option(
        ["-i", "--interactive", "interactive"],
        is_flag=True,
        help="Attach a terminal when running inside docker.",
    )


def task_option() -> click.Option:
    return click.Option(
        ["-t", "--task", "tasks"],
        multiple=True,
        metavar="NAME",
        help="Only run the named task (repeatable). Default: all tasks.",
    )


def run_cmd_option() -> click.Option:
    return click.Option(
        ["-r", "--run-cmd", "run"],
        default="",
        metavar="CMD",
        help="Run a single command inside the build environment instead of a shell.",
    )


def env_type_option() -> click.Option:
    return click.Option(
        ["-t", "--env-type", "etype"],
        default=None,
        metavar="[aosp|vendor|qssi|kernel]",
        help="Environment type, exported as BUILDBOX_ENV_TYPE.",
    )
