"""Pytest configuration and fixtures for buildbox tests.

This module ensures the buildbox package is importable during tests
without requiring installation, and provides a sample workspace plus a
recording process runner.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pytest

# Add src directory to path for development testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

import click  # noqa: E402
from click.core import ParameterSource  # noqa: E402

from buildbox import docker  # noqa: E402
from buildbox.commands import Command  # noqa: E402
from buildbox.invocation import Invocation, ParsedArgs  # noqa: E402
from buildbox.logging import ConsoleLogger  # noqa: E402
from buildbox.system import RecordingSystem  # noqa: E402

IMAGE = "registry.example.com/toolchain:1.0"

DEFAULT_CONFIG: dict[str, Any] = {
    "version": "1",
    "product": "demo",
    "arch": "arm64",
    "description": "Demo product",
    "context": ["OUT=$#[BUILDS_DIR]/$#[BUILD_CONFIG]"],
    "tasks": [
        {
            "index": "2",
            "name": "app",
            "builddir": "app",
            "build": "make -j8 OUT=$#[OUT]",
            "clean": "make clean",
        },
        {
            "index": "1",
            "name": "kernel",
            "builddir": "kernel",
            "build": "./build.sh $#[BUILD_VARIANT]",
            "clean": "rm -rf out",
        },
    ],
    "deploy": "./flash.sh $#[PRODUCT_NAME]",
    "sync": {"cmd": "repo sync -j4"},
}


def write_json(path: Path, data: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def outside_container(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pretend every test runs on the host, whatever the CI machine is."""
    monkeypatch.setattr(docker, "_inside_container_cached", False)


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Path:
    """Workspace with docker settings and a single 'default' build config."""
    write_json(tmp_path / "buildbox.json", {"docker": {"image": IMAGE}})
    write_json(tmp_path / "configs" / "default.json", DEFAULT_CONFIG)
    return tmp_path


@pytest.fixture
def native_workspace_dir(workspace_dir: Path) -> Path:
    """Same workspace with containerization disabled."""
    write_json(workspace_dir / "buildbox.json", {"docker": {"image": IMAGE, "disabled": True}})
    return workspace_dir


@pytest.fixture
def system() -> RecordingSystem:
    return RecordingSystem(
        environ={"PATH": "/usr/bin", "HOME": "/home/dev", "LANG": "C.UTF-8"},
        binaries={"docker": "/usr/bin/docker"},
    )


@pytest.fixture
def parse_args() -> Callable[..., ParsedArgs]:
    """Parse ``argv`` against a command's options the way the CLI does."""

    def _parse(
        command: Command, argv: Iterable[str] = (), global_args: Iterable[str] = ()
    ) -> ParsedArgs:
        click_cmd = click.Command(command.cmd_str(), params=command.params())
        ctx = click_cmd.make_context(command.cmd_str(), list(argv))
        supplied = frozenset(
            name
            for name in ctx.params
            if ctx.get_parameter_source(name) is ParameterSource.COMMANDLINE
        )
        return ParsedArgs(command.cmd_str(), dict(ctx.params), supplied, tuple(global_args))

    return _parse


@pytest.fixture
def invocation(
    parse_args: Callable[..., ParsedArgs], system: RecordingSystem
) -> Callable[..., Invocation]:
    """Build an Invocation for ``command`` with the recording system."""

    def _invocation(
        command: Command, argv: Iterable[str] = (), work_dir: Path | None = None
    ) -> Invocation:
        return Invocation(
            parse_args(command, argv),
            system=system,
            logger=ConsoleLogger(),
            work_dir=work_dir or Path.cwd(),
        )

    return _invocation
