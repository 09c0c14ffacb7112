"""Process execution port for buildbox.

``System`` is the only place that spawns child processes. Commands and
executors receive it injected so tests can swap in ``RecordingSystem``.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .constants import DEFAULT_SHELL
from .errors import ProcessExecutionError
from .logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = get_logger(__name__)


def format_command(cmd_line: Sequence[str], shell: bool = False) -> str:
    """Render a command line for log messages."""
    if shell:
        return " ".join(cmd_line)
    return shlex.join(cmd_line)


def parse_env_dump(output: bytes) -> dict[str, str]:
    """Parse the NUL separated output of ``env -0``."""
    env: dict[str, str] = {}
    for entry in output.decode("utf-8", errors="replace").split("\0"):
        if not entry or "=" not in entry:
            continue
        key, _, value = entry.partition("=")
        env[key] = value
    return env


class System:
    """Blocking process runner backed by :mod:`subprocess`."""

    def env(self) -> dict[str, str]:
        """Snapshot of the inherited process environment."""
        return dict(os.environ)

    def which(self, binary: str) -> str | None:
        return shutil.which(binary)

    def check_call(
        self,
        cmd_line: Sequence[str],
        env: Mapping[str, str] | None = None,
        shell: bool = False,
        cwd: Path | str | None = None,
    ) -> None:
        """Run a command and wait for it.

        Args:
            cmd_line: Command and arguments.
            env: Complete environment for the child (inherited when None).
            shell: Join the items with spaces and run them through bash so
                operators such as ``&&`` are honoured.
            cwd: Working directory for the child.

        Raises:
            ProcessExecutionError: Non-zero exit or spawn failure.
        """
        cmd_str = format_command(cmd_line, shell)
        logger.debug("Running command: %s", cmd_str)
        try:
            if shell:
                result = subprocess.run(
                    " ".join(cmd_line),
                    shell=True,
                    executable=DEFAULT_SHELL,
                    env=dict(env) if env is not None else None,
                    cwd=str(cwd) if cwd else None,
                    check=False,
                )
            else:
                result = subprocess.run(
                    list(cmd_line),
                    env=dict(env) if env is not None else None,
                    cwd=str(cwd) if cwd else None,
                    check=False,
                )
        except (FileNotFoundError, PermissionError) as e:
            logger.error("Failed to spawn: %s", cmd_str)
            raise ProcessExecutionError(f"Failed to run '{cmd_str}': {e}", returncode=127) from e

        logger.debug("Command completed: exit=%d", result.returncode)
        if result.returncode != 0:
            raise ProcessExecutionError(
                f"Command '{cmd_str}' failed with exit code {result.returncode}",
                returncode=result.returncode,
            )

    def source_init_env(self, path: Path | str, cwd: Path | str) -> dict[str, str]:
        """Source a shell script and capture the environment it leaves behind.

        Raises:
            ProcessExecutionError: The script could not be sourced.
        """
        script = str(path).strip()
        cmd = [DEFAULT_SHELL, "-c", f"source {shlex.quote(script)} >/dev/null 2>&1 && env -0"]
        logger.debug("Sourcing init env: %s (cwd=%s)", script, cwd)
        try:
            result = subprocess.run(cmd, cwd=str(cwd), capture_output=True, check=False)
        except (FileNotFoundError, PermissionError) as e:
            raise ProcessExecutionError(f"Failed to source '{script}': {e}", returncode=127) from e

        if result.returncode != 0:
            raise ProcessExecutionError(
                f"Sourcing '{script}' failed with exit code {result.returncode}",
                returncode=result.returncode,
            )
        return parse_env_dump(result.stdout)


@dataclass
class RecordedCall:
    cmd_line: list[str]
    env: dict[str, str]
    shell: bool
    cwd: str | None


@dataclass
class RecordingSystem(System):
    """System that records commands instead of executing them.

    ``fail_on`` makes every call whose command line contains that string
    raise ``ProcessExecutionError`` with ``fail_code``.
    """

    environ: dict[str, str] = field(default_factory=dict)
    init_env: dict[str, str] = field(default_factory=dict)
    binaries: dict[str, str] = field(default_factory=dict)
    fail_on: str | None = None
    fail_code: int = 1
    calls: list[RecordedCall] = field(default_factory=list)
    sourced: list[str] = field(default_factory=list)

    def env(self) -> dict[str, str]:
        return dict(self.environ)

    def which(self, binary: str) -> str | None:
        return self.binaries.get(binary)

    def check_call(
        self,
        cmd_line: Sequence[str],
        env: Mapping[str, str] | None = None,
        shell: bool = False,
        cwd: Path | str | None = None,
    ) -> None:
        self.calls.append(
            RecordedCall(
                cmd_line=list(cmd_line),
                env=dict(env) if env else {},
                shell=shell,
                cwd=str(cwd) if cwd else None,
            )
        )
        if self.fail_on and self.fail_on in " ".join(cmd_line):
            raise ProcessExecutionError(
                f"Command '{format_command(cmd_line, shell)}' failed with exit code "
                f"{self.fail_code}",
                returncode=self.fail_code,
            )

    def source_init_env(self, path: Path | str, cwd: Path | str) -> dict[str, str]:
        self.sourced.append(str(path).strip())
        return dict(self.init_env)
