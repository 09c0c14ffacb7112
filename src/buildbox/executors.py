"""Task executors.

An executor turns one task of the selected build config into a command
line of the form ``cd <dir> && <cmd>`` and runs it, natively or inside the
task's container image.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING

from .constants import DEFAULT_ENGINE
from .docker import Docker, DockerImage
from .environment import merge_env

if TYPE_CHECKING:
    from .config import CustomCommandData, TaskData
    from .invocation import Invocation


def compose_cmd_line(build_dir: str, cmd: str) -> list[str]:
    """Prefix ``cmd`` with an explicit change into ``build_dir``.

    ``cmd`` is split on single spaces so joining the result gives the
    command back unchanged, quoted whitespace included.
    """
    return ["cd", build_dir, "&&", *cmd.split(" ")]


class TaskExecutor(ABC):
    """Base executor; subclasses pick the command and dry-run handling."""

    def __init__(self, cli: Invocation, engine: str = DEFAULT_ENGINE) -> None:
        self.cli = cli
        self.engine = engine

    @abstractmethod
    def exec(
        self,
        env_variables: Mapping[str, str],
        dry_run: bool = False,
        interactive: bool = False,
    ) -> None:
        """Run the task with ``env_variables`` layered over the inherited environment."""

    def _run(
        self,
        cmd_line: list[str],
        exec_dir: str,
        docker_image: str | None,
        env_variables: Mapping[str, str],
        interactive: bool,
    ) -> None:
        if docker_image is not None:
            image = DockerImage.parse(docker_image)
            docker = Docker(image, interactive, self.engine)
            docker.run_cmd(cmd_line, env_variables, exec_dir, self.cli.system)
            return

        env = merge_env(env_variables, self.cli.env())
        self.cli.check_call(cmd_line, env, True)


class BuildExecutor(TaskExecutor):
    """Runs the build command of a task."""

    def __init__(self, cli: Invocation, task_data: TaskData, engine: str = DEFAULT_ENGINE) -> None:
        super().__init__(cli, engine)
        self.task_data = task_data

    def exec(
        self,
        env_variables: Mapping[str, str],
        dry_run: bool = False,
        interactive: bool = False,
    ) -> None:
        if dry_run:
            self.cli.info("Dry run. Skipping build!")
            return

        self.cli.info(f"execute build task '{self.task_data.name}'")
        cmd_line = compose_cmd_line(self.task_data.build_dir, self.task_data.build_cmd)
        self._run(
            cmd_line,
            self.task_data.build_dir,
            self.task_data.docker_image,
            env_variables,
            interactive,
        )


class CleanExecutor(TaskExecutor):
    """Runs the clean command of a task. Cleaning has no dry run."""

    def __init__(self, cli: Invocation, task_data: TaskData, engine: str = DEFAULT_ENGINE) -> None:
        super().__init__(cli, engine)
        self.task_data = task_data

    def exec(
        self,
        env_variables: Mapping[str, str],
        dry_run: bool = False,
        interactive: bool = False,
    ) -> None:
        self.cli.info(f"execute clean task '{self.task_data.name}'")
        cmd_line = compose_cmd_line(self.task_data.build_dir, self.task_data.clean_cmd)
        self._run(
            cmd_line,
            self.task_data.build_dir,
            self.task_data.docker_image,
            env_variables,
            interactive,
        )


class CustomSubCmdExecutor(TaskExecutor):
    """Runs a deploy/upload/setup/sync command from the workspace directory."""

    def __init__(
        self,
        cli: Invocation,
        cmd_data: CustomCommandData,
        work_dir: str,
        engine: str = DEFAULT_ENGINE,
    ) -> None:
        super().__init__(cli, engine)
        self.cmd_data = cmd_data
        self.work_dir = work_dir

    def exec(
        self,
        env_variables: Mapping[str, str],
        dry_run: bool = False,
        interactive: bool = False,
    ) -> None:
        cmd_line = compose_cmd_line(self.work_dir, self.cmd_data.cmd)
        if dry_run:
            self.cli.info(f"Dry run. Skipping {self.cmd_data.name}: {' '.join(cmd_line)}")
            return

        self.cli.info(f"execute {self.cmd_data.name} command")
        self._run(cmd_line, self.work_dir, self.cmd_data.docker_image, env_variables, interactive)
