"""Docker operations for buildbox.

Image references, in-container detection and the two ways buildbox uses a
container engine: running a single task inside an image, and bootstrapping
the whole CLI into the workspace toolchain image.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .config import PullPolicy
from .constants import (
    CONTAINER_MARKER_ENV,
    CONTAINER_MARKER_PATH,
    DEFAULT_ENGINE,
    DEFAULT_IMAGE_TAG,
    DEFAULT_SHELL,
    HOST_ONLY_ENV,
    NOT_AVAILABLE,
)
from .environment import merge_env
from .errors import ConfigParseError, DockerNotFoundError, ImagePullError, ProcessExecutionError
from .logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .logging import ConsoleLogger
    from .system import System

logger = get_logger(__name__)

# Cached in-container detection result
_inside_container_cached: bool | None = None


def inside_container() -> bool:
    """Check if this process already runs inside a container.

    Result is cached for the lifetime of the process.

    Returns:
        True when the engine marker file exists or a parent buildbox
        bootstrapped this process.
    """
    global _inside_container_cached
    if _inside_container_cached is not None:
        return _inside_container_cached

    _inside_container_cached = bool(
        os.path.exists(CONTAINER_MARKER_PATH) or os.environ.get(CONTAINER_MARKER_ENV)
    )
    logger.debug("Inside container: %s", _inside_container_cached)
    return _inside_container_cached


@dataclass(frozen=True)
class DockerImage:
    """A ``registry/image:tag`` reference."""

    image: str
    tag: str = DEFAULT_IMAGE_TAG
    registry: str | None = None

    @classmethod
    def parse(cls, reference: str) -> DockerImage:
        """Parse an image reference; registry and tag are optional.

        Raises:
            ConfigParseError: The reference is empty, "NA" or malformed.
        """
        ref = reference.strip()
        if not ref or ref == NOT_AVAILABLE:
            raise ConfigParseError(f"Invalid docker image '{reference}'")

        registry: str | None = None
        name = ref
        if "/" in ref:
            registry, name = ref.rsplit("/", 1)

        tag = DEFAULT_IMAGE_TAG
        if ":" in name:
            name, tag = name.rsplit(":", 1)

        if not name or not tag or registry == "":
            raise ConfigParseError(f"Invalid docker image '{reference}'")
        return cls(image=name, tag=tag, registry=registry)

    def __str__(self) -> str:
        if self.registry:
            return f"{self.registry}/{self.image}:{self.tag}"
        return f"{self.image}:{self.tag}"


def container_env(
    env: Mapping[str, str], host_env: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Drop host-specific variables that would break the container.

    With ``host_env`` only values still inherited from the host are
    dropped, so a PATH set by an init-env script or ``-e`` is forwarded.
    """
    return {
        k: v
        for k, v in env.items()
        if k not in HOST_ONLY_ENV or (host_env is not None and host_env.get(k) != v)
    }


class Docker:
    """Runs commands through the container engine CLI."""

    def __init__(
        self,
        image: DockerImage,
        interactive: bool = False,
        engine: str = DEFAULT_ENGINE,
    ) -> None:
        self.image = image
        self.interactive = interactive
        self.engine = engine

    def _tty_args(self) -> list[str]:
        if not self.interactive:
            return []
        # -t without a terminal makes the engine refuse to start
        return ["-it"] if sys.stdin.isatty() else ["-i"]

    @staticmethod
    def _env_args(env: Mapping[str, str]) -> list[str]:
        args: list[str] = []
        for key in env:
            if key in HOST_ONLY_ENV:
                # Client keeps the host value, pass the container one inline
                args.extend(["-e", f"{key}={env[key]}"])
            else:
                # Value is taken from the engine client's own environment
                args.extend(["-e", key])
        return args

    @staticmethod
    def _volume_args(volumes: Sequence[str]) -> list[str]:
        args: list[str] = []
        for volume in volumes:
            args.extend(["-v", volume])
        return args

    def ensure_engine(self, system: System) -> None:
        """Raise DockerNotFoundError when the engine binary is missing."""
        if system.which(self.engine) is None:
            logger.error("Container engine not found in PATH: %s", self.engine)
            raise DockerNotFoundError(f"{self.engine} not found in PATH")

    def pull(
        self,
        system: System,
        log: ConsoleLogger,
        policy: PullPolicy = PullPolicy.TOLERANT,
    ) -> None:
        """Pull the image from its registry.

        An image may only exist locally, so under the tolerant policy a
        failed pull is logged and the local image is used.

        Raises:
            ImagePullError: The pull failed under the strict policy.
        """
        self.ensure_engine(system)
        log.info(f"Pulling docker image '{self.image}'")
        try:
            system.check_call([self.engine, "pull", str(self.image)])
        except ProcessExecutionError as e:
            if policy is PullPolicy.STRICT:
                raise ImagePullError(f"Failed to pull '{self.image}': {e}") from e
            log.info(f"Pull of '{self.image}' failed, continuing with local image")

    def run_cmd(
        self,
        cmd_line: Sequence[str],
        env: Mapping[str, str],
        work_dir: Path | str,
        system: System,
        *,
        volumes: Sequence[str] = (),
        docker_args: Sequence[str] = (),
    ) -> None:
        """Run ``cmd_line`` through bash inside the image.

        ``work_dir`` is bind mounted at the same path and used as the
        container working directory.
        """
        self.ensure_engine(system)
        forwarded = container_env(env, system.env())
        cmd = [
            self.engine,
            "run",
            "--rm",
            *self._tty_args(),
            *docker_args,
            "-v",
            f"{work_dir}:{work_dir}",
            *self._volume_args(volumes),
            "-w",
            str(work_dir),
            *self._env_args(forwarded),
            str(self.image),
            DEFAULT_SHELL,
            "-c",
            " ".join(cmd_line),
        ]
        system.check_call(cmd, env=merge_env(container_env(forwarded), system.env()))

    def bootstrap(
        self,
        cmd_line: Sequence[str],
        system: System,
        log: ConsoleLogger,
        *,
        top_dir: Path,
        work_dir: Path,
        docker_args: Sequence[str] = (),
        volumes: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Re-run the buildbox command line inside the image.

        The caller environment is forwarded so the inner invocation sees
        the same variables. The exit status of the inner run is propagated
        through ``ProcessExecutionError``.

        Raises:
            DockerNotFoundError: The engine binary is missing.
            ProcessExecutionError: The inner invocation failed.
        """
        self.ensure_engine(system)
        log.info(f"Bootstrap buildbox into '{self.image}'")

        host_env = system.env()
        forwarded = container_env(env if env is not None else host_env, host_env)
        forwarded[CONTAINER_MARKER_ENV] = "1"
        log.debug(f"env: {forwarded}")

        mounts: list[str] = []
        for path in dict.fromkeys([str(top_dir), str(work_dir)]):
            mounts.extend(["-v", f"{path}:{path}"])

        cmd = [
            self.engine,
            "run",
            "--rm",
            *self._tty_args(),
            *docker_args,
            *mounts,
            *self._volume_args(volumes),
            "-w",
            str(work_dir),
            *self._env_args(forwarded),
            str(self.image),
            *cmd_line,
        ]
        system.check_call(cmd, env=merge_env(container_env(forwarded), system.env()))
