"""Unified exception hierarchy for buildbox.

All custom exceptions inherit from BuildboxError for consistent error handling.
The CLI catches these, logs the message and converts them to an exit status.

Dependency direction:
    This module has NO internal dependencies (leaf module).
    It may be imported by: all other buildbox modules.
    It should NOT import from any other buildbox modules.
"""

from __future__ import annotations


class BuildboxError(Exception):
    """Base exception for all buildbox errors.

    All buildbox-specific exceptions should inherit from this class.
    This enables consistent error handling at the CLI layer.
    """

    exit_code = 1


class CliArgumentError(BuildboxError):
    """A command read an argument it never registered.

    This is a programming error in a command definition, not a user error.
    """


class ValidationError(BuildboxError):
    """Input validation errors.

    Examples:
        - Malformed KEY=VALUE pair
        - Unknown enumeration value
    """


class InvalidEnumValueError(ValidationError):
    """Raised when a string does not name a member of a closed enumeration."""


class InvalidVariantError(InvalidEnumValueError):
    """Raised for a build variant other than user, userdebug or eng."""


class InvalidEnvTypeError(InvalidEnumValueError):
    """Raised for an unknown shell environment type."""


class InvalidPullPolicyError(InvalidEnumValueError):
    """Raised for an unknown image pull policy."""


class ConfigError(BuildboxError):
    """Configuration-related errors."""


class ConfigParseError(ConfigError):
    """Raised for malformed JSON or a missing/mistyped required field."""


class UnsupportedConfigError(ConfigError):
    """Raised when the requested build config is not part of the workspace."""


class TaskNotFoundError(UnsupportedConfigError):
    """Raised when a requested task is not part of the selected build config."""


class CommandNotDefinedError(UnsupportedConfigError):
    """Raised when the selected build config does not define a custom command."""


class ContextExpansionError(ConfigError):
    """Raised when a $#[NAME] token cannot be resolved from the context."""


class DockerError(BuildboxError):
    """Docker operation errors.

    Base class for all Docker-related exceptions.
    """


class DockerNotFoundError(DockerError):
    """Raised when the container engine is not installed or not in PATH."""


class ImagePullError(DockerError):
    """Raised when an image pull fails under the strict pull policy."""


class ProcessExecutionError(BuildboxError):
    """Raised when a child process exits non-zero or cannot be spawned."""

    def __init__(self, message: str, returncode: int = 1) -> None:
        super().__init__(message)
        self.returncode = returncode

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        if self.returncode < 0:
            # Killed by a signal, report it the way a shell does
            return 128 - self.returncode
        return self.returncode or 1
