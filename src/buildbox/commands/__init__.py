"""buildbox subcommands."""

from __future__ import annotations

from .base import Command
from .build import BuildCommand, CleanCommand
from .custom import CustomCommand, DeployCommand, SetupCommand, SyncCommand, UploadCommand
from .list import ListCommand
from .registry import CommandHandler, CommandRegistry
from .shell import ShellCommand

__all__ = [
    "BuildCommand",
    "CleanCommand",
    "Command",
    "CommandHandler",
    "CommandRegistry",
    "CustomCommand",
    "DeployCommand",
    "ListCommand",
    "SetupCommand",
    "ShellCommand",
    "SyncCommand",
    "UploadCommand",
]
