"""Runners — the only code that starts external processes.

Public re-exports for convenient access.
"""

from aptupdates.adapters.base import CommandResult, CommandRunner
from aptupdates.adapters.mock import MockRunner
from aptupdates.adapters.shell.command import SubprocessRunner

__all__ = [
    "CommandResult",
    "CommandRunner",
    "MockRunner",
    "SubprocessRunner",
]
