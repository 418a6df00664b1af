"""
Runner base — the contract between the engine and external commands.

The engine never calls ``subprocess`` directly.  It asks a
CommandRunner to run a program and gets a CommandResult back.

Command failures do not raise: a program that cannot be started, or
that exits non-zero without printing anything, comes back as a
CommandResult with ``error`` set.  The only exceptions a runner raises
are CommandTimeout / CommandCancelled, because those belong to the
whole check and not to the single command.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from aptupdates.core.context import CheckContext


class CommandResult(BaseModel):
    """Outcome of one external command.

    A non-zero ``return_code`` with non-empty ``output`` is NOT an error:
    APT uses exit codes to signal "upgrades exist" and prints warnings
    on stderr.  Callers look at the output, not only the exit status.
    """

    program: str
    args: list[str] = Field(default_factory=list)
    output: bytes = b""             # combined stdout + stderr
    return_code: int | None = None  # None when the program never started
    error: str | None = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    @classmethod
    def success(
        cls,
        program: str,
        args: list[str],
        output: bytes,
        return_code: int = 0,
        **kwargs: Any,
    ) -> CommandResult:
        """Create a result for a command that produced usable output."""
        return cls(
            program=program,
            args=args,
            output=output,
            return_code=return_code,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        program: str,
        args: list[str],
        error: str,
        **kwargs: Any,
    ) -> CommandResult:
        """Create a result for a command that failed."""
        return cls(program=program, args=args, error=error, **kwargs)


class CommandRunner(ABC):
    """Abstract base class for command runners.

    To create a new runner:
        1. Subclass CommandRunner
        2. Implement name, is_available, run
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'subprocess', 'mock')."""

    @abstractmethod
    def is_available(self, program: str) -> bool:
        """Check whether ``program`` can be executed on this host.

        Should be fast and never raise.
        """

    @abstractmethod
    def run(
        self,
        program: str,
        args: list[str],
        context: CheckContext,
    ) -> CommandResult:
        """Run ``program`` with ``args`` bound to ``context``.

        Raises:
            CommandTimeout: The context's deadline passed.
            CommandCancelled: The context was cancelled.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
