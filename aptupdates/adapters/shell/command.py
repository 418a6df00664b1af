"""
Subprocess runner — execute package-manager commands on the host.

Runs the program without a shell, merges stderr into stdout, and
watches the CheckContext while the child is alive.  On deadline or
cancellation the child is killed and reaped before the exception
propagates, so no process outlives its check.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time

from aptupdates.adapters.base import CommandResult, CommandRunner
from aptupdates.core.context import CheckContext
from aptupdates.core.errors import CommandCancelled, CommandTimeout

logger = logging.getLogger(__name__)

# How often the context is re-checked while a child is running
_POLL_INTERVAL = 0.1


class SubprocessRunner(CommandRunner):
    """Run commands with ``subprocess.Popen`` and capture combined output."""

    def __init__(self, poll_interval: float = _POLL_INTERVAL):
        self._poll_interval = poll_interval

    @property
    def name(self) -> str:
        return "subprocess"

    def is_available(self, program: str) -> bool:
        return shutil.which(program) is not None

    def run(
        self,
        program: str,
        args: list[str],
        context: CheckContext,
    ) -> CommandResult:
        context.raise_if_done(program)

        argv = [program, *args]
        logger.debug("Executing: %s", " ".join(argv))
        start = time.monotonic()

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            return CommandResult.failure(
                program=program,
                args=args,
                error=f"Cannot execute {program}: {e}",
            )

        output = self._communicate(proc, argv, context)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        return_code = proc.returncode
        logger.debug(
            "%s exited with code %d after %dms (%d bytes)",
            program, return_code, elapsed_ms, len(output),
        )

        if return_code != 0 and not output:
            return CommandResult.failure(
                program=program,
                args=args,
                error=f"{program} exited with code {return_code} and no output",
                return_code=return_code,
                duration_ms=elapsed_ms,
            )

        return CommandResult.success(
            program=program,
            args=args,
            output=output,
            return_code=return_code,
            duration_ms=elapsed_ms,
        )

    def _communicate(
        self,
        proc: subprocess.Popen,
        argv: list[str],
        context: CheckContext,
    ) -> bytes:
        """Collect output, killing the child if the context finishes first."""
        while True:
            remaining = context.remaining()
            wait_for = self._poll_interval
            if remaining is not None:
                wait_for = min(wait_for, remaining)

            try:
                output, _ = proc.communicate(timeout=wait_for)
                return output or b""
            except subprocess.TimeoutExpired:
                pass

            if context.done:
                self._kill(proc)
                command = " ".join(argv)
                if context.cancelled:
                    logger.warning("Killed %s: check cancelled", argv[0])
                    raise CommandCancelled(f"{command} cancelled")
                logger.warning("Killed %s: check deadline exceeded", argv[0])
                raise CommandTimeout(f"{command} exceeded the check deadline")

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        proc.kill()
        # communicate() drains the pipe and reaps the child
        proc.communicate()
