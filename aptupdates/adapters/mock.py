"""
Mock runner — scripted stand-in for the package manager.

Used by the test suite to replay captured APT output without touching
the host.  Responses are matched on an argv prefix or on a predicate,
in registration order.
"""

from __future__ import annotations

from collections.abc import Callable

from aptupdates.adapters.base import CommandResult, CommandRunner
from aptupdates.core.context import CheckContext

Matcher = Callable[[list[str]], bool]


class MockRunner(CommandRunner):
    """Universal mock runner for testing.

    By default every command "succeeds" with empty output and exit 0.
    Configure with ``set_output`` / ``set_failure`` / ``set_response``.
    """

    def __init__(
        self,
        runner_name: str = "mock",
        available: set[str] | None = None,
        default_output: str = "",
    ):
        self._name = runner_name
        # None means every program is available
        self._available = available
        self._default_output = default_output
        self._responses: list[tuple[Matcher, CommandResult | Exception]] = []
        self._call_log: list[list[str]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[list[str]]:
        """Every argv this mock has been asked to run."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls_to(self, program: str) -> list[list[str]]:
        """Calls whose argv contains ``program`` (e.g. 'apt-cache')."""
        return [argv for argv in self._call_log if program in argv]

    def is_available(self, program: str) -> bool:
        return self._available is None or program in self._available

    def set_response(
        self,
        match: list[str] | Matcher,
        response: CommandResult | Exception,
    ) -> None:
        """Register a response for commands whose argv starts with ``match``.

        ``match`` may also be a predicate over the argv.  An exception
        instance is raised instead of returned.
        """
        if callable(match):
            matcher = match
        else:
            prefix = list(match)
            matcher = lambda argv: argv[: len(prefix)] == prefix  # noqa: E731
        self._responses.append((matcher, response))

    def set_output(
        self,
        match: list[str] | Matcher,
        output: str,
        return_code: int = 0,
    ) -> None:
        """Shortcut: respond with ``output`` and ``return_code``."""
        argv = match if isinstance(match, list) else ["mock"]
        self.set_response(
            match,
            CommandResult.success(
                program=argv[0],
                args=argv[1:],
                output=output.encode("utf-8"),
                return_code=return_code,
            ),
        )

    def set_failure(
        self,
        match: list[str] | Matcher,
        error: str = "Mock failure",
    ) -> None:
        """Configure matching commands to fail."""
        argv = match if isinstance(match, list) else ["mock"]
        self.set_response(
            match,
            CommandResult.failure(
                program=argv[0],
                args=argv[1:],
                error=error,
                return_code=1,
            ),
        )

    def run(
        self,
        program: str,
        args: list[str],
        context: CheckContext,
    ) -> CommandResult:
        context.raise_if_done(program)
        argv = [program, *args]
        self._call_log.append(argv)

        for matcher, response in self._responses:
            if matcher(argv):
                if isinstance(response, Exception):
                    raise response
                return response

        return CommandResult.success(
            program=program,
            args=list(args),
            output=self._default_output.encode("utf-8"),
        )

    def reset(self) -> None:
        """Clear call log and scripted responses."""
        self._call_log.clear()
        self._responses.clear()
