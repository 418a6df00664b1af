"""
Check context — deadline and cancellation for one check call.

Every external command the engine starts is bound to the CheckContext
of the check that started it.  The command runner polls the context
while the child is alive and kills the child as soon as the deadline
passes or ``cancel()`` is called.

A context is created by whichever entry point starts a check:

    - CLI:       main.py     → CheckContext.with_timeout(config.timeout_seconds)
    - Handlers:  handlers.py → same, one context per metric request
    - Tests:     CheckContext() (no deadline) or a short timeout

It is safe to call ``cancel()`` from another thread.
"""

from __future__ import annotations

import threading
import time

from aptupdates.core.errors import CommandCancelled, CommandTimeout


class CheckContext:
    """Deadline plus cancellation flag, shared by all commands of a check."""

    def __init__(self, deadline: float | None = None) -> None:
        # deadline is a time.monotonic() value, None means no deadline
        self._deadline = deadline
        self._cancelled = threading.Event()

    @classmethod
    def with_timeout(cls, seconds: float) -> CheckContext:
        """Create a context whose deadline is ``seconds`` from now."""
        return cls(deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or None."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def cancel(self) -> None:
        self._cancelled.set()

    def raise_if_done(self, what: str = "check") -> None:
        """Raise the matching ExecutionFailure if the context is finished."""
        if self.cancelled:
            raise CommandCancelled(f"{what} cancelled")
        if self.expired:
            raise CommandTimeout(f"{what} exceeded its deadline")

    def __repr__(self) -> str:
        return f"<CheckContext remaining={self.remaining()!r} cancelled={self.cancelled}>"
