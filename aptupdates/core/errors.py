"""
Exception hierarchy for the update checker.

Only ExecutionFailure (and its subclasses) aborts a check. Everything
else the engine meets along the way (unparsable lines, a failed
policy query for one package, an unreadable lists directory) degrades
to partial or zeroed data instead of raising.
"""

from __future__ import annotations


class AptUpdatesError(Exception):
    """Base class for all errors raised by aptupdates."""


class ExecutionFailure(AptUpdatesError):
    """An external command could not run, or failed without any output."""


class CommandTimeout(ExecutionFailure):
    """The check's deadline expired while a command was running."""


class CommandCancelled(ExecutionFailure):
    """The check was cancelled while a command was running."""


class UnsupportedPackageManager(ExecutionFailure):
    """Neither apt-get nor apt is available on this host."""


class ConfigError(AptUpdatesError):
    """Raised when runtime configuration is invalid or unreadable."""


class UnsupportedMetric(AptUpdatesError):
    """Raised when a caller asks for a metric key that is not registered."""
