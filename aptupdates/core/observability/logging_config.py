"""
Logging setup for the apt-updates process.

stdout carries the JSON (or bare number) the monitoring agent reads, so
log records only ever go to stderr and, optionally, to a file.

Console level, highest priority first:

    --debug or RuntimeConfig.debug_logging   DEBUG
    --verbose                                INFO
    --quiet                                  ERROR
    $APT_UPDATES_LOG_LEVEL
    WARNING

$APT_UPDATES_LOG_FILE adds a file handler, at
$APT_UPDATES_LOG_FILE_LEVEL or the console level.
"""

from __future__ import annotations

import logging
import os
import sys

LEVEL_ENV = "APT_UPDATES_LOG_LEVEL"
FILE_ENV = "APT_UPDATES_LOG_FILE"
FILE_LEVEL_ENV = "APT_UPDATES_LOG_FILE_LEVEL"

# (format, datefmt) by the most verbose level that uses it
_CONSOLE_FORMATS = (
    (logging.DEBUG, "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s %(name)s: %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT_FORMAT = "apt-updates: %(levelname)s: %(message)s"

_FILE_FORMAT = "%(asctime)s %(process)d %(levelname)-7s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> str:
    """Pick the console level name from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LEVEL_ENV, "WARNING")


def _level_number(name: str | None) -> int:
    """Map a level name to its number; unknown names mean WARNING."""
    value = logging.getLevelName(name.strip().upper()) if name else None
    return value if isinstance(value, int) else logging.WARNING


def _console_formatter(level: int) -> logging.Formatter:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_CONSOLE_DEFAULT_FORMAT)


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the process-wide handlers on the root logger.

    Replaces whatever handlers the root logger had, so calling this
    twice leaves one console handler, not two.
    """
    console_level = _level_number(level)
    handlers = [
        _handler(logging.StreamHandler(sys.stderr), console_level, _console_formatter(console_level)),
    ]

    if log_file:
        file_level = _level_number(log_file_level) if log_file_level else console_level
        handlers.append(_handler(
            logging.FileHandler(log_file, encoding="utf-8"),
            file_level,
            logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT),
        ))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    # Root lets through whatever the most verbose handler wants
    root.setLevel(min(h.level for h in handlers))

    # A closed stderr must not turn into a traceback on stdout
    logging.raiseExceptions = False
