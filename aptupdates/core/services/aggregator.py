"""
Aggregation — turn flagged, classified records into a snapshot.

Buckets keep the order in which APT printed the packages.  Phased
records go to ``phased`` only; every other record goes to
``recommended`` and, depending on its policy output, to ``security``
and/or ``optional`` as well.

Also answers "when was the package index last refreshed", from the
newest file in APT's lists directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

from aptupdates.adapters.base import CommandRunner
from aptupdates.core.context import CheckContext
from aptupdates.core.models.update import CategorizedUpdates, CheckSnapshot, UpdateRecord
from aptupdates.core.services.classifier import Classification

logger = logging.getLogger(__name__)


def aggregate(
    records: list[UpdateRecord],
    classification: Classification,
) -> CategorizedUpdates:
    """Bucket ``records`` using ``classification``."""
    categorized = CategorizedUpdates()

    for record in records:
        categorized.all.add(record)

        if record.is_phased:
            categorized.phased.add(record)
            continue

        if classification.is_security(record.name):
            categorized.security.add(record)
        categorized.recommended.add(record)
        if classification.is_optional(record.name):
            categorized.optional.add(record)

    return categorized


def mtime_listing_command(lists_dir: Path) -> list[str]:
    """Build the argv that prints one mtime (seconds) per file."""
    return ["find", str(lists_dir), "-type", "f", "-printf", "%T@\n"]


def parse_max_mtime(text: str) -> int:
    """Largest ``%T@`` value in ``text`` as whole seconds, 0 if none."""
    newest = 0.0
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            value = float(line)
        except ValueError:
            # "find: ... Permission denied" and similar noise
            continue
        newest = max(newest, value)
    return int(newest)


def last_index_refresh_time(
    runner: CommandRunner,
    context: CheckContext,
    lists_dir: Path,
) -> int:
    """Unix time of the newest file under ``lists_dir``, or 0.

    find exits non-zero when some subdirectory (e.g. ``partial/``) is
    unreadable but still lists everything else, so its output is parsed
    whatever the exit code.
    """
    argv = mtime_listing_command(lists_dir)
    result = runner.run(argv[0], argv[1:], context)
    if result.failed:
        logger.debug("Cannot list %s: %s", lists_dir, result.error)
        return 0

    newest = parse_max_mtime(result.text)
    if newest == 0:
        logger.debug("No package lists found under %s", lists_dir)
    return newest


def build_snapshot(
    categorized: CategorizedUpdates,
    started_at: float,
    finished_at: float,
    last_refresh: int,
) -> CheckSnapshot:
    """Assemble the final snapshot from monotonic start/finish times."""
    return CheckSnapshot(
        categorized=categorized,
        check_duration_seconds=max(0.0, finished_at - started_at),
        last_index_refresh_unix_time=last_refresh,
    )
