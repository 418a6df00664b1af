"""
APT output parsing — upgrade simulation and the legacy upgradable list.

The canonical source is ``apt-get -s upgrade`` run under the C locale:
it is what APT would really do, and it names the packages it held back
for phasing.  ``apt list --upgradable`` is parsed only as a fallback
when apt-get itself is not available.

Lines that match neither grammar (headers, progress text, summaries)
are skipped silently.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from aptupdates.core.models.update import UpdateRecord

logger = logging.getLogger(__name__)


# ── Commands ────────────────────────────────────────────────────

PHASING_OPTION = "APT::Get::Always-Include-Phased-Updates"

# apt exits with 100 and prints nothing when there is nothing to upgrade
NO_UPGRADES_EXIT_CODE = 100

# env pins the locale so messages like "deferred due to phasing" are stable
_LOCALE_PREFIX = ["env", "LC_ALL=C", "LANG=C"]


def simulation_command(include_phased: bool) -> list[str]:
    """Build the argv for one ``apt-get -s upgrade`` pass."""
    value = "true" if include_phased else "false"
    return [
        *_LOCALE_PREFIX,
        "apt-get",
        "-s",
        "-o",
        f"{PHASING_OPTION}={value}",
        "upgrade",
    ]


def upgradable_list_command() -> list[str]:
    """Build the argv for the ``apt list --upgradable`` fallback."""
    return [*_LOCALE_PREFIX, "apt", "list", "--upgradable"]


# ═══════════════════════════════════════════════════════════════════
#  Simulation output
# ═══════════════════════════════════════════════════════════════════

# Inst <pkg> [<current>] (<target> <origin> ...)
_INST_RE = re.compile(r"^Inst\s+(\S+)(?:\s+\[([^\]]+)\])?\s+\(([^ )]+)")

_PHASING_HEADER = "deferred due to phasing:"
_SUMMARY_RE = re.compile(r"^\d+ (upgraded|newly installed|to remove)")
_UPGRADED_RE = re.compile(r"^\d+ upgraded")


@dataclass(frozen=True)
class SimulationParse:
    """Everything one simulation run tells us.

    ``deferred`` holds the names APT listed as "deferred due to
    phasing".  It is only meaningful for the run it came from.
    """

    records: list[UpdateRecord] = field(default_factory=list)
    deferred: frozenset[str] = frozenset()


def parse_inst_line(line: str) -> UpdateRecord | None:
    """Parse one ``Inst`` line, or return None when it is not one."""
    line = line.strip()
    if not line.startswith("Inst "):
        return None

    m = _INST_RE.match(line)
    if m is None:
        return None

    name, current, target = m.group(1), m.group(2), m.group(3)
    return UpdateRecord(
        name=name,
        current_version=current,
        target_version=target,
    )


def parse_deferred(text: str) -> frozenset[str]:
    """Collect package names from the "deferred due to phasing" block.

    The block ends at the "N upgraded, ..." summary or at the header of
    the next section, whichever comes first.
    """
    deferred: set[str] = set()
    in_block = False

    for raw in text.splitlines():
        line = raw.strip()

        if not in_block:
            if _PHASING_HEADER in line:
                in_block = True
            continue

        if _UPGRADED_RE.match(line):
            break
        if not line or _SUMMARY_RE.match(line):
            continue
        # Next section ("The following packages will be upgraded:")
        if line.endswith(":"):
            break

        deferred.update(line.split())

    return frozenset(deferred)


def parse_simulation(text: str) -> SimulationParse:
    """Parse the full output of ``apt-get -s upgrade``.

    Records come back in the order APT printed them.  When a package
    appears twice only the first ``Inst`` line is kept.
    """
    records: list[UpdateRecord] = []
    seen: set[str] = set()

    for line in text.splitlines():
        record = parse_inst_line(line)
        if record is None or record.name in seen:
            continue
        seen.add(record.name)
        records.append(record)

    deferred = parse_deferred(text)
    logger.debug(
        "Simulation parsed: %d candidate(s), %d deferred for phasing",
        len(records), len(deferred),
    )
    return SimulationParse(records=records, deferred=deferred)


# ═══════════════════════════════════════════════════════════════════
#  apt list --upgradable (fallback)
# ═══════════════════════════════════════════════════════════════════

_UPGRADABLE_FROM_RE = re.compile(r"\[upgradable from:\s*([^\]\s]+)\]")


def parse_upgradable_line(line: str) -> UpdateRecord | None:
    """Parse one ``name/suite [phased NN%] version]`` line.

    The version is the last field that ends in ``]`` and does not
    itself open a bracket, which skips the ``[phased NN%]`` marker.
    """
    line = line.strip()
    if not line or line.lower().startswith("warning:"):
        return None
    if "/" not in line:
        return None

    parts = line.split()
    if len(parts) < 2:
        return None

    name = parts[0].split("/")[0]
    if not name:
        return None

    is_phased = "[phased" in line.lower()

    # Stock apt output: name/suite <target> <arch> [upgradable from: <current>]
    m = _UPGRADABLE_FROM_RE.search(line)
    if m is not None and not parts[1].startswith("["):
        return UpdateRecord(
            name=name,
            current_version=m.group(1),
            target_version=parts[1],
            is_phased=is_phased,
        )

    version = ""
    for part in reversed(parts):
        if part.endswith("]") and "[" not in part:
            version = part[:-1].strip()
            break
    if not version:
        return None

    return UpdateRecord(
        name=name,
        target_version=version,
        is_phased=is_phased,
    )


def parse_upgradable_list(text: str) -> list[UpdateRecord]:
    """Parse the output of ``apt list --upgradable``."""
    records: list[UpdateRecord] = []
    seen: set[str] = set()

    for line in text.splitlines():
        record = parse_upgradable_line(line)
        if record is None or record.name in seen:
            continue
        seen.add(record.name)
        records.append(record)

    return records
