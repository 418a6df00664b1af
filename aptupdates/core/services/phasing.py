"""
Phasing resolution — which pending updates are phased.

By default APT leaves phased updates out of its simulation, and only
names them in a "deferred due to phasing" block.  Two passes give us
both halves of the picture:

    Pass A  (phased excluded)  → the deferred set
    Pass B  (phased included)  → the full candidate list

``resolve_phasing`` then flags every Pass-B record whose name is in
the Pass-A deferred set.  No third command is needed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from aptupdates.adapters.base import CommandRunner
from aptupdates.core.context import CheckContext
from aptupdates.core.errors import ExecutionFailure
from aptupdates.core.models.update import UpdateRecord
from aptupdates.core.services.apt_parser import (
    NO_UPGRADES_EXIT_CODE,
    SimulationParse,
    parse_simulation,
    simulation_command,
)

logger = logging.getLogger(__name__)


def run_simulation(
    runner: CommandRunner,
    context: CheckContext,
    include_phased: bool,
) -> SimulationParse:
    """Run one ``apt-get -s upgrade`` pass and parse it.

    Raises:
        ExecutionFailure: apt-get could not run or failed with no output.
    """
    argv = simulation_command(include_phased)
    result = runner.run(argv[0], argv[1:], context)
    if result.failed and result.return_code == NO_UPGRADES_EXIT_CODE:
        logger.debug("apt-get reported nothing to upgrade")
        return SimulationParse()
    if result.failed:
        raise ExecutionFailure(f"Failed to execute apt-get -s upgrade: {result.error}")

    if result.return_code:
        logger.debug(
            "apt-get -s upgrade exited with code %s, parsing its output anyway",
            result.return_code,
        )
    return parse_simulation(result.text)


def resolve_phasing(
    records: Iterable[UpdateRecord],
    deferred: frozenset[str] | set[str],
) -> list[UpdateRecord]:
    """Return copies of ``records`` with ``is_phased`` set from ``deferred``.

    ``deferred`` must come from a phased-excluded pass over the same
    host state as ``records``.  That precondition is not checked: a set
    from an unrelated run silently yields wrong flags.
    """
    return [
        record.model_copy(update={"is_phased": record.name in deferred})
        for record in records
    ]


class PhasingPasses:
    """Runs the two simulation passes and resolves phasing between them."""

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def exclude_phased(self, context: CheckContext) -> SimulationParse:
        """Pass A: what APT would install right now, plus the deferred set."""
        return run_simulation(self._runner, context, include_phased=False)

    def include_phased(self, context: CheckContext) -> SimulationParse:
        """Pass B: every candidate, phased ones included."""
        return run_simulation(self._runner, context, include_phased=True)

    def resolve(self, context: CheckContext) -> list[UpdateRecord]:
        """Run Pass A then Pass B and return Pass B's records, flagged."""
        pass_a = self.exclude_phased(context)
        pass_b = self.include_phased(context)

        records = resolve_phasing(pass_b.records, pass_a.deferred)
        phased = sum(1 for r in records if r.is_phased)
        logger.info(
            "Resolved %d candidate(s), %d phased", len(records), phased,
        )
        return records
