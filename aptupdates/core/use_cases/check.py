"""
Check use case — run the whole detection pipeline for one request.

    Runner → Parser → Resolver → Classifier → Aggregator

UpdateChecker holds only the immutable RuntimeConfig and a runner, so
one instance can serve concurrent requests.  Concurrent checks are
independent: each spawns its own chain of commands, there is no
shared in-flight cache.
"""

from __future__ import annotations

import logging
import time

from aptupdates.adapters.base import CommandRunner
from aptupdates.adapters.shell.command import SubprocessRunner
from aptupdates.core.context import CheckContext
from aptupdates.core.errors import ExecutionFailure, UnsupportedPackageManager
from aptupdates.core.models.config import RuntimeConfig
from aptupdates.core.models.update import CheckResult, CheckSnapshot, UpdateRecord, UpdateType
from aptupdates.core.services.aggregator import aggregate, build_snapshot, last_index_refresh_time
from aptupdates.core.services.apt_parser import (
    NO_UPGRADES_EXIT_CODE,
    parse_upgradable_list,
    upgradable_list_command,
)
from aptupdates.core.services.classifier import Classification, TypeClassifier
from aptupdates.core.services.phasing import PhasingPasses, run_simulation

logger = logging.getLogger(__name__)

STRATEGY_SIMULATE = "simulate"
STRATEGY_LIST = "list"

# Types that need an apt-cache policy query per package
_QUERIED_TYPES = (UpdateType.SECURITY, UpdateType.OPTIONAL)


class UpdateChecker:
    """Update-detection and classification engine."""

    def __init__(
        self,
        config: RuntimeConfig | None = None,
        runner: CommandRunner | None = None,
    ):
        self._config = config or RuntimeConfig()
        self._runner = runner or SubprocessRunner()
        self._passes = PhasingPasses(self._runner)
        self._classifier = TypeClassifier(
            self._runner, workers=self._config.classifier_workers,
        )

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    def new_context(self) -> CheckContext:
        """A fresh context bounded by the configured timeout."""
        return CheckContext.with_timeout(self._config.timeout_seconds)

    def strategy(self) -> str:
        """Pick the parsing strategy for this host.

        Raises:
            UnsupportedPackageManager: Neither apt-get nor apt is installed.
        """
        if self._runner.is_available("apt-get"):
            return STRATEGY_SIMULATE
        if self._runner.is_available("apt"):
            logger.info("apt-get not found, falling back to 'apt list --upgradable'")
            return STRATEGY_LIST
        raise UnsupportedPackageManager("No APT package manager found (apt-get, apt)")

    # ── Pipeline stages ─────────────────────────────────────────

    def collect(
        self,
        context: CheckContext,
        include_phased: bool,
    ) -> list[UpdateRecord]:
        """Run the package manager and return candidate records.

        With ``include_phased`` the list holds every candidate, phased
        ones flagged; without it, only what APT would install now.
        """
        if self.strategy() == STRATEGY_LIST:
            records = self._collect_from_list(context)
            if include_phased:
                return records
            return [r for r in records if not r.is_phased]

        if include_phased:
            return self._passes.resolve(context)
        return run_simulation(self._runner, context, include_phased=False).records

    def _collect_from_list(self, context: CheckContext) -> list[UpdateRecord]:
        argv = upgradable_list_command()
        result = self._runner.run(argv[0], argv[1:], context)

        if result.return_code == NO_UPGRADES_EXIT_CODE:
            records = parse_upgradable_list(result.text)
            if not records:
                logger.debug("apt list reported nothing to upgrade")
            return records

        if result.failed:
            raise ExecutionFailure(f"Failed to execute apt list --upgradable: {result.error}")
        return parse_upgradable_list(result.text)

    # ── Entry points ────────────────────────────────────────────

    def check_all(self, context: CheckContext | None = None) -> CheckSnapshot:
        """Full check: every category, phased updates counted separately.

        Raises:
            ExecutionFailure: A package-manager command failed outright.
        """
        context = context or self.new_context()
        started_at = time.monotonic()

        records = self.collect(context, include_phased=True)
        classification = self._classifier.classify(records, context)
        categorized = aggregate(records, classification)
        last_refresh = last_index_refresh_time(self._runner, context, self._config.lists_dir)

        snapshot = build_snapshot(
            categorized,
            started_at=started_at,
            finished_at=time.monotonic(),
            last_refresh=last_refresh,
        )
        logger.info(
            "Check finished in %.2fs: %d update(s), %d security, %d optional, %d phased",
            snapshot.check_duration_seconds,
            categorized.all.count,
            categorized.security.count,
            categorized.optional.count,
            categorized.phased.count,
        )
        return snapshot

    def check(
        self,
        update_type: UpdateType = UpdateType.ALL,
        include_phased: bool = False,
        context: CheckContext | None = None,
    ) -> CheckResult:
        """Single-type check used by the count / list / details metrics.

        Only ``security`` and ``optional`` cost policy queries, one per
        non-phased candidate; packages whose query fails are left out.
        ``recommended`` is every non-phased candidate.

        Raises:
            ExecutionFailure: A package-manager command failed outright.
        """
        context = context or self.new_context()
        started_at = time.monotonic()

        records = self.collect(context, include_phased=include_phased)
        classification = Classification()
        if update_type in _QUERIED_TYPES:
            classification = self._classifier.classify(records, context)
        records = aggregate(records, classification).bucket(update_type).details

        last_refresh = last_index_refresh_time(self._runner, context, self._config.lists_dir)
        result = CheckResult(
            package_details_list=records,
            check_duration_seconds=time.monotonic() - started_at,
            last_apt_update_time=last_refresh,
            warning_threshold=self._config.warning_threshold,
        )
        logger.info(
            "Check (%s%s) finished in %.2fs: %d update(s)",
            update_type.value,
            ", phased included" if include_phased else "",
            result.check_duration_seconds,
            result.available_updates,
        )
        return result
