"""
Type classification — security / optional / recommended.

Each non-phased candidate costs one ``apt-cache policy <name>`` query,
read-only against the local metadata cache.  The policy text shows
which archives the candidate version comes from:

    security   an origin in a security pocket or security host
    optional   an origin in universe / multiverse
    recommended every non-phased package (no query needed)

Phased packages are never queried or classified.

One query per package makes this stage the dominant cost of a check
on hosts with many pending updates.  ``workers > 1`` fans the queries
out over a bounded thread pool; results stay attributed per package.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from pydantic import BaseModel

from aptupdates.adapters.base import CommandRunner
from aptupdates.core.context import CheckContext
from aptupdates.core.models.update import UpdateRecord

logger = logging.getLogger(__name__)


# Origins look like "https://security.ubuntu.com/ubuntu noble-security/main"
# or "http://security.debian.org/debian-security bookworm-security/main".
SECURITY_MARKERS = ("security.", "-security", "Debian-Security")
OPTIONAL_MARKERS = ("universe", "multiverse")


def policy_command(package: str) -> list[str]:
    """Build the argv for one policy query."""
    return ["apt-cache", "policy", package]


def classify_policy_output(text: str) -> tuple[bool, bool]:
    """Return ``(is_security, is_optional)`` for one policy output."""
    is_security = any(marker in text for marker in SECURITY_MARKERS)
    is_optional = any(marker in text for marker in OPTIONAL_MARKERS)
    return is_security, is_optional


class PackageClass(BaseModel):
    """Classification of one package from its policy output."""

    name: str
    security: bool = False
    optional: bool = False


class ClassificationFailure(BaseModel):
    """A policy query that failed for one package."""

    name: str
    error: str


@dataclass
class Classification:
    """Per-package outcome of a classification run."""

    classes: dict[str, PackageClass] = field(default_factory=dict)
    failures: list[ClassificationFailure] = field(default_factory=list)
    skipped_phased: list[str] = field(default_factory=list)

    def is_security(self, name: str) -> bool:
        pkg = self.classes.get(name)
        return pkg is not None and pkg.security

    def is_optional(self, name: str) -> bool:
        pkg = self.classes.get(name)
        return pkg is not None and pkg.optional


class TypeClassifier:
    """Issues policy queries and buckets packages by origin."""

    def __init__(self, runner: CommandRunner, workers: int = 1):
        self._runner = runner
        self._workers = max(1, workers)

    def query(
        self,
        record: UpdateRecord,
        context: CheckContext,
    ) -> PackageClass | ClassificationFailure:
        """Run the policy query for one package.

        Deadline expiry and cancellation propagate; any other failure is
        returned as a ClassificationFailure for this package alone.
        """
        argv = policy_command(record.name)
        result = self._runner.run(argv[0], argv[1:], context)
        if result.failed:
            return ClassificationFailure(name=record.name, error=result.error or "unknown error")

        is_security, is_optional = classify_policy_output(result.text)
        return PackageClass(name=record.name, security=is_security, optional=is_optional)

    def classify(
        self,
        records: list[UpdateRecord],
        context: CheckContext,
    ) -> Classification:
        """Classify every non-phased record."""
        classification = Classification()
        to_query: list[UpdateRecord] = []

        for record in records:
            if record.is_phased:
                classification.skipped_phased.append(record.name)
            else:
                to_query.append(record)

        if self._workers > 1 and len(to_query) > 1:
            outcomes = self._query_parallel(to_query, context)
        else:
            outcomes = [self.query(record, context) for record in to_query]

        for outcome in outcomes:
            if isinstance(outcome, ClassificationFailure):
                logger.warning(
                    "Cannot classify %s, leaving it out of security/optional: %s",
                    outcome.name, outcome.error,
                )
                classification.failures.append(outcome)
            else:
                classification.classes[outcome.name] = outcome

        logger.debug(
            "Classified %d package(s): %d failed, %d phased skipped",
            len(classification.classes),
            len(classification.failures),
            len(classification.skipped_phased),
        )
        return classification

    def _query_parallel(
        self,
        records: list[UpdateRecord],
        context: CheckContext,
    ) -> list[PackageClass | ClassificationFailure]:
        """Fan queries out over a bounded pool, keeping encounter order."""
        workers = min(self._workers, len(records))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self.query, record, context) for record in records]
            try:
                return [future.result() for future in futures]
            except BaseException:
                for future in futures:
                    future.cancel()
                raise
