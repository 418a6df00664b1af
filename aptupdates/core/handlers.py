"""
Metric handlers — what the monitoring agent calls.

Each handler takes the metric's named params and the free-form extra
params the agent passes through (``apt.updates.count[security]`` →
``extra_params == ["security"]``), runs a check and returns a plain
value.  Structured values are serialized by ``with_json_response``.

    apt.updates.count    → int
    apt.updates.list     → JSON array of package names
    apt.updates.details  → JSON object (single-type result)
    apt.updates.all      → JSON object (all categories + phased)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from aptupdates.core.context import CheckContext
from aptupdates.core.errors import ExecutionFailure, UnsupportedMetric
from aptupdates.core.models.update import UpdateType
from aptupdates.core.use_cases.check import UpdateChecker

logger = logging.getLogger(__name__)

HandlerFunc = Callable[..., Any]

COUNT_METRIC = "apt.updates.count"
LIST_METRIC = "apt.updates.list"
DETAILS_METRIC = "apt.updates.details"
ALL_METRIC = "apt.updates.all"

_PHASED_FLAGS = ("include-phased", "phased")


def parse_selector(extra_params: Sequence[str]) -> tuple[UpdateType, bool]:
    """Map extra params to ``(update_type, include_phased)``.

    The first param selects the type (case-sensitive, default ``all``).
    Any param equal to ``phased`` or ``include-phased`` turns the
    phased flag on, wherever it appears.
    """
    update_type = UpdateType.ALL
    if extra_params:
        first = extra_params[0].strip()
        try:
            update_type = UpdateType(first)
        except ValueError:
            update_type = UpdateType.ALL

    include_phased = any(p.strip() in _PHASED_FLAGS for p in extra_params)
    return update_type, include_phased


class Handler:
    """Metric handlers bound to one UpdateChecker."""

    def __init__(self, checker: UpdateChecker):
        self._checker = checker

    def _context(self, context: CheckContext | None) -> CheckContext:
        return context or self._checker.new_context()

    def check_update_count(
        self,
        metric_params: Mapping[str, str] | None = None,
        *extra_params: str,
        context: CheckContext | None = None,
    ) -> int:
        update_type, include_phased = parse_selector(extra_params)
        try:
            result = self._checker.check(update_type, include_phased, self._context(context))
        except ExecutionFailure as e:
            raise ExecutionFailure(f"failed to check APT updates: {e}") from e
        return result.available_updates

    def get_update_list(
        self,
        metric_params: Mapping[str, str] | None = None,
        *extra_params: str,
        context: CheckContext | None = None,
    ) -> list[str]:
        update_type, include_phased = parse_selector(extra_params)
        try:
            result = self._checker.check(update_type, include_phased, self._context(context))
        except ExecutionFailure as e:
            raise ExecutionFailure(f"failed to check APT updates: {e}") from e
        return result.names

    def get_update_details(
        self,
        metric_params: Mapping[str, str] | None = None,
        *extra_params: str,
        context: CheckContext | None = None,
    ) -> dict[str, Any]:
        update_type, include_phased = parse_selector(extra_params)
        try:
            result = self._checker.check(update_type, include_phased, self._context(context))
        except ExecutionFailure as e:
            raise ExecutionFailure(f"failed to check APT updates: {e}") from e
        return result.to_dict()

    def get_all_updates(
        self,
        metric_params: Mapping[str, str] | None = None,
        *extra_params: str,
        context: CheckContext | None = None,
    ) -> dict[str, Any]:
        try:
            snapshot = self._checker.check_all(self._context(context))
        except ExecutionFailure as e:
            raise ExecutionFailure(f"failed to check APT updates: {e}") from e
        return snapshot.to_dict()


def with_json_response(handler: HandlerFunc) -> HandlerFunc:
    """Wrap ``handler`` so its result is returned as a JSON string."""

    def wrapped(
        metric_params: Mapping[str, str] | None = None,
        *extra_params: str,
        context: CheckContext | None = None,
    ) -> str:
        result = handler(metric_params, *extra_params, context=context)
        return json.dumps(result)

    wrapped.__name__ = getattr(handler, "__name__", "wrapped")
    wrapped.__doc__ = handler.__doc__
    return wrapped


def build_metrics(checker: UpdateChecker) -> dict[str, HandlerFunc]:
    """Metric key → handler table for one checker."""
    handler = Handler(checker)
    return {
        COUNT_METRIC: handler.check_update_count,
        LIST_METRIC: with_json_response(handler.get_update_list),
        DETAILS_METRIC: with_json_response(handler.get_update_details),
        ALL_METRIC: with_json_response(handler.get_all_updates),
    }


def export(
    metrics: Mapping[str, HandlerFunc],
    key: str,
    params: Sequence[str] = (),
    context: CheckContext | None = None,
) -> Any:
    """Dispatch one metric request by key.

    Raises:
        UnsupportedMetric: ``key`` is not registered.
        ExecutionFailure: The check failed.
    """
    handler = metrics.get(key)
    if handler is None:
        raise UnsupportedMetric(f"unknown metric {key!r}")

    logger.debug("Exporting %s %s", key, list(params))
    return handler({}, *params, context=context)
