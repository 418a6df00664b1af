"""
Tests for metric handlers, the selector and metric dispatch.
"""

import json

import pytest

from aptupdates.adapters.mock import MockRunner
from aptupdates.core.context import CheckContext
from aptupdates.core.errors import ExecutionFailure, UnsupportedMetric
from aptupdates.core.handlers import (
    ALL_METRIC,
    COUNT_METRIC,
    DETAILS_METRIC,
    LIST_METRIC,
    Handler,
    build_metrics,
    export,
    parse_selector,
    with_json_response,
)
from aptupdates.core.models.update import UpdateType
from aptupdates.core.services.apt_parser import simulation_command
from aptupdates.core.use_cases.check import UpdateChecker


@pytest.fixture
def checker(apt_runner, config):
    return UpdateChecker(config=config, runner=apt_runner)


@pytest.fixture
def handler(checker):
    return Handler(checker)


# ── Selector ────────────────────────────────────────────────────────


class TestParseSelector:
    def test_default(self):
        assert parse_selector([]) == (UpdateType.ALL, False)

    def test_type(self):
        assert parse_selector(["security"]) == (UpdateType.SECURITY, False)
        assert parse_selector(["optional"]) == (UpdateType.OPTIONAL, False)
        assert parse_selector(["recommended"]) == (UpdateType.RECOMMENDED, False)

    def test_case_sensitive(self):
        assert parse_selector(["Security"]) == (UpdateType.ALL, False)

    def test_unknown_type_is_all(self):
        assert parse_selector(["bogus"]) == (UpdateType.ALL, False)

    def test_phased_flags(self):
        assert parse_selector(["security", "phased"]) == (UpdateType.SECURITY, True)
        assert parse_selector(["security", "include-phased"]) == (UpdateType.SECURITY, True)

    def test_phased_flag_first(self):
        assert parse_selector(["include-phased"]) == (UpdateType.ALL, True)

    def test_phased_flag_anywhere(self):
        assert parse_selector(["optional", "x", "phased"]) == (UpdateType.OPTIONAL, True)


# ── Handlers ────────────────────────────────────────────────────────


class TestHandler:
    def test_count(self, handler):
        assert handler.check_update_count({}, context=CheckContext()) == 4

    def test_count_with_phased(self, handler):
        assert handler.check_update_count({}, "all", "phased", context=CheckContext()) == 6

    def test_count_security(self, handler):
        assert handler.check_update_count({}, "security", context=CheckContext()) == 1

    def test_count_recommended_without_policy_queries(self, handler, apt_runner):
        assert handler.check_update_count({}, "recommended", "phased", context=CheckContext()) == 4
        assert apt_runner.calls_to("apt-cache") == []

    def test_list(self, handler):
        assert handler.get_update_list({}, "optional", context=CheckContext()) == ["htop"]

    def test_details(self, handler):
        data = handler.get_update_details({}, "security", context=CheckContext())
        assert data["available_updates"] == 1
        assert data["package_details_list"][0]["name"] == "openssl"

    def test_all(self, handler):
        data = handler.get_all_updates({}, context=CheckContext())
        assert data["all_updates_count"] == 6
        assert data["phased_updates_count"] == 2

    def test_failure_is_wrapped(self, config):
        runner = MockRunner()
        runner.set_failure(simulation_command(False), "no output")
        handler = Handler(UpdateChecker(config=config, runner=runner))
        with pytest.raises(ExecutionFailure, match="failed to check APT updates") as exc:
            handler.check_update_count({}, context=CheckContext())
        assert isinstance(exc.value.__cause__, ExecutionFailure)


class TestWithJsonResponse:
    def test_serializes(self):
        def handler(metric_params, *extra_params, context=None):
            return {"params": list(extra_params)}

        wrapped = with_json_response(handler)
        assert json.loads(wrapped({}, "a", "b")) == {"params": ["a", "b"]}
        assert wrapped.__name__ == "handler"

    def test_errors_propagate(self):
        def handler(metric_params, *extra_params, context=None):
            raise ExecutionFailure("boom")

        with pytest.raises(ExecutionFailure):
            with_json_response(handler)({})


# ── Dispatch ────────────────────────────────────────────────────────


class TestExport:
    def test_keys(self, checker):
        assert set(build_metrics(checker)) == {
            COUNT_METRIC, LIST_METRIC, DETAILS_METRIC, ALL_METRIC,
        }

    def test_count_is_int(self, checker):
        assert export(build_metrics(checker), COUNT_METRIC, ["security"], CheckContext()) == 1

    def test_list_is_json(self, checker):
        value = export(build_metrics(checker), LIST_METRIC, ["security"], CheckContext())
        assert json.loads(value) == ["openssl"]

    def test_details_is_json(self, checker):
        value = export(build_metrics(checker), DETAILS_METRIC, [], CheckContext())
        assert json.loads(value)["available_updates"] == 4

    def test_all_is_json(self, checker):
        value = export(build_metrics(checker), ALL_METRIC, [], CheckContext())
        data = json.loads(value)
        assert data["security_updates_list"] == ["openssl"]
        assert data["optional_updates_list"] == ["htop"]

    def test_unknown_metric(self, checker):
        with pytest.raises(UnsupportedMetric):
            export(build_metrics(checker), "apt.updates.bogus")
