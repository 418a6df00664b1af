"""
Tests for phasing resolution across the two simulation passes.
"""

import pytest

from aptupdates.adapters.base import CommandResult
from aptupdates.adapters.mock import MockRunner
from aptupdates.core.context import CheckContext
from aptupdates.core.errors import CommandTimeout, ExecutionFailure
from aptupdates.core.models.update import UpdateRecord
from aptupdates.core.services.apt_parser import simulation_command
from aptupdates.core.services.phasing import PhasingPasses, resolve_phasing, run_simulation


def _record(name: str, target: str = "2.0") -> UpdateRecord:
    return UpdateRecord(name=name, current_version="1.0", target_version=target)


# ── resolve_phasing ─────────────────────────────────────────────────


class TestResolvePhasing:
    def test_flags_deferred_names(self):
        records = [_record("gcc-13"), _record("openssl"), _record("libstdc++6")]
        resolved = resolve_phasing(records, frozenset({"gcc-13", "libstdc++6"}))
        assert [(r.name, r.is_phased) for r in resolved] == [
            ("gcc-13", True),
            ("openssl", False),
            ("libstdc++6", True),
        ]

    def test_empty_deferred(self):
        resolved = resolve_phasing([_record("a"), _record("b")], frozenset())
        assert not any(r.is_phased for r in resolved)

    def test_inputs_untouched(self):
        original = _record("gcc-13")
        resolve_phasing([original], {"gcc-13"})
        assert original.is_phased is False

    def test_deferred_name_without_record_ignored(self):
        resolved = resolve_phasing([_record("a")], {"not-pending"})
        assert len(resolved) == 1
        assert resolved[0].is_phased is False


# ── run_simulation ──────────────────────────────────────────────────


class TestRunSimulation:
    def test_parses_output(self, apt_runner):
        parsed = run_simulation(apt_runner, CheckContext(), include_phased=False)
        assert len(parsed.records) == 4
        assert parsed.deferred == {"gcc-13", "libstdc++6"}

    def test_nonzero_exit_with_output_is_parsed(self):
        runner = MockRunner()
        runner.set_output(simulation_command(False), "Inst foo [1.0] (2.0 x)\n", return_code=1)
        parsed = run_simulation(runner, CheckContext(), include_phased=False)
        assert [r.name for r in parsed.records] == ["foo"]

    def test_exit_100_without_output_is_empty(self):
        runner = MockRunner()
        argv = simulation_command(False)
        runner.set_response(
            argv,
            CommandResult.failure(argv[0], argv[1:], error="no output", return_code=100),
        )
        parsed = run_simulation(runner, CheckContext(), include_phased=False)
        assert parsed.records == []
        assert parsed.deferred == frozenset()

    def test_failure_raises(self):
        runner = MockRunner()
        runner.set_failure(simulation_command(False), "apt-get exited with code 1 and no output")
        with pytest.raises(ExecutionFailure, match="apt-get -s upgrade"):
            run_simulation(runner, CheckContext(), include_phased=False)

    def test_timeout_propagates(self):
        runner = MockRunner()
        runner.set_response(simulation_command(False), CommandTimeout("deadline"))
        with pytest.raises(CommandTimeout):
            run_simulation(runner, CheckContext(), include_phased=False)


# ── PhasingPasses ───────────────────────────────────────────────────


class TestPhasingPasses:
    def test_resolve(self, apt_runner):
        records = PhasingPasses(apt_runner).resolve(CheckContext())
        assert [r.name for r in records] == [
            "bsdextrautils", "gcc-13", "htop", "libstdc++6", "openssl", "zlib1g",
        ]
        assert [r.name for r in records if r.is_phased] == ["gcc-13", "libstdc++6"]

    def test_exactly_two_commands(self, apt_runner):
        PhasingPasses(apt_runner).resolve(CheckContext())
        assert apt_runner.call_log == [
            simulation_command(include_phased=False),
            simulation_command(include_phased=True),
        ]

    def test_versions_come_from_included_pass(self, apt_runner):
        records = PhasingPasses(apt_runner).resolve(CheckContext())
        gcc = next(r for r in records if r.name == "gcc-13")
        assert gcc.current_version == "13.2.0-23ubuntu4"
        assert gcc.target_version == "13.3.0-6ubuntu2~24.04"

    def test_cancelled_context_runs_nothing(self, apt_runner):
        ctx = CheckContext()
        ctx.cancel()
        with pytest.raises(ExecutionFailure):
            PhasingPasses(apt_runner).resolve(ctx)
        assert apt_runner.call_count == 0
