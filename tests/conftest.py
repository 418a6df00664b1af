"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from aptupdates.adapters.mock import MockRunner
from aptupdates.core.models.config import RuntimeConfig
from aptupdates.core.services.apt_parser import simulation_command

FIXTURES = Path(__file__).parent / "fixtures"

# Pending upgrades on the mock host, in APT's order, with their origin
HOST_PACKAGES = {
    "bsdextrautils": "main",
    "gcc-13": "phased",
    "htop": "universe",
    "libstdc++6": "phased",
    "openssl": "security",
    "zlib1g": "main",
}


def _read(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


@pytest.fixture
def fixture_text():
    """Return a reader for captured command output under fixtures/."""
    return _read


@pytest.fixture
def config(tmp_path: Path) -> RuntimeConfig:
    """Runtime config pointing at a throwaway lists directory."""
    return RuntimeConfig(lists_dir=tmp_path / "lists")


@pytest.fixture
def apt_runner() -> MockRunner:
    """A mock host with six pending upgrades, two of them phased.

    See HOST_PACKAGES for the origin of each package.
    """
    runner = MockRunner()
    runner.set_output(
        simulation_command(include_phased=False),
        _read("apt_get_upgrade_excluded.txt"),
    )
    runner.set_output(
        simulation_command(include_phased=True),
        _read("apt_get_upgrade_included.txt"),
    )
    for pkg, origin in HOST_PACKAGES.items():
        if origin != "phased":
            runner.set_output(["apt-cache", "policy", pkg], _read(f"policy_{pkg}.txt"))
    # find exits 1 when partial/ is unreadable but still lists the rest
    runner.set_output(["find"], _read("find_lists_mtimes.txt"), return_code=1)
    return runner


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """Drop the handlers setup_logging() installed during a test."""
    root = logging.getLogger()
    before, level = set(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in before and type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
