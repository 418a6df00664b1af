"""
Tests for configuration loading: YAML file, environment and defaults.
"""

import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from aptupdates.core.config.loader import (
    CONFIG_ENV,
    DEBUG_ENV,
    THRESHOLD_ENV,
    TIMEOUT_ENV,
    load_runtime_config,
    read_config_file,
    read_environment,
)
from aptupdates.core.errors import ConfigError
from aptupdates.core.models.config import DEFAULT_LISTS_DIR, RuntimeConfig


@pytest.fixture
def wrapped_yml(tmp_path: Path) -> Path:
    """Config with keys under the apt_updates section."""
    content = textwrap.dedent("""\
        apt_updates:
          debug: true
          warning_threshold: 25
          timeout: 30
          lists_dir: /tmp/lists
          classifier_workers: 4
    """)
    path = tmp_path / "apt-updates.yml"
    path.write_text(content)
    return path


@pytest.fixture
def flat_yml(tmp_path: Path) -> Path:
    """Config with top-level keys."""
    content = textwrap.dedent("""\
        warning_threshold: 5
        timeout: 20
    """)
    path = tmp_path / "flat.yml"
    path.write_text(content)
    return path


# ── Defaults ─────────────────────────────────────────────────────────


class TestDefaults:
    def test_runtime_config_defaults(self):
        config = RuntimeConfig()
        assert config.debug_logging is False
        assert config.warning_threshold == 10
        assert config.timeout_seconds == 15
        assert config.lists_dir == DEFAULT_LISTS_DIR
        assert config.classifier_workers == 1

    def test_load_without_sources(self):
        assert load_runtime_config(environ={}) == RuntimeConfig()

    def test_frozen(self):
        config = RuntimeConfig()
        with pytest.raises(ValidationError):
            config.warning_threshold = 99


# ── YAML file ────────────────────────────────────────────────────────


class TestConfigFile:
    def test_wrapped(self, wrapped_yml):
        config = load_runtime_config(wrapped_yml, environ={})
        assert config.debug_logging is True
        assert config.warning_threshold == 25
        assert config.timeout_seconds == 30
        assert config.lists_dir == Path("/tmp/lists")
        assert config.classifier_workers == 4

    def test_flat(self, flat_yml):
        config = load_runtime_config(flat_yml, environ={})
        assert config.warning_threshold == 5
        assert config.timeout_seconds == 20

    def test_path_from_environment(self, flat_yml):
        config = load_runtime_config(environ={CONFIG_ENV: str(flat_yml)})
        assert config.warning_threshold == 5

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert read_config_file(path) == {}

    def test_unknown_keys_ignored(self, tmp_path, caplog):
        path = tmp_path / "extra.yml"
        path.write_text("warning_threshold: 3\ncolour: blue\n")
        with caplog.at_level("WARNING"):
            values = read_config_file(path)
        assert values == {"warning_threshold": 3}
        assert "colour" in caplog.text

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_runtime_config(tmp_path / "nope.yml", environ={})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("warning_threshold: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_runtime_config(path, environ={})

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_runtime_config(path, environ={})

    def test_section_not_a_mapping(self, tmp_path):
        path = tmp_path / "section.yml"
        path.write_text("apt_updates: 3\n")
        with pytest.raises(ConfigError):
            load_runtime_config(path, environ={})

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "value.yml"
        path.write_text("warning_threshold: lots\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_runtime_config(path, environ={})

    def test_invalid_workers(self, tmp_path):
        path = tmp_path / "workers.yml"
        path.write_text("classifier_workers: 0\n")
        with pytest.raises(ConfigError):
            load_runtime_config(path, environ={})


# ── Environment ──────────────────────────────────────────────────────


class TestEnvironment:
    @pytest.mark.parametrize("value, expected", [
        ("true", True),
        ("TRUE", True),
        ("1", True),
        ("false", False),
        ("0", False),
        ("yes", False),
    ])
    def test_debug(self, value, expected):
        assert read_environment({DEBUG_ENV: value})["debug_logging"] is expected

    def test_threshold(self):
        assert load_runtime_config(environ={THRESHOLD_ENV: "42"}).warning_threshold == 42

    def test_bad_threshold_ignored(self):
        assert read_environment({THRESHOLD_ENV: "many"}) == {}

    def test_env_overrides_file(self, wrapped_yml):
        config = load_runtime_config(wrapped_yml, environ={THRESHOLD_ENV: "1", DEBUG_ENV: "false"})
        assert config.warning_threshold == 1
        assert config.debug_logging is False
        assert config.timeout_seconds == 30


# ── Timeout floor ────────────────────────────────────────────────────


class TestTimeoutFloor:
    def test_env_below_minimum(self):
        assert load_runtime_config(environ={TIMEOUT_ENV: "5"}).timeout_seconds == 10

    def test_file_below_minimum(self, tmp_path):
        path = tmp_path / "fast.yml"
        path.write_text("timeout: 3\n")
        assert load_runtime_config(path, environ={}).timeout_seconds == 10

    def test_above_minimum_kept(self):
        assert load_runtime_config(environ={TIMEOUT_ENV: "45"}).timeout_seconds == 45

    def test_model_rejects_below_minimum(self):
        with pytest.raises(ValidationError):
            RuntimeConfig(timeout_seconds=5)
