"""
Unit tests for system/config.py.

Covers:
- Section dataclasses and their defaults
- SystemConfig.load(): lookup, partial merge, env substitution
- Singleton functions: get_system_config(), reload_system_config()
"""

from pathlib import Path

import pytest

from cryptofolio.system import config as config_module
from cryptofolio.system.config import (
    LedgerConfig,
    LoggingConfig,
    PricingConfig,
    SystemConfig,
    TrackerConfig,
    _deep_merge,
    _substitute_env_vars,
    get_system_config,
    reload_system_config,
)


@pytest.fixture(autouse=True)
def reset_singleton(monkeypatch):
    """Isolate the cached config and the default search paths."""
    monkeypatch.setattr(config_module, "_system_config", None)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATHS", ())


class TestSectionDefaults:
    """Test section dataclass defaults."""

    def test_ledger_defaults(self):
        config = LedgerConfig()

        assert config.path == "data/ledger.json"
        assert config.max_append_attempts == 5

    def test_pricing_defaults(self):
        config = PricingConfig()

        assert config.base_url == "https://api.coingecko.com/api/v3"
        assert config.vs_currency == "usd"
        assert config.max_retries == 3

    def test_tracker_defaults(self):
        config = TrackerConfig()

        assert config.default_user == "default"
        assert config.allow_oversell is False


class TestLoggingConfig:
    """Test LoggingConfig conversion."""

    def test_to_logger_config_converts_correctly(self):
        config = LoggingConfig(level="DEBUG", format="json", enable_file=False, file_path="out/app.log")

        logger_config = config.to_logger_config()

        assert logger_config.level == "DEBUG"
        assert logger_config.format == "json"
        assert logger_config.enable_file is False
        assert logger_config.file_path == Path("out/app.log")

    def test_invalid_level_rejected(self):
        with pytest.raises(ValueError):
            LoggingConfig(level="LOUD").to_logger_config()


class TestSystemConfigLoad:
    """Test SystemConfig.load()."""

    def test_load_with_defaults_when_no_file(self):
        config = SystemConfig.load()

        assert config == SystemConfig()

    def test_missing_explicit_path_yields_defaults(self, tmp_path):
        assert SystemConfig.load(tmp_path / "absent.yaml") == SystemConfig()

    def test_load_merges_partial_config(self, tmp_path):
        path = tmp_path / "cryptofolio.yaml"
        path.write_text(
            "ledger:\n  path: /tmp/ledger.json\ntracker:\n  allow_oversell: true\n",
            encoding="utf-8",
        )

        config = SystemConfig.load(path)

        assert config.ledger.path == "/tmp/ledger.json"
        assert config.ledger.max_append_attempts == 5
        assert config.tracker.allow_oversell is True
        assert config.pricing == PricingConfig()

    def test_load_handles_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert SystemConfig.load(path) == SystemConfig()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            SystemConfig.load(path)

    def test_env_vars_substituted(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CRYPTOFOLIO_DATA", "/var/data")
        path = tmp_path / "env.yaml"
        path.write_text("ledger:\n  path: ${CRYPTOFOLIO_DATA}/ledger.json\n", encoding="utf-8")

        assert SystemConfig.load(path).ledger.path == "/var/data/ledger.json"

    def test_default_search_paths(self, tmp_path, monkeypatch):
        found = tmp_path / "found.yaml"
        found.write_text("pricing:\n  vs_currency: eur\n", encoding="utf-8")
        monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATHS", (tmp_path / "missing.yaml", found))

        assert SystemConfig.load().pricing.vs_currency == "eur"


class TestDeepMerge:
    """Test _deep_merge helper."""

    def test_merge_nested_dicts(self):
        base = {"a": {"x": 1, "y": 2}, "b": 3}

        result = _deep_merge(base, {"a": {"y": 20}})

        assert result == {"a": {"x": 1, "y": 20}, "b": 3}
        assert base["a"]["y"] == 2

    def test_merge_handles_non_dict_values(self):
        assert _deep_merge({"a": {"x": 1}}, {"a": 5}) == {"a": 5}


class TestSubstituteEnvVars:
    """Test _substitute_env_vars helper."""

    def test_substitute_in_nested_structures(self, monkeypatch):
        monkeypatch.setenv("USER_ID", "alice")

        result = _substitute_env_vars({"tracker": {"default_user": "${USER_ID}"}, "list": ["${USER_ID}", 1]})

        assert result == {"tracker": {"default_user": "alice"}, "list": ["alice", 1]}

    def test_undefined_var_keeps_placeholder(self, monkeypatch):
        monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)

        assert _substitute_env_vars("${NOT_SET_ANYWHERE}/x") == "${NOT_SET_ANYWHERE}/x"


class TestSingletonFunctions:
    """Test get_system_config / reload_system_config."""

    def test_get_system_config_returns_cached_instance(self):
        assert get_system_config() is get_system_config()

    def test_reload_system_config_creates_new_instance(self):
        first = get_system_config()

        second = reload_system_config()

        assert first is not second
        assert get_system_config() is second

    def test_get_system_config_with_explicit_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("tracker:\n  default_user: bob\n", encoding="utf-8")

        config = get_system_config(path)

        assert config.tracker.default_user == "bob"
        assert get_system_config() is config
