"""Tests for config.py - defaults, file discovery, env vars and overrides."""

import pytest

from archscan.config import DEFAULT_LAYERS, ScanConfig, load_config
from archscan.exceptions import ConfigurationError, InvalidConfigError


class TestScanConfig:
    def test_defaults(self):
        config = ScanConfig()
        assert config.extensions == [".cs"]
        assert config.excluded_dirs == ["obj", "bin"]
        assert config.scope_mode == "stack"
        assert config.layers == DEFAULT_LAYERS
        assert config.max_file_size_bytes == 10 * 1024 * 1024

    @pytest.mark.parametrize(
        "kwargs,key",
        [
            ({"extensions": []}, "extensions"),
            ({"extensions": ["cs"]}, "extensions"),
            ({"scope_mode": "nested"}, "scope_mode"),
            ({"verbosity": "loud"}, "verbosity"),
            ({"workers": 0}, "workers"),
            ({"parallel_threshold": 0}, "parallel_threshold"),
            ({"max_file_size_mb": 0}, "max_file_size_mb"),
            ({"layers": []}, "layers"),
        ],
    )
    def test_validation(self, kwargs, key):
        with pytest.raises(InvalidConfigError) as exc_info:
            ScanConfig(**kwargs)
        assert exc_info.value.key == key

    def test_normalized_excluded_dirs(self):
        assert ScanConfig(excluded_dirs=["Bin", "OBJ"]).normalized_excluded_dirs == frozenset({"bin", "obj"})


class TestLoadConfig:
    def test_defaults_when_nothing_configured(self, isolated_config):
        assert load_config() == ScanConfig()

    def test_project_file(self, isolated_config):
        (isolated_config / "archscan.toml").write_text('scope_mode = "single"\nworkers = 2\n', encoding="utf-8")
        config = load_config()
        assert config.scope_mode == "single"
        assert config.workers == 2

    def test_explicit_file_overrides_project(self, isolated_config, tmp_path):
        (isolated_config / "archscan.toml").write_text("workers = 2\n", encoding="utf-8")
        explicit = tmp_path / "ci.toml"
        explicit.write_text("workers = 8\n", encoding="utf-8")
        assert load_config(config_file=explicit).workers == 8

    def test_env_overrides_files(self, isolated_config, monkeypatch):
        (isolated_config / "archscan.toml").write_text("workers = 2\n", encoding="utf-8")
        monkeypatch.setenv("ARCHSCAN_WORKERS", "6")
        monkeypatch.setenv("ARCHSCAN_EXCLUDED_DIRS", "obj, bin, node_modules")
        monkeypatch.setenv("ARCHSCAN_USE_DEFAULT_RULES", "false")
        config = load_config()
        assert config.workers == 6
        assert config.excluded_dirs == ["obj", "bin", "node_modules"]
        assert config.use_default_rules is False

    def test_cli_overrides_win_and_none_ignored(self, isolated_config, monkeypatch):
        monkeypatch.setenv("ARCHSCAN_WORKERS", "6")
        config = load_config(workers=3, scope_mode=None, verbose=True)
        assert config.workers == 3
        assert config.scope_mode == "stack"
        assert config.verbosity == "verbose"

    def test_rules_tables_carried(self, isolated_config):
        (isolated_config / "archscan.toml").write_text(
            '[[rules]]\ntype = "usage"\nid = "u"\npattern = "x"\n', encoding="utf-8"
        )
        assert load_config().rule_tables == [{"type": "usage", "id": "u", "pattern": "x"}]

    def test_invalid_env_value(self, isolated_config, monkeypatch):
        monkeypatch.setenv("ARCHSCAN_USE_DEFAULT_RULES", "maybe")
        with pytest.raises(ConfigurationError):
            load_config()

    def test_unknown_key(self, isolated_config):
        (isolated_config / "archscan.toml").write_text("colour = true\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config()

    def test_missing_explicit_file(self, isolated_config, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(config_file=tmp_path / "nope.toml")

    def test_malformed_toml(self, isolated_config):
        (isolated_config / "archscan.toml").write_text("workers = \n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config()

    def test_global_config(self, isolated_config, tmp_path):
        (tmp_path / "home" / ".archscan.toml").write_text('output_format = "json"\n', encoding="utf-8")
        assert load_config().output_format == "json"
