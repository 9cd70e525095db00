"""Tests for the central configuration loader (tiersource/config.py)."""

import pytest
import yaml

from tiersource.config import (
    MAX_STALE_AFTER_SECONDS,
    ResolverSettings,
    Settings,
    _apply_dict,
    _load_yaml,
    get_settings,
    validate_settings,
)
from tiersource.exceptions import ConfigurationError


def _write_config(tmp_path, data):
    f = tmp_path / "config.yaml"
    f.write_text(yaml.dump(data))
    return f


# ── YAML loading ────────────────────────────────────────


class TestLoadYaml:
    def test_loads_valid_yaml(self, tmp_path):
        f = tmp_path / "cfg.yaml"
        f.write_text("diagnostics:\n  sink: log\n")
        data = _load_yaml(f)
        assert data["diagnostics"]["sink"] == "log"

    def test_returns_empty_dict_for_missing_file(self, tmp_path):
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_returns_empty_dict_for_non_dict_yaml(self, tmp_path):
        f = tmp_path / "cfg.yaml"
        f.write_text("- item1\n- item2\n")
        assert _load_yaml(f) == {}


# ── Settings defaults ───────────────────────────────────


class TestSettingsDefaults:
    def test_default_settings_have_expected_values(self):
        s = Settings()
        assert s.resolver.network_payload_prefix == "Server Response #"
        assert s.resolver.stale_after_seconds is None
        assert s.diagnostics.sink == "stdout"
        assert s.logging.level == "INFO"


# ── get_settings() from YAML ────────────────────────────


class TestGetSettings:
    def test_loads_yaml_values(self, tmp_path):
        cfg = _write_config(tmp_path, {
            "resolver": {"stale_after_seconds": 30},
            "diagnostics": {"sink": "log"},
        })
        s = get_settings(yaml_path=cfg, _force_reload=True)
        assert s.resolver.stale_after_seconds == 30
        assert s.diagnostics.sink == "log"

    def test_missing_yaml_uses_defaults(self, tmp_path):
        s = get_settings(yaml_path=tmp_path / "nope.yaml", _force_reload=True)
        assert s.diagnostics.sink == "stdout"

    def test_singleton_returns_same_object(self, tmp_path):
        cfg = _write_config(tmp_path, {})
        s1 = get_settings(yaml_path=cfg, _force_reload=True)
        s2 = get_settings()
        assert s1 is s2

    def test_force_reload_reloads(self, tmp_path):
        cfg = _write_config(tmp_path, {"resolver": {"network_payload_prefix": "A"}})
        assert get_settings(yaml_path=cfg, _force_reload=True).resolver.network_payload_prefix == "A"

        cfg.write_text(yaml.dump({"resolver": {"network_payload_prefix": "B"}}))
        assert get_settings(yaml_path=cfg, _force_reload=True).resolver.network_payload_prefix == "B"

    def test_rejects_unknown_sink(self, tmp_path):
        cfg = _write_config(tmp_path, {"diagnostics": {"sink": "carrier-pigeon"}})
        with pytest.raises(ConfigurationError):
            get_settings(yaml_path=cfg, _force_reload=True)

    def test_rejects_non_positive_staleness(self, tmp_path):
        cfg = _write_config(tmp_path, {"resolver": {"stale_after_seconds": 0}})
        with pytest.raises(ConfigurationError):
            get_settings(yaml_path=cfg, _force_reload=True)


# ── stale_after_seconds validation ──────────────────────


class TestStaleAfterValidation:
    @pytest.mark.parametrize(
        "text",
        [
            "stale_after_seconds: .nan",
            "stale_after_seconds: .inf",
            "stale_after_seconds: 1.0e+12",
            "stale_after_seconds: 1.0e12",
            "stale_after_seconds: soon",
            "stale_after_seconds: true",
            "stale_after_seconds: -1",
        ],
    )
    def test_rejects_unusable_values(self, tmp_path, text):
        cfg = tmp_path / "config.yaml"
        cfg.write_text(f"resolver:\n  {text}\n")
        with pytest.raises(ConfigurationError):
            get_settings(yaml_path=cfg, _force_reload=True)

    def test_numeric_string_is_parsed(self, tmp_path):
        cfg = _write_config(tmp_path, {"resolver": {"stale_after_seconds": "90"}})
        s = get_settings(yaml_path=cfg, _force_reload=True)
        assert s.resolver.stale_after_seconds == 90.0

    def test_upper_bound_is_accepted(self, tmp_path):
        cfg = _write_config(
            tmp_path, {"resolver": {"stale_after_seconds": MAX_STALE_AFTER_SECONDS}}
        )
        s = get_settings(yaml_path=cfg, _force_reload=True)
        assert s.resolver.stale_after_seconds == MAX_STALE_AFTER_SECONDS

    def test_validate_settings_normalises_in_place(self):
        s = Settings()
        s.resolver.stale_after_seconds = 45
        validate_settings(s)
        assert s.resolver.stale_after_seconds == 45.0
        assert isinstance(s.resolver.stale_after_seconds, float)


# ── Environment variable overrides ──────────────────────


class TestEnvOverrides:
    def test_env_override_string(self, tmp_path, monkeypatch):
        cfg = _write_config(tmp_path, {})
        monkeypatch.setenv("TIERSOURCE_DIAGNOSTICS_SINK", "log")
        s = get_settings(yaml_path=cfg, _force_reload=True)
        assert s.diagnostics.sink == "log"

    def test_env_override_optional_float(self, tmp_path, monkeypatch):
        cfg = _write_config(tmp_path, {})
        monkeypatch.setenv("TIERSOURCE_RESOLVER_STALE_AFTER_SECONDS", "2.5")
        s = get_settings(yaml_path=cfg, _force_reload=True)
        assert s.resolver.stale_after_seconds == 2.5

    @pytest.mark.parametrize("value", ["soon", "nan", "inf", "-5"])
    def test_invalid_env_override_raises(self, tmp_path, monkeypatch, value):
        cfg = _write_config(tmp_path, {})
        monkeypatch.setenv("TIERSOURCE_RESOLVER_STALE_AFTER_SECONDS", value)
        with pytest.raises(ConfigurationError):
            get_settings(yaml_path=cfg, _force_reload=True)

    def test_env_overrides_trump_yaml(self, tmp_path, monkeypatch):
        cfg = _write_config(tmp_path, {"logging": {"level": "DEBUG"}})
        monkeypatch.setenv("TIERSOURCE_LOGGING_LEVEL", "WARNING")
        s = get_settings(yaml_path=cfg, _force_reload=True)
        assert s.logging.level == "WARNING"


# ── _apply_dict helper ──────────────────────────────────


class TestApplyDict:
    def test_applies_known_keys(self):
        target = ResolverSettings()
        _apply_dict(target, {"network_payload_prefix": "Reply "})
        assert target.network_payload_prefix == "Reply "

    def test_ignores_unknown_keys(self):
        target = ResolverSettings()
        _apply_dict(target, {"unknown_field": "value"})
        assert not hasattr(target, "unknown_field")


# ── Integration: real config/config.yaml ─────────────────


class TestRealConfig:
    def test_loads_project_config_yaml(self):
        s = get_settings(_force_reload=True)
        # These values match config/config.yaml
        assert s.resolver.network_payload_prefix == "Server Response #"
        assert s.resolver.stale_after_seconds is None
        assert s.diagnostics.sink == "stdout"
