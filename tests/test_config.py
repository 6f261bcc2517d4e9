"""
tests/test_config.py — YAML configuration loader
"""

from __future__ import annotations

import pytest

from chronicle.config import ChronicleConfig, load_config


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "config.yaml")

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == ChronicleConfig()

    def test_overrides_and_coercion(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "rate_limit_max_entries: 3\n"
            "stats_retry_delay_seconds: 1\n"
            "stale_after_days: '14'\n"
            "some_unknown_key: true\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.rate_limit_max_entries == 3
        assert cfg.stats_retry_delay_seconds == 1.0
        assert isinstance(cfg.stats_retry_delay_seconds, float)
        assert cfg.stale_after_days == 14
        assert cfg.rate_limit_window_minutes == 60

    def test_config_is_frozen(self):
        cfg = ChronicleConfig()
        with pytest.raises(AttributeError):
            cfg.rate_limit_max_entries = 1  # type: ignore[misc]
