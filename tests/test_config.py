"""Tests for configuration loading and logging setup."""

from __future__ import annotations

import logging

import pytest

from parkguard.config import AppConfig, load_config
from parkguard.log import setup_logging, setup_logging_from_config


class TestLoadConfig:
    def test_defaults_when_file_missing(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")
        assert config == AppConfig()
        assert config.rules.speed_limit_in_park == 5.0
        assert config.batch.chunk_size == 25

    def test_yaml_overrides(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "rules:\n"
            "  speed_limit_in_park: 3.0\n"
            "  unknown_key: 1\n"
            "batch:\n"
            "  chunk_size: 50\n"
            "geometry:\n"
            "  respect_holes: true\n"
        )
        config = load_config(path)
        assert config.rules.speed_limit_in_park == 3.0
        assert config.rules.anchoring_speed_threshold == 0.5
        assert config.batch.chunk_size == 50
        assert config.geometry.respect_holes is True
        assert not hasattr(config.rules, "unknown_key")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == AppConfig()

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PARKGUARD_SPEED_LIMIT", "7.5")
        monkeypatch.setenv("PARKGUARD_BUFFER_DISTANCE", "200")
        monkeypatch.setenv("PARKGUARD_CHUNK_SIZE", "10")
        config = load_config(tmp_path / "missing.yaml")
        assert config.rules.speed_limit_in_park == 7.5
        assert config.rules.buffer_zone_distance_m == 200.0
        assert config.batch.chunk_size == 10

    def test_config_path_env(self, tmp_path, monkeypatch):
        path = tmp_path / "from_env.yaml"
        path.write_text("batch:\n  chunk_size: 5\n")
        monkeypatch.setenv("CONFIG_PATH", str(path))
        assert load_config().batch.chunk_size == 5

    def test_invalid_chunk_size(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("batch:\n  chunk_size: 0\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_negative_threshold(self):
        config = AppConfig()
        config.rules.anchoring_speed_threshold = -1.0
        with pytest.raises(ValueError):
            config.validate()


class TestLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in list(root.handlers):
            if handler not in handlers:
                handler.close()
        root.handlers = handlers
        root.setLevel(level)

    def test_file_handler(self, tmp_path):
        setup_logging(str(tmp_path / "logs"), verbose=True)
        assert logging.getLogger().level == logging.DEBUG
        assert (tmp_path / "logs" / "parkguard.log").exists()

    def test_from_config(self):
        setup_logging_from_config(AppConfig().logging)
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
