"""Tests for settings and logging setup."""

import logging

import pytest

from civ_kernel.log_utils import LOG_FORMAT, SingleLineFormatter, setup_logging
from civ_kernel.settings import SimulationSettings, get_settings


class TestSimulationSettings:
    def setup_method(self):
        get_settings.cache_clear()

    def teardown_method(self):
        get_settings.cache_clear()

    def test_defaults(self):
        settings = SimulationSettings()
        assert settings.seed is None
        assert settings.log_level == "INFO"
        assert settings.cycles_per_run == 1

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("CIV_KERNEL_SEED", "12")
        monkeypatch.setenv("civ_kernel_max_total_cycles", "50")
        settings = get_settings()
        assert settings.seed == 12
        assert settings.max_total_cycles == 50

    def test_settings_cached(self):
        assert get_settings() is get_settings()

    def test_to_config(self):
        config = SimulationSettings(seed=3, cycles_per_run=4, cycle_interval_seconds=0.5).to_config()
        assert config.seed == 3
        assert config.cycles_per_run == 4
        assert config.cycle_interval_seconds == 0.5
        assert config.intervention_cooldown_cycles == 3

    def test_invalid_run_length_rejected(self):
        with pytest.raises(ValueError):
            SimulationSettings(cycles_per_run=0).to_config()


class TestLogging:
    def teardown_method(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            if isinstance(handler.formatter, SingleLineFormatter):
                root.removeHandler(handler)

    def test_setup_is_idempotent(self):
        setup_logging("debug")
        root = setup_logging("WARNING")
        ours = [h for h in root.handlers if isinstance(h.formatter, SingleLineFormatter)]
        assert len(ours) == 1
        assert root.level == logging.WARNING

    def test_multiline_messages_indented(self):
        formatter = SingleLineFormatter(LOG_FORMAT)
        record = logging.LogRecord(
            "civ_kernel", logging.INFO, __file__, 1, "first\nsecond", None, None
        )
        lines = formatter.format(record).split("\n")
        assert lines[0].endswith("first")
        assert lines[1].strip() == "second"
        assert lines[1].startswith(" ")
