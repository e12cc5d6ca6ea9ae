"""
Tests for environment based configuration
"""

import pytest
from pydantic import ValidationError

from toybank import config as config_module
from toybank.config import ToybankConfig, get_config, reload_config


class TestToybankConfig:
    """Test defaults and environment overrides"""

    def test_defaults(self, monkeypatch):
        for name in ("TOYBANK_DATABASE_URL", "TOYBANK_LOG_LEVEL", "TOYBANK_AMOUNT_ROUNDING"):
            monkeypatch.delenv(name, raising=False)
        config = ToybankConfig(_env_file=None)

        assert config.database_url == "sqlite:///toybank.db"
        assert config.log_level == "INFO"
        assert config.log_format == "json"
        assert config.amount_precision == 2
        assert config.amount_rounding == "ROUND_HALF_EVEN"
        assert config.shutdown_on_close is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("TOYBANK_DATABASE_URL", "postgresql://db.example:5432/toybank")
        monkeypatch.setenv("TOYBANK_SHUTDOWN_ON_CLOSE", "false")
        monkeypatch.setenv("toybank_log_level", "DEBUG")
        config = ToybankConfig(_env_file=None)

        assert config.database_url == "postgresql://db.example:5432/toybank"
        assert config.shutdown_on_close is False
        assert config.log_level == "DEBUG"

    def test_reload_config_replaces_global(self, monkeypatch):
        original = get_config()
        monkeypatch.setenv("TOYBANK_AMOUNT_PRECISION", "3")
        try:
            reloaded = reload_config()
            assert reloaded is get_config()
            assert reloaded.amount_precision == 3
        finally:
            config_module.config = original

    def test_rounding_name_is_normalized(self, monkeypatch):
        monkeypatch.setenv("TOYBANK_AMOUNT_ROUNDING", "round_half_up")
        assert ToybankConfig(_env_file=None).amount_rounding == "ROUND_HALF_UP"

    def test_invalid_values_rejected(self, monkeypatch):
        monkeypatch.setenv("TOYBANK_AMOUNT_ROUNDING", "ROUND_SIDEWAYS")
        with pytest.raises(ValidationError):
            ToybankConfig(_env_file=None)

        monkeypatch.delenv("TOYBANK_AMOUNT_ROUNDING")
        monkeypatch.setenv("TOYBANK_LOG_FORMAT", "xml")
        with pytest.raises(ValidationError):
            ToybankConfig(_env_file=None)
