"""Tests for settings validation."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

import config.settings as settings_module
from config.settings import Settings, get_settings, reset_settings
from utils.exceptions import InvalidSettingsError


class TestSettingsValidation:
    """Test settings validation logic."""

    def test_valid_settings(self, test_settings):
        assert test_settings.DEFAULT_ACCOUNT_BALANCE == 10_000.0
        assert test_settings.DCA_SPACING_PCT == 2.0
        assert test_settings.ENVIRONMENT == "test"

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.DEFAULT_MAX_RISK_PCT == 2.0
        assert settings.DEFAULT_CORRELATION_LIMIT == 0.7
        assert settings.CORRELATION_LOOKBACK == 90

    def test_balance_must_be_positive(self):
        with pytest.raises((ValidationError, InvalidSettingsError), match="must be > 0"):
            Settings(DEFAULT_ACCOUNT_BALANCE=0)

    def test_risk_pct_range(self):
        with pytest.raises((ValidationError, InvalidSettingsError), match=r"\(0, 100\]"):
            Settings(DEFAULT_MAX_RISK_PCT=150)

    def test_correlation_limit_bounds(self):
        with pytest.raises(ValidationError):
            Settings(DEFAULT_CORRELATION_LIMIT=1.5)

    def test_spacing_below_hundred(self):
        with pytest.raises((ValidationError, InvalidSettingsError), match="must be < 100"):
            Settings(DCA_SPACING_PCT=100)

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            Settings(ENVIRONMENT="staging")

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DCA_SPACING_PCT", "3.5")
        assert Settings().DCA_SPACING_PCT == 3.5


class TestGetSettings:

    def test_cached(self, clean_settings):
        assert get_settings() is get_settings()

    def test_reset_rereads_environment(self, clean_settings, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("DEFAULT_DRAWDOWN_LIMIT", "15")
        reset_settings()
        second = get_settings()
        assert second is not first
        assert second.DEFAULT_DRAWDOWN_LIMIT == 15

    def test_proxy_reads_through(self, clean_settings):
        assert settings_module.settings.DEFAULT_ACCOUNT_BALANCE == 10_000

    def test_invalid_config_exits(self, clean_settings, monkeypatch):
        monkeypatch.setenv("DEFAULT_ACCOUNT_BALANCE", "-5")
        reset_settings()
        with patch("config.settings.sys.exit", side_effect=SystemExit(1)) as mock_exit:
            with pytest.raises(SystemExit):
                get_settings()
            mock_exit.assert_called_once_with(1)
