"""Shared pytest fixtures for all tests."""

import pandas as pd
import pytest

from config.settings import Settings, reset_settings
from models.schemas import (
    ActiveTrade,
    BotSettings,
    MarketData,
    RiskParameters,
    Signal,
    SignalType,
)


@pytest.fixture(scope="session")
def test_settings():
    """Test settings with safe defaults."""
    return Settings(
        DEFAULT_ACCOUNT_BALANCE=10_000.0,
        DEFAULT_MAX_RISK_PCT=2.0,
        DEFAULT_MAX_CONCURRENT_TRADES=5,
        DEFAULT_CORRELATION_LIMIT=0.7,
        DEFAULT_DRAWDOWN_LIMIT=20.0,
        DEFAULT_VOLATILITY_THRESHOLD=0.05,
        DCA_SPACING_PCT=2.0,
        CORRELATION_LOOKBACK=90,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="test",
    )


@pytest.fixture
def clean_settings(monkeypatch):
    """Fresh global settings read from a controlled environment."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("DEFAULT_ACCOUNT_BALANCE", "10000")
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def bot_settings():
    """Spot bot, 25% initial order, 2% DCA spacing, 5% default stop."""
    return BotSettings(
        is_active=True,
        risk_percentage=2.0,
        initial_order_percentage=25.0,
        dca_levels=3,
        dca_spacing_percentage=2.0,
        stop_loss_percentage=5.0,
        take_profit_percentage=3.0,
        strategy_name="basic_dca",
    )


@pytest.fixture
def buy_signal():
    """BTC long with stop 5% below entry."""
    return Signal(
        id="sig-1",
        symbol="BTC/USDT",
        signal_type=SignalType.BUY,
        entry_price=50_000,
        stop_loss_price=47_500,
        take_profit_price=55_000,
        confidence=80,
        strategy_name="ai_ultra",
    )


@pytest.fixture
def sell_signal():
    """ETH short with stop 5% above entry."""
    return Signal(
        id="sig-2",
        symbol="ETH/USDT",
        signal_type=SignalType.SELL,
        entry_price=100,
        stop_loss_price=105,
        take_profit_price=90,
        confidence=75,
    )


@pytest.fixture
def risk_parameters():
    return RiskParameters(
        account_balance=10_000,
        max_risk_percentage=2.0,
        max_concurrent_trades=5,
        correlation_limit=0.7,
        drawdown_limit=20.0,
        volatility_threshold=0.05,
    )


@pytest.fixture
def calm_market():
    return MarketData(volatility=0.03, volume_24h=5_000_000)


@pytest.fixture
def active_trades():
    return [
        ActiveTrade(symbol="BTC/USDT", position_size=2000, unrealized_pnl=-500),
        ActiveTrade(symbol="ETH/USDT", position_size=600, unrealized_pnl=200),
        ActiveTrade(symbol="BTC-USDT-SWAP", position_size=400, unrealized_pnl=0),
    ]


@pytest.fixture
def sample_returns():
    """Return table: ETH moves with BTC, SOL moves against both."""
    return pd.DataFrame({
        "BTC/USDT": [0.01, 0.02, -0.01, 0.03, -0.02, 0.01],
        "ETH/USDT": [0.02, 0.04, -0.02, 0.06, -0.04, 0.02],
        "SOL/USDT": [-0.01, -0.02, 0.01, -0.03, 0.02, -0.01],
    })


# Markers for test categorization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "unit: Unit tests")
