"""Tests for Portfolio Risk Analysis."""

import pytest

from models.schemas import ActiveTrade, RiskLevel
from risk.portfolio_analyzer import analyze_portfolio_risk, base_asset, classify_risk_level


class TestAnalyzePortfolioRisk:

    def test_flat_portfolio(self, risk_parameters):
        result = analyze_portfolio_risk([], risk_parameters)

        assert result.total_exposure == 0
        assert result.diversification_score == 100
        assert result.current_drawdown == 0
        assert result.risk_utilization == 0
        assert result.correlation_matrix == {}
        assert result.overall_risk_level == RiskLevel.LOW

    def test_aggregates(self, active_trades, risk_parameters):
        result = analyze_portfolio_risk(active_trades, risk_parameters)

        # 3000 / 10000
        assert result.total_exposure == pytest.approx(30.0)
        # BTC twice, ETH once -> 2 unique / 3 trades
        assert result.diversification_score == pytest.approx(200 / 3)
        # -500 + 200 = -300
        assert result.current_drawdown == pytest.approx(3.0)
        assert result.risk_utilization == pytest.approx(60.0)
        assert result.overall_risk_level == RiskLevel.LOW

    def test_gains_do_not_create_negative_drawdown(self, risk_parameters):
        trades = [ActiveTrade(symbol="BTC/USDT", position_size=1000, unrealized_pnl=750)]
        result = analyze_portfolio_risk(trades, risk_parameters)
        assert result.current_drawdown == 0

    def test_high_exposure_is_critical(self, risk_parameters):
        trades = [ActiveTrade(symbol="BTC/USDT", position_size=8_500)]
        result = analyze_portfolio_risk(trades, risk_parameters)
        assert result.overall_risk_level == RiskLevel.CRITICAL

    def test_drawdown_tiers(self, risk_parameters):
        def level_for(pnl):
            trades = [ActiveTrade(symbol="BTC/USDT", position_size=100, unrealized_pnl=pnl)]
            return analyze_portfolio_risk(trades, risk_parameters).overall_risk_level

        # limit 20% of 10k
        assert level_for(-700) == RiskLevel.LOW        # 7%
        assert level_for(-900) == RiskLevel.MEDIUM     # 9% > 8%
        assert level_for(-1500) == RiskLevel.HIGH      # 15% > 14%
        assert level_for(-2500) == RiskLevel.CRITICAL  # 25% > 20%

    def test_correlation_matrix_from_returns(self, risk_parameters, sample_returns):
        trades = [
            ActiveTrade(symbol="BTC/USDT", position_size=100),
            ActiveTrade(symbol="ETH/USDT", position_size=100),
            ActiveTrade(symbol="SOL/USDT", position_size=100),
            ActiveTrade(symbol="DOGE/USDT", position_size=100),
        ]
        result = analyze_portfolio_risk(trades, risk_parameters, returns=sample_returns, correlation_period=5)

        assert set(result.correlation_matrix) == {"BTC/USDT", "ETH/USDT", "SOL/USDT"}
        assert result.correlation_matrix["BTC/USDT"] == pytest.approx(0.0, abs=1e-9)
        assert result.correlation_matrix["SOL/USDT"] == pytest.approx(-1.0)

    def test_correlation_matrix_is_deterministic(self, risk_parameters, sample_returns, active_trades):
        first = analyze_portfolio_risk(active_trades, risk_parameters, returns=sample_returns, correlation_period=5)
        second = analyze_portfolio_risk(active_trades, risk_parameters, returns=sample_returns, correlation_period=5)
        assert first.correlation_matrix == second.correlation_matrix


class TestClassifyRiskLevel:

    def test_drawdown_equal_to_limit_is_not_critical(self):
        # Strict comparison: equal to the limit only clears the HIGH tier
        assert classify_risk_level(20.0, 0, 20.0) == RiskLevel.HIGH
        assert classify_risk_level(20.01, 0, 20.0) == RiskLevel.CRITICAL

    def test_exposure_boundaries(self):
        assert classify_risk_level(0, 80, 20) == RiskLevel.HIGH
        assert classify_risk_level(0, 80.1, 20) == RiskLevel.CRITICAL
        assert classify_risk_level(0, 60, 20) == RiskLevel.MEDIUM
        assert classify_risk_level(0, 60.1, 20) == RiskLevel.HIGH
        assert classify_risk_level(0, 40, 20) == RiskLevel.LOW
        assert classify_risk_level(0, 40.1, 20) == RiskLevel.MEDIUM

    def test_first_matching_tier_wins(self):
        # MEDIUM-level drawdown but CRITICAL exposure
        assert classify_risk_level(9, 85, 20) == RiskLevel.CRITICAL


class TestBaseAsset:

    @pytest.mark.parametrize("symbol,expected", [
        ("BTC/USDT", "BTC"),
        ("ETH-USDT-SWAP", "ETH"),
        ("sol_usdc", "SOL"),
        ("BTCUSDT", "BTC"),
        ("ETHFDUSD", "ETH"),
        ("USDT", "USDT"),
    ])
    def test_base_asset(self, symbol, expected):
        assert base_asset(symbol) == expected
