"""Portfolio Risk Analysis."""

from typing import Dict, Optional, Sequence

from loguru import logger

from models.schemas import ActiveTrade, PortfolioRisk, RiskLevel, RiskParameters
from risk.constants import (
    DRAWDOWN_HIGH_RATIO,
    DRAWDOWN_MEDIUM_RATIO,
    EXPOSURE_CRITICAL,
    EXPOSURE_HIGH,
    EXPOSURE_MEDIUM,
    PAIR_SEPARATORS,
    QUOTE_ASSETS,
)
from risk.correlation import ReturnsInput, build_correlation_matrix


def base_asset(symbol: str) -> str:
    """
    Base asset of a trading pair.

    "BTC/USDT" -> "BTC", "ETH-USDT-SWAP" -> "ETH", "SOLUSDT" -> "SOL".
    """
    symbol = symbol.upper()
    for separator in PAIR_SEPARATORS:
        if separator in symbol:
            return symbol.split(separator, 1)[0]

    for quote in QUOTE_ASSETS:
        if symbol.endswith(quote) and len(symbol) > len(quote):
            return symbol[: -len(quote)]
    return symbol


def classify_risk_level(
    drawdown_pct: float,
    exposure_pct: float,
    drawdown_limit: float
) -> RiskLevel:
    """
    Tier the portfolio. Checked from CRITICAL down, first match wins.

    Comparisons are strict (``>``) at every tier.
    """
    if drawdown_pct > drawdown_limit or exposure_pct > EXPOSURE_CRITICAL:
        return RiskLevel.CRITICAL
    if drawdown_pct > drawdown_limit * DRAWDOWN_HIGH_RATIO or exposure_pct > EXPOSURE_HIGH:
        return RiskLevel.HIGH
    if drawdown_pct > drawdown_limit * DRAWDOWN_MEDIUM_RATIO or exposure_pct > EXPOSURE_MEDIUM:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def analyze_portfolio_risk(
    active_trades: Sequence[ActiveTrade],
    risk_parameters: RiskParameters,
    returns: Optional[ReturnsInput] = None,
    correlation_period: int = 90
) -> PortfolioRisk:
    """
    Aggregate risk across open trades.

    Args:
        active_trades: Currently open positions
        risk_parameters: Account risk posture
        returns: Optional per-symbol return series for the correlation matrix
        correlation_period: Lookback window for correlation

    Returns:
        PortfolioRisk snapshot
    """
    balance = risk_parameters.account_balance
    trade_count = len(active_trades)

    total_size = sum(t.position_size for t in active_trades)
    total_exposure = total_size / balance * 100

    if trade_count == 0:
        diversification_score = 100.0
    else:
        unique_assets = {base_asset(t.symbol) for t in active_trades}
        diversification_score = min(100.0, len(unique_assets) / trade_count * 100)

    # Only losses count; gains never push drawdown below zero
    total_pnl = sum(t.unrealized_pnl for t in active_trades)
    current_drawdown = abs(min(0.0, total_pnl) / balance * 100)

    risk_utilization = trade_count / risk_parameters.max_concurrent_trades * 100

    correlation_matrix: Dict[str, float] = {}
    if returns is not None and trade_count > 0:
        correlation_matrix = build_correlation_matrix(
            [t.symbol for t in active_trades],
            returns,
            period=correlation_period,
        )

    level = classify_risk_level(
        current_drawdown, total_exposure, risk_parameters.drawdown_limit
    )

    if level in (RiskLevel.HIGH, RiskLevel.CRITICAL):
        logger.warning(
            f"Portfolio risk {level.value}: exposure={total_exposure:.1f}% "
            f"drawdown={current_drawdown:.1f}% (limit {risk_parameters.drawdown_limit:.1f}%)"
        )

    return PortfolioRisk(
        total_exposure=total_exposure,
        diversification_score=diversification_score,
        correlation_matrix=correlation_matrix,
        current_drawdown=current_drawdown,
        risk_utilization=risk_utilization,
        overall_risk_level=level,
    )
