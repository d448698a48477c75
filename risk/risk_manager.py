"""Risk management session."""

from typing import Any, Optional, Sequence

from loguru import logger

from config.logging import setup_logging
from config.settings import settings
from models.schemas import (
    ActiveTrade,
    BotSettings,
    MarketData,
    PortfolioRisk,
    RiskParameters,
    Signal,
    TradeCalculation,
    TradeRiskAssessment,
)
from risk.correlation import CorrelationRiskFn, ReturnsInput, constant_correlation_risk
from risk.portfolio_analyzer import analyze_portfolio_risk
from risk.risk_assessment import assess_trade_risk
from risk.trade_calculator import compute_trade_sizing


def default_risk_parameters() -> RiskParameters:
    """Risk parameters seeded from application settings."""
    return RiskParameters(
        account_balance=settings.DEFAULT_ACCOUNT_BALANCE,
        max_risk_percentage=settings.DEFAULT_MAX_RISK_PCT,
        max_concurrent_trades=settings.DEFAULT_MAX_CONCURRENT_TRADES,
        correlation_limit=settings.DEFAULT_CORRELATION_LIMIT,
        drawdown_limit=settings.DEFAULT_DRAWDOWN_LIMIT,
        volatility_threshold=settings.DEFAULT_VOLATILITY_THRESHOLD,
    )


class RiskManager:
    """
    Holds the risk parameters for one session and runs the engine against them.

    Built by the application's composition root and passed to whoever needs
    it. Parameters change only through update_risk_parameters.
    """

    def __init__(
        self,
        risk_parameters: Optional[RiskParameters] = None,
        correlation_fn: Optional[CorrelationRiskFn] = None,
    ):
        self._risk_parameters = risk_parameters or default_risk_parameters()
        self.correlation_fn = correlation_fn or constant_correlation_risk

    @property
    def risk_parameters(self) -> RiskParameters:
        return self._risk_parameters

    def update_risk_parameters(self, **changes: Any) -> RiskParameters:
        """
        Merge partial changes into the current parameters.

        The merged result is validated as a whole; on failure the current
        parameters are kept and the validation error propagates.
        """
        merged = {**self._risk_parameters.model_dump(), **changes}
        updated = RiskParameters.model_validate(merged)
        self._risk_parameters = updated
        logger.info(f"Risk parameters updated: {sorted(changes)}")
        return updated

    def size_trade(
        self,
        signal: Optional[Signal],
        bot_settings: Optional[BotSettings],
        available_balance: Optional[float] = None,
        enable_dca: bool = True,
    ) -> Optional[TradeCalculation]:
        """Size a trade with the bot's risk %, leverage and DCA level count."""
        if bot_settings is None:
            return None
        balance = (
            available_balance
            if available_balance is not None
            else self._risk_parameters.account_balance
        )
        return compute_trade_sizing(
            signal,
            bot_settings,
            available_balance=balance,
            risk_percentage=bot_settings.risk_percentage,
            leverage=bot_settings.leverage,
            enable_dca=enable_dca,
            dca_levels_count=bot_settings.dca_levels,
        )

    def assess_trade(
        self,
        symbol: str,
        entry_price: float,
        stop_loss_price: float,
        take_profit_price: float,
        market_data: Optional[MarketData] = None,
    ) -> TradeRiskAssessment:
        return assess_trade_risk(
            symbol,
            entry_price,
            stop_loss_price,
            take_profit_price,
            market_data,
            self._risk_parameters,
            correlation_fn=self.correlation_fn,
        )

    def analyze_portfolio(
        self,
        active_trades: Sequence[ActiveTrade],
        returns: Optional[ReturnsInput] = None,
    ) -> PortfolioRisk:
        return analyze_portfolio_risk(
            active_trades,
            self._risk_parameters,
            returns=returns,
            correlation_period=settings.CORRELATION_LOOKBACK,
        )


def create_risk_manager(
    correlation_fn: Optional[CorrelationRiskFn] = None,
    configure_logging: bool = True,
) -> RiskManager:
    """
    Composition root for the engine.

    Configures logging from settings (unless the host already did) and
    returns a RiskManager seeded with the default risk parameters.
    """
    if configure_logging:
        setup_logging()
    manager = RiskManager(default_risk_parameters(), correlation_fn=correlation_fn)
    logger.info(
        f"Risk manager ready: balance={manager.risk_parameters.account_balance:.2f} "
        f"max_risk={manager.risk_parameters.max_risk_percentage:g}%"
    )
    return manager
