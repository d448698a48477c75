"""Pydantic models for the sizing, risk and execution layers.

Inputs coming from outside the engine (signals, bot settings, risk
parameters, active trades) are validated here so the calculation functions
can assume sane values. Outputs (calculations, assessments, portfolio
snapshots) are frozen: they are recomputed, never mutated.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from config.settings import settings
from utils.exceptions import InvalidSettingsError


class SignalType(str, Enum):
    """Signal direction as emitted by signal sources."""

    BUY = "BUY"
    SELL = "SELL"
    STRONG_BUY = "STRONG_BUY"
    STRONG_SELL = "STRONG_SELL"


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class TradeDirection(str, Enum):
    LONG = "long"
    SHORT = "short"


class MarketType(str, Enum):
    SPOT = "spot"
    FUTURES = "futures"


class Exchange(str, Enum):
    BINANCE = "binance"
    OKX = "okx"
    BYBIT = "bybit"


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"


class ProfitTakingStrategy(str, Enum):
    FIXED = "fixed"
    TRAILING = "trailing"
    PARTIAL = "partial"


class Recommendation(str, Enum):
    """Per-trade verdict."""

    APPROVE = "APPROVE"
    REDUCE_SIZE = "REDUCE_SIZE"
    REJECT = "REJECT"


class RiskLevel(str, Enum):
    """Portfolio-wide risk tier."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class Signal(BaseModel):
    """Trading signal supplied by a signal source."""

    id: Optional[str] = None
    symbol: str = Field(..., min_length=1)
    signal_type: SignalType
    entry_price: float = Field(..., gt=0)
    stop_loss_price: Optional[float] = Field(None, gt=0)
    take_profit_price: Optional[float] = Field(None, gt=0)
    confidence: float = Field(default=0.0, ge=0, le=100)
    strategy_name: Optional[str] = None

    @property
    def is_buy(self) -> bool:
        return self.signal_type in (SignalType.BUY, SignalType.STRONG_BUY)

    @property
    def side(self) -> OrderSide:
        return OrderSide.BUY if self.is_buy else OrderSide.SELL


class BotSettings(BaseModel):
    """Bot / strategy configuration. Read-only input to the engine."""

    is_active: bool = False
    market_type: MarketType = MarketType.SPOT
    default_platform: Exchange = Exchange.BINANCE
    testnet: bool = False

    total_capital: float = Field(default=1000.0, gt=0)
    risk_percentage: float = 2.0
    initial_order_percentage: float = 25.0
    max_active_trades: int = Field(default=5, ge=1)

    dca_levels: int = Field(default=5, ge=0)
    dca_spacing_percentage: float = Field(default_factory=lambda: settings.DCA_SPACING_PCT)
    dca_price_offsets: Optional[list[float]] = None

    stop_loss_percentage: float = 5.0
    take_profit_percentage: float = 3.0
    leverage: float = 1.0

    profit_taking_strategy: ProfitTakingStrategy = ProfitTakingStrategy.FIXED
    trailing_stop_distance: float = Field(default=2.0, gt=0)
    partial_tp_percentage_1: float = Field(default=25.0, ge=0, le=100)
    partial_tp_percentage_2: float = Field(default=25.0, ge=0, le=100)
    partial_tp_percentage_3: float = Field(default=25.0, ge=0, le=100)

    allow_long_trades: bool = True
    allow_short_trades: bool = True
    allowed_symbols: list[str] = Field(default_factory=list)
    blacklist_symbols: list[str] = Field(default_factory=list)
    min_signal_confidence: float = Field(default=70.0, ge=0, le=100)
    cooldown_minutes: int = Field(default=15, ge=0)

    strategy_name: Optional[str] = None

    @field_validator("risk_percentage", "initial_order_percentage")
    @classmethod
    def validate_percentage(cls, v: float, info) -> float:
        if not 0 < v <= 100:
            raise InvalidSettingsError(f"{info.field_name} must be in (0, 100]. Got: {v}")
        return v

    @field_validator("stop_loss_percentage", "take_profit_percentage", "dca_spacing_percentage")
    @classmethod
    def validate_positive_pct(cls, v: float, info) -> float:
        if v <= 0:
            raise InvalidSettingsError(f"{info.field_name} must be > 0. Got: {v}")
        return v

    @field_validator("leverage")
    @classmethod
    def validate_leverage(cls, v: float) -> float:
        if v < 1:
            raise InvalidSettingsError(f"leverage must be >= 1. Got: {v}")
        return v

    @field_validator("dca_price_offsets")
    @classmethod
    def validate_offsets(cls, v: Optional[list[float]]) -> Optional[list[float]]:
        """Offsets must be positive and strictly increasing (each level further from entry)."""
        if v is None:
            return v
        previous = 0.0
        for offset in v:
            if offset <= previous:
                raise InvalidSettingsError(
                    f"dca_price_offsets must be positive and strictly increasing. Got: {v}"
                )
            previous = offset
        return v


class RiskParameters(BaseModel):
    """Account-level risk posture for a risk-management session."""

    model_config = ConfigDict(validate_assignment=True)

    account_balance: float = Field(..., gt=0)
    max_risk_percentage: float = Field(default=2.0, gt=0, le=100)
    max_concurrent_trades: int = Field(default=5, ge=1)
    correlation_limit: float = Field(default=0.7, ge=0, le=1)
    drawdown_limit: float = Field(default=20.0, gt=0)
    volatility_threshold: float = Field(default=0.05, gt=0)


class MarketData(BaseModel):
    """Market snapshot for a symbol. Missing values fall back to neutral defaults."""

    volatility: float = Field(default=0.03, ge=0)
    volume_24h: float = Field(default=1_000_000.0, ge=0)


class ActiveTrade(BaseModel):
    """Open position as reported by the active-trades store."""

    symbol: str = Field(..., min_length=1)
    position_size: float = Field(..., ge=0)
    unrealized_pnl: float = 0.0


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class DCALevel(BaseModel):
    """One rung of a DCA ladder. Cumulative fields include the initial order."""

    model_config = ConfigDict(frozen=True)

    level: int = Field(..., ge=1)
    price_drop_percent: float
    entry_price: float = Field(..., gt=0)
    amount: float = Field(..., ge=0)
    cumulative_amount: float
    average_entry: float


class TradeCalculation(BaseModel):
    """Sizing snapshot derived from a signal, bot settings and balance."""

    model_config = ConfigDict(frozen=True)

    position_size: float
    margin_used: float
    max_loss_amount: float
    expected_loss: float = Field(..., description="Expected loss in % if stopped out")
    initial_amount: float
    dca_levels: tuple[DCALevel, ...] = ()
    entry_price: float
    side: OrderSide
    leverage: float = 1.0

    @property
    def total_dca_amount(self) -> float:
        return sum(level.amount for level in self.dca_levels)


class TradeRiskAssessment(BaseModel):
    """Per-trade risk verdict."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    risk_score: float
    max_position_size: float
    suggested_stop_loss: float
    risk_reward_ratio: float
    correlation_risk: float
    volatility_risk: float
    liquidity_risk: float
    recommendation: Recommendation
    reasoning: tuple[str, ...] = ()


class PortfolioRisk(BaseModel):
    """Read-time view over all open trades."""

    model_config = ConfigDict(frozen=True)

    total_exposure: float
    diversification_score: float
    correlation_matrix: dict[str, float] = Field(default_factory=dict)
    current_drawdown: float
    risk_utilization: float
    overall_risk_level: RiskLevel


# ---------------------------------------------------------------------------
# Execution payloads
# ---------------------------------------------------------------------------


class CapitalAllocation(BaseModel):
    total_usd: float = Field(..., ge=0)
    initial_order_pct: float = Field(..., gt=0, le=100)
    dca_budget_pct: float = Field(..., ge=0, lt=100)

    @model_validator(mode="after")
    def validate_split(self) -> "CapitalAllocation":
        """Initial and DCA budget must add up to the whole allocation."""
        if abs(self.initial_order_pct + self.dca_budget_pct - 100) > 1e-9:
            raise ValueError(
                f"initial_order_pct ({self.initial_order_pct}) + dca_budget_pct "
                f"({self.dca_budget_pct}) must equal 100"
            )
        return self


class DCAPlan(BaseModel):
    enabled: bool = False
    levels: list[DCALevel] = Field(default_factory=list)


class TrailingConfig(BaseModel):
    enabled: bool = True
    activation_price: float = Field(..., gt=0)
    trailing_distance: float = Field(..., gt=0, description="Fraction, 0.02 = 2%")


class TakeProfitLevel(BaseModel):
    price: float = Field(..., gt=0)
    percentage: float = Field(..., gt=0, le=100)


class PartialTakeProfit(BaseModel):
    enabled: bool = True
    levels: list[TakeProfitLevel] = Field(default_factory=list)


class RiskParams(BaseModel):
    stop_loss_price: float = Field(..., gt=0)
    take_profit_price: float = Field(..., gt=0)
    trailing: Optional[TrailingConfig] = None
    partial_tp: Optional[PartialTakeProfit] = None


class TradeMetadata(BaseModel):
    strategy_id: Optional[str] = None
    signal_id: Optional[str] = None
    is_testnet: bool = False
    client_order_id: str = Field(..., min_length=1, description="Idempotency key")
    notes: Optional[str] = None


class ExecutionPayload(BaseModel):
    """Exchange-agnostic order description handed to exchange adapters."""

    user_id: Optional[str] = None
    exchange: Exchange
    market_type: MarketType
    symbol: str
    side: OrderSide
    leverage: float = Field(default=1.0, ge=1)
    capital: CapitalAllocation
    dca: DCAPlan
    risk: RiskParams
    meta: TradeMetadata


class LegacyDCALevel(BaseModel):
    level: int = Field(..., ge=1)
    target_price: float = Field(..., gt=0)
    amount: float = Field(..., ge=0)


class LegacyPayload(BaseModel):
    """Flat payload accepted by older execute-trade call sites.

    ``entry_price == 0`` means "unresolved, fill from live market price".
    """

    platform: Exchange
    symbol: str
    market_type: MarketType
    order_type: OrderType
    trade_direction: TradeDirection
    entry_price: float = Field(..., ge=0)
    stop_loss_price: Optional[float] = None
    take_profit_price: Optional[float] = None
    initial_amount: float = Field(..., ge=0)
    dca_levels: list[LegacyDCALevel] = Field(default_factory=list)
    leverage: float = Field(default=1.0, ge=1)
    strategy: Optional[str] = None
    auto_execute: bool = True
    signal_id: Optional[str] = None
