"""Execution Payload Builder.

Builds the exchange-agnostic ExecutionPayload from a TradeCalculation and
converts it to and from the flat legacy format older execute-trade call
sites still send.
"""

import uuid
from typing import Optional

from loguru import logger

from models.schemas import (
    BotSettings,
    CapitalAllocation,
    DCAPlan,
    Exchange,
    ExecutionPayload,
    LegacyDCALevel,
    LegacyPayload,
    MarketType,
    OrderSide,
    OrderType,
    PartialTakeProfit,
    ProfitTakingStrategy,
    RiskParams,
    Signal,
    TakeProfitLevel,
    TradeCalculation,
    TradeDirection,
    TradeMetadata,
    TrailingConfig,
)
from risk.constants import PARTIAL_TP_PRICE_RATIOS, TRAILING_ACTIVATION_RATIO
from risk.trade_calculator import (
    accumulate_dca_levels,
    calculate_initial_amount,
    resolve_exit_prices,
)
from utils.exceptions import PayloadError, UnresolvedEntryPriceError

# ExecutionPayload fields with no slot in LegacyPayload. to_legacy_format
# drops them; from_legacy_format fills them with defaults.
LEGACY_UNMAPPED_FIELDS = (
    "user_id",
    "capital.total_usd",
    "capital.dca_budget_pct",
    "dca.levels[].price_drop_percent",
    "dca.levels[].cumulative_amount",
    "dca.levels[].average_entry",
    "risk.trailing",
    "risk.partial_tp",
    "meta.client_order_id",
    "meta.notes",
    "meta.is_testnet",
)


def client_order_id_for(signal: Signal, market_type: MarketType, side: OrderSide) -> str:
    """Idempotency key. Stable per signal/market/side; random for signals without an id."""
    if signal.id:
        return f"signal_{signal.id}_{market_type.value}_{side.value}"
    return f"manual_{uuid.uuid4().hex}"


def build_trailing_config(
    settings: BotSettings,
    take_profit_price: float,
) -> Optional[TrailingConfig]:
    if settings.profit_taking_strategy != ProfitTakingStrategy.TRAILING:
        return None
    return TrailingConfig(
        enabled=True,
        activation_price=take_profit_price * TRAILING_ACTIVATION_RATIO,
        trailing_distance=settings.trailing_stop_distance / 100,
    )


def build_partial_take_profit(
    settings: BotSettings,
    take_profit_price: float,
) -> Optional[PartialTakeProfit]:
    """Three exits at 50/75/100% of the TP price; zero-percentage exits are dropped."""
    if settings.profit_taking_strategy != ProfitTakingStrategy.PARTIAL:
        return None

    percentages = (
        settings.partial_tp_percentage_1,
        settings.partial_tp_percentage_2,
        settings.partial_tp_percentage_3,
    )
    levels = [
        TakeProfitLevel(price=take_profit_price * ratio, percentage=pct)
        for ratio, pct in zip(PARTIAL_TP_PRICE_RATIOS, percentages)
        if pct > 0
    ]
    return PartialTakeProfit(enabled=True, levels=levels)


def build_execution_payload(
    trade_calculation: TradeCalculation,
    signal: Signal,
    settings: BotSettings,
    user_id: Optional[str] = None,
) -> ExecutionPayload:
    """
    Normalize a sizing result into an ExecutionPayload.

    Args:
        trade_calculation: Output of compute_trade_sizing
        signal: Signal the calculation was made for
        settings: Bot settings (exchange, market type, leverage, exits, testnet)
        user_id: Owner of the order, if known

    Returns:
        ExecutionPayload ready for an exchange adapter
    """
    side = signal.side
    market_type = settings.market_type
    stop_loss_price, take_profit_price = resolve_exit_prices(signal, settings)

    leverage = settings.leverage if market_type == MarketType.FUTURES else 1.0

    initial_order_pct = settings.initial_order_percentage
    levels = list(trade_calculation.dca_levels)

    payload = ExecutionPayload(
        user_id=user_id,
        exchange=settings.default_platform,
        market_type=market_type,
        symbol=signal.symbol,
        side=side,
        leverage=leverage,
        capital=CapitalAllocation(
            total_usd=trade_calculation.position_size,
            initial_order_pct=initial_order_pct,
            dca_budget_pct=100 - initial_order_pct,
        ),
        dca=DCAPlan(enabled=len(levels) > 0, levels=levels),
        risk=RiskParams(
            stop_loss_price=stop_loss_price,
            take_profit_price=take_profit_price,
            trailing=build_trailing_config(settings, take_profit_price),
            partial_tp=build_partial_take_profit(settings, take_profit_price),
        ),
        meta=TradeMetadata(
            strategy_id=signal.strategy_name or settings.strategy_name,
            signal_id=signal.id,
            is_testnet=settings.testnet,
            client_order_id=client_order_id_for(signal, market_type, side),
            notes=f"Auto-executed from signal: {signal.strategy_name}" if signal.strategy_name else None,
        ),
    )

    logger.debug(
        f"Built payload {payload.meta.client_order_id}: {payload.exchange.value} "
        f"{payload.symbol} {side.value} total={payload.capital.total_usd:.2f}"
    )
    return payload


def to_legacy_format(payload: ExecutionPayload) -> LegacyPayload:
    """
    Flatten an ExecutionPayload for older execute-trade call sites.

    ``entry_price`` is the first DCA level price, or 0 when there is no
    ladder. 0 means "unresolved": the caller must fill it from the live
    market price, never send it as a zero-price order. Fields listed in
    LEGACY_UNMAPPED_FIELDS are dropped.
    """
    levels = payload.dca.levels
    entry_price = levels[0].entry_price if levels else 0.0

    initial_amount = calculate_initial_amount(
        payload.capital.total_usd, payload.capital.initial_order_pct
    )

    return LegacyPayload(
        platform=payload.exchange,
        symbol=payload.symbol,
        market_type=payload.market_type,
        # Testnet orders go in as market orders for faster fills
        order_type=OrderType.MARKET if payload.meta.is_testnet else OrderType.LIMIT,
        trade_direction=TradeDirection.LONG if payload.side == OrderSide.BUY else TradeDirection.SHORT,
        entry_price=entry_price,
        stop_loss_price=payload.risk.stop_loss_price,
        take_profit_price=payload.risk.take_profit_price,
        initial_amount=initial_amount,
        dca_levels=[
            LegacyDCALevel(level=lvl.level, target_price=lvl.entry_price, amount=lvl.amount)
            for lvl in levels
        ],
        leverage=payload.leverage,
        strategy=payload.meta.strategy_id,
        auto_execute=True,
        signal_id=payload.meta.signal_id,
    )


def from_legacy_format(
    legacy: LegacyPayload,
    exchange: Optional[Exchange] = None,
    entry_price: Optional[float] = None,
    initial_order_pct: Optional[float] = None,
    is_testnet: Optional[bool] = None,
) -> ExecutionPayload:
    """
    Rebuild an ExecutionPayload from a legacy payload.

    Args:
        legacy: Flat legacy payload
        exchange: Target exchange. Defaults to the legacy platform
        entry_price: Resolved entry price. Required when the legacy payload
            carries 0 (unresolved)
        initial_order_pct: Initial order share of total capital. Derived
            from the amounts when omitted
        is_testnet: Testnet flag. Derived from the order type when omitted

    Raises:
        UnresolvedEntryPriceError: No usable entry price
        PayloadError: Missing stop/target or no capital at all
    """
    entry = entry_price if entry_price is not None else legacy.entry_price
    if entry <= 0:
        raise UnresolvedEntryPriceError(
            f"Legacy payload for {legacy.symbol} has no entry price; pass the live market price"
        )

    if legacy.stop_loss_price is None or legacy.take_profit_price is None:
        raise PayloadError(f"Legacy payload for {legacy.symbol} is missing stop-loss or take-profit")

    dca_total = sum(level.amount for level in legacy.dca_levels)
    if initial_order_pct is None:
        total_usd = legacy.initial_amount + dca_total
        if total_usd <= 0:
            raise PayloadError(f"Legacy payload for {legacy.symbol} allocates no capital")
        initial_order_pct = legacy.initial_amount / total_usd * 100
    else:
        total_usd = legacy.initial_amount * 100 / initial_order_pct

    ordered = sorted(legacy.dca_levels, key=lambda lvl: lvl.level)
    levels = accumulate_dca_levels(
        entry,
        legacy.initial_amount,
        [
            (abs(entry - lvl.target_price) / entry * 100, lvl.target_price, lvl.amount)
            for lvl in ordered
        ],
    )

    side = OrderSide.BUY if legacy.trade_direction == TradeDirection.LONG else OrderSide.SELL
    testnet = is_testnet if is_testnet is not None else legacy.order_type == OrderType.MARKET

    if legacy.signal_id:
        client_order_id = f"signal_{legacy.signal_id}_{legacy.market_type.value}_{side.value}"
    else:
        client_order_id = f"legacy_{uuid.uuid4().hex}"

    return ExecutionPayload(
        exchange=exchange or legacy.platform,
        market_type=legacy.market_type,
        symbol=legacy.symbol,
        side=side,
        leverage=legacy.leverage,
        capital=CapitalAllocation(
            total_usd=total_usd,
            initial_order_pct=initial_order_pct,
            dca_budget_pct=100 - initial_order_pct,
        ),
        dca=DCAPlan(enabled=len(levels) > 0, levels=levels),
        risk=RiskParams(
            stop_loss_price=legacy.stop_loss_price,
            take_profit_price=legacy.take_profit_price,
        ),
        meta=TradeMetadata(
            strategy_id=legacy.strategy,
            signal_id=legacy.signal_id,
            is_testnet=testnet,
            client_order_id=client_order_id,
        ),
    )
