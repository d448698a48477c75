"""Trade Sizing Calculator.

Turns a signal plus bot settings plus available balance into a
``TradeCalculation``: risk-based position size, margin, initial order and
an optional DCA ladder with running average entry.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from models.schemas import (
    BotSettings,
    DCALevel,
    OrderSide,
    Signal,
    TradeCalculation,
)
from risk.position_sizer import calculate_risk_position_size, calculate_stop_distance_pct
from utils.exceptions import InvalidDCAConfigError, InvalidLeverageError


def calculate_expected_loss_pct(signal: Signal, bot_settings: BotSettings) -> float:
    """Loss in % at the signal's stop, or the bot's default stop-loss %."""
    if signal.stop_loss_price is not None:
        return calculate_stop_distance_pct(
            signal.entry_price, signal.stop_loss_price, side=signal.side
        )
    return bot_settings.stop_loss_percentage


def calculate_initial_amount(position_size: float, initial_order_pct: float) -> float:
    """Capital committed by the first order."""
    return position_size * initial_order_pct / 100


def dca_offsets(
    levels_count: int,
    spacing_pct: float,
    price_offsets: Optional[Sequence[float]] = None,
) -> List[float]:
    """
    Price offsets (in % from entry) for each DCA level.

    Linear ``i * spacing_pct`` unless explicit offsets are supplied.

    Raises:
        InvalidDCAConfigError: If fewer explicit offsets than levels
    """
    if price_offsets is not None:
        if len(price_offsets) < levels_count:
            raise InvalidDCAConfigError(
                f"{levels_count} DCA levels requested but only "
                f"{len(price_offsets)} price offsets configured"
            )
        return list(price_offsets[:levels_count])
    return [i * spacing_pct for i in range(1, levels_count + 1)]


def dca_level_price(entry_price: float, offset_pct: float, side: OrderSide) -> float:
    """Longs average down below entry, shorts average up above it."""
    if side == OrderSide.BUY:
        return entry_price * (1 - offset_pct / 100)
    return entry_price * (1 + offset_pct / 100)


def accumulate_dca_levels(
    entry_price: float,
    initial_amount: float,
    fills: Iterable[Tuple[float, float, float]],
) -> List[DCALevel]:
    """
    Build DCA levels with running cumulative investment and average entry.

    Investment and quantity carry over from level to level (seeded with the
    initial order), so each level's average entry covers the initial order
    and every fill up to it.

    Args:
        entry_price: Price of the initial order
        initial_amount: Capital of the initial order
        fills: (price_drop_percent, price, amount) per level, in ladder order

    Returns:
        List of DCALevel, level numbers starting at 1
    """
    cumulative_investment = initial_amount
    cumulative_quantity = initial_amount / entry_price

    levels: List[DCALevel] = []
    for index, (drop_pct, price, amount) in enumerate(fills, start=1):
        if price <= 0:
            raise InvalidDCAConfigError(
                f"DCA level {index} price {price} is not positive (offset {drop_pct}%)"
            )

        cumulative_investment += amount
        cumulative_quantity += amount / price

        if cumulative_quantity > 0:
            average_entry = cumulative_investment / cumulative_quantity
        else:
            average_entry = price

        levels.append(DCALevel(
            level=index,
            price_drop_percent=drop_pct,
            entry_price=price,
            amount=amount,
            cumulative_amount=cumulative_investment,
            average_entry=average_entry,
        ))

    return levels


def build_dca_ladder(
    entry_price: float,
    side: OrderSide,
    position_size: float,
    initial_amount: float,
    levels_count: int,
    spacing_pct: float,
    price_offsets: Optional[Sequence[float]] = None,
) -> List[DCALevel]:
    """Split the capital left after the initial order evenly across DCA levels."""
    if levels_count <= 0:
        return []

    remaining = position_size - initial_amount
    amount_per_level = remaining / levels_count

    fills = [
        (offset, dca_level_price(entry_price, offset, side), amount_per_level)
        for offset in dca_offsets(levels_count, spacing_pct, price_offsets)
    ]
    return accumulate_dca_levels(entry_price, initial_amount, fills)


def compute_trade_sizing(
    signal: Optional[Signal],
    bot_settings: Optional[BotSettings],
    available_balance: float,
    risk_percentage: float,
    leverage: float = 1.0,
    enable_dca: bool = True,
    dca_levels_count: int = 0,
) -> Optional[TradeCalculation]:
    """
    Calculate position size, margin and DCA ladder for a signal.

    Args:
        signal: Trading signal (entry, optional stop/target)
        bot_settings: Bot configuration (initial order %, DCA spacing,
            default stop-loss %)
        available_balance: Capital available for this trade
        risk_percentage: Risk per trade in percent of available balance
        leverage: Leverage multiplier (>= 1)
        enable_dca: Whether to build a DCA ladder
        dca_levels_count: Number of DCA levels

    Returns:
        TradeCalculation, or None when there is nothing to compute yet
        (missing signal/settings or no balance)

    Raises:
        InvalidStopLossError: Stop-loss yields no loss distance
        InvalidLeverageError: Leverage below 1
        InvalidDCAConfigError: Ladder cannot be built from the spacing
    """
    if signal is None or bot_settings is None or available_balance <= 0:
        logger.debug("Trade sizing skipped: missing signal, settings or balance")
        return None

    if leverage < 1:
        raise InvalidLeverageError(f"Leverage must be >= 1. Got: {leverage}")

    side = signal.side
    expected_loss = calculate_expected_loss_pct(signal, bot_settings)

    max_loss_amount, position_size = calculate_risk_position_size(
        available_balance, risk_percentage, expected_loss
    )

    # Capital availability is a hard ceiling
    if position_size > available_balance:
        logger.info(
            f"{signal.symbol}: risk size {position_size:.2f} capped to "
            f"available balance {available_balance:.2f}"
        )
        position_size = available_balance

    margin_used = position_size / leverage
    initial_amount = calculate_initial_amount(
        position_size, bot_settings.initial_order_percentage
    )

    dca_levels: List[DCALevel] = []
    if enable_dca and dca_levels_count > 0:
        dca_levels = build_dca_ladder(
            entry_price=signal.entry_price,
            side=side,
            position_size=position_size,
            initial_amount=initial_amount,
            levels_count=dca_levels_count,
            spacing_pct=bot_settings.dca_spacing_percentage,
            price_offsets=bot_settings.dca_price_offsets,
        )

    logger.debug(
        f"{signal.symbol} {side.value}: size={position_size:.2f} margin={margin_used:.2f} "
        f"initial={initial_amount:.2f} dca_levels={len(dca_levels)}"
    )

    return TradeCalculation(
        position_size=position_size,
        margin_used=margin_used,
        max_loss_amount=max_loss_amount,
        expected_loss=expected_loss,
        initial_amount=initial_amount,
        dca_levels=tuple(dca_levels),
        entry_price=signal.entry_price,
        side=side,
        leverage=leverage,
    )


def resolve_exit_prices(signal: Signal, bot_settings: BotSettings) -> Tuple[float, float]:
    """
    Stop-loss and take-profit prices for a signal.

    Prices carried by the signal win; missing ones are derived from the
    bot's default percentages on the correct side of entry.

    Returns:
        (stop_loss_price, take_profit_price)
    """
    entry = signal.entry_price
    sl_pct = bot_settings.stop_loss_percentage / 100
    tp_pct = bot_settings.take_profit_percentage / 100

    if signal.is_buy:
        default_sl = entry * (1 - sl_pct)
        default_tp = entry * (1 + tp_pct)
    else:
        default_sl = entry * (1 + sl_pct)
        default_tp = entry * (1 - tp_pct)

    stop_loss = signal.stop_loss_price if signal.stop_loss_price is not None else default_sl
    take_profit = signal.take_profit_price if signal.take_profit_price is not None else default_tp
    return stop_loss, take_profit
