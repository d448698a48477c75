"""Risk-based position sizing shared by the trade calculator and risk assessment."""

import math
from typing import Optional, Tuple

from loguru import logger

from models.schemas import OrderSide
from utils.exceptions import InvalidStopLossError


def calculate_stop_distance_pct(
    entry_price: float,
    stop_loss_price: float,
    side: Optional[OrderSide] = None,
) -> float:
    """
    Percent of the position lost if the stop is hit.

    Args:
        entry_price: Entry price
        stop_loss_price: Stop loss price
        side: When given, the stop must sit on the losing side of entry
            (below for a long, above for a short). When omitted the absolute
            distance is used.

    Returns:
        Distance in percent (5.0 == 5%)

    Raises:
        InvalidStopLossError: Distance is zero, negative for the side, or
            entry is not positive
    """
    if entry_price <= 0:
        raise InvalidStopLossError(f"Entry price must be > 0. Got: {entry_price}")

    if side is None:
        distance = abs(entry_price - stop_loss_price)
    elif side == OrderSide.BUY:
        distance = entry_price - stop_loss_price
    else:
        distance = stop_loss_price - entry_price

    distance_pct = distance / entry_price * 100

    if distance_pct <= 0:
        raise InvalidStopLossError(
            f"Stop loss {stop_loss_price} gives no loss distance from entry {entry_price}"
            + (f" for a {side.value} position" if side is not None else "")
        )

    return distance_pct


def calculate_risk_position_size(
    balance: float,
    risk_pct: float,
    loss_pct: float,
) -> Tuple[float, float]:
    """
    Size a position backward from the amount we are willing to lose.

    Args:
        balance: Capital the risk percentage applies to
        risk_pct: Risk per trade in percent (2.0 == 2%)
        loss_pct: Percent of the position lost at the stop

    Returns:
        (max_loss_amount, position_size)

    Raises:
        InvalidStopLossError: If loss_pct is zero or negative
    """
    if loss_pct <= 0 or not math.isfinite(loss_pct):
        raise InvalidStopLossError(f"Expected loss must be > 0%. Got: {loss_pct}")

    max_loss_amount = balance * risk_pct / 100
    position_size = max_loss_amount / (loss_pct / 100)

    if not math.isfinite(position_size):
        raise InvalidStopLossError(
            f"Position size is not finite (loss={loss_pct}%, risk={max_loss_amount})"
        )

    logger.debug(
        f"Risk sizing: balance={balance:.2f} risk={risk_pct}% "
        f"loss={loss_pct:.4f}% -> size={position_size:.2f}"
    )
    return max_loss_amount, position_size
