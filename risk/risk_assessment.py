"""Per-trade Risk Assessment.

Scores a proposed trade on risk/reward, volatility and liquidity, and turns
the score into APPROVE / REDUCE_SIZE / REJECT with one reasoning line per
dimension (risk/reward, volatility, liquidity, verdict, in that order).
"""

from typing import List, Optional, Tuple

from loguru import logger

from models.schemas import (
    MarketData,
    Recommendation,
    RiskParameters,
    TradeRiskAssessment,
)
from risk.constants import (
    LIQUIDITY_LOW_PENALTY,
    LIQUIDITY_LOW_VOLUME,
    LIQUIDITY_MEDIUM_PENALTY,
    LIQUIDITY_MEDIUM_VOLUME,
    LIQUIDITY_RISK_HIGH,
    LIQUIDITY_RISK_LOW,
    LIQUIDITY_RISK_MEDIUM,
    MSG_LIQ_GOOD,
    MSG_LIQ_LOW,
    MSG_LIQ_MEDIUM,
    MSG_RR_ACCEPTABLE,
    MSG_RR_GOOD,
    MSG_RR_POOR,
    MSG_VERDICT_APPROVE,
    MSG_VERDICT_REDUCE,
    MSG_VERDICT_REJECT,
    MSG_VOL_ELEVATED,
    MSG_VOL_HIGH,
    MSG_VOL_NORMAL,
    REDUCE_SIZE_SCORE,
    REJECT_SCORE,
    RR_ACCEPTABLE,
    RR_ACCEPTABLE_PENALTY,
    RR_GOOD,
    RR_POOR_PENALTY,
    SUGGESTED_STOP_VOLATILITY_MULTIPLIER,
    VOLATILITY_ELEVATED_PENALTY,
    VOLATILITY_HIGH_MULTIPLIER,
    VOLATILITY_HIGH_PENALTY,
    VOLATILITY_RISK_ELEVATED,
    VOLATILITY_RISK_HIGH,
    VOLATILITY_RISK_LOW,
)
from risk.correlation import CorrelationRiskFn, constant_correlation_risk
from risk.position_sizer import calculate_risk_position_size, calculate_stop_distance_pct


def score_risk_reward(rr: float) -> Tuple[float, str]:
    """Returns (penalty, reasoning)."""
    if rr >= RR_GOOD:
        return 0, MSG_RR_GOOD.format(rr=rr)
    if rr >= RR_ACCEPTABLE:
        return RR_ACCEPTABLE_PENALTY, MSG_RR_ACCEPTABLE.format(rr=rr)
    return RR_POOR_PENALTY, MSG_RR_POOR.format(rr=rr, minimum=RR_ACCEPTABLE)


def score_volatility(volatility: float, threshold: float) -> Tuple[float, float, str]:
    """Returns (penalty, volatility_risk, reasoning)."""
    high_limit = threshold * VOLATILITY_HIGH_MULTIPLIER
    if volatility > high_limit:
        return (
            VOLATILITY_HIGH_PENALTY,
            VOLATILITY_RISK_HIGH,
            MSG_VOL_HIGH.format(vol=volatility, limit=high_limit),
        )
    if volatility > threshold:
        return (
            VOLATILITY_ELEVATED_PENALTY,
            VOLATILITY_RISK_ELEVATED,
            MSG_VOL_ELEVATED.format(vol=volatility, limit=threshold),
        )
    return 0, VOLATILITY_RISK_LOW, MSG_VOL_NORMAL.format(vol=volatility)


def score_liquidity(volume_24h: float) -> Tuple[float, float, str]:
    """Returns (penalty, liquidity_risk, reasoning)."""
    if volume_24h < LIQUIDITY_LOW_VOLUME:
        return LIQUIDITY_LOW_PENALTY, LIQUIDITY_RISK_LOW, MSG_LIQ_LOW.format(volume=volume_24h)
    if volume_24h < LIQUIDITY_MEDIUM_VOLUME:
        return (
            LIQUIDITY_MEDIUM_PENALTY,
            LIQUIDITY_RISK_MEDIUM,
            MSG_LIQ_MEDIUM.format(volume=volume_24h),
        )
    return 0, LIQUIDITY_RISK_HIGH, MSG_LIQ_GOOD.format(volume=volume_24h)


def recommend(risk_score: float) -> Tuple[Recommendation, str]:
    """Map a risk score onto a verdict."""
    if risk_score >= REJECT_SCORE:
        return Recommendation.REJECT, MSG_VERDICT_REJECT.format(score=risk_score)
    if risk_score >= REDUCE_SIZE_SCORE:
        return Recommendation.REDUCE_SIZE, MSG_VERDICT_REDUCE.format(score=risk_score)
    return Recommendation.APPROVE, MSG_VERDICT_APPROVE.format(score=risk_score)


def suggest_stop_loss(entry_price: float, stop_loss_price: float, volatility: float) -> float:
    """
    Stop placed 2x volatility away from entry, on the same side as the given stop.

    A stop below entry that would reach zero or less falls back to the given stop.
    """
    offset = entry_price * volatility * SUGGESTED_STOP_VOLATILITY_MULTIPLIER
    if stop_loss_price > entry_price:
        return entry_price + offset
    if offset >= entry_price:
        return stop_loss_price
    return entry_price - offset


def assess_trade_risk(
    symbol: str,
    entry_price: float,
    stop_loss_price: float,
    take_profit_price: float,
    market_data: Optional[MarketData],
    risk_parameters: RiskParameters,
    correlation_fn: Optional[CorrelationRiskFn] = None,
) -> TradeRiskAssessment:
    """
    Assess the risk of a proposed trade.

    Args:
        symbol: Trading pair
        entry_price: Planned entry
        stop_loss_price: Planned stop
        take_profit_price: Planned target
        market_data: Volatility / volume snapshot (defaults when None)
        risk_parameters: Account risk posture
        correlation_fn: symbol -> correlation risk (0-100). Defaults to a
            constant neutral score.

    Returns:
        TradeRiskAssessment

    Raises:
        InvalidStopLossError: If stop equals entry
    """
    market = market_data or MarketData()
    correlation_fn = correlation_fn or constant_correlation_risk

    stop_distance_pct = calculate_stop_distance_pct(entry_price, stop_loss_price)
    stop_distance = abs(entry_price - stop_loss_price)

    reasoning: List[str] = []
    risk_score = 0.0

    # 1. Risk/Reward
    rr = abs(take_profit_price - entry_price) / stop_distance
    penalty, note = score_risk_reward(rr)
    risk_score += penalty
    reasoning.append(note)

    # 2. Volatility
    penalty, volatility_risk, note = score_volatility(
        market.volatility, risk_parameters.volatility_threshold
    )
    risk_score += penalty
    reasoning.append(note)

    # 3. Liquidity
    penalty, liquidity_risk, note = score_liquidity(market.volume_24h)
    risk_score += penalty
    reasoning.append(note)

    correlation_risk = float(correlation_fn(symbol))

    _, max_position_size = calculate_risk_position_size(
        risk_parameters.account_balance,
        risk_parameters.max_risk_percentage,
        stop_distance_pct,
    )

    recommendation, verdict = recommend(risk_score)
    reasoning.append(verdict)

    logger.debug(f"{symbol}: risk score {risk_score:.0f} -> {recommendation.value}")

    return TradeRiskAssessment(
        symbol=symbol,
        risk_score=risk_score,
        max_position_size=max_position_size,
        suggested_stop_loss=suggest_stop_loss(entry_price, stop_loss_price, market.volatility),
        risk_reward_ratio=rr,
        correlation_risk=correlation_risk,
        volatility_risk=volatility_risk,
        liquidity_risk=liquidity_risk,
        recommendation=recommendation,
        reasoning=tuple(reasoning),
    )
