"""Auto-trader signal filters.

Each filter looks at one condition and returns a FilterResult. The
pipeline runs them in a fixed order and stops at the first failure.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from loguru import logger

from models.schemas import BotSettings, Signal


@dataclass
class FilterContext:
    signal: Signal
    bot_settings: BotSettings
    active_trades_count: int = 0
    last_trade_time: Optional[datetime] = None
    exchange_healthy: bool = True
    now: Optional[datetime] = None


@dataclass(frozen=True)
class FilterResult:
    passed: bool
    reason: Optional[str] = None
    code: Optional[str] = None


PASS = FilterResult(passed=True)

SignalFilter = Callable[[FilterContext], FilterResult]


def filter_bot_enabled(ctx: FilterContext) -> FilterResult:
    if not ctx.bot_settings.is_active:
        return FilterResult(False, "Bot is not active", "BOT_DISABLED")
    return PASS


def filter_symbol_allowed(ctx: FilterContext) -> FilterResult:
    """Blacklist is checked before the allow list; an empty allow list allows all."""
    symbol = ctx.signal.symbol
    settings = ctx.bot_settings

    if symbol in settings.blacklist_symbols:
        return FilterResult(False, f"Symbol {symbol} is in blacklist", "SYMBOL_BLACKLISTED")

    if settings.allowed_symbols and symbol not in settings.allowed_symbols:
        return FilterResult(False, f"Symbol {symbol} is not in allowed list", "SYMBOL_NOT_ALLOWED")

    return PASS


def _as_utc(moment: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def filter_cooldown(ctx: FilterContext) -> FilterResult:
    if ctx.last_trade_time is None:
        return PASS

    now = _as_utc(ctx.now or datetime.now(timezone.utc))
    last = _as_utc(ctx.last_trade_time)

    cooldown = timedelta(minutes=ctx.bot_settings.cooldown_minutes)
    elapsed = now - last
    if elapsed < cooldown:
        remaining = math.ceil((cooldown - elapsed).total_seconds() / 60)
        return FilterResult(
            False,
            f"Cooldown period active. Please wait {remaining} more minutes",
            "COOLDOWN_ACTIVE",
        )
    return PASS


def filter_max_concurrent_trades(ctx: FilterContext) -> FilterResult:
    max_trades = ctx.bot_settings.max_active_trades
    if ctx.active_trades_count >= max_trades:
        return FilterResult(
            False,
            f"Maximum active trades limit reached ({ctx.active_trades_count}/{max_trades})",
            "MAX_TRADES_REACHED",
        )
    return PASS


def filter_trade_direction(ctx: FilterContext) -> FilterResult:
    if ctx.signal.is_buy and not ctx.bot_settings.allow_long_trades:
        return FilterResult(False, "Long trades are not allowed", "LONG_TRADES_DISABLED")
    if not ctx.signal.is_buy and not ctx.bot_settings.allow_short_trades:
        return FilterResult(False, "Short trades are not allowed", "SHORT_TRADES_DISABLED")
    return PASS


def filter_exchange_health(ctx: FilterContext) -> FilterResult:
    if not ctx.exchange_healthy:
        return FilterResult(False, "Exchange health check failed", "EXCHANGE_UNHEALTHY")
    return PASS


def filter_confidence(ctx: FilterContext) -> FilterResult:
    minimum = ctx.bot_settings.min_signal_confidence
    if ctx.signal.confidence < minimum:
        return FilterResult(
            False,
            f"Confidence score ({ctx.signal.confidence:g}) below minimum ({minimum:g})",
            "LOW_CONFIDENCE",
        )
    return PASS


DEFAULT_FILTERS: List[SignalFilter] = [
    filter_bot_enabled,
    filter_symbol_allowed,
    filter_cooldown,
    filter_max_concurrent_trades,
    filter_trade_direction,
    filter_exchange_health,
    filter_confidence,
]


def apply_all_filters(
    ctx: FilterContext,
    filters: Optional[List[SignalFilter]] = None,
) -> FilterResult:
    """Run filters in order and return the first failure, or a pass."""
    for signal_filter in filters or DEFAULT_FILTERS:
        result = signal_filter(ctx)
        if not result.passed:
            logger.info(f"Signal {ctx.signal.symbol} filtered [{result.code}]: {result.reason}")
            return result
    return PASS
