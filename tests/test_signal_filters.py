"""Tests for the auto-trader signal filter pipeline."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

import pytest

from models.schemas import BotSettings, Signal, SignalType
from risk.signal_filters import (
    FilterContext,
    apply_all_filters,
    filter_confidence,
    filter_cooldown,
    filter_max_concurrent_trades,
    filter_symbol_allowed,
    filter_trade_direction,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def ctx(buy_signal, bot_settings):
    return FilterContext(signal=buy_signal, bot_settings=bot_settings, now=NOW)


class TestIndividualFilters:

    def test_blacklist_checked_before_allow_list(self, buy_signal):
        settings = BotSettings(allowed_symbols=["BTC/USDT"], blacklist_symbols=["BTC/USDT"])
        result = filter_symbol_allowed(FilterContext(buy_signal, settings))
        assert result.code == "SYMBOL_BLACKLISTED"

    def test_allow_list(self, buy_signal):
        settings = BotSettings(allowed_symbols=["ETH/USDT"])
        result = filter_symbol_allowed(FilterContext(buy_signal, settings))
        assert result.passed is False
        assert result.code == "SYMBOL_NOT_ALLOWED"

    def test_empty_allow_list_allows_everything(self, ctx):
        assert filter_symbol_allowed(ctx).passed

    def test_cooldown_active(self, ctx):
        ctx.last_trade_time = NOW - timedelta(minutes=10)
        result = filter_cooldown(ctx)
        assert result.code == "COOLDOWN_ACTIVE"
        assert "5 more minutes" in result.reason

    def test_cooldown_elapsed(self, ctx):
        ctx.last_trade_time = NOW - timedelta(minutes=20)
        assert filter_cooldown(ctx).passed

    def test_naive_last_trade_time_treated_as_utc(self, ctx):
        ctx.last_trade_time = datetime(2024, 5, 1, 11, 55)
        assert filter_cooldown(ctx).code == "COOLDOWN_ACTIVE"

    def test_naive_now_and_last_trade_time(self, bot_settings, buy_signal):
        ctx = FilterContext(
            buy_signal,
            bot_settings,
            last_trade_time=datetime(2024, 5, 1, 11, 55),
            now=datetime(2024, 5, 1, 12, 0),
        )
        result = filter_cooldown(ctx)
        assert result.code == "COOLDOWN_ACTIVE"
        assert "10 more minutes" in result.reason

    def test_naive_now_with_aware_last_trade_time(self, ctx):
        ctx.now = datetime(2024, 5, 1, 12, 30)
        ctx.last_trade_time = NOW
        assert filter_cooldown(ctx).passed

    def test_max_trades(self, ctx):
        ctx.active_trades_count = 5
        result = filter_max_concurrent_trades(ctx)
        assert result.code == "MAX_TRADES_REACHED"
        assert "(5/5)" in result.reason

    def test_short_trades_disabled(self, bot_settings):
        signal = Signal(symbol="ETH/USDT", signal_type=SignalType.STRONG_SELL, entry_price=100)
        settings = bot_settings.model_copy(update={"allow_short_trades": False})
        result = filter_trade_direction(FilterContext(signal, settings))
        assert result.code == "SHORT_TRADES_DISABLED"

    def test_low_confidence(self, bot_settings):
        signal = Signal(symbol="BTC/USDT", signal_type=SignalType.BUY, entry_price=1, confidence=55)
        result = filter_confidence(FilterContext(signal, bot_settings))
        assert result.code == "LOW_CONFIDENCE"
        assert "(55)" in result.reason


class TestPipeline:

    def test_all_pass(self, ctx):
        result = apply_all_filters(ctx)
        assert result.passed is True
        assert result.code is None

    def test_first_failure_wins(self, ctx):
        ctx.bot_settings = ctx.bot_settings.model_copy(update={"is_active": False})
        ctx.exchange_healthy = False
        assert apply_all_filters(ctx).code == "BOT_DISABLED"

    def test_exchange_health(self, ctx):
        ctx.exchange_healthy = False
        assert apply_all_filters(ctx).code == "EXCHANGE_UNHEALTHY"

    def test_custom_filter_list(self, ctx):
        ctx.active_trades_count = 10
        assert apply_all_filters(ctx, filters=[filter_confidence]).passed

    def test_results_are_immutable(self, ctx):
        result = apply_all_filters(ctx)
        with pytest.raises(FrozenInstanceError):
            result.reason = "changed"

        assert apply_all_filters(ctx).reason is None
