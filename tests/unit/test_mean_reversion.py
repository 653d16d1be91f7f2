"""Unit tests for MeanReversionStrategy (Bollinger Bands + RSI)."""

from __future__ import annotations

import pytest

from tests.conftest import (
    lower_band_dip_prices,
    narrow_range_prices,
    oscillating_prices,
    slow_decline_after_swings_prices,
)
from volatile_trader.strategy.mean_reversion import MIN_PRICES, MeanReversionStrategy


@pytest.fixture
def strategy() -> MeanReversionStrategy:
    return MeanReversionStrategy(stop_loss_percent=2.5, take_profit_percent=5.0)


class TestAnalyzeBuy:
    def test_insufficient_data(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_buy([100.0] * (MIN_PRICES - 1))
        assert signal.action == "HOLD"
        assert signal.confidence == 0.0
        assert "Insufficient data" in signal.reason
        assert signal.indicators is None

    def test_lower_band_with_oversold_rsi(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_buy(lower_band_dip_prices())
        assert signal.action == "BUY"
        assert signal.confidence == 0.9
        assert "lower band" in signal.reason
        assert signal.indicators is not None
        assert signal.indicators.current_price == 95.0

    def test_extreme_rsi_below_middle(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_buy(slow_decline_after_swings_prices())
        assert signal.action == "BUY"
        assert signal.confidence == 0.7
        assert "Extreme RSI" in signal.reason

    def test_range_trading_in_narrow_bands(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_buy(narrow_range_prices())
        assert signal.action == "BUY"
        assert signal.confidence == 0.5
        assert "Range trading" in signal.reason
        assert signal.indicators is not None
        assert signal.indicators.bollinger.bandwidth_percent < 3.0

    def test_neutral_market_holds(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_buy(oscillating_prices())
        assert signal.action == "HOLD"
        assert signal.confidence == 0.0
        assert signal.reason.startswith("Waiting")
        assert signal.indicators is not None
        assert signal.indicators.rsi.value == pytest.approx(50.0)

    def test_rising_market_never_buys(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_buy([float(p) for p in range(100, 130)])
        assert signal.action == "HOLD"


class TestAnalyzeSell:
    def test_insufficient_data(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_sell([100.0] * 10, buy_price=90.0)
        assert signal.action == "HOLD"
        assert signal.confidence == 0.0

    def test_stop_loss(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_sell([100.0] * 20, buy_price=103.0)
        assert signal.action == "SELL"
        assert signal.confidence == 1.0
        assert "Stop loss" in signal.reason

    def test_take_profit(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_sell([100.0] * 20, buy_price=95.0)
        assert signal.action == "SELL"
        assert signal.confidence == 0.9
        assert "Take profit" in signal.reason

    def test_upper_band_with_overbought_rsi(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_sell([100.0] * 19 + [105.0])
        assert signal.action == "SELL"
        assert signal.confidence == 0.9
        assert "Reversal" in signal.reason

    def test_extreme_rsi_above_middle(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_sell([float(p) for p in range(100, 120)])
        assert signal.action == "SELL"
        assert signal.confidence == 0.7
        assert "Extreme RSI" in signal.reason

    def test_holding_reports_pnl(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_sell(oscillating_prices(), buy_price=100.5)
        assert signal.action == "HOLD"
        assert "PnL +0.50%" in signal.reason

    def test_holding_without_buy_price(self, strategy: MeanReversionStrategy) -> None:
        signal = strategy.analyze_sell(oscillating_prices())
        assert signal.action == "HOLD"
        assert "upper band" in signal.reason

    def test_custom_thresholds(self) -> None:
        strategy = MeanReversionStrategy(stop_loss_percent=1.0, take_profit_percent=10.0)
        # 2% down: past a 1% stop, short of the 10% target
        signal = strategy.analyze_sell([100.0] * 20, buy_price=102.0)
        assert signal.action == "SELL"
        assert "Stop loss" in signal.reason
