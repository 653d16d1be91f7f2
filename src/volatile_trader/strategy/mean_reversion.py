"""Mean-reversion strategy: Bollinger Bands(20, 2.0) + RSI(14)."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from volatile_trader.indicator.indicators import bollinger_bands, rsi
from volatile_trader.models.signal import Signal, SignalIndicators

logger = structlog.get_logger()

BB_PERIOD = 20
BB_STD_DEV = 2.0
RSI_PERIOD = 14

RSI_OVERSOLD = 45.0
RSI_EXTREME_OVERSOLD = 35.0
RSI_EXTREME_OVERBOUGHT = 75.0

HIGH_CONFIDENCE = 0.9
MEDIUM_CONFIDENCE = 0.7
LOW_CONFIDENCE = 0.5

LOWER_BAND_MARGIN = 1.015  # price within 1.5% above the lower band
UPPER_BAND_MARGIN = 0.998
RANGE_BANDWIDTH_PERCENT = 3.0
RANGE_MIDDLE_MARGIN = 1.002

MIN_PRICES = max(BB_PERIOD, RSI_PERIOD + 1)


class MeanReversionStrategy:
    """
    Buy near the lower band with a depressed RSI, sell near the upper band
    with an overbought RSI. Open positions are also closed on a fixed
    strategy stop loss / take profit relative to the buy price.
    """

    def __init__(
        self,
        stop_loss_percent: float = 2.5,
        take_profit_percent: float = 5.0,
    ) -> None:
        self.stop_loss_percent = stop_loss_percent
        self.take_profit_percent = take_profit_percent

    def analyze_buy(self, prices: Sequence[float]) -> Signal:
        if len(prices) < MIN_PRICES:
            return Signal(
                action="HOLD",
                reason=f"Insufficient data (need {MIN_PRICES} prices, got {len(prices)})",
            )

        current = float(prices[-1])
        bb = bollinger_bands(prices, BB_PERIOD, BB_STD_DEV)
        rsi_result = rsi(prices, RSI_PERIOD)
        if bb is None or rsi_result is None:
            return Signal(action="HOLD", reason="Indicator calculation failed")

        indicators = SignalIndicators(bollinger=bb, rsi=rsi_result, current_price=current)
        rsi_value = rsi_result.value

        if current <= bb.lower * LOWER_BAND_MARGIN and rsi_value < RSI_OVERSOLD:
            return Signal(
                action="BUY",
                confidence=HIGH_CONFIDENCE,
                reason=(
                    f"Mean reversion: price ${current:.2f} at lower band ${bb.lower:.2f}"
                    f" + RSI oversold ({rsi_value:.1f})"
                ),
                indicators=indicators,
            )

        if rsi_value < RSI_EXTREME_OVERSOLD and current <= bb.middle:
            return Signal(
                action="BUY",
                confidence=MEDIUM_CONFIDENCE,
                reason=(
                    f"Extreme RSI ({rsi_value:.1f}) with price below the middle band"
                    f" ${bb.middle:.2f}"
                ),
                indicators=indicators,
            )

        bandwidth_pct = bb.bandwidth_percent
        if (
            rsi_value < RSI_OVERSOLD
            and bandwidth_pct < RANGE_BANDWIDTH_PERCENT
            and current <= bb.middle * RANGE_MIDDLE_MARGIN
        ):
            return Signal(
                action="BUY",
                confidence=LOW_CONFIDENCE,
                reason=(
                    f"Range trading: RSI {rsi_value:.1f} in a sideways market"
                    f" (bandwidth {bandwidth_pct:.1f}%)"
                ),
                indicators=indicators,
            )

        distance = (current - bb.lower) / bb.lower * 100 if bb.lower else 0.0
        rsi_gap = rsi_value - RSI_OVERSOLD
        return Signal(
            action="HOLD",
            reason=(
                f"Waiting: price ${current:.2f} is {distance:.1f}% above the lower band"
                f" ${bb.lower:.2f} | RSI {rsi_value:.1f} ({rsi_gap:.0f} pts above oversold)"
            ),
            indicators=indicators,
        )

    def analyze_sell(self, prices: Sequence[float], buy_price: float | None = None) -> Signal:
        if len(prices) < MIN_PRICES:
            return Signal(action="HOLD", reason="Insufficient data")

        current = float(prices[-1])
        bb = bollinger_bands(prices, BB_PERIOD, BB_STD_DEV)
        rsi_result = rsi(prices, RSI_PERIOD)
        if bb is None or rsi_result is None:
            return Signal(action="HOLD", reason="Indicator calculation failed")

        indicators = SignalIndicators(bollinger=bb, rsi=rsi_result, current_price=current)
        rsi_value = rsi_result.value

        if buy_price and current <= buy_price * (1 - self.stop_loss_percent / 100):
            return Signal(
                action="SELL",
                confidence=1.0,
                reason=(
                    f"Stop loss: price ${current:.2f} fell {self.stop_loss_percent}%"
                    f" from buy price ${buy_price:.2f}"
                ),
                indicators=indicators,
            )

        if buy_price and current >= buy_price * (1 + self.take_profit_percent / 100):
            return Signal(
                action="SELL",
                confidence=HIGH_CONFIDENCE,
                reason=(
                    f"Take profit: {self.take_profit_percent}% reached"
                    f" (${buy_price:.2f} -> ${current:.2f})"
                ),
                indicators=indicators,
            )

        if current >= bb.upper * UPPER_BAND_MARGIN and rsi_result.is_overbought:
            return Signal(
                action="SELL",
                confidence=HIGH_CONFIDENCE,
                reason=(
                    f"Reversal: price ${current:.2f} at upper band ${bb.upper:.2f}"
                    f" + RSI overbought ({rsi_value:.1f})"
                ),
                indicators=indicators,
            )

        if rsi_value > RSI_EXTREME_OVERBOUGHT and current >= bb.middle:
            return Signal(
                action="SELL",
                confidence=MEDIUM_CONFIDENCE,
                reason=f"Extreme RSI ({rsi_value:.1f}) with price above the middle band",
                indicators=indicators,
            )

        if buy_price:
            pnl_pct = (current - buy_price) / buy_price * 100
            reason = f"Holding: PnL {pnl_pct:+.2f}% | RSI {rsi_value:.1f}"
        else:
            distance = (bb.upper - current) / current * 100 if current else 0.0
            reason = f"Holding: {distance:.1f}% below the upper band | RSI {rsi_value:.1f}"
        return Signal(action="HOLD", reason=reason, indicators=indicators)
