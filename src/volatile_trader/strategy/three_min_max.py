"""Three min/max strategy: compare price against the mean of the last 3 lows/highs."""

from __future__ import annotations

from collections.abc import Sequence

from volatile_trader.indicator.indicators import average_highs, average_lows
from volatile_trader.models.market import Candle, Momentum
from volatile_trader.models.signal import Signal

MIN_CANDLES = 3
SIGNAL_CONFIDENCE = 0.7


class ThreeMinMaxStrategy:
    def evaluate(self, candles: Sequence[Candle], current_price: float | None = None) -> Signal:
        """BUY at/below the mean of the last 3 lows, SELL at/above the mean of the last 3 highs."""
        if len(candles) < MIN_CANDLES:
            return Signal(action="HOLD", reason=f"Insufficient data (need {MIN_CANDLES}+ candles)")

        price = current_price if current_price is not None else candles[-1].close
        avg_lows = average_lows(candles, MIN_CANDLES)
        avg_highs = average_highs(candles, MIN_CANDLES)

        if price <= avg_lows:
            return Signal(
                action="BUY",
                confidence=SIGNAL_CONFIDENCE,
                reason=f"Price ${price:.2f} <= mean of last 3 lows ${avg_lows:.2f}",
            )
        if price >= avg_highs:
            return Signal(
                action="SELL",
                confidence=SIGNAL_CONFIDENCE,
                reason=f"Price ${price:.2f} >= mean of last 3 highs ${avg_highs:.2f}",
            )
        return Signal(
            action="HOLD",
            reason=f"Price ${price:.2f} between ${avg_lows:.2f} and ${avg_highs:.2f}",
        )

    def analyze_momentum(
        self, candles: Sequence[Candle], volumes: Sequence[float] | None = None
    ) -> Momentum:
        if len(candles) < MIN_CANDLES:
            return Momentum(price_change_percent=0.0, volume_ratio=0.0, trend="NEUTRAL")

        first_close = candles[0].close
        current = candles[-1].close
        change = (current - first_close) / first_close * 100 if first_close else 0.0

        trend = "NEUTRAL"
        if current <= average_lows(candles, MIN_CANDLES):
            trend = "BULLISH"  # buy opportunity
        elif current >= average_highs(candles, MIN_CANDLES):
            trend = "BEARISH"

        volume_ratio = 1.0
        if volumes and len(volumes) >= MIN_CANDLES:
            avg_volume = sum(volumes) / len(volumes)
            recent = sum(volumes[-MIN_CANDLES:]) / MIN_CANDLES
            volume_ratio = recent / avg_volume if avg_volume else 0.0

        return Momentum(price_change_percent=change, volume_ratio=volume_ratio, trend=trend)
