"""Technical indicator calculations over a price-history array."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import pandas as pd
import pandas_ta as ta
import structlog

from volatile_trader.models.indicator import BollingerBandsResult, RSIResult

if TYPE_CHECKING:
    from volatile_trader.models.market import Candle

logger = structlog.get_logger()

BB_PERIOD = 20
BB_STD_MULTIPLIER = 2.0
RSI_PERIOD = 14
RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0


def bollinger_bands(
    prices: Sequence[float],
    period: int = BB_PERIOD,
    std_multiplier: float = BB_STD_MULTIPLIER,
) -> BollingerBandsResult | None:
    """
    Bollinger Bands over the last ``period`` prices:
    middle = SMA, upper/lower = middle +/- k * population stddev,
    bandwidth = (upper - lower) / middle.

    Returns None when fewer than ``period`` prices are available.
    """
    if period <= 0 or len(prices) < period:
        return None

    window = pd.Series(prices[-period:], dtype=float)
    sma = ta.sma(window, length=period)
    if sma is None or sma.dropna().empty:
        middle = float(window.mean())
    else:
        middle = float(sma.iloc[-1])
    # Population standard deviation (divide by N)
    std = float(window.std(ddof=0))

    upper = middle + std_multiplier * std
    lower = middle - std_multiplier * std
    bandwidth = (upper - lower) / middle if middle != 0 else 0.0

    return BollingerBandsResult(upper=upper, middle=middle, lower=lower, bandwidth=bandwidth)


def rsi(prices: Sequence[float], period: int = RSI_PERIOD) -> RSIResult | None:
    """
    RSI from simple averages of the last ``period`` gains and losses
    (no Wilder smoothing). avg_loss == 0 yields 100.

    Returns None when fewer than ``period + 1`` prices are available.
    """
    if period <= 0 or len(prices) < period + 1:
        return None

    deltas = pd.Series(prices, dtype=float).diff().dropna()
    gains = deltas.clip(lower=0).tail(period)
    losses = (-deltas).clip(lower=0).tail(period)

    avg_gain = float(gains.mean())
    avg_loss = float(losses.mean())

    if avg_loss == 0:
        value = 100.0
    else:
        rs = avg_gain / avg_loss
        value = 100.0 - 100.0 / (1.0 + rs)

    return RSIResult(
        value=value,
        is_overbought=value > RSI_OVERBOUGHT,
        is_oversold=value < RSI_OVERSOLD,
    )


def short_term_volatility(prices: Sequence[float]) -> float:
    """Mean absolute percent return between consecutive prices."""
    if len(prices) < 2:
        return 0.0
    series = pd.Series(prices, dtype=float)
    prev = series.shift(1)
    valid = prev.notna() & (prev != 0)
    returns = ((series[valid] - prev[valid]) / prev[valid] * 100).abs()
    if returns.empty:
        return 0.0
    return float(returns.mean())


def average_lows(candles: Sequence[Candle], count: int = 3) -> float:
    """Mean low of the last ``count`` candles (0 when fewer)."""
    if len(candles) < count:
        return 0.0
    return sum(c.low for c in candles[-count:]) / count


def average_highs(candles: Sequence[Candle], count: int = 3) -> float:
    """Mean high of the last ``count`` candles (0 when fewer)."""
    if len(candles) < count:
        return 0.0
    return sum(c.high for c in candles[-count:]) / count
