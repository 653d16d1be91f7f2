"""Per-symbol strategy report from recent klines."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from volatile_trader.indicator.indicators import short_term_volatility
from volatile_trader.models.signal import SignalReport
from volatile_trader.strategy.mean_reversion import MeanReversionStrategy
from volatile_trader.strategy.three_min_max import ThreeMinMaxStrategy

if TYPE_CHECKING:
    from volatile_trader.binance.rest import BinanceRestClient

logger = structlog.get_logger()

REPORT_KLINES = 50


class SignalService:
    def __init__(
        self,
        rest_client: BinanceRestClient,
        interval: str = "1m",
        mean_reversion: MeanReversionStrategy | None = None,
        three_min_max: ThreeMinMaxStrategy | None = None,
    ) -> None:
        self.rest_client = rest_client
        self.interval = interval
        self.mean_reversion = mean_reversion or MeanReversionStrategy()
        self.three_min_max = three_min_max or ThreeMinMaxStrategy()

    async def analyze(self, symbol: str) -> SignalReport:
        """Mean-reversion entry, three min/max decision and momentum for the last 50 candles."""
        candles = await self.rest_client.get_klines(symbol, self.interval, REPORT_KLINES)
        prices = [c.close for c in candles]

        report = SignalReport(
            symbol=symbol,
            price=prices[-1] if prices else None,
            candles=len(candles),
            volatility=short_term_volatility(prices),
            mean_reversion=self.mean_reversion.analyze_buy(prices),
            three_min_max=self.three_min_max.evaluate(candles),
            momentum=self.three_min_max.analyze_momentum(candles, [c.volume for c in candles]),
        )
        logger.info(
            "signal_report",
            symbol=symbol,
            mean_reversion=report.mean_reversion.action,
            three_min_max=report.three_min_max.action,
            trend=report.momentum.trend,
        )
        return report
