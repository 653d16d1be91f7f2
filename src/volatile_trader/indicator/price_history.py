"""In-memory price history (deque) per symbol."""

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Iterable

import structlog

logger = structlog.get_logger()


class PriceHistory:
    """
    Sliding price window per symbol (FIFO, max ``max_prices`` entries).

    Structure: prices[symbol] = deque([float, ...])
    """

    def __init__(self, max_prices: int = 100) -> None:
        self.max_prices = max_prices
        self.prices: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=max_prices))

    def add(self, symbol: str, price: float) -> None:
        self.prices[symbol].append(float(price))

    def extend(self, symbol: str, prices: Iterable[float]) -> None:
        """Bulk append (backfill from klines)."""
        values = [float(p) for p in prices]
        self.prices[symbol].extend(values)
        logger.info("price_history_backfilled", symbol=symbol, count=len(values))

    def get(self, symbol: str, limit: int | None = None) -> list[float]:
        """Get the last N prices (all when limit is None)."""
        dq = self.prices.get(symbol)
        if not dq:
            return []
        if limit is None:
            return list(dq)
        if limit <= 0:
            return []
        return list(dq)[-limit:]

    def latest(self, symbol: str) -> float | None:
        dq = self.prices.get(symbol)
        if not dq:
            return None
        return dq[-1]

    def clear(self, symbol: str | None = None) -> None:
        if symbol is None:
            self.prices.clear()
        else:
            self.prices.pop(symbol, None)
