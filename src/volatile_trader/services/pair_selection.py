"""Pick trading pairs from the 24h ticker by volatility and volume."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from volatile_trader.models.market import VolatilityData

if TYPE_CHECKING:
    from volatile_trader.binance.rest import BinanceRestClient
    from volatile_trader.storage.base import ConfigStore

logger = structlog.get_logger()

FALLBACK_PAIR = "BTCUSDT"
MIN_QUOTE_VOLUME = 5_000_000
OPTIMAL_MIN_CHANGE = 1.0
OPTIMAL_MAX_CHANGE = 20.0
MOMENTUM_MIN_CHANGE = 0.5
MOMENTUM_MAX_CHANGE = 15.0
MOMENTUM_MIN_VOLUME = 10_000_000


class PairSelector:
    def __init__(self, rest_client: BinanceRestClient) -> None:
        self.rest_client = rest_client

    async def top_volatile_pairs(self, limit: int = 10) -> list[VolatilityData]:
        """USDT pairs with quote volume > 5M, sorted by absolute 24h change."""
        try:
            tickers = await self.rest_client.get_24h_tickers()
        except Exception:
            logger.exception("volatile_pairs_error")
            return [
                VolatilityData(
                    symbol=FALLBACK_PAIR,
                    volatility=0.0,
                    price_change_percent=0.0,
                    quote_volume=0.0,
                    last_price=0.0,
                )
            ]

        pairs = [
            VolatilityData(
                symbol=t["symbol"],
                volatility=abs(float(t["priceChangePercent"])),
                price_change_percent=float(t["priceChangePercent"]),
                quote_volume=float(t["quoteVolume"]),
                last_price=float(t["lastPrice"]),
            )
            for t in tickers
            if t["symbol"].endswith("USDT") and float(t["quoteVolume"]) > MIN_QUOTE_VOLUME
        ]
        pairs.sort(key=lambda p: p.volatility, reverse=True)
        return pairs[:limit]

    async def select_optimal_pair(self) -> str:
        """First pair moving 1-20% in 24h, else the most volatile one."""
        pairs = await self.top_volatile_pairs(10)
        if not pairs:
            return FALLBACK_PAIR
        for pair in pairs:
            if OPTIMAL_MIN_CHANGE <= pair.volatility <= OPTIMAL_MAX_CHANGE:
                return pair.symbol
        return pairs[0].symbol

    async def select_momentum_pairs(self, count: int = 5) -> list[str]:
        """Rising pairs (+0.5% to +15%) with quote volume > 10M, topped up with any rising pair."""
        pairs = await self.top_volatile_pairs(count * 3)
        if not pairs:
            return [FALLBACK_PAIR]

        selected = [
            p.symbol
            for p in pairs
            if MOMENTUM_MIN_CHANGE <= p.price_change_percent <= MOMENTUM_MAX_CHANGE
            and p.quote_volume > MOMENTUM_MIN_VOLUME
        ][:count]
        if len(selected) < count:
            for p in pairs:
                if p.price_change_percent > 0 and p.symbol not in selected:
                    selected.append(p.symbol)
                if len(selected) >= count:
                    break
        return selected or [FALLBACK_PAIR]

    async def update_bot_trading_pair(self, config_store: ConfigStore, user_id: str) -> str:
        pair = await self.select_optimal_pair()
        await config_store.update(user_id, {"trading_pair": pair})
        logger.info("trading_pair_updated", user_id=user_id, trading_pair=pair)
        return pair
