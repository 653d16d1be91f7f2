"""Market data models: PriceData, MarketData, Candle, VolatilityData, Momentum."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class PriceData(BaseModel):
    symbol: str
    price: float
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MarketData(BaseModel):
    """24h rolling ticker."""

    symbol: str
    price: float
    price_change: float = 0.0
    price_change_percent: float = 0.0
    high_24h: float = 0.0
    low_24h: float = 0.0
    volume: float = 0.0
    quote_volume: float = 0.0


class Candle(BaseModel):
    open_time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float


class VolatilityData(BaseModel):
    symbol: str
    volatility: float  # absolute 24h change percent
    price_change_percent: float
    quote_volume: float
    last_price: float


class Momentum(BaseModel):
    price_change_percent: float
    volume_ratio: float
    trend: str  # BULLISH, BEARISH, NEUTRAL
