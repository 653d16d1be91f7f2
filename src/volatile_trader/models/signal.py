"""Signal model produced by the strategies."""

from pydantic import BaseModel, Field

from volatile_trader.models.indicator import BollingerBandsResult, RSIResult
from volatile_trader.models.market import Momentum


class SignalIndicators(BaseModel):
    bollinger: BollingerBandsResult
    rsi: RSIResult
    current_price: float


class Signal(BaseModel):
    action: str  # BUY, SELL, HOLD
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reason: str = ""
    indicators: SignalIndicators | None = None


class SignalReport(BaseModel):
    """Strategy readings for one symbol from its recent klines."""

    symbol: str
    price: float | None = None
    candles: int = 0
    volatility: float = 0.0  # mean absolute % move between closes
    mean_reversion: Signal
    three_min_max: Signal
    momentum: Momentum
