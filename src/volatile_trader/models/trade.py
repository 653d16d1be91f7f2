"""Trade, TradeRequest, TradeExecution Pydantic models."""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Trade(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    symbol: str
    side: str  # BUY, SELL
    type: str = "MARKET"  # MARKET, LIMIT
    price: float
    quantity: float
    status: str = "PENDING"  # PENDING, EXECUTED, FAILED, CANCELLED
    profit_loss: float | None = None
    binance_order_id: str | None = None
    executed_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_open(self) -> bool:
        """A BUY whose profit/loss has not been realised yet."""
        return self.side == "BUY" and self.profit_loss is None


class TradeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    side: str  # BUY, SELL
    quantity: float
    type: str = "MARKET"
    test_mode: bool = Field(default=True, alias="testMode")


class TradeExecution(BaseModel):
    """Outcome of TradeExecutor.execute(): the stored trade plus the order payload."""

    test_mode: bool
    trade: Trade
    order: dict[str, Any]
