"""BotConfig, BotConfigUpdate Pydantic models."""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field


class BotConfig(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    is_powered_on: bool = False
    is_running: bool = False
    test_mode: bool = True
    test_balance: float = 1000.0
    quantity: float = 100.0  # USDT per trade
    take_profit_percent: float = 5.0
    stop_loss_percent: float = 2.5
    daily_profit_goal: float = 50.0
    trading_pair: str = "BTCUSDT"
    api_key_encrypted: str | None = None
    api_secret_encrypted: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_api_credentials(self) -> bool:
        return bool(self.api_key_encrypted and self.api_secret_encrypted)

    def public_view(self) -> dict:
        """JSON view without the encrypted credential columns."""
        data = self.model_dump(
            mode="json", exclude={"api_key_encrypted", "api_secret_encrypted"}
        )
        data["has_api_credentials"] = self.has_api_credentials
        return data


class BotConfigUpdate(BaseModel):
    """Fields the dashboard may change. None means unchanged."""

    is_powered_on: bool | None = None
    is_running: bool | None = None
    test_mode: bool | None = None
    test_balance: float | None = Field(default=None, ge=0)
    quantity: float | None = Field(default=None, gt=0)
    take_profit_percent: float | None = Field(default=None, gt=0)
    stop_loss_percent: float | None = Field(default=None, gt=0)
    daily_profit_goal: float | None = Field(default=None, ge=0)
    trading_pair: str | None = None
