"""Fixtures shared by the volatile_trader unit tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from volatile_trader.binance.credentials import CredentialCipher
from volatile_trader.config import Settings
from volatile_trader.models.bot_config import BotConfig
from volatile_trader.models.market import Candle
from volatile_trader.models.trade import Trade

USER_ID = "user-1"
ENCRYPTION_KEY = "test-encryption-key"


# --- Model helpers ---


def _make_trade(**overrides) -> Trade:
    defaults = {
        "user_id": USER_ID,
        "symbol": "BTCUSDT",
        "side": "BUY",
        "type": "MARKET",
        "price": 50000.0,
        "quantity": 0.002,
        "status": "EXECUTED",
        "created_at": datetime.now(timezone.utc),
    }
    defaults.update(overrides)
    return Trade(**defaults)


def _make_config(**overrides) -> BotConfig:
    defaults = {"user_id": USER_ID}
    defaults.update(overrides)
    return BotConfig(**defaults)


def _make_candle(
    low: float = 95.0,
    high: float = 105.0,
    close: float = 100.0,
    open_: float = 100.0,
    volume: float = 1000.0,
    ts: datetime | None = None,
) -> Candle:
    return Candle(
        open_time=ts or datetime.now(timezone.utc),
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=volume,
    )


# --- Price series helpers ---


def lower_band_dip_prices() -> list[float]:
    """19 flat prices then a 5% drop: price under the lower band, RSI 0."""
    return [100.0] * 19 + [95.0]


def slow_decline_after_swings_prices() -> list[float]:
    """Wide swings then a slow decline: RSI 0, price under the middle band, far above the lower band."""
    swings = [90.0, 110.0, 90.0, 110.0, 90.0, 110.0]
    decline = [round(101.0 - 0.1 * i, 2) for i in range(14)]
    return swings + decline


def narrow_range_prices() -> list[float]:
    """Mean 100, bandwidth just under 3%, last price 100.1 (just above the middle band)."""
    return [98.755] * 5 + [round(100.73 - 0.045 * i, 3) for i in range(15)]


def oscillating_prices() -> list[float]:
    """Alternating 100/101: RSI 50, price inside the bands."""
    return [100.0, 101.0] * 10


# --- Fixtures ---


@pytest.fixture
def settings() -> Settings:
    return Settings(
        STORAGE_BACKEND="local",
        BINANCE_ENCRYPTION_KEY=ENCRYPTION_KEY,
        SUPABASE_URL="",
        ENGINE_USER_ID=USER_ID,
        TRADING_SYMBOLS=["BTCUSDT"],
        LOSS_STREAK_LIMIT=4,
        DAILY_MAX_DRAWDOWN_PERCENT=5.0,
        CIRCUIT_BREAKER_PAUSE_MINUTES=30,
        MAX_POSITIONS=5,
        MIN_SIGNAL_CONFIDENCE=0.5,
        MAX_HOLD_MINUTES=240,
    )


@pytest.fixture
def cipher() -> CredentialCipher:
    return CredentialCipher(ENCRYPTION_KEY)


@pytest.fixture
def config() -> BotConfig:
    return _make_config()


@pytest.fixture
def mock_trade_store() -> AsyncMock:
    store = AsyncMock()
    store.create = AsyncMock(side_effect=lambda trade: trade)
    store.get_all = AsyncMock(return_value=[])
    store.get_recent = AsyncMock(return_value=[])
    store.get_open = AsyncMock(return_value=[])
    store.get_since = AsyncMock(return_value=[])
    store.close = AsyncMock(return_value=None)
    store.delete_all = AsyncMock(return_value=0)
    return store


@pytest.fixture
def mock_config_store(config: BotConfig) -> AsyncMock:
    store = AsyncMock()
    store.get = AsyncMock(return_value=config)
    store.save = AsyncMock(side_effect=lambda cfg: cfg)
    store.update = AsyncMock(
        side_effect=lambda user_id, updates: config.model_copy(update=updates)
    )
    return store


@pytest.fixture
def mock_log_store() -> AsyncMock:
    store = AsyncMock()
    store.add = AsyncMock()
    store.get_recent = AsyncMock(return_value=[])
    store.delete_older_than = AsyncMock(return_value=0)
    return store


@pytest.fixture
def past_trades() -> list[Trade]:
    """Newest first: loss, loss, win, loss (closed) plus one open BUY."""
    now = datetime.now(timezone.utc)
    return [
        _make_trade(created_at=now - timedelta(minutes=1)),
        _make_trade(side="SELL", profit_loss=None, created_at=now - timedelta(minutes=2)),
        _make_trade(profit_loss=-1.5, created_at=now - timedelta(minutes=3)),
        _make_trade(profit_loss=-0.5, created_at=now - timedelta(minutes=4)),
        _make_trade(profit_loss=2.0, created_at=now - timedelta(minutes=5)),
        _make_trade(profit_loss=-1.0, created_at=now - timedelta(minutes=6)),
    ]
