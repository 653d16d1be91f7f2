"""Unit tests for DB repositories with a mocked AsyncSession."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from tests.conftest import USER_ID, _make_config, _make_trade
from volatile_trader.db.models import BotConfigurationORM, BotLogORM, TradeORM
from volatile_trader.db.repository import (
    BotConfigRepository,
    BotLogRepository,
    TradeRepository,
)
from volatile_trader.errors import ConfigNotFoundError


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_session():
    """Create a mock AsyncSession with context manager support."""
    session = AsyncMock(spec=AsyncSession)
    session.commit = AsyncMock()
    session.flush = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def session_factory(mock_session):
    """async_sessionmaker.__call__() returns an async context manager, not a coroutine."""
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=mock_session)
    ctx.__aexit__ = AsyncMock(return_value=False)

    factory = MagicMock()
    factory.return_value = ctx
    return factory


def _scalars_result(rows: list) -> MagicMock:
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    return result


def _scalar_result(row) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = row
    return result


def _make_trade_orm(**overrides) -> TradeORM:
    defaults = {
        "id": "t-1",
        "user_id": USER_ID,
        "symbol": "BTCUSDT",
        "side": "BUY",
        "type": "MARKET",
        "price": Decimal("50000.00000000"),
        "quantity": Decimal("0.00200000"),
        "status": "EXECUTED",
        "profit_loss": None,
        "binance_order_id": None,
        "executed_at": None,
        "created_at": datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
    }
    defaults.update(overrides)
    return TradeORM(**defaults)


def _make_config_orm(**overrides) -> BotConfigurationORM:
    now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    defaults = {
        "id": "c-1",
        "user_id": USER_ID,
        "api_key_encrypted": None,
        "api_secret_encrypted": None,
        "test_mode": True,
        "test_balance": Decimal("1000"),
        "trading_pair": "BTCUSDT",
        "quantity": Decimal("100"),
        "take_profit_percent": Decimal("5.0000"),
        "stop_loss_percent": Decimal("2.5000"),
        "daily_profit_goal": Decimal("50"),
        "is_running": False,
        "is_powered_on": False,
        "created_at": now,
        "updated_at": now,
    }
    defaults.update(overrides)
    return BotConfigurationORM(**defaults)


# ---------------------------------------------------------------------------
# TradeRepository
# ---------------------------------------------------------------------------


class TestTradeRepository:
    @pytest.fixture
    def repo(self, session_factory):
        return TradeRepository(session_factory)

    async def test_create_adds_orm_and_commits(self, repo, mock_session):
        trade = _make_trade()
        result = await repo.create(trade)

        assert result is trade
        added = mock_session.add.call_args.args[0]
        assert isinstance(added, TradeORM)
        assert added.id == trade.id
        assert added.symbol == "BTCUSDT"
        mock_session.flush.assert_awaited_once()
        mock_session.commit.assert_awaited_once()

    async def test_get_recent_converts_decimals(self, repo, mock_session):
        mock_session.execute.return_value = _scalars_result(
            [_make_trade_orm(profit_loss=Decimal("-1.25"))]
        )
        trades = await repo.get_recent(USER_ID, limit=10)

        assert len(trades) == 1
        assert trades[0].price == 50000.0
        assert isinstance(trades[0].quantity, float)
        assert trades[0].profit_loss == -1.25

    async def test_get_open(self, repo, mock_session):
        mock_session.execute.return_value = _scalars_result([_make_trade_orm()])
        trades = await repo.get_open(USER_ID)
        assert trades[0].is_open is True
        assert trades[0].profit_loss is None

    async def test_get_all_empty(self, repo, mock_session):
        mock_session.execute.return_value = _scalars_result([])
        assert await repo.get_all(USER_ID) == []

    async def test_close_sets_profit_loss(self, repo, mock_session):
        orm = _make_trade_orm()
        mock_session.execute.return_value = _scalar_result(orm)

        await repo.close("t-1", 2.5)

        assert orm.profit_loss == 2.5
        assert orm.status == "EXECUTED"
        mock_session.commit.assert_awaited_once()

    async def test_close_unknown_trade(self, repo, mock_session):
        mock_session.execute.return_value = _scalar_result(None)
        with pytest.raises(ValueError, match="Trade not found"):
            await repo.close("missing", 1.0)
        mock_session.commit.assert_not_called()

    async def test_delete_all_returns_rowcount(self, repo, mock_session):
        result = MagicMock()
        result.rowcount = 3
        mock_session.execute.return_value = result
        assert await repo.delete_all(USER_ID) == 3
        mock_session.commit.assert_awaited_once()


# ---------------------------------------------------------------------------
# BotConfigRepository
# ---------------------------------------------------------------------------


class TestBotConfigRepository:
    @pytest.fixture
    def repo(self, session_factory):
        return BotConfigRepository(session_factory)

    async def test_get_missing(self, repo, mock_session):
        mock_session.execute.return_value = _scalar_result(None)
        assert await repo.get(USER_ID) is None

    async def test_get_converts_orm(self, repo, mock_session):
        mock_session.execute.return_value = _scalar_result(_make_config_orm())
        config = await repo.get(USER_ID)
        assert config is not None
        assert config.stop_loss_percent == 2.5
        assert config.test_balance == 1000.0
        assert config.has_api_credentials is False

    async def test_save_inserts_new_row(self, repo, mock_session):
        mock_session.execute.return_value = _scalar_result(None)
        config = _make_config(quantity=250.0, trading_pair="ETHUSDT")

        saved = await repo.save(config)

        added = mock_session.add.call_args.args[0]
        assert isinstance(added, BotConfigurationORM)
        assert added.user_id == USER_ID
        assert added.quantity == 250.0
        assert saved.trading_pair == "ETHUSDT"
        mock_session.commit.assert_awaited_once()

    async def test_save_overwrites_existing(self, repo, mock_session):
        orm = _make_config_orm()
        mock_session.execute.return_value = _scalar_result(orm)

        await repo.save(
            _make_config(test_mode=False, api_key_encrypted="aa", api_secret_encrypted="bb")
        )

        mock_session.add.assert_not_called()
        assert orm.test_mode is False
        assert orm.api_key_encrypted == "aa"

    async def test_update_known_fields_only(self, repo, mock_session):
        orm = _make_config_orm()
        mock_session.execute.return_value = _scalar_result(orm)

        updated = await repo.update(USER_ID, {"is_running": True, "bogus": 1})

        assert updated.is_running is True
        assert not hasattr(orm, "bogus")

    async def test_update_missing_config(self, repo, mock_session):
        mock_session.execute.return_value = _scalar_result(None)
        with pytest.raises(ConfigNotFoundError):
            await repo.update(USER_ID, {"is_running": True})


# ---------------------------------------------------------------------------
# BotLogRepository
# ---------------------------------------------------------------------------


class TestBotLogRepository:
    @pytest.fixture
    def repo(self, session_factory):
        return BotLogRepository(session_factory)

    async def test_add(self, repo, mock_session):
        entry = await repo.add(USER_ID, "INFO", "Bot started", {"symbol": "BTCUSDT"})

        added = mock_session.add.call_args.args[0]
        assert isinstance(added, BotLogORM)
        assert added.id == entry.id
        assert added.details == {"symbol": "BTCUSDT"}
        mock_session.commit.assert_awaited_once()

    async def test_get_recent(self, repo, mock_session):
        orm = BotLogORM(
            id="l-1",
            user_id=USER_ID,
            level="WARNING",
            message="Circuit breaker tripped",
            details=None,
            created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        )
        mock_session.execute.return_value = _scalars_result([orm])
        logs = await repo.get_recent(USER_ID)
        assert logs[0].level == "WARNING"

    async def test_delete_older_than(self, repo, mock_session):
        result = MagicMock()
        result.rowcount = 7
        mock_session.execute.return_value = result
        assert await repo.delete_older_than(90) == 7
