"""Unit tests for ResetService."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from tests.conftest import USER_ID, _make_trade
from volatile_trader.errors import ConfigNotFoundError
from volatile_trader.services.reset import ResetService


@pytest.fixture
def service(mock_trade_store, mock_config_store, mock_log_store) -> ResetService:
    return ResetService(mock_trade_store, mock_config_store, mock_log_store)


class TestResetBot:
    async def test_full_reset(
        self, service, mock_trade_store, mock_config_store, mock_log_store
    ) -> None:
        mock_trade_store.delete_all = AsyncMock(return_value=12)

        balance = await service.reset_bot(USER_ID, new_balance=2000.0)

        assert balance == 2000.0
        mock_trade_store.delete_all.assert_awaited_once_with(USER_ID)
        updates = mock_config_store.update.call_args.args[1]
        assert updates == {"is_running": False, "is_powered_on": False, "test_balance": 2000.0}
        details = mock_log_store.add.call_args.args[3]
        assert details["deleted_trades"] == 12

    async def test_default_balance(self, service) -> None:
        assert await service.reset_bot(USER_ID) == 1000.0

    async def test_keep_trades_and_balance(
        self, service, mock_trade_store, mock_config_store
    ) -> None:
        balance = await service.reset_bot(USER_ID, reset_trades=False, reset_balance=False)

        mock_trade_store.delete_all.assert_not_called()
        updates = mock_config_store.update.call_args.args[1]
        assert "test_balance" not in updates
        assert balance == 1000.0


class TestCloseAllPositions:
    async def test_closes_open_trades(self, service, mock_trade_store, mock_log_store) -> None:
        trades = [_make_trade(), _make_trade()]
        mock_trade_store.get_open = AsyncMock(return_value=trades)

        assert await service.close_all_positions(USER_ID) == 2
        assert mock_trade_store.close.await_count == 2
        mock_trade_store.close.assert_any_await(trades[0].id, 0.0)
        mock_log_store.add.assert_awaited_once()

    async def test_nothing_open(self, service, mock_log_store) -> None:
        assert await service.close_all_positions(USER_ID) == 0
        mock_log_store.add.assert_not_called()


class TestBotStatus:
    async def test_status(self, service, mock_trade_store, past_trades) -> None:
        mock_trade_store.get_all = AsyncMock(return_value=past_trades)
        status = await service.get_bot_status(USER_ID)
        assert status.open_positions == 1
        assert status.total_trades == 6
        assert status.test_mode is True
        assert status.is_running is False

    async def test_missing_config(self, service, mock_config_store) -> None:
        mock_config_store.get = AsyncMock(return_value=None)
        with pytest.raises(ConfigNotFoundError):
            await service.get_bot_status(USER_ID)
