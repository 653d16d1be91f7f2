"""Bot reset, close-all and status."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from volatile_trader.errors import ConfigNotFoundError
from volatile_trader.models.stats import BotStatus

if TYPE_CHECKING:
    from volatile_trader.storage.base import ConfigStore, LogStore, TradeStore

logger = structlog.get_logger()

DEFAULT_BALANCE = 1000.0


class ResetService:
    def __init__(self, trade_store: TradeStore, config_store: ConfigStore, log_store: LogStore) -> None:
        self.trade_store = trade_store
        self.config_store = config_store
        self.log_store = log_store

    async def reset_bot(
        self,
        user_id: str,
        reset_trades: bool = True,
        reset_balance: bool = True,
        new_balance: float = DEFAULT_BALANCE,
    ) -> float:
        """Delete trades, restore the test balance and stop the bot. Returns the new balance."""
        deleted = 0
        if reset_trades:
            deleted = await self.trade_store.delete_all(user_id)

        updates: dict = {"is_running": False, "is_powered_on": False}
        if reset_balance:
            updates["test_balance"] = new_balance
        config = await self.config_store.update(user_id, updates)

        await self.log_store.add(
            user_id,
            "INFO",
            f"Bot reset: {deleted} trades removed, balance {config.test_balance}",
            {"deleted_trades": deleted, "new_balance": config.test_balance},
        )
        logger.info("bot_reset", user_id=user_id, deleted_trades=deleted, new_balance=config.test_balance)
        return config.test_balance

    async def close_all_positions(self, user_id: str) -> int:
        """Mark every open position as closed at zero profit/loss."""
        open_trades = await self.trade_store.get_open(user_id)
        for trade in open_trades:
            await self.trade_store.close(trade.id, 0.0)
        if open_trades:
            await self.log_store.add(
                user_id, "INFO", f"{len(open_trades)} open positions closed manually"
            )
        logger.info("positions_closed", user_id=user_id, count=len(open_trades))
        return len(open_trades)

    async def get_bot_status(self, user_id: str) -> BotStatus:
        config = await self.config_store.get(user_id)
        if config is None:
            raise ConfigNotFoundError(user_id)
        trades = await self.trade_store.get_all(user_id)
        return BotStatus(
            is_running=config.is_running,
            is_powered_on=config.is_powered_on,
            open_positions=sum(1 for t in trades if t.is_open),
            total_trades=len(trades),
            test_balance=config.test_balance,
            test_mode=config.test_mode,
        )
