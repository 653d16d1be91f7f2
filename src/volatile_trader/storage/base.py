"""Storage interfaces shared by the JSON-file and PostgreSQL backends."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from volatile_trader.models.bot_config import BotConfig
from volatile_trader.models.bot_log import BotLog
from volatile_trader.models.trade import Trade


class TradeStore(Protocol):
    async def create(self, trade: Trade) -> Trade: ...

    async def get_recent(self, user_id: str, limit: int = 50) -> list[Trade]: ...

    async def get_all(self, user_id: str) -> list[Trade]: ...

    async def get_open(self, user_id: str) -> list[Trade]: ...

    async def get_since(self, user_id: str, since: datetime) -> list[Trade]: ...

    async def close(self, trade_id: str, profit_loss: float) -> None: ...

    async def delete_all(self, user_id: str) -> int: ...


class ConfigStore(Protocol):
    async def get(self, user_id: str) -> BotConfig | None: ...

    async def save(self, config: BotConfig) -> BotConfig: ...

    async def update(self, user_id: str, updates: dict[str, Any]) -> BotConfig: ...


class LogStore(Protocol):
    async def add(
        self,
        user_id: str,
        level: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> BotLog: ...

    async def get_recent(self, user_id: str, limit: int = 100) -> list[BotLog]: ...

    async def delete_older_than(self, days: int = 90) -> int: ...
