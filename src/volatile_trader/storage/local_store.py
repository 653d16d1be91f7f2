"""JSON-file storage: config.json, trades.json, logs.json under LOCAL_DATA_DIR."""

from __future__ import annotations

import asyncio
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Generic, TypeVar

import structlog
from pydantic import TypeAdapter

from volatile_trader.models.bot_config import BotConfig
from volatile_trader.models.bot_log import BotLog
from volatile_trader.models.trade import Trade

logger = structlog.get_logger()

T = TypeVar("T")


class JsonFile(Generic[T]):
    """One JSON document on disk guarded by an asyncio.Lock. File IO runs in a worker thread."""

    def __init__(self, path: Path, adapter: TypeAdapter[T], default: Any) -> None:
        self.path = path
        self.adapter = adapter
        self.default = default
        self.lock = asyncio.Lock()

    async def read(self) -> T:
        return await asyncio.to_thread(self._read_sync)

    async def write(self, value: T) -> None:
        await asyncio.to_thread(self._write_sync, value)

    def _read_sync(self) -> T:
        if not self.path.exists():
            return self.adapter.validate_python(self.default)
        raw = self.path.read_bytes()
        if not raw.strip():
            return self.adapter.validate_python(self.default)
        return self.adapter.validate_json(raw)

    def _write_sync(self, value: T) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_bytes(self.adapter.dump_json(value, indent=2))
        os.replace(tmp, self.path)


class JsonTradeStore:
    def __init__(self, data_dir: str | Path) -> None:
        self.file: JsonFile[list[Trade]] = JsonFile(
            Path(data_dir) / "trades.json", TypeAdapter(list[Trade]), []
        )

    async def create(self, trade: Trade) -> Trade:
        async with self.file.lock:
            trades = await self.file.read()
            trades.append(trade)
            await self.file.write(trades)
        logger.info("trade_created", trade_id=trade.id, symbol=trade.symbol, side=trade.side)
        return trade

    async def get_all(self, user_id: str) -> list[Trade]:
        """All trades of the user, newest first."""
        trades = await self.file.read()
        own = [t for t in trades if t.user_id == user_id]
        return sorted(own, key=lambda t: t.created_at, reverse=True)

    async def get_recent(self, user_id: str, limit: int = 50) -> list[Trade]:
        return (await self.get_all(user_id))[:limit]

    async def get_open(self, user_id: str) -> list[Trade]:
        return [t for t in await self.get_all(user_id) if t.is_open]

    async def get_since(self, user_id: str, since: datetime) -> list[Trade]:
        return [t for t in await self.get_all(user_id) if t.created_at >= since]

    async def close(self, trade_id: str, profit_loss: float) -> None:
        async with self.file.lock:
            trades = await self.file.read()
            for i, trade in enumerate(trades):
                if trade.id == trade_id:
                    trades[i] = trade.model_copy(
                        update={"profit_loss": profit_loss, "status": "EXECUTED"}
                    )
                    break
            else:
                raise ValueError(f"Trade not found: {trade_id}")
            await self.file.write(trades)
        logger.info("trade_closed", trade_id=trade_id, profit_loss=profit_loss)

    async def delete_all(self, user_id: str) -> int:
        async with self.file.lock:
            trades = await self.file.read()
            kept = [t for t in trades if t.user_id != user_id]
            await self.file.write(kept)
        deleted = len(trades) - len(kept)
        logger.info("trades_deleted", user_id=user_id, count=deleted)
        return deleted


class JsonConfigStore:
    """
    config.json maps user id -> config, one config per user.
    A user without an entry reads as the default configuration.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.file: JsonFile[dict[str, BotConfig]] = JsonFile(
            Path(data_dir) / "config.json", TypeAdapter(dict[str, BotConfig]), {}
        )

    async def get(self, user_id: str) -> BotConfig | None:
        configs = await self.file.read()
        return configs.get(user_id) or BotConfig(user_id=user_id)

    async def save(self, config: BotConfig) -> BotConfig:
        async with self.file.lock:
            configs = await self.file.read()
            configs[config.user_id] = config
            await self.file.write(configs)
        logger.info("bot_config_saved", user_id=config.user_id)
        return config

    async def update(self, user_id: str, updates: dict[str, Any]) -> BotConfig:
        async with self.file.lock:
            configs = await self.file.read()
            current = configs.get(user_id) or BotConfig(user_id=user_id)
            config = current.model_copy(
                update={**updates, "user_id": user_id, "updated_at": datetime.now(timezone.utc)}
            )
            configs[user_id] = config
            await self.file.write(configs)
        logger.info("bot_config_updated", user_id=user_id, fields=list(updates.keys()))
        return config


class JsonLogStore:
    def __init__(self, data_dir: str | Path, max_entries: int = 500) -> None:
        self.max_entries = max_entries
        self.file: JsonFile[list[BotLog]] = JsonFile(
            Path(data_dir) / "logs.json", TypeAdapter(list[BotLog]), []
        )

    async def add(
        self,
        user_id: str,
        level: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> BotLog:
        entry = BotLog(user_id=user_id, level=level, message=message, details=details)
        async with self.file.lock:
            logs = await self.file.read()
            logs.append(entry)
            await self.file.write(logs[-self.max_entries :])
        return entry

    async def get_recent(self, user_id: str, limit: int = 100) -> list[BotLog]:
        logs = await self.file.read()
        own = [entry for entry in logs if entry.user_id == user_id]
        own.sort(key=lambda entry: entry.created_at, reverse=True)
        return own[:limit]

    async def delete_older_than(self, days: int = 90) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        async with self.file.lock:
            logs = await self.file.read()
            kept = [entry for entry in logs if entry.created_at >= cutoff]
            await self.file.write(kept)
        deleted = len(logs) - len(kept)
        logger.info("bot_logs_cleaned", count=deleted, days=days)
        return deleted
