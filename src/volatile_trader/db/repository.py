"""DB repositories: TradeRepository, BotConfigRepository, BotLogRepository."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from volatile_trader.db.models import BotConfigurationORM, BotLogORM, TradeORM
from volatile_trader.errors import ConfigNotFoundError
from volatile_trader.models.bot_config import BotConfig
from volatile_trader.models.bot_log import BotLog
from volatile_trader.models.trade import Trade

logger = structlog.get_logger()

CONFIG_FIELDS = (
    "api_key_encrypted",
    "api_secret_encrypted",
    "test_mode",
    "test_balance",
    "trading_pair",
    "quantity",
    "take_profit_percent",
    "stop_loss_percent",
    "daily_profit_goal",
    "is_running",
    "is_powered_on",
)


def _float_or_none(value: Any) -> float | None:
    return float(value) if value is not None else None


def _orm_to_trade(orm: TradeORM) -> Trade:
    """Convert TradeORM to Trade Pydantic model."""
    return Trade(
        id=orm.id,
        user_id=orm.user_id,
        symbol=orm.symbol,
        side=orm.side,
        type=orm.type,
        price=float(orm.price),
        quantity=float(orm.quantity),
        status=orm.status,
        profit_loss=_float_or_none(orm.profit_loss),
        binance_order_id=orm.binance_order_id,
        executed_at=orm.executed_at,
        created_at=orm.created_at,
    )


def _orm_to_config(orm: BotConfigurationORM) -> BotConfig:
    return BotConfig(
        id=orm.id,
        user_id=orm.user_id,
        api_key_encrypted=orm.api_key_encrypted,
        api_secret_encrypted=orm.api_secret_encrypted,
        test_mode=orm.test_mode,
        test_balance=float(orm.test_balance),
        trading_pair=orm.trading_pair,
        quantity=float(orm.quantity),
        take_profit_percent=float(orm.take_profit_percent),
        stop_loss_percent=float(orm.stop_loss_percent),
        daily_profit_goal=float(orm.daily_profit_goal),
        is_running=orm.is_running,
        is_powered_on=orm.is_powered_on,
        created_at=orm.created_at,
        updated_at=orm.updated_at,
    )


def _orm_to_log(orm: BotLogORM) -> BotLog:
    return BotLog(
        id=orm.id,
        user_id=orm.user_id,
        level=orm.level,
        message=orm.message,
        details=orm.details,
        created_at=orm.created_at,
    )


class TradeRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def create(self, trade: Trade) -> Trade:
        """Insert a trade record. Returns the stored trade."""
        async with self.session_factory() as session:
            orm = TradeORM(**trade.model_dump())
            session.add(orm)
            await session.flush()
            await session.commit()
            logger.info("trade_created", trade_id=trade.id, symbol=trade.symbol, side=trade.side)
            return trade

    async def get_all(self, user_id: str) -> list[Trade]:
        """All trades of a user, newest first."""
        async with self.session_factory() as session:
            stmt = (
                select(TradeORM)
                .where(TradeORM.user_id == user_id)
                .order_by(TradeORM.created_at.desc())
            )
            result = await session.execute(stmt)
            return [_orm_to_trade(t) for t in result.scalars().all()]

    async def get_recent(self, user_id: str, limit: int = 50) -> list[Trade]:
        async with self.session_factory() as session:
            stmt = (
                select(TradeORM)
                .where(TradeORM.user_id == user_id)
                .order_by(TradeORM.created_at.desc())
                .limit(limit)
            )
            result = await session.execute(stmt)
            return [_orm_to_trade(t) for t in result.scalars().all()]

    async def get_open(self, user_id: str) -> list[Trade]:
        """BUY trades whose profit_loss is not set yet."""
        async with self.session_factory() as session:
            stmt = (
                select(TradeORM)
                .where(
                    TradeORM.user_id == user_id,
                    TradeORM.side == "BUY",
                    TradeORM.profit_loss.is_(None),
                )
                .order_by(TradeORM.created_at.desc())
            )
            result = await session.execute(stmt)
            return [_orm_to_trade(t) for t in result.scalars().all()]

    async def get_since(self, user_id: str, since: datetime) -> list[Trade]:
        async with self.session_factory() as session:
            stmt = (
                select(TradeORM)
                .where(TradeORM.user_id == user_id, TradeORM.created_at >= since)
                .order_by(TradeORM.created_at.desc())
            )
            result = await session.execute(stmt)
            return [_orm_to_trade(t) for t in result.scalars().all()]

    async def close(self, trade_id: str, profit_loss: float) -> None:
        """Record the realised profit/loss of a trade."""
        async with self.session_factory() as session:
            stmt = select(TradeORM).where(TradeORM.id == trade_id)
            result = await session.execute(stmt)
            trade = result.scalar_one_or_none()
            if trade is None:
                raise ValueError(f"Trade not found: {trade_id}")
            trade.profit_loss = profit_loss
            trade.status = "EXECUTED"
            await session.flush()
            await session.commit()
            logger.info("trade_closed", trade_id=trade_id, profit_loss=profit_loss)

    async def delete_all(self, user_id: str) -> int:
        async with self.session_factory() as session:
            result = await session.execute(delete(TradeORM).where(TradeORM.user_id == user_id))
            await session.commit()
            deleted = result.rowcount or 0
            logger.info("trades_deleted", user_id=user_id, count=deleted)
            return deleted


class BotConfigRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get(self, user_id: str) -> BotConfig | None:
        async with self.session_factory() as session:
            stmt = select(BotConfigurationORM).where(BotConfigurationORM.user_id == user_id)
            result = await session.execute(stmt)
            orm = result.scalar_one_or_none()
            return _orm_to_config(orm) if orm is not None else None

    async def save(self, config: BotConfig) -> BotConfig:
        """Insert or overwrite the user's configuration (last write wins)."""
        async with self.session_factory() as session:
            stmt = select(BotConfigurationORM).where(BotConfigurationORM.user_id == config.user_id)
            result = await session.execute(stmt)
            orm = result.scalar_one_or_none()
            if orm is None:
                orm = BotConfigurationORM(
                    id=config.id, user_id=config.user_id, created_at=config.created_at
                )
                session.add(orm)
            for field in CONFIG_FIELDS:
                setattr(orm, field, getattr(config, field))
            orm.updated_at = datetime.now(timezone.utc)
            await session.flush()
            await session.commit()
            logger.info("bot_config_saved", user_id=config.user_id)
            return _orm_to_config(orm)

    async def update(self, user_id: str, updates: dict[str, Any]) -> BotConfig:
        async with self.session_factory() as session:
            stmt = select(BotConfigurationORM).where(BotConfigurationORM.user_id == user_id)
            result = await session.execute(stmt)
            orm = result.scalar_one_or_none()
            if orm is None:
                raise ConfigNotFoundError(user_id)
            for key, value in updates.items():
                if key in CONFIG_FIELDS:
                    setattr(orm, key, value)
            orm.updated_at = datetime.now(timezone.utc)
            await session.flush()
            await session.commit()
            logger.info("bot_config_updated", user_id=user_id, fields=list(updates.keys()))
            return _orm_to_config(orm)


class BotLogRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def add(
        self,
        user_id: str,
        level: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> BotLog:
        entry = BotLog(user_id=user_id, level=level, message=message, details=details)
        async with self.session_factory() as session:
            session.add(
                BotLogORM(
                    id=entry.id,
                    user_id=user_id,
                    level=level,
                    message=message,
                    details=entry.model_dump(mode="json")["details"],
                    created_at=entry.created_at,
                )
            )
            await session.commit()
        return entry

    async def get_recent(self, user_id: str, limit: int = 100) -> list[BotLog]:
        async with self.session_factory() as session:
            stmt = (
                select(BotLogORM)
                .where(BotLogORM.user_id == user_id)
                .order_by(BotLogORM.created_at.desc())
                .limit(limit)
            )
            result = await session.execute(stmt)
            return [_orm_to_log(entry) for entry in result.scalars().all()]

    async def delete_older_than(self, days: int = 90) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        async with self.session_factory() as session:
            result = await session.execute(delete(BotLogORM).where(BotLogORM.created_at < cutoff))
            await session.commit()
            deleted = result.rowcount or 0
            logger.info("bot_logs_cleaned", count=deleted, days=days)
            return deleted
