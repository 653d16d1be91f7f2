"""SQLAlchemy ORM models: trades, bot_configurations, bot_logs."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class TradeORM(Base):
    __tablename__ = "trades"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    symbol: Mapped[str] = mapped_column(String(30), nullable=False)
    side: Mapped[str] = mapped_column(
        String(4),
        CheckConstraint("side IN ('BUY', 'SELL')"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(
        String(6),
        CheckConstraint("type IN ('MARKET', 'LIMIT')"),
        nullable=False,
        default="MARKET",
    )
    price: Mapped[float] = mapped_column(Numeric(20, 8), nullable=False)
    quantity: Mapped[float] = mapped_column(Numeric(20, 8), nullable=False)
    status: Mapped[str] = mapped_column(
        String(10),
        CheckConstraint("status IN ('PENDING', 'EXECUTED', 'FAILED', 'CANCELLED')"),
        nullable=False,
        default="PENDING",
    )
    profit_loss: Mapped[float | None] = mapped_column(Numeric(20, 8))
    binance_order_id: Mapped[str | None] = mapped_column(String(50))
    executed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("idx_trades_user_id", "user_id"),
        Index("idx_trades_created_at", created_at.desc()),
        Index("idx_trades_symbol", "symbol"),
    )


class BotConfigurationORM(Base):
    __tablename__ = "bot_configurations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    api_key_encrypted: Mapped[str | None] = mapped_column(Text)
    api_secret_encrypted: Mapped[str | None] = mapped_column(Text)
    test_mode: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    test_balance: Mapped[float] = mapped_column(Numeric(20, 8), default=1000, nullable=False)
    trading_pair: Mapped[str] = mapped_column(String(30), default="BTCUSDT", nullable=False)
    quantity: Mapped[float] = mapped_column(Numeric(20, 8), default=100, nullable=False)
    take_profit_percent: Mapped[float] = mapped_column(Numeric(10, 4), default=5, nullable=False)
    stop_loss_percent: Mapped[float] = mapped_column(Numeric(10, 4), default=2.5, nullable=False)
    daily_profit_goal: Mapped[float] = mapped_column(Numeric(20, 8), default=50, nullable=False)
    is_running: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_powered_on: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class BotLogORM(Base):
    __tablename__ = "bot_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    level: Mapped[str] = mapped_column(
        String(10),
        CheckConstraint("level IN ('INFO', 'WARNING', 'ERROR', 'SUCCESS')"),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[dict | None] = mapped_column(JSONB)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("idx_bot_logs_user_id", "user_id"),
        Index("idx_bot_logs_created_at", created_at.desc()),
    )
