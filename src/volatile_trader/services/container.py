"""Wire settings into clients, stores and services."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog

from volatile_trader.binance.credentials import CredentialCipher
from volatile_trader.binance.proxy import BinanceProxy
from volatile_trader.binance.rest import BinanceRestClient
from volatile_trader.services.pair_selection import PairSelector
from volatile_trader.services.reset import ResetService
from volatile_trader.services.signals import SignalService
from volatile_trader.services.stats import StatsService
from volatile_trader.trade.executor import TradeExecutor

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from volatile_trader.config import Settings
    from volatile_trader.storage.base import ConfigStore, LogStore, TradeStore

logger = structlog.get_logger()


class Services:
    """Everything the HTTP handlers and the trading engine share."""

    def __init__(
        self,
        settings: Settings,
        trade_store: TradeStore,
        config_store: ConfigStore,
        log_store: LogStore,
        rest_client: BinanceRestClient,
        proxy: BinanceProxy,
        cipher: CredentialCipher,
        db_engine: AsyncEngine | None = None,
    ) -> None:
        self.settings = settings
        self.trade_store = trade_store
        self.config_store = config_store
        self.log_store = log_store
        self.rest_client = rest_client
        self.proxy = proxy
        self.cipher = cipher
        self.db_engine = db_engine

        self.executor = TradeExecutor(rest_client, trade_store, config_store, log_store, cipher)
        self.stats = StatsService(trade_store, config_store, rest_client, cipher)
        self.reset = ResetService(trade_store, config_store, log_store)
        self.pair_selector = PairSelector(rest_client)
        self.signals = SignalService(rest_client, interval=settings.BACKFILL_INTERVAL)

    async def aclose(self) -> None:
        await self.rest_client.aclose()
        await self.proxy.aclose()
        if self.db_engine is not None:
            await self.db_engine.dispose()


def build_services(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Services:
    """Build the storage backend named by STORAGE_BACKEND plus the Binance clients."""
    rest_client = BinanceRestClient(
        settings.BINANCE_API_URL, timeout=settings.HTTP_TIMEOUT_SECONDS, transport=transport
    )
    proxy = BinanceProxy(
        settings.BINANCE_PROXY_URL, timeout=settings.HTTP_TIMEOUT_SECONDS, transport=transport
    )
    cipher = CredentialCipher(settings.BINANCE_ENCRYPTION_KEY)

    db_engine = None
    if settings.STORAGE_BACKEND == "database":
        from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

        from volatile_trader.db.repository import (
            BotConfigRepository,
            BotLogRepository,
            TradeRepository,
        )

        db_engine = create_async_engine(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
        session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
        trade_store: TradeStore = TradeRepository(session_factory)
        config_store: ConfigStore = BotConfigRepository(session_factory)
        log_store: LogStore = BotLogRepository(session_factory)
    elif settings.STORAGE_BACKEND == "local":
        from volatile_trader.storage.local_store import (
            JsonConfigStore,
            JsonLogStore,
            JsonTradeStore,
        )

        trade_store = JsonTradeStore(settings.LOCAL_DATA_DIR)
        config_store = JsonConfigStore(settings.LOCAL_DATA_DIR)
        log_store = JsonLogStore(settings.LOCAL_DATA_DIR, max_entries=settings.LOCAL_LOG_LIMIT)
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")

    logger.info("services_built", storage_backend=settings.STORAGE_BACKEND)
    return Services(
        settings=settings,
        trade_store=trade_store,
        config_store=config_store,
        log_store=log_store,
        rest_client=rest_client,
        proxy=proxy,
        cipher=cipher,
        db_engine=db_engine,
    )
