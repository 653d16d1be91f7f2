"""Headless trading loop: prices -> mean-reversion signals -> open/close positions."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog

from volatile_trader.indicator.price_history import PriceHistory
from volatile_trader.models.trade import TradeRequest
from volatile_trader.risk.circuit_breaker import CircuitBreaker, adaptive_params
from volatile_trader.strategy.mean_reversion import MeanReversionStrategy
from volatile_trader.trade.executor import should_stop_loss, should_take_profit

if TYPE_CHECKING:
    from volatile_trader.config import Settings
    from volatile_trader.models.bot_config import BotConfig
    from volatile_trader.models.stats import AdaptiveRiskParams
    from volatile_trader.models.trade import Trade
    from volatile_trader.services.container import Services

logger = structlog.get_logger()

LOG_CLEANUP_INTERVAL = timedelta(hours=24)


class TradingEngine:
    """
    Every ENGINE_TICK_SECONDS, for the ENGINE_USER_ID bot:
    1. skip unless the bot is powered on
    2. evaluate the circuit breaker from today's operations
    3. fetch prices for TRADING_SYMBOLS into the price history
    4. close open positions on a SELL signal, TP/SL or max hold time
    5. unless paused, open positions on BUY signals (up to MAX_POSITIONS)
    """

    def __init__(
        self,
        settings: Settings,
        services: Services,
        strategy: MeanReversionStrategy | None = None,
        history: PriceHistory | None = None,
        circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        self.settings = settings
        self.services = services
        self.user_id = settings.ENGINE_USER_ID
        self.symbols = list(settings.TRADING_SYMBOLS)
        self.strategy = strategy or MeanReversionStrategy()
        self.history = history or PriceHistory(max_prices=settings.PRICE_HISTORY_LIMIT)
        self.circuit_breaker = circuit_breaker or CircuitBreaker(settings)
        self.running = False
        self.last_tick_at: datetime | None = None
        self.last_cleanup_at: datetime | None = None

    async def start(self) -> None:
        self.running = True
        logger.info("trading_engine_started", user_id=self.user_id, symbols=self.symbols)
        await self.backfill()
        while self.running:
            try:
                await self.tick()
                await self._maybe_cleanup_logs()
            except Exception:
                logger.exception("engine_tick_error")
            if self.running:
                await asyncio.sleep(self.settings.ENGINE_TICK_SECONDS)

    async def stop(self) -> None:
        self.running = False
        logger.info("trading_engine_stopped")

    def status(self) -> dict:
        return {
            "is_running": self.running,
            "last_heartbeat": self.last_tick_at.isoformat() if self.last_tick_at else None,
            "symbols": self.symbols,
            "paused_until": (
                self.circuit_breaker.paused_until.isoformat()
                if self.circuit_breaker.paused_until
                else None
            ),
        }

    async def backfill(self) -> None:
        """Seed the price history from recent klines so signals are available immediately."""
        for symbol in self.symbols:
            try:
                candles = await self.services.rest_client.get_klines(
                    symbol, self.settings.BACKFILL_INTERVAL, self.settings.PRICE_HISTORY_LIMIT
                )
                self.history.extend(symbol, [c.close for c in candles])
            except Exception:
                logger.exception("backfill_error", symbol=symbol)

    async def tick(self) -> None:
        now = datetime.now(timezone.utc)
        config = await self.services.config_store.get(self.user_id)
        if config is None or not config.is_powered_on:
            logger.debug("engine_idle", user_id=self.user_id)
            return
        self.last_tick_at = now

        operations = await self.services.stats.get_today_operations(self.user_id)
        capital = await self.services.stats.initial_capital(config)
        decision = self.circuit_breaker.evaluate(
            operations.loss_streak, operations.daily_pnl, capital, now=now
        )
        params = adaptive_params(operations.loss_streak)

        prices = await self._fetch_prices()

        open_trades = await self.services.trade_store.get_open(self.user_id)
        still_open: list[Trade] = []
        for trade in open_trades:
            price = prices.get(trade.symbol)
            if price is None:
                still_open.append(trade)
                continue
            try:
                reason = self._exit_reason(trade, price, config, params, now)
                if reason is None:
                    still_open.append(trade)
                    continue
                await self.services.executor.close_position(
                    self.user_id, trade, test_mode=config.test_mode, reason=reason
                )
            except Exception:
                logger.exception("close_position_error", trade_id=trade.id, symbol=trade.symbol)
                still_open.append(trade)

        if decision.should_pause:
            logger.warning("entries_paused", reason=decision.reason)
            return

        held = {t.symbol for t in still_open}
        open_count = len(still_open)
        for symbol, price in prices.items():
            if open_count >= self.settings.MAX_POSITIONS:
                break
            if symbol in held:
                continue
            try:
                if await self._maybe_open(symbol, price, config):
                    open_count += 1
            except Exception:
                logger.exception("open_position_error", symbol=symbol)

    async def _fetch_prices(self) -> dict[str, float]:
        prices: dict[str, float] = {}
        for symbol in self.symbols:
            try:
                data = await self.services.rest_client.get_price(symbol)
            except Exception:
                logger.exception("price_fetch_error", symbol=symbol)
                continue
            self.history.add(symbol, data.price)
            prices[symbol] = data.price
        return prices

    def _exit_reason(
        self,
        trade: Trade,
        price: float,
        config: BotConfig,
        params: AdaptiveRiskParams,
        now: datetime,
    ) -> str | None:
        # Band/RSI exits only; SL/TP come from the config scaled by the adaptive params
        signal = self.strategy.analyze_sell(self.history.get(trade.symbol))
        if signal.action == "SELL":
            return signal.reason

        stop_loss = config.stop_loss_percent * params.stop_loss_multiplier
        take_profit = config.take_profit_percent * params.take_profit_multiplier
        if should_stop_loss(trade.price, price, stop_loss):
            return f"Stop loss {stop_loss:.2f}% ({params.mode})"
        if should_take_profit(trade.price, price, take_profit):
            return f"Take profit {take_profit:.2f}% ({params.mode})"

        opened_at = trade.executed_at or trade.created_at
        if now - opened_at > timedelta(minutes=self.settings.MAX_HOLD_MINUTES):
            return f"Max hold time of {self.settings.MAX_HOLD_MINUTES} min reached"
        return None

    async def _maybe_open(self, symbol: str, price: float, config: BotConfig) -> bool:
        signal = self.strategy.analyze_buy(self.history.get(symbol))
        if signal.action != "BUY" or signal.confidence < self.settings.MIN_SIGNAL_CONFIDENCE:
            logger.debug("no_entry", symbol=symbol, reason=signal.reason)
            return False

        quantity = round(config.quantity / price, 6) if price > 0 else 0.0
        if quantity <= 0:
            logger.warning("entry_quantity_zero", symbol=symbol, usdt=config.quantity, price=price)
            return False

        execution = await self.services.executor.execute(
            self.user_id,
            TradeRequest(symbol=symbol, side="BUY", quantity=quantity, test_mode=config.test_mode),
        )
        logger.info(
            "position_opened",
            symbol=symbol,
            price=execution.trade.price,
            quantity=quantity,
            confidence=signal.confidence,
            reason=signal.reason,
        )
        return True

    async def _maybe_cleanup_logs(self) -> None:
        now = datetime.now(timezone.utc)
        if self.last_cleanup_at and now - self.last_cleanup_at < LOG_CLEANUP_INTERVAL:
            return
        self.last_cleanup_at = now
        await self.services.log_store.delete_older_than(self.settings.LOG_RETENTION_DAYS)
