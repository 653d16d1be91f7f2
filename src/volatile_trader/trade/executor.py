"""Execute trades: validate -> simulate (test mode) or place signed order -> persist -> log."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog

from volatile_trader.errors import ConfigNotFoundError, CredentialsMissingError, TradeValidationError
from volatile_trader.models.trade import Trade, TradeExecution, TradeRequest
from volatile_trader.trade.validator import TradeRequestValidator, normalize_symbol

if TYPE_CHECKING:
    from volatile_trader.binance.credentials import CredentialCipher
    from volatile_trader.binance.rest import BinanceRestClient
    from volatile_trader.storage.base import ConfigStore, LogStore, TradeStore

logger = structlog.get_logger()


def calculate_profit_loss(buy_price: float, sell_price: float, quantity: float) -> float:
    return (sell_price - buy_price) * quantity


def should_take_profit(buy_price: float, current_price: float, take_profit_percent: float) -> bool:
    return current_price >= buy_price * (1 + take_profit_percent / 100)


def should_stop_loss(buy_price: float, current_price: float, stop_loss_percent: float) -> bool:
    return current_price <= buy_price * (1 - stop_loss_percent / 100)


def fill_price(order: dict[str, Any]) -> float:
    """Average fill price of a Binance order response, falling back to its ``price`` field."""
    executed_qty = float(order.get("executedQty") or 0)
    quote_qty = float(order.get("cummulativeQuoteQty") or 0)
    if executed_qty > 0 and quote_qty > 0:
        return quote_qty / executed_qty
    return float(order.get("price") or 0)


class TradeExecutor:
    def __init__(
        self,
        rest_client: BinanceRestClient,
        trade_store: TradeStore,
        config_store: ConfigStore,
        log_store: LogStore,
        cipher: CredentialCipher,
        validator: TradeRequestValidator | None = None,
    ) -> None:
        self.rest_client = rest_client
        self.trade_store = trade_store
        self.config_store = config_store
        self.log_store = log_store
        self.cipher = cipher
        self.validator = validator or TradeRequestValidator()

    async def execute(self, user_id: str, request: TradeRequest) -> TradeExecution:
        """Full execution: validate -> load config -> simulate or place order -> persist."""
        validation = self.validator.validate(request)
        if not validation.valid:
            raise TradeValidationError(validation.errors)

        symbol = normalize_symbol(request.symbol)
        side = request.side.upper()
        order_type = request.type.upper()

        config = await self.config_store.get(user_id)
        if config is None:
            raise ConfigNotFoundError(user_id)

        if request.test_mode or config.test_mode:
            return await self._execute_simulated(user_id, symbol, side, order_type, request.quantity)

        if not config.has_api_credentials:
            raise CredentialsMissingError()

        api_key = self.cipher.decrypt(config.api_key_encrypted or "")
        api_secret = self.cipher.decrypt(config.api_secret_encrypted or "")

        order = await self.rest_client.place_order(
            api_key, api_secret, symbol, side, order_type, request.quantity
        )
        order_id = order.get("orderId")
        trade = Trade(
            user_id=user_id,
            symbol=symbol,
            side=side,
            type=order_type,
            quantity=request.quantity,
            price=fill_price(order),
            status="EXECUTED",
            binance_order_id=str(order_id) if order_id is not None else None,
            executed_at=datetime.now(timezone.utc),
        )
        trade = await self._persist(trade)
        await self.log_store.add(
            user_id,
            "SUCCESS",
            f"Trade executed: {side} {request.quantity} {symbol}",
            {"test_mode": False, "trade_id": trade.id, "binance": order},
        )
        logger.info("trade_executed", symbol=symbol, side=side, order_id=order_id, test_mode=False)
        return TradeExecution(test_mode=False, trade=trade, order=order)

    async def close_position(
        self, user_id: str, trade: Trade, test_mode: bool = True, reason: str = ""
    ) -> Trade:
        """SELL the quantity of an open BUY and record its realised profit/loss."""
        execution = await self.execute(
            user_id,
            TradeRequest(
                symbol=trade.symbol, side="SELL", quantity=trade.quantity, test_mode=test_mode
            ),
        )
        sell_price = execution.trade.price
        profit_loss = calculate_profit_loss(trade.price, sell_price, trade.quantity)
        await self.trade_store.close(trade.id, profit_loss)

        level = "SUCCESS" if profit_loss >= 0 else "WARNING"
        await self.log_store.add(
            user_id,
            level,
            f"Position closed: {trade.symbol} {trade.price:.2f} -> {sell_price:.2f}"
            f" (PnL {profit_loss:+.4f} USDT)",
            {"trade_id": trade.id, "reason": reason, "profit_loss": profit_loss},
        )
        logger.info(
            "position_closed",
            trade_id=trade.id,
            symbol=trade.symbol,
            profit_loss=profit_loss,
            reason=reason,
        )
        return trade.model_copy(update={"profit_loss": profit_loss})

    async def _execute_simulated(
        self, user_id: str, symbol: str, side: str, order_type: str, quantity: float
    ) -> TradeExecution:
        price_data = await self.rest_client.get_price(symbol)
        trade = Trade(
            user_id=user_id,
            symbol=symbol,
            side=side,
            type=order_type,
            quantity=quantity,
            price=price_data.price,
            status="EXECUTED",
            executed_at=datetime.now(timezone.utc),
        )
        trade = await self._persist(trade)
        await self.log_store.add(
            user_id,
            "SUCCESS",
            f"Simulated trade executed: {side} {quantity} {symbol} @ {price_data.price}",
            {"test_mode": True, "trade_id": trade.id},
        )
        order = {
            "orderId": f"TEST_{int(time.time() * 1000)}",
            "symbol": symbol,
            "side": side,
            "quantity": quantity,
            "price": price_data.price,
            "status": "EXECUTED",
        }
        logger.info("trade_executed", symbol=symbol, side=side, price=price_data.price, test_mode=True)
        return TradeExecution(test_mode=True, trade=trade, order=order)

    async def _persist(self, trade: Trade) -> Trade:
        # The order already went through; a storage failure must not turn it into an error.
        try:
            return await self.trade_store.create(trade)
        except Exception:
            logger.exception("trade_persist_error", symbol=trade.symbol, side=trade.side)
            return trade
