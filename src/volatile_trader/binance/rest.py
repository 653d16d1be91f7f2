"""Binance spot REST wrapper (httpx). Public market data + HMAC-signed account/order calls."""

from __future__ import annotations

import hashlib
import hmac
import time
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlencode

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from volatile_trader.errors import BinanceAPIError
from volatile_trader.models.market import Candle, MarketData, PriceData

logger = structlog.get_logger()

# Connection-level failures only. Timeouts and HTTP errors surface immediately.
TRANSIENT_ERRORS = (httpx.ConnectError, httpx.RemoteProtocolError)


def sign_query(query: str, secret: str) -> str:
    """HMAC-SHA256 hex digest of the query string."""
    return hmac.new(secret.encode("utf-8"), query.encode("utf-8"), hashlib.sha256).hexdigest()


def format_quantity(quantity: float) -> str:
    """Plain decimal string without exponent or trailing zeros."""
    text = f"{quantity:.8f}".rstrip("0").rstrip(".")
    return text or "0"


class BinanceRestClient:
    def __init__(
        self,
        base_url: str = "https://api.binance.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    # --- Public market data ---

    async def get_price(self, symbol: str, timeout: float | None = None) -> PriceData:
        """Latest price from /api/v3/ticker/price."""
        data = await self._public_get("/api/v3/ticker/price", {"symbol": symbol}, timeout=timeout)
        return PriceData(symbol=data["symbol"], price=float(data["price"]))

    async def get_24h_ticker(self, symbol: str) -> MarketData:
        data = await self._public_get("/api/v3/ticker/24hr", {"symbol": symbol})
        return _parse_ticker(data)

    async def get_24h_tickers(self) -> list[dict[str, Any]]:
        """All 24h tickers (raw dicts, used for pair screening)."""
        return await self._public_get("/api/v3/ticker/24hr")

    async def get_klines(self, symbol: str, interval: str = "1m", limit: int = 100) -> list[Candle]:
        rows = await self._public_get(
            "/api/v3/klines", {"symbol": symbol, "interval": interval, "limit": limit}
        )
        return [
            Candle(
                open_time=datetime.fromtimestamp(int(row[0]) / 1000, tz=timezone.utc),
                open=float(row[1]),
                high=float(row[2]),
                low=float(row[3]),
                close=float(row[4]),
                volume=float(row[5]),
            )
            for row in rows
        ]

    # --- Signed endpoints (never retried) ---

    async def get_account(self, api_key: str, api_secret: str) -> dict[str, Any]:
        return await self._signed_request("GET", "/api/v3/account", {}, api_key, api_secret)

    async def get_usdt_balance(self, api_key: str, api_secret: str) -> float:
        """USDT free + locked."""
        account = await self.get_account(api_key, api_secret)
        for balance in account.get("balances", []):
            if balance.get("asset") == "USDT":
                return float(balance.get("free", 0)) + float(balance.get("locked", 0))
        return 0.0

    async def place_order(
        self,
        api_key: str,
        api_secret: str,
        symbol: str,
        side: str,
        order_type: str,
        quantity: float,
    ) -> dict[str, Any]:
        """Signed POST /api/v3/order. Returns Binance's order payload."""
        params = {
            "symbol": symbol,
            "side": side,
            "type": order_type,
            "quantity": format_quantity(quantity),
        }
        try:
            data = await self._signed_request("POST", "/api/v3/order", params, api_key, api_secret)
        except Exception:
            logger.exception("place_order_error", symbol=symbol, side=side, quantity=quantity)
            raise
        logger.info(
            "order_placed",
            symbol=symbol,
            side=side,
            order_id=data.get("orderId"),
            status=data.get("status"),
        )
        return data

    # --- Internals ---

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True,
    )
    async def _public_get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        kwargs: dict[str, Any] = {"params": params}
        if timeout is not None:
            kwargs["timeout"] = timeout
        response = await self.client.get(path, **kwargs)
        return _decode(response)

    async def _signed_request(
        self,
        method: str,
        path: str,
        params: dict[str, Any],
        api_key: str,
        api_secret: str,
    ) -> Any:
        params = {**params, "timestamp": int(time.time() * 1000)}
        query = urlencode(params)
        signature = sign_query(query, api_secret)
        response = await self.client.request(
            method,
            f"{path}?{query}&signature={signature}",
            headers={"X-MBX-APIKEY": api_key},
        )
        return _decode(response)


def _decode(response: httpx.Response) -> Any:
    try:
        payload: Any = response.json()
    except ValueError:
        payload = response.text
    if not response.is_success:
        logger.warning(
            "binance_api_error",
            status_code=response.status_code,
            path=response.request.url.path,
            payload=payload,
        )
        raise BinanceAPIError(response.status_code, payload)
    return payload


def _parse_ticker(data: dict[str, Any]) -> MarketData:
    return MarketData(
        symbol=data["symbol"],
        price=float(data["lastPrice"]),
        price_change=float(data.get("priceChange", 0)),
        price_change_percent=float(data.get("priceChangePercent", 0)),
        high_24h=float(data.get("highPrice", 0)),
        low_24h=float(data.get("lowPrice", 0)),
        volume=float(data.get("volume", 0)),
        quote_volume=float(data.get("quoteVolume", 0)),
    )
