"""Edge-function style endpoints under /functions/v1.

Each handler catches everything and answers with a JSON error body:
| Function              | Validation | Other errors          |
|-----------------------|------------|-----------------------|
| binance-execute-trade | 400        | 500                   |
| binance-get-balance   | 400        | 400                   |
| store-api-credentials | 400        | 500                   |
| binance-get-price     | -          | 504 timeout, else 500 |
| reset-bot             | 400        | 500                   |
Authentication failures answer 401 before the handler runs.
"""

from __future__ import annotations

import time
from typing import Annotated, Any

import httpx
import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from volatile_trader.api.auth import get_current_user
from volatile_trader.errors import ConfigNotFoundError, CredentialsMissingError, TradeValidationError
from volatile_trader.models.trade import TradeRequest
from volatile_trader.services.reset import DEFAULT_BALANCE

logger = structlog.get_logger()

router = APIRouter(prefix="/functions/v1", tags=["Functions"])

CurrentUser = Annotated[str, Depends(get_current_user)]


class CredentialsBody(BaseModel):
    apiKey: str = Field(min_length=10, max_length=200)
    apiSecret: str = Field(min_length=10, max_length=200)


class ResetBody(BaseModel):
    userId: str | None = None
    newBalance: float = Field(default=DEFAULT_BALANCE, ge=0)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _error_details(error: ValidationError) -> list[dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in error.errors()
    ]


async def _json_body(request: Request) -> dict[str, Any]:
    """Request body as a dict. An empty body reads as {}."""
    raw = await request.body()
    if not raw.strip():
        return {}
    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


@router.post("/binance-execute-trade")
async def execute_trade(request: Request, user_id: CurrentUser) -> JSONResponse:
    services = request.app.state.services
    try:
        trade_request = TradeRequest.model_validate(await _json_body(request))
        execution = await services.executor.execute(user_id, trade_request)
    except (TradeValidationError, ValueError) as e:
        logger.warning("execute_trade_invalid", user_id=user_id, error=str(e))
        return JSONResponse(
            {"error": str(e), "details": "Failed to execute trade"}, status_code=400
        )
    except Exception as e:
        logger.exception("execute_trade_error", user_id=user_id)
        return JSONResponse(
            {"error": str(e) or "Unknown error", "details": "Failed to execute trade"},
            status_code=500,
        )

    return JSONResponse(
        {"success": True, "testMode": execution.test_mode, "trade": execution.order}
    )


@router.post("/binance-get-balance")
async def get_balance(request: Request, user_id: CurrentUser) -> JSONResponse:
    services = request.app.state.services
    try:
        config = await services.config_store.get(user_id)
        if config is None:
            raise ConfigNotFoundError(user_id)
        if not config.has_api_credentials:
            raise CredentialsMissingError()
        api_key = services.cipher.decrypt(config.api_key_encrypted)
        api_secret = services.cipher.decrypt(config.api_secret_encrypted)
        balance = await services.rest_client.get_usdt_balance(api_key, api_secret)
    except Exception as e:
        logger.exception("get_balance_error", user_id=user_id)
        return JSONResponse({"error": str(e) or "Unknown error"}, status_code=400)

    return JSONResponse({"balance": balance, "timestamp": _now_ms()})


@router.post("/store-api-credentials")
async def store_api_credentials(request: Request, user_id: CurrentUser) -> JSONResponse:
    services = request.app.state.services
    try:
        body = CredentialsBody.model_validate(await _json_body(request))
    except ValidationError as e:
        return JSONResponse(
            {"error": "Invalid credentials format", "details": _error_details(e)},
            status_code=400,
        )
    except ValueError as e:
        return JSONResponse(
            {"error": "Invalid credentials format", "details": str(e)}, status_code=400
        )

    try:
        await services.config_store.update(
            user_id,
            {
                "api_key_encrypted": services.cipher.encrypt(body.apiKey),
                "api_secret_encrypted": services.cipher.encrypt(body.apiSecret),
            },
        )
        await services.log_store.add(user_id, "INFO", "Binance API credentials updated")
    except Exception as e:
        logger.exception("store_credentials_error", user_id=user_id)
        return JSONResponse({"error": str(e) or "Unknown error"}, status_code=500)

    logger.info("api_credentials_stored", user_id=user_id)
    return JSONResponse({"success": True, "message": "API credentials stored securely"})


@router.post("/binance-get-price")
async def get_price(request: Request) -> JSONResponse:
    services = request.app.state.services
    settings = request.app.state.settings
    try:
        body = await _json_body(request)
        symbol = str(body.get("symbol") or "BTCUSDT")
        price = await services.rest_client.get_price(
            symbol, timeout=settings.PRICE_TIMEOUT_SECONDS
        )
    except httpx.TimeoutException as e:
        logger.warning("get_price_timeout", error=str(e))
        return JSONResponse(
            {"error": "Request timeout", "details": "Binance did not answer in time"},
            status_code=504,
        )
    except Exception as e:
        logger.exception("get_price_error")
        return JSONResponse({"error": str(e) or "Unknown error"}, status_code=500)

    return JSONResponse({"symbol": price.symbol, "price": price.price, "timestamp": _now_ms()})


@router.post("/reset-bot")
async def reset_bot(request: Request, user_id: CurrentUser) -> JSONResponse:
    services = request.app.state.services
    try:
        body = ResetBody.model_validate(await _json_body(request))
    except ValueError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    if not body.userId:
        return JSONResponse({"error": "userId is required"}, status_code=400)
    if body.userId != user_id:
        return JSONResponse({"error": "Cannot reset another user's bot"}, status_code=403)

    try:
        new_balance = await services.reset.reset_bot(user_id, new_balance=body.newBalance)
    except Exception:
        logger.exception("reset_bot_error", user_id=user_id)
        return JSONResponse({"error": "Unexpected error"}, status_code=500)

    return JSONResponse({"ok": True, "newBalance": new_balance})
