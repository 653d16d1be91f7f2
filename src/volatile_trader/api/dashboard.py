"""Dashboard JSON endpoints (config, trades, logs, stats, pairs, signals, circuit breaker)."""

from __future__ import annotations

from typing import Annotated

import httpx
import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from volatile_trader.api.auth import get_current_user
from volatile_trader.errors import ConfigNotFoundError
from volatile_trader.models.bot_config import BotConfig, BotConfigUpdate
from volatile_trader.trade.validator import normalize_symbol

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["Dashboard"])

CurrentUser = Annotated[str, Depends(get_current_user)]


@router.get("/config")
async def get_config(request: Request, user_id: CurrentUser) -> dict:
    config = await request.app.state.services.config_store.get(user_id)
    if config is None:
        raise ConfigNotFoundError(user_id)
    return config.public_view()


@router.put("/config")
async def update_config(request: Request, update: BotConfigUpdate, user_id: CurrentUser) -> dict:
    store = request.app.state.services.config_store
    updates = update.model_dump(exclude_none=True)
    if "trading_pair" in updates:
        updates["trading_pair"] = normalize_symbol(updates["trading_pair"])

    if await store.get(user_id) is None:
        config = await store.save(BotConfig(user_id=user_id, **updates))
    else:
        config = await store.update(user_id, updates)
    return config.public_view()


@router.get("/trades")
async def get_trades(
    request: Request, user_id: CurrentUser, limit: int = Query(default=50, ge=1, le=500)
) -> list[dict]:
    trades = await request.app.state.services.trade_store.get_recent(user_id, limit)
    return [t.model_dump(mode="json") for t in trades]


@router.get("/logs")
async def get_logs(
    request: Request, user_id: CurrentUser, limit: int = Query(default=100, ge=1, le=500)
) -> list[dict]:
    logs = await request.app.state.services.log_store.get_recent(user_id, limit)
    return [entry.model_dump(mode="json") for entry in logs]


@router.get("/stats")
async def get_stats(request: Request, user_id: CurrentUser) -> dict:
    stats = await request.app.state.services.stats.get_account_stats(user_id)
    return stats.model_dump(mode="json")


@router.get("/operations/today")
async def get_today_operations(request: Request, user_id: CurrentUser) -> dict:
    operations = await request.app.state.services.stats.get_today_operations(user_id)
    return operations.model_dump(mode="json")


@router.get("/status")
async def get_status(request: Request, user_id: CurrentUser) -> dict:
    status = await request.app.state.services.reset.get_bot_status(user_id)
    data = status.model_dump(mode="json")
    engine = getattr(request.app.state, "engine", None)
    data["engine"] = engine.status() if engine is not None else None
    return data


@router.post("/positions/close-all")
async def close_all_positions(request: Request, user_id: CurrentUser) -> dict:
    closed = await request.app.state.services.reset.close_all_positions(user_id)
    return {"closed": closed}


@router.get("/rounds/last")
async def get_last_round(
    request: Request, user_id: CurrentUser, minutes: int = Query(default=60, ge=1, le=1440)
) -> dict:
    analysis = await request.app.state.services.stats.analyze_last_round(
        user_id, window_minutes=minutes
    )
    return analysis.model_dump(mode="json")


@router.get("/pairs/volatile")
async def get_volatile_pairs(
    request: Request, user_id: CurrentUser, limit: int = Query(default=10, ge=1, le=50)
) -> list[dict]:
    pairs = await request.app.state.services.pair_selector.top_volatile_pairs(limit)
    return [p.model_dump(mode="json") for p in pairs]


@router.get("/pairs/momentum")
async def get_momentum_pairs(
    request: Request, user_id: CurrentUser, count: int = Query(default=5, ge=1, le=20)
) -> dict:
    pairs = await request.app.state.services.pair_selector.select_momentum_pairs(count)
    return {"pairs": pairs}


@router.post("/pair/optimal")
async def select_optimal_pair(request: Request, user_id: CurrentUser) -> dict:
    """Store the optimal pair as the user's trading pair."""
    services = request.app.state.services
    pair = await services.pair_selector.update_bot_trading_pair(services.config_store, user_id)
    return {"trading_pair": pair}


@router.get("/signals/{symbol}")
async def get_signals(request: Request, symbol: str, user_id: CurrentUser) -> JSONResponse:
    try:
        report = await request.app.state.services.signals.analyze(normalize_symbol(symbol))
    except httpx.TimeoutException as e:
        logger.warning("signal_report_timeout", symbol=symbol)
        return JSONResponse({"error": "Request timeout", "details": str(e)}, status_code=504)
    except Exception as e:
        logger.exception("signal_report_error", symbol=symbol)
        return JSONResponse({"error": str(e) or "Unknown error"}, status_code=502)
    return JSONResponse(report.model_dump(mode="json"))


@router.post("/circuit-breaker/reset")
async def reset_circuit_breaker(request: Request, user_id: CurrentUser) -> JSONResponse:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        return JSONResponse({"error": "Trading engine is not running"}, status_code=409)
    engine.circuit_breaker.reset()
    logger.info("circuit_breaker_reset_requested", user_id=user_id)
    return JSONResponse({"ok": True})
