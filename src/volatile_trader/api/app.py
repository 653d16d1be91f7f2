"""FastAPI application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from volatile_trader.api import dashboard, functions, proxy
from volatile_trader.api.auth import AuthClient
from volatile_trader.errors import AuthenticationError, ConfigNotFoundError

if TYPE_CHECKING:
    from volatile_trader.config import Settings
    from volatile_trader.engine.trading_engine import TradingEngine
    from volatile_trader.services.container import Services

logger = structlog.get_logger()


def create_app(
    settings: Settings,
    services: Services,
    auth: AuthClient | None = None,
    engine: TradingEngine | None = None,
) -> FastAPI:
    app = FastAPI(
        title="Volatile Trader API",
        description="Binance proxy, trade functions and dashboard data for the trading bot.",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type", "x-mbx-apikey"],
    )

    app.state.settings = settings
    app.state.services = services
    app.state.auth = auth or AuthClient(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY,
        settings.ENGINE_USER_ID,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    app.state.engine = engine

    @app.exception_handler(AuthenticationError)
    async def _auth_error(request: Request, exc: AuthenticationError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=401)

    @app.exception_handler(ConfigNotFoundError)
    async def _config_not_found(request: Request, exc: ConfigNotFoundError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=404)

    app.include_router(proxy.router)
    app.include_router(functions.router)
    app.include_router(dashboard.router)

    logger.info("app_created", environment=settings.ENVIRONMENT, auth_enabled=app.state.auth.enabled)
    return app
