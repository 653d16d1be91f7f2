"""Binance pass-through proxy and health endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from volatile_trader.binance.proxy import strip_path_param

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["Proxy"])


@router.api_route(
    "/binance-proxy",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
)
async def binance_proxy(request: Request) -> Response:
    if request.method == "OPTIONS":
        return Response(status_code=200)

    path = request.query_params.get("path")
    if not path:
        return JSONResponse({"error": "Missing path parameter"}, status_code=400)

    proxy = request.app.state.services.proxy
    try:
        result = await proxy.forward(
            request.method,
            path,
            query=strip_path_param(request.url.query),
            api_key=request.headers.get("x-mbx-apikey"),
            body=await request.body(),
        )
    except Exception as e:
        logger.exception("proxy_error", path=path)
        return JSONResponse(
            {"error": "Proxy Internal Error", "message": str(e)}, status_code=500
        )

    if result.is_json:
        return JSONResponse(result.json_body, status_code=result.status_code)
    return Response(result.text_body, status_code=result.status_code, media_type="text/plain")


@router.get("/health")
async def health(request: Request) -> dict:
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": request.app.state.settings.ENVIRONMENT,
        "message": "Binance Proxy Service is alive",
    }
