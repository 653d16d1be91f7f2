"""Pass-through forwarding to the Binance proxy host."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel

logger = structlog.get_logger()

BODYLESS_METHODS = {"GET", "HEAD"}


class ProxyResponse(BaseModel):
    status_code: int
    is_json: bool
    json_body: Any = None
    text_body: str = ""


def strip_path_param(raw_query: str) -> str:
    """Drop the ``path`` parameter, keeping every other pair in its original order and encoding."""
    if not raw_query:
        return ""
    kept = [
        part
        for part in raw_query.split("&")
        if part and part.split("=", 1)[0] != "path"
    ]
    return "&".join(kept)


class BinanceProxy:
    def __init__(
        self,
        base_url: str = "https://api.binance.me",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    def target_url(self, path: str, query: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        url = f"{self.base_url}{path}"
        return f"{url}?{query}" if query else url

    async def forward(
        self,
        method: str,
        path: str,
        query: str = "",
        api_key: str | None = None,
        body: bytes | None = None,
    ) -> ProxyResponse:
        """Forward one request and relay the upstream status + JSON (or text) body."""
        method = method.upper()
        url = self.target_url(path, query)
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["X-MBX-APIKEY"] = api_key

        content = body if method not in BODYLESS_METHODS and body else None
        logger.info("proxy_forward", method=method, path=path)

        response = await self.client.request(method, url, headers=headers, content=content)

        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                return ProxyResponse(
                    status_code=response.status_code, is_json=True, json_body=response.json()
                )
            except ValueError:
                logger.warning("proxy_invalid_json", path=path, status_code=response.status_code)
        return ProxyResponse(status_code=response.status_code, is_json=False, text_body=response.text)
