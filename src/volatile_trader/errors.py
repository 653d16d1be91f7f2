"""Domain exceptions shared by the HTTP handlers, executor and storage."""

from __future__ import annotations

from typing import Any


class TradingError(Exception):
    """Base class for all volatile_trader errors."""


class AuthenticationError(TradingError):
    pass


class ConfigNotFoundError(TradingError):
    def __init__(self, user_id: str) -> None:
        super().__init__("Bot configuration not found")
        self.user_id = user_id


class CredentialsMissingError(TradingError):
    def __init__(self) -> None:
        super().__init__("API credentials not configured")


class CredentialCipherError(TradingError):
    pass


class TradeValidationError(TradingError):
    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class BinanceAPIError(TradingError):
    """Non-2xx answer from Binance. ``payload`` is the decoded body (dict or text)."""

    def __init__(self, status_code: int, payload: Any) -> None:
        message = payload.get("msg") if isinstance(payload, dict) else None
        super().__init__(f"Binance API error {status_code}: {message or payload}")
        self.status_code = status_code
        self.payload = payload
