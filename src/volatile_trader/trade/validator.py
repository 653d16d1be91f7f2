"""Pre-execution validation of trade requests (technical checks, not risk)."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel

if TYPE_CHECKING:
    from volatile_trader.models.trade import TradeRequest

logger = structlog.get_logger()

VALID_SIDES = {"BUY", "SELL"}
VALID_ORDER_TYPES = {"MARKET", "LIMIT"}
SYMBOL_PATTERN = re.compile(r"^[A-Z0-9]{1,20}USDT$")
MAX_QUANTITY = 10000.0


def normalize_symbol(symbol: str) -> str:
    """'btc' -> 'BTCUSDT', ' ethusdt ' -> 'ETHUSDT'."""
    cleaned = symbol.strip().upper()
    if cleaned and not cleaned.endswith("USDT"):
        cleaned = f"{cleaned}USDT"
    return cleaned


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = []


class TradeRequestValidator:
    """
    - symbol matches ^[A-Z0-9]{1,20}USDT$ after normalisation
    - side is BUY or SELL
    - 0 < quantity <= 10000
    - type is MARKET or LIMIT
    """

    def validate(self, request: TradeRequest) -> ValidationResult:
        errors: list[str] = []

        self._validate_symbol(request, errors)
        self._validate_side(request, errors)
        self._validate_quantity(request, errors)
        self._validate_type(request, errors)

        valid = len(errors) == 0
        if not valid:
            logger.warning("trade_validation_failed", errors=errors, symbol=request.symbol)

        return ValidationResult(valid=valid, errors=errors)

    def _validate_symbol(self, request: TradeRequest, errors: list[str]) -> None:
        symbol = normalize_symbol(request.symbol)
        if not SYMBOL_PATTERN.match(symbol):
            errors.append(f"Invalid symbol '{request.symbol}'")

    def _validate_side(self, request: TradeRequest, errors: list[str]) -> None:
        if request.side.upper() not in VALID_SIDES:
            errors.append(f"Invalid side '{request.side}'. Must be one of {sorted(VALID_SIDES)}")

    def _validate_quantity(self, request: TradeRequest, errors: list[str]) -> None:
        if request.quantity <= 0:
            errors.append(f"quantity must be > 0, got {request.quantity}")
        elif request.quantity > MAX_QUANTITY:
            errors.append(f"quantity must be <= {MAX_QUANTITY:g}, got {request.quantity}")

    def _validate_type(self, request: TradeRequest, errors: list[str]) -> None:
        if request.type.upper() not in VALID_ORDER_TYPES:
            errors.append(
                f"Invalid type '{request.type}'. Must be one of {sorted(VALID_ORDER_TYPES)}"
            )
