"""Unit tests for TradeRequestValidator."""

from __future__ import annotations

import pytest

from volatile_trader.models.trade import TradeRequest
from volatile_trader.trade.validator import TradeRequestValidator, normalize_symbol


def _make_request(**overrides) -> TradeRequest:
    defaults = {"symbol": "BTCUSDT", "side": "BUY", "quantity": 0.001}
    defaults.update(overrides)
    return TradeRequest(**defaults)


@pytest.fixture
def validator() -> TradeRequestValidator:
    return TradeRequestValidator()


class TestNormalizeSymbol:
    @pytest.mark.parametrize(
        "raw,expected",
        [("BTCUSDT", "BTCUSDT"), ("btc", "BTCUSDT"), (" ethusdt ", "ETHUSDT"), ("", "")],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_symbol(raw) == expected


class TestValidate:
    def test_valid_request(self, validator: TradeRequestValidator) -> None:
        result = validator.validate(_make_request())
        assert result.valid is True
        assert result.errors == []

    def test_lowercase_side_and_short_symbol(self, validator: TradeRequestValidator) -> None:
        result = validator.validate(_make_request(symbol="eth", side="sell"))
        assert result.valid is True

    def test_invalid_symbol(self, validator: TradeRequestValidator) -> None:
        result = validator.validate(_make_request(symbol="BTC/USDT"))
        assert result.valid is False
        assert any("symbol" in e for e in result.errors)

    def test_invalid_side(self, validator: TradeRequestValidator) -> None:
        result = validator.validate(_make_request(side="HOLD"))
        assert result.valid is False
        assert any("side" in e for e in result.errors)

    @pytest.mark.parametrize("quantity", [0.0, -1.0, 10000.01])
    def test_quantity_out_of_range(self, validator: TradeRequestValidator, quantity: float) -> None:
        result = validator.validate(_make_request(quantity=quantity))
        assert result.valid is False
        assert any("quantity" in e for e in result.errors)

    def test_max_quantity_allowed(self, validator: TradeRequestValidator) -> None:
        assert validator.validate(_make_request(quantity=10000.0)).valid is True

    def test_invalid_type(self, validator: TradeRequestValidator) -> None:
        result = validator.validate(_make_request(type="STOP"))
        assert result.valid is False

    def test_collects_all_errors(self, validator: TradeRequestValidator) -> None:
        result = validator.validate(_make_request(symbol="??", side="X", quantity=0, type="Y"))
        assert len(result.errors) == 4


class TestTradeRequestAlias:
    def test_test_mode_alias(self) -> None:
        request = TradeRequest.model_validate(
            {"symbol": "BTCUSDT", "side": "BUY", "quantity": 1, "testMode": False}
        )
        assert request.test_mode is False

    def test_test_mode_defaults_true(self) -> None:
        assert _make_request().test_mode is True
