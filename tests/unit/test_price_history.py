"""Unit tests for PriceHistory (in-memory deque per symbol)."""

from __future__ import annotations

import pytest

from volatile_trader.indicator.price_history import PriceHistory


@pytest.fixture
def history() -> PriceHistory:
    return PriceHistory(max_prices=5)


class TestAdd:
    def test_add_and_get(self, history: PriceHistory) -> None:
        history.add("BTCUSDT", 100.0)
        history.add("BTCUSDT", 101.0)
        assert history.get("BTCUSDT") == [100.0, 101.0]

    def test_fifo_eviction(self, history: PriceHistory) -> None:
        for price in range(10):
            history.add("BTCUSDT", float(price))
        assert history.get("BTCUSDT") == [5.0, 6.0, 7.0, 8.0, 9.0]

    def test_symbols_are_independent(self, history: PriceHistory) -> None:
        history.add("BTCUSDT", 100.0)
        history.add("ETHUSDT", 3000.0)
        assert history.get("BTCUSDT") == [100.0]
        assert history.get("ETHUSDT") == [3000.0]


class TestGet:
    def test_limit(self, history: PriceHistory) -> None:
        history.extend("BTCUSDT", [1, 2, 3, 4])
        assert history.get("BTCUSDT", limit=2) == [3.0, 4.0]

    def test_non_positive_limit(self, history: PriceHistory) -> None:
        history.extend("BTCUSDT", [1, 2, 3])
        assert history.get("BTCUSDT", limit=0) == []
        assert history.get("BTCUSDT", limit=-1) == []

    def test_unknown_symbol(self, history: PriceHistory) -> None:
        assert history.get("XRPUSDT") == []
        assert history.latest("XRPUSDT") is None

    def test_latest(self, history: PriceHistory) -> None:
        history.extend("BTCUSDT", [1.0, 2.0])
        assert history.latest("BTCUSDT") == 2.0


class TestExtendAndClear:
    def test_extend_respects_max(self, history: PriceHistory) -> None:
        history.extend("BTCUSDT", range(8))
        assert len(history.get("BTCUSDT")) == 5

    def test_clear_symbol(self, history: PriceHistory) -> None:
        history.add("BTCUSDT", 1.0)
        history.add("ETHUSDT", 2.0)
        history.clear("BTCUSDT")
        assert history.get("BTCUSDT") == []
        assert history.get("ETHUSDT") == [2.0]

    def test_clear_all(self, history: PriceHistory) -> None:
        history.add("BTCUSDT", 1.0)
        history.clear()
        assert history.prices == {}
