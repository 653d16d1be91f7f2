"""Unit tests for CircuitBreaker and adaptive risk parameters."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from volatile_trader.config import Settings
from volatile_trader.risk.circuit_breaker import (
    CircuitBreaker,
    adaptive_params,
    daily_profit_percent,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def breaker(settings: Settings) -> CircuitBreaker:
    return CircuitBreaker(settings)


class TestDailyProfitPercent:
    def test_percent_of_capital(self) -> None:
        assert daily_profit_percent(1000.0, -50.0) == pytest.approx(-5.0)

    def test_zero_capital(self) -> None:
        assert daily_profit_percent(0.0, -50.0) == 0.0


class TestAdaptiveParams:
    @pytest.mark.parametrize(
        "streak,mode,sl,tp",
        [
            (0, "normal", 1.0, 1.0),
            (1, "normal", 1.0, 1.0),
            (2, "cautious", 0.8, 1.2),
            (3, "defensive", 0.6, 1.4),
            (7, "defensive", 0.6, 1.4),
        ],
    )
    def test_modes(self, streak: int, mode: str, sl: float, tp: float) -> None:
        params = adaptive_params(streak)
        assert params.mode == mode
        assert params.stop_loss_multiplier == sl
        assert params.take_profit_multiplier == tp


class TestCircuitBreaker:
    def test_passes_when_healthy(self, breaker: CircuitBreaker) -> None:
        decision = breaker.evaluate(loss_streak=1, daily_pnl=-10.0, initial_capital=1000.0, now=NOW)
        assert decision.should_pause is False
        assert breaker.paused_until is None

    def test_trips_on_loss_streak(self, breaker: CircuitBreaker) -> None:
        decision = breaker.evaluate(loss_streak=4, daily_pnl=0.0, initial_capital=1000.0, now=NOW)
        assert decision.should_pause is True
        assert "Loss streak" in decision.reason
        assert decision.pause_until == NOW + timedelta(minutes=30)

    def test_trips_on_daily_drawdown(self, breaker: CircuitBreaker) -> None:
        decision = breaker.evaluate(loss_streak=0, daily_pnl=-50.0, initial_capital=1000.0, now=NOW)
        assert decision.should_pause is True
        assert "drawdown" in decision.reason

    def test_drawdown_below_limit_passes(self, breaker: CircuitBreaker) -> None:
        decision = breaker.evaluate(loss_streak=0, daily_pnl=-49.0, initial_capital=1000.0, now=NOW)
        assert decision.should_pause is False

    def test_zero_capital_skips_drawdown(self, breaker: CircuitBreaker) -> None:
        decision = breaker.evaluate(loss_streak=0, daily_pnl=-500.0, initial_capital=0.0, now=NOW)
        assert decision.should_pause is False

    def test_pause_persists_until_expiry(self, breaker: CircuitBreaker) -> None:
        breaker.evaluate(loss_streak=5, daily_pnl=0.0, initial_capital=1000.0, now=NOW)

        during = breaker.evaluate(
            loss_streak=0, daily_pnl=0.0, initial_capital=1000.0, now=NOW + timedelta(minutes=10)
        )
        assert during.should_pause is True
        assert "active" in during.reason

        after = breaker.evaluate(
            loss_streak=0, daily_pnl=0.0, initial_capital=1000.0, now=NOW + timedelta(minutes=31)
        )
        assert after.should_pause is False
        assert breaker.paused_until is None

    def test_reset(self, breaker: CircuitBreaker) -> None:
        breaker.evaluate(loss_streak=5, daily_pnl=0.0, initial_capital=1000.0, now=NOW)
        breaker.reset()
        decision = breaker.evaluate(loss_streak=0, daily_pnl=0.0, initial_capital=1000.0, now=NOW)
        assert decision.should_pause is False

    def test_minutes_left_rounds_up(self, breaker: CircuitBreaker) -> None:
        breaker.evaluate(loss_streak=5, daily_pnl=0.0, initial_capital=1000.0, now=NOW)

        decision = breaker.evaluate(
            loss_streak=0,
            daily_pnl=0.0,
            initial_capital=1000.0,
            now=NOW + timedelta(minutes=29, seconds=30),
        )

        assert decision.should_pause is True
        assert "(1 min left)" in decision.reason
