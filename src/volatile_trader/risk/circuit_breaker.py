"""Circuit breaker and loss-streak adaptive risk parameters."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog

from volatile_trader.models.stats import AdaptiveRiskParams, CircuitBreakerDecision

if TYPE_CHECKING:
    from volatile_trader.config import Settings

logger = structlog.get_logger()


def daily_profit_percent(initial_capital: float, profit: float) -> float:
    """Daily PnL as a percent of capital (0 when capital <= 0)."""
    if initial_capital <= 0:
        return 0.0
    return profit / initial_capital * 100


def adaptive_params(loss_streak: int) -> AdaptiveRiskParams:
    """
    | Loss streak | Mode      | SL multiplier | TP multiplier |
    |-------------|-----------|---------------|---------------|
    | <= 1        | normal    | 1.0           | 1.0           |
    | 2           | cautious  | 0.8           | 1.2           |
    | >= 3        | defensive | 0.6           | 1.4           |
    """
    if loss_streak >= 3:
        return AdaptiveRiskParams(
            mode="defensive", stop_loss_multiplier=0.6, take_profit_multiplier=1.4
        )
    if loss_streak == 2:
        return AdaptiveRiskParams(
            mode="cautious", stop_loss_multiplier=0.8, take_profit_multiplier=1.2
        )
    return AdaptiveRiskParams(mode="normal", stop_loss_multiplier=1.0, take_profit_multiplier=1.0)


class CircuitBreaker:
    """
    Pauses new entries after a losing streak or a daily drawdown:
    - loss streak >= LOSS_STREAK_LIMIT           -> pause
    - daily PnL% <= -DAILY_MAX_DRAWDOWN_PERCENT -> pause
    A pause lasts CIRCUIT_BREAKER_PAUSE_MINUTES.
    """

    def __init__(self, settings: Settings) -> None:
        self.loss_streak_limit = settings.LOSS_STREAK_LIMIT
        self.max_drawdown_percent = settings.DAILY_MAX_DRAWDOWN_PERCENT
        self.pause_minutes = settings.CIRCUIT_BREAKER_PAUSE_MINUTES
        self.paused_until: datetime | None = None

    def evaluate(
        self,
        loss_streak: int,
        daily_pnl: float,
        initial_capital: float,
        now: datetime | None = None,
    ) -> CircuitBreakerDecision:
        now = now or datetime.now(timezone.utc)

        if self.paused_until is not None:
            if now < self.paused_until:
                minutes_left = math.ceil((self.paused_until - now).total_seconds() / 60)
                return CircuitBreakerDecision(
                    should_pause=True,
                    reason=f"Circuit breaker active ({minutes_left} min left)",
                    pause_until=self.paused_until,
                )
            logger.info("circuit_breaker_expired", paused_until=str(self.paused_until))
            self.paused_until = None

        if loss_streak >= self.loss_streak_limit:
            return self._trip(now, f"Loss streak of {loss_streak} (limit {self.loss_streak_limit})")

        drawdown = daily_profit_percent(initial_capital, daily_pnl)
        if initial_capital > 0 and drawdown <= -self.max_drawdown_percent:
            return self._trip(
                now, f"Daily drawdown {drawdown:.2f}% (limit -{self.max_drawdown_percent}%)"
            )

        return CircuitBreakerDecision(should_pause=False)

    def reset(self) -> None:
        self.paused_until = None
        logger.info("circuit_breaker_reset")

    def _trip(self, now: datetime, reason: str) -> CircuitBreakerDecision:
        self.paused_until = now + timedelta(minutes=self.pause_minutes)
        logger.warning("circuit_breaker_tripped", reason=reason, paused_until=str(self.paused_until))
        return CircuitBreakerDecision(should_pause=True, reason=reason, pause_until=self.paused_until)
