"""Dashboard statistics and risk-state models."""

from datetime import datetime

from pydantic import BaseModel, Field

from volatile_trader.models.trade import Trade


class DailyProfit(BaseModel):
    date: str  # ISO date
    profit: float


class AccountStats(BaseModel):
    initial_capital: float
    success_rate: float
    active_positions: int
    total_profit: float
    total_trades: int
    closed_trades: int
    profit_history: list[DailyProfit] = []


class LastOperation(BaseModel):
    time: datetime
    profit: float | None
    side: str
    symbol: str


class OperationStats(BaseModel):
    last_operation: LastOperation | None = None
    operations_today: int = 0
    loss_streak: int = 0
    daily_pnl: float = 0.0


class CircuitBreakerDecision(BaseModel):
    should_pause: bool
    reason: str = ""
    pause_until: datetime | None = None


class AdaptiveRiskParams(BaseModel):
    mode: str  # normal, cautious, defensive
    stop_loss_multiplier: float
    take_profit_multiplier: float


class BotStatus(BaseModel):
    is_running: bool
    is_powered_on: bool
    open_positions: int
    total_trades: int
    test_balance: float
    test_mode: bool


class RoundMetrics(BaseModel):
    last_round_time: datetime | None = None
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    avg_pnl: float = 0.0
    max_gain: float = 0.0
    max_loss: float = 0.0
    trades: list[Trade] = []


class Recommendation(BaseModel):
    message: str
    type: str  # info, warning, danger


class SuggestedChanges(BaseModel):
    take_profit: float | None = None
    stop_loss: float | None = None
    min_confidence: float | None = None  # 0-1, same scale as signal confidence


class RoundAnalysis(BaseModel):
    metrics: RoundMetrics
    needs_attention: bool
    recommendations: list[Recommendation] = []
    suggested_changes: SuggestedChanges = Field(default_factory=SuggestedChanges)
