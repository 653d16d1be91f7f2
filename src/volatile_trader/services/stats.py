"""Account statistics, today's operation summary and last-round analysis."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog

from volatile_trader.models.bot_config import BotConfig
from volatile_trader.models.stats import (
    AccountStats,
    DailyProfit,
    LastOperation,
    OperationStats,
    Recommendation,
    RoundAnalysis,
    RoundMetrics,
    SuggestedChanges,
)

if TYPE_CHECKING:
    from volatile_trader.binance.credentials import CredentialCipher
    from volatile_trader.binance.rest import BinanceRestClient
    from volatile_trader.models.trade import Trade
    from volatile_trader.storage.base import ConfigStore, TradeStore

logger = structlog.get_logger()

ROUND_WINDOW_MINUTES = 60
ROUND_TRADE_LIMIT = 200


def start_of_day(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def loss_streak(trades: Sequence[Trade]) -> int:
    """Consecutive losses walking newest-first. Stops at the first win; zero/None results are skipped."""
    streak = 0
    for trade in trades:
        if not trade.profit_loss:
            continue
        if trade.profit_loss < 0:
            streak += 1
        else:
            break
    return streak


def profit_history(trades: Sequence[Trade]) -> list[DailyProfit]:
    """Realised PnL aggregated per calendar day, ascending."""
    by_day: dict[str, float] = defaultdict(float)
    for trade in trades:
        if trade.profit_loss is None:
            continue
        by_day[trade.created_at.date().isoformat()] += trade.profit_loss
    return [DailyProfit(date=day, profit=by_day[day]) for day in sorted(by_day)]


def round_metrics(trades: Sequence[Trade]) -> RoundMetrics:
    """Win/loss counts and PnL extremes of a round. Open trades count as 0 PnL."""
    if not trades:
        return RoundMetrics()

    profits = [t.profit_loss or 0.0 for t in trades]
    total = sum(profits)
    wins = sum(1 for p in profits if p > 0)
    newest = trades[0]
    return RoundMetrics(
        last_round_time=newest.executed_at or newest.created_at,
        total_trades=len(trades),
        winning_trades=wins,
        losing_trades=sum(1 for p in profits if p < 0),
        win_rate=wins / len(trades) * 100,
        total_pnl=total,
        avg_pnl=total / len(trades),
        max_gain=max(profits),
        max_loss=min(profits),
        trades=list(trades),
    )


def round_recommendations(metrics: RoundMetrics) -> list[Recommendation]:
    recommendations: list[Recommendation] = []

    if metrics.total_trades >= 5 and metrics.win_rate < 30:
        recommendations.append(
            Recommendation(
                message=(
                    "Very low win rate this round."
                    " Consider raising the minimum signal confidence."
                ),
                type="danger",
            )
        )
    elif metrics.total_trades >= 5 and metrics.win_rate < 50:
        recommendations.append(
            Recommendation(
                message="Win rate below target. Review the entry criteria.", type="warning"
            )
        )

    if metrics.total_pnl < 0:
        recommendations.append(
            Recommendation(
                message="Round ended at a loss. Review the stop loss and take profit settings.",
                type="danger",
            )
        )

    if metrics.total_trades > 0 and abs(metrics.max_loss) > abs(metrics.avg_pnl) * 3:
        recommendations.append(
            Recommendation(
                message="Stop loss too wide. Tighten it to protect capital.", type="warning"
            )
        )

    if 0 < metrics.max_gain < abs(metrics.max_loss) * 0.5:
        recommendations.append(
            Recommendation(
                message="Take profit may be too conservative. Consider raising it.", type="info"
            )
        )

    if metrics.total_trades >= 3 and metrics.avg_pnl < -10:
        recommendations.append(
            Recommendation(
                message="Average loss per trade is high. Reduce the position size.", type="danger"
            )
        )

    return recommendations


def suggested_changes(metrics: RoundMetrics) -> SuggestedChanges:
    changes = SuggestedChanges()
    if metrics.total_trades >= 5 and metrics.win_rate < 30:
        changes.min_confidence = 0.85
    elif metrics.total_trades >= 5 and metrics.win_rate < 50:
        changes.min_confidence = 0.75

    if abs(metrics.max_loss) > 50:
        changes.stop_loss = 2.0
    if metrics.win_rate > 0 and metrics.max_gain < abs(metrics.max_loss) * 0.7:
        changes.take_profit = 5.0
    return changes


class StatsService:
    def __init__(
        self,
        trade_store: TradeStore,
        config_store: ConfigStore,
        rest_client: BinanceRestClient,
        cipher: CredentialCipher,
    ) -> None:
        self.trade_store = trade_store
        self.config_store = config_store
        self.rest_client = rest_client
        self.cipher = cipher

    async def get_account_stats(self, user_id: str) -> AccountStats:
        config = await self.config_store.get(user_id) or BotConfig(user_id=user_id)
        trades = await self.trade_store.get_all(user_id)

        closed = [t for t in trades if t.status == "EXECUTED" and t.profit_loss is not None]
        profitable = [t for t in closed if (t.profit_loss or 0) > 0]
        success_rate = len(profitable) / len(closed) * 100 if closed else 0.0

        return AccountStats(
            initial_capital=await self.initial_capital(config),
            success_rate=success_rate,
            active_positions=sum(1 for t in trades if t.is_open),
            total_profit=sum(t.profit_loss or 0 for t in trades),
            total_trades=len(trades),
            closed_trades=len(closed),
            profit_history=profit_history(trades),
        )

    async def get_today_operations(self, user_id: str, now: datetime | None = None) -> OperationStats:
        trades = await self.trade_store.get_all(user_id)
        since = start_of_day(now)
        today = [t for t in trades if t.created_at >= since]
        executed_today = [t for t in today if t.status == "EXECUTED"]

        last = None
        if executed_today:
            newest = executed_today[0]
            last = LastOperation(
                time=newest.executed_at or newest.created_at,
                profit=newest.profit_loss,
                side=newest.side,
                symbol=newest.symbol,
            )

        return OperationStats(
            last_operation=last,
            operations_today=len(executed_today),
            loss_streak=loss_streak(executed_today),
            daily_pnl=sum(t.profit_loss or 0 for t in today),
        )

    async def analyze_last_round(
        self,
        user_id: str,
        window_minutes: int = ROUND_WINDOW_MINUTES,
        now: datetime | None = None,
    ) -> RoundAnalysis:
        """
        Trades executed in the last ``window_minutes`` scored as one round.

        needs_attention when the round has trades and either the win rate is
        under 50%, the PnL is negative or a recommendation is ``danger``.
        """
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(minutes=window_minutes)
        recent = await self.trade_store.get_recent(user_id, ROUND_TRADE_LIMIT)
        trades = [t for t in recent if (t.executed_at or t.created_at) >= since]

        metrics = round_metrics(trades)
        recommendations = round_recommendations(metrics)
        needs_attention = metrics.total_trades > 0 and (
            metrics.win_rate < 50
            or metrics.total_pnl < 0
            or any(r.type == "danger" for r in recommendations)
        )
        return RoundAnalysis(
            metrics=metrics,
            needs_attention=needs_attention,
            recommendations=recommendations,
            suggested_changes=suggested_changes(metrics),
        )

    async def initial_capital(self, config: BotConfig) -> float:
        """Test balance in test mode, otherwise the live USDT balance (0 when unavailable)."""
        if config.test_mode:
            return config.test_balance
        if not config.has_api_credentials:
            return 0.0
        try:
            api_key = self.cipher.decrypt(config.api_key_encrypted or "")
            api_secret = self.cipher.decrypt(config.api_secret_encrypted or "")
            return await self.rest_client.get_usdt_balance(api_key, api_secret)
        except Exception:
            logger.exception("initial_capital_error", user_id=config.user_id)
            return 0.0
