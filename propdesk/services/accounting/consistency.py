"""Consistency evaluator: caps the share of profit earned on a single day.

    base       = target if net_profit <= target else net_profit
    daily cap  = base * consistency_percentage / 100
    consistent = best_day <= daily cap

The rule applies only with a profit target and a percentage configured and a
profitable window; otherwise the result carries the reason instead.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from propdesk.schemas.accounts import (
    ConsistencyReason,
    ConsistencyResult,
    TradingDayStats,
)
from propdesk.services.accounting.events import AccountEvent, local_day


def daily_pnl(events: Sequence[AccountEvent], tz: ZoneInfo) -> dict[date, float]:
    """Net trade PnL per calendar day in ``tz``, in day order."""
    totals: dict[date, float] = {}
    for event in events:
        if not event.is_trade:
            continue
        day = local_day(event.when, tz)
        totals[day] = totals.get(day, 0.0) + event.delta
    return dict(sorted(totals.items()))


def max_allowed_daily_profit(
    net_profit: float, profit_target: float, consistency_percentage: float
) -> Optional[float]:
    """Daily profit cap, or None when the rule does not apply."""
    if profit_target <= 0 or consistency_percentage <= 0 or net_profit <= 0:
        return None
    base = profit_target if net_profit <= profit_target else net_profit
    return base * consistency_percentage / 100


def evaluate_consistency(
    net_profit: float,
    daily: dict[date, float],
    profit_target: float,
    consistency_percentage: float,
) -> ConsistencyResult:
    highest = max(daily.values()) if daily else 0.0

    if profit_target <= 0 or consistency_percentage <= 0:
        return ConsistencyResult(
            is_consistent=False,
            reason=ConsistencyReason.UNCONFIGURED,
            highest_profit_day=highest,
        )
    if net_profit <= 0:
        return ConsistencyResult(
            is_consistent=False,
            reason=ConsistencyReason.UNPROFITABLE,
            highest_profit_day=highest,
        )

    cap = max_allowed_daily_profit(net_profit, profit_target, consistency_percentage)
    return ConsistencyResult(
        is_consistent=highest <= cap,
        max_allowed_daily_profit=cap,
        highest_profit_day=highest,
    )


def count_trading_days(daily: dict[date, float], min_pnl: float = 0.0) -> TradingDayStats:
    """Day counters; a day is valid when its net PnL reaches ``min_pnl``."""
    return TradingDayStats(
        total_trading_days=len(daily),
        valid_trading_days=sum(1 for pnl in daily.values() if pnl >= min_pnl),
        profitable_days=sum(1 for pnl in daily.values() if pnl > 0),
    )
