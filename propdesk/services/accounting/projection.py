"""Payout projector: when will the remaining target be reached?

Assumes the average daily PnL keeps up and walks a Mon-Fri calendar. Exchange
holidays are not modelled, so projections spanning a holiday land early by
the number of holidays skipped.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Optional

SATURDAY = 5
FRIDAY = 4

# About a century of trading days; anything slower is not a projection
MAX_PROJECTION_TRADING_DAYS = 26_000


def average_daily_pnl(net_profit: float, trading_day_count: int) -> Optional[float]:
    """Net profit per distinct trading day; None with no trading days."""
    if trading_day_count <= 0:
        return None
    return net_profit / trading_day_count


def add_trading_days(start: date, days: int) -> date:
    """Date reached after counting ``days`` weekdays forward from ``start``.

    Whole weeks are added arithmetically; only the remainder is walked.
    """
    if days <= 0:
        return start

    # Counting from a weekend is the same as counting from the Friday before
    current = start
    if current.weekday() >= SATURDAY:
        current -= timedelta(days=current.weekday() - FRIDAY)

    weeks, remainder = divmod(days, 5)
    current += timedelta(weeks=weeks)
    while remainder > 0:
        current += timedelta(days=1)
        if current.weekday() < SATURDAY:
            remainder -= 1
    return current


def project_next_payout(
    net_profit: float,
    trading_day_count: int,
    remaining_to_target: Optional[float],
    today: date,
) -> Optional[date]:
    """Projected date the target is met, or None when it cannot be projected.

    No projection without a configured target, when the average day is flat
    or losing, or when the pace is too slow to land within
    MAX_PROJECTION_TRADING_DAYS. An already-reached target projects ``today``.
    """
    if remaining_to_target is None:
        return None
    avg = average_daily_pnl(net_profit, trading_day_count)
    if avg is None or avg <= 0:
        return None

    needed = remaining_to_target / avg
    if needed > MAX_PROJECTION_TRADING_DAYS:
        return None
    try:
        return add_trading_days(today, math.ceil(needed))
    except OverflowError:
        return None
