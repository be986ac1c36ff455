"""Account metrics engine.

Single entry point used by every surface that shows account state:

    compute_account_metrics(account, trades, payouts, now, timezone)

Pure function: no I/O, no clock, no shared state. The same inputs always
yield the same AccountMetrics.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Optional, Sequence

from propdesk.schemas.accounts import (
    Account,
    AccountMetrics,
    DailyMetric,
    PayoutEvent,
    PayoutSummary,
    TradeEvent,
)
from propdesk.services.accounting.balance import (
    DailyAggregate,
    aggregate_daily,
    final_state,
    reconstruct_balance,
)
from propdesk.services.accounting.consistency import (
    count_trading_days,
    daily_pnl,
    evaluate_consistency,
)
from propdesk.services.accounting.drawdown import DrawdownState, evaluate_drawdown
from propdesk.services.accounting.events import (
    DEFAULT_PAYOUT_POLICY,
    PayoutPolicy,
    apply_profit_buffer,
    local_day,
    normalize_events,
    resolve_timezone,
    validate_ownership,
)
from propdesk.services.accounting.projection import (
    average_daily_pnl,
    project_next_payout,
)
from propdesk.services.accounting.target import track_target


def _summarize_payout(payout: PayoutEvent) -> PayoutSummary:
    return PayoutSummary(
        id=payout.id, amount=payout.amount, date=payout.date, status=payout.status
    )


def _build_daily_metrics(
    days: Sequence[DailyAggregate],
    drawdown: DrawdownState,
    max_allowed: Optional[float],
) -> list[DailyMetric]:
    rows = []
    for agg in days:
        payouts = [_summarize_payout(p) for p in agg.payouts]
        rows.append(
            DailyMetric(
                date=agg.day,
                daily_pnl=agg.trade_pnl,
                running_balance=agg.balance,
                high_water_mark=agg.high_water_mark,
                drawdown_floor=drawdown.floors[agg.last_index],
                is_consistent=max_allowed is None or agg.trade_pnl <= max_allowed,
                payout=payouts[0] if payouts else None,
                payouts=payouts,
            )
        )
    return rows


def compute_account_metrics(
    account: Account,
    trades: Sequence[TradeEvent],
    payouts: Sequence[PayoutEvent],
    now: datetime,
    timezone: str = "UTC",
    policy: PayoutPolicy = DEFAULT_PAYOUT_POLICY,
) -> AccountMetrics:
    """Compute the full metrics record for one account.

    Args:
        account: Account configuration for the current cycle
        trades: All trades for this account (any order)
        payouts: All payouts for this account (any order, any status)
        now: Reference time for the payout projection
        timezone: IANA name of the reporting timezone for day bucketing
        policy: Payout statuses that reduce balance

    Returns:
        AccountMetrics

    Raises:
        AccountMismatchError: a record belongs to another account
        InvalidTimezoneError: unknown timezone name
    """
    validate_ownership(account.number, trades, payouts)
    tz = resolve_timezone(timezone)

    # Balance and drawdown always follow the full window
    events = normalize_events(trades, payouts, account.reset_date, tz, policy)
    snapshots = reconstruct_balance(events, account.starting_balance)
    balance, hwm = final_state(snapshots, account.starting_balance)
    drawdown = evaluate_drawdown(account, snapshots)

    # Target, consistency and projection count only trades past the buffer
    if account.consider_buffer:
        counted, above_buffer = apply_profit_buffer(events, account.buffer)
    else:
        counted, above_buffer = events, 0.0

    target = track_target(account, counted)
    daily = daily_pnl(counted, tz)
    consistency = evaluate_consistency(
        target.net_profit,
        daily,
        account.profit_target,
        account.consistency_percentage,
    )
    day_stats = count_trading_days(daily, account.min_pnl_to_count_as_day)

    projection = project_next_payout(
        target.net_profit,
        day_stats.total_trading_days,
        target.remaining_to_target,
        local_day(now, tz),
    )

    return AccountMetrics(
        account_number=account.number,
        current_balance=balance,
        high_water_mark=hwm,
        drawdown_floor=drawdown.floor,
        drawdown_locked=drawdown.locked,
        remaining_loss=drawdown.remaining_loss,
        drawdown_progress_pct=drawdown.progress_pct,
        is_breached=drawdown.breached,
        breached_at=drawdown.breached_at,
        net_profit=target.net_profit,
        withdrawn_payouts=target.withdrawn_payouts,
        current_balance_without_payouts=target.current_balance_without_payouts,
        target_progress_pct=target.progress_pct,
        remaining_to_target=target.remaining_to_target,
        consistency=consistency,
        trading_days=day_stats,
        avg_daily_pnl=average_daily_pnl(target.net_profit, day_stats.total_trading_days),
        next_payout_projection=projection,
        above_buffer=above_buffer,
        daily_metrics=_build_daily_metrics(
            aggregate_daily(snapshots, tz),
            drawdown,
            consistency.max_allowed_daily_profit,
        ),
    )


def compute_metrics_for_accounts(
    accounts: Sequence[Account],
    trades: Sequence[TradeEvent],
    payouts: Sequence[PayoutEvent],
    now: datetime,
    timezone: str = "UTC",
    policy: PayoutPolicy = DEFAULT_PAYOUT_POLICY,
) -> list[AccountMetrics]:
    """Evaluate several accounts from one mixed batch of records.

    Records are routed by account number; records for accounts not in
    ``accounts`` are ignored. Output order follows ``accounts``.
    """
    trades_by_account: dict[str, list[TradeEvent]] = defaultdict(list)
    for trade in trades:
        trades_by_account[trade.account_number].append(trade)

    payouts_by_account: dict[str, list[PayoutEvent]] = defaultdict(list)
    for payout in payouts:
        payouts_by_account[payout.account_number].append(payout)

    return [
        compute_account_metrics(
            account,
            trades_by_account.get(account.number, []),
            payouts_by_account.get(account.number, []),
            now,
            timezone,
            policy,
        )
        for account in accounts
    ]
