"""Balance reconstructor: running balance and high-water mark.

Walks the normalized stream once. Every event moves the balance by its
delta; only trades can raise the high-water mark, so a payout never reads
as a new peak and never erases one already recorded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Sequence
from zoneinfo import ZoneInfo

from propdesk.schemas.accounts import PayoutEvent
from propdesk.services.accounting.events import AccountEvent, EventKind, local_day


@dataclass(frozen=True)
class BalanceSnapshot:
    """Account state immediately after ``event``."""

    event: AccountEvent
    balance: float
    high_water_mark: float

    @property
    def when(self) -> datetime:
        return self.event.when

    @property
    def kind(self) -> EventKind:
        return self.event.kind


@dataclass
class DailyAggregate:
    """Per-day roll-up of the snapshot series."""

    day: date
    trade_pnl: float = 0.0
    payout_total: float = 0.0  # included payouts, as a positive amount
    balance: float = 0.0
    high_water_mark: float = 0.0
    last_index: int = -1  # index of the day's last snapshot
    payouts: list[PayoutEvent] = field(default_factory=list)


def reconstruct_balance(
    events: Sequence[AccountEvent], starting_balance: float
) -> list[BalanceSnapshot]:
    """Return one snapshot per event, in stream order."""
    balance = starting_balance
    hwm = starting_balance
    snapshots: list[BalanceSnapshot] = []

    for event in events:
        balance += event.delta
        if event.is_trade and balance > hwm:
            hwm = balance
        snapshots.append(BalanceSnapshot(event=event, balance=balance, high_water_mark=hwm))

    return snapshots


def final_state(
    snapshots: Sequence[BalanceSnapshot], starting_balance: float
) -> tuple[float, float]:
    """(balance, high-water mark) after the last event.

    An empty stream leaves both at the starting balance.
    """
    if not snapshots:
        return starting_balance, starting_balance
    last = snapshots[-1]
    return last.balance, last.high_water_mark


def aggregate_daily(
    snapshots: Sequence[BalanceSnapshot], tz: ZoneInfo
) -> list[DailyAggregate]:
    """Group snapshots by calendar day in ``tz``.

    A day's trade deltas are summed before that day's payouts are applied.
    End-of-day balance equals the last snapshot of the day; the high-water
    mark is taken from the event walk so intraday peaks are preserved.
    Days appear when they have a trade or any payout, whatever its status.
    """
    days: dict[date, DailyAggregate] = {}

    for i, snap in enumerate(snapshots):
        day = local_day(snap.when, tz)
        agg = days.get(day)
        if agg is None:
            agg = days[day] = DailyAggregate(day=day)
        if snap.event.is_trade:
            agg.trade_pnl += snap.event.delta
        else:
            agg.payout_total -= snap.event.delta
            agg.payouts.append(snap.event.payout)
        agg.last_index = i

    out: list[DailyAggregate] = []
    for day in sorted(days):
        agg = days[day]
        agg.balance = snapshots[agg.last_index].balance
        agg.high_water_mark = snapshots[agg.last_index].high_water_mark
        out.append(agg)

    return out
