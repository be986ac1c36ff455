"""Drawdown floor calculator for static and trailing prop-firm drawdowns.

    static:   floor = starting_balance - threshold
    trailing: floor = hwm - threshold
    locked:   floor = starting_balance + trailing_stop_profit - threshold

A trailing floor locks the first time profit at the high-water mark reaches
trailing_stop_profit and stays locked for the rest of the evaluation cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from propdesk.schemas.accounts import Account
from propdesk.services.accounting.balance import BalanceSnapshot, final_state


@dataclass(frozen=True)
class DrawdownState:
    """Drawdown status at the end of the stream.

    All money fields are None when no drawdown threshold is configured.
    """

    floor: Optional[float] = None
    locked: bool = False
    remaining_loss: Optional[float] = None
    progress_pct: Optional[float] = None
    breached: bool = False
    breached_at: Optional[datetime] = None
    floors: tuple[Optional[float], ...] = field(default_factory=tuple)  # per snapshot


class DrawdownTracker:
    """Stateful floor walker with a one-way trailing-stop lock."""

    def __init__(self, account: Account):
        self.account = account
        self.locked = False

    @property
    def lock_floor(self) -> float:
        a = self.account
        return (a.starting_balance + a.trailing_stop_profit) - a.drawdown_threshold

    def floor_for(self, high_water_mark: float) -> float:
        """Floor for the given high-water mark, latching the lock if reached."""
        a = self.account
        if not a.trailing_drawdown:
            return a.starting_balance - a.drawdown_threshold

        if self.locked:
            return self.lock_floor

        profit_made = max(0.0, high_water_mark - a.starting_balance)
        if a.trailing_stop_profit > 0 and profit_made >= a.trailing_stop_profit:
            self.locked = True
            return self.lock_floor

        return high_water_mark - a.drawdown_threshold


def remaining_loss(balance: float, floor: float) -> float:
    return max(0.0, balance - floor)


def drawdown_progress(threshold: float, remaining: float) -> Optional[float]:
    """Share of the threshold already consumed, in percent (unclamped)."""
    if threshold <= 0:
        return None
    return (threshold - remaining) / threshold * 100


def evaluate_drawdown(
    account: Account, snapshots: Sequence[BalanceSnapshot]
) -> DrawdownState:
    """Walk the snapshots and report the final floor and breach status.

    ``breached`` reflects the current balance; ``breached_at`` is the first
    snapshot whose balance touched the floor, even if it later recovered.
    """
    if account.drawdown_threshold <= 0:
        return DrawdownState(floors=tuple(None for _ in snapshots))

    tracker = DrawdownTracker(account)
    floors: list[Optional[float]] = []
    breached_at: Optional[datetime] = None

    # Seed at the starting balance so an empty stream still has a floor
    floor = tracker.floor_for(account.starting_balance)
    for snap in snapshots:
        floor = tracker.floor_for(snap.high_water_mark)
        floors.append(floor)
        if breached_at is None and snap.balance <= floor:
            breached_at = snap.when

    balance, _ = final_state(snapshots, account.starting_balance)
    remaining = remaining_loss(balance, floor)

    return DrawdownState(
        floor=floor,
        locked=tracker.locked,
        remaining_loss=remaining,
        progress_pct=drawdown_progress(account.drawdown_threshold, remaining),
        breached=balance <= floor,
        breached_at=breached_at,
        floors=tuple(floors),
    )
