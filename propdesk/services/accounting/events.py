"""Event normalizer: merge trades and payouts into one ordered stream.

Pure-function module. Trades become balance deltas of ``pnl - commission``;
payouts become ``-amount`` when their status is in the inclusion policy and
zero-delta informational events otherwise. Records before the account's
reset date are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from propdesk.schemas.accounts import PayoutEvent, PayoutStatus, TradeEvent
from propdesk.services.accounting.errors import (
    AccountMismatchError,
    InvalidTimezoneError,
)

UTC = ZoneInfo("UTC")

PayoutPolicy = frozenset
DEFAULT_PAYOUT_POLICY: PayoutPolicy = frozenset(
    {PayoutStatus.VALIDATED, PayoutStatus.PAID}
)


class EventKind(str, Enum):
    TRADE = "trade"
    PAYOUT = "payout"


@dataclass(frozen=True)
class AccountEvent:
    """One balance-affecting (or informational) event in the stream."""

    when: datetime
    delta: float
    kind: EventKind
    trade: Optional[TradeEvent] = None
    payout: Optional[PayoutEvent] = None

    @property
    def is_trade(self) -> bool:
        return self.kind is EventKind.TRADE


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------


def resolve_timezone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name, failing loudly on unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezoneError(f"Unknown timezone: {name!r}") from e


def as_utc(when: datetime) -> datetime:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC."""
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def local_day(when: datetime, tz: ZoneInfo) -> date:
    """Calendar day of ``when`` in the reporting timezone."""
    return as_utc(when).astimezone(tz).date()


def in_window(when: datetime, reset_date: Optional[date], tz: ZoneInfo) -> bool:
    """True when ``when`` falls on or after the reset day."""
    if reset_date is None:
        return True
    return local_day(when, tz) >= reset_date


def policy_from_statuses(statuses: Iterable[str]) -> PayoutPolicy:
    """Build a payout inclusion policy from status names (case-insensitive)."""
    return frozenset(PayoutStatus(s.upper()) for s in statuses)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def validate_ownership(
    account_number: str,
    trades: Sequence[TradeEvent],
    payouts: Sequence[PayoutEvent],
) -> None:
    """Reject any record that belongs to another account.

    Raises:
        AccountMismatchError: on the first foreign record
    """
    for trade in trades:
        if trade.account_number != account_number:
            raise AccountMismatchError(account_number, trade.account_number, "trade")
    for payout in payouts:
        if payout.account_number != account_number:
            raise AccountMismatchError(account_number, payout.account_number, "payout")


def normalize_events(
    trades: Sequence[TradeEvent],
    payouts: Sequence[PayoutEvent],
    reset_date: Optional[date] = None,
    tz: ZoneInfo = UTC,
    policy: PayoutPolicy = DEFAULT_PAYOUT_POLICY,
) -> list[AccountEvent]:
    """Merge trades and payouts into a chronologically sorted stream.

    The sort is stable: events at the same instant keep input order, with
    trades ahead of payouts.
    """
    events: list[AccountEvent] = []

    for trade in trades:
        if not in_window(trade.entry_date, reset_date, tz):
            continue
        events.append(
            AccountEvent(
                when=as_utc(trade.entry_date),
                delta=trade.net_pnl,
                kind=EventKind.TRADE,
                trade=trade,
            )
        )

    for payout in payouts:
        if not in_window(payout.date, reset_date, tz):
            continue
        delta = -payout.amount if payout.status in policy else 0.0
        events.append(
            AccountEvent(
                when=as_utc(payout.date),
                delta=delta,
                kind=EventKind.PAYOUT,
                payout=payout,
            )
        )

    events.sort(key=lambda e: e.when)
    return events


def apply_profit_buffer(
    events: Sequence[AccountEvent], buffer: float
) -> tuple[list[AccountEvent], float]:
    """Drop trades taken before accumulated profit first reaches ``buffer``.

    Payouts are always kept and pull the accumulator down, which can push
    the account back under the buffer. A trade is kept when the account was
    already at/above the buffer or when the trade itself crosses it.

    Returns:
        (kept events, profit above the buffer at the end of the stream)
    """
    if buffer <= 0:
        return list(events), 0.0

    kept: list[AccountEvent] = []
    acc_profit = 0.0

    for event in events:
        if not event.is_trade:
            acc_profit += event.delta
            kept.append(event)
            continue

        nxt = acc_profit + event.delta
        was_above = acc_profit >= buffer
        crosses_now = acc_profit < buffer and nxt >= buffer
        if was_above or crosses_now:
            kept.append(event)
        acc_profit = nxt

    return kept, max(0.0, acc_profit - buffer)
