"""Target progress tracker: net profit against the configured profit target."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from propdesk.schemas.accounts import Account
from propdesk.services.accounting.events import AccountEvent


@dataclass(frozen=True)
class TargetProgress:
    net_profit: float
    withdrawn_payouts: float
    current_balance_without_payouts: float
    remaining_to_target: Optional[float]
    progress_pct: Optional[float]

    @property
    def is_configured(self) -> bool:
        return self.progress_pct is not None


def track_target(account: Account, events: Sequence[AccountEvent]) -> TargetProgress:
    """Compute target progress over the evaluation window.

    Withdrawals count only for payouts the inclusion policy kept as
    balance-reducing (non-zero delta). With no profit target configured,
    progress and remaining are None rather than 0/0.
    """
    net_profit = sum(e.delta for e in events if e.is_trade)
    withdrawn = sum(-e.delta for e in events if not e.is_trade)

    target = account.profit_target
    if target > 0:
        remaining: Optional[float] = max(0.0, target - (net_profit - withdrawn))
        progress: Optional[float] = net_profit / target * 100
    else:
        remaining = None
        progress = None

    return TargetProgress(
        net_profit=net_profit,
        withdrawn_payouts=withdrawn,
        current_balance_without_payouts=account.starting_balance + net_profit - withdrawn,
        remaining_to_target=remaining,
        progress_pct=progress,
    )
