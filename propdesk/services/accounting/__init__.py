"""Account risk & payout accounting engine.

Turns an account's configuration, trades and payouts into one consistent
AccountMetrics record: balance, high-water mark, drawdown floor, target
progress, consistency and payout projection.
"""

from propdesk.services.accounting.cache import MetricsCache, compute_metrics_key
from propdesk.services.accounting.engine import (
    compute_account_metrics,
    compute_metrics_for_accounts,
)
from propdesk.services.accounting.errors import (
    AccountingError,
    AccountMismatchError,
    InvalidTimezoneError,
)
from propdesk.services.accounting.events import (
    DEFAULT_PAYOUT_POLICY,
    PayoutPolicy,
    policy_from_statuses,
)

__all__ = [
    "AccountingError",
    "AccountMismatchError",
    "DEFAULT_PAYOUT_POLICY",
    "InvalidTimezoneError",
    "MetricsCache",
    "PayoutPolicy",
    "compute_account_metrics",
    "compute_metrics_for_accounts",
    "compute_metrics_key",
    "policy_from_statuses",
]
