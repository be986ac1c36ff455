"""Memoization for computed account metrics.

Metrics are a pure function of their inputs, so a result can be reused until
the account config, a trade or a payout changes, or the reporting day rolls
over (the payout projection depends on "today").
"""

from __future__ import annotations

import hashlib
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Optional, Sequence

import structlog

from propdesk.schemas.accounts import Account, AccountMetrics, PayoutEvent, TradeEvent
from propdesk.services.accounting.events import as_utc, local_day, resolve_timezone

logger = structlog.get_logger(__name__)


def _latest(stamps) -> str:
    values = [as_utc(s) for s in stamps if s is not None]
    return max(values).isoformat() if values else "-"


def _payout_fingerprint(payouts: Sequence[PayoutEvent]) -> str:
    return ";".join(
        sorted(
            f"{p.id}:{p.status.value}:{p.amount!r}:{as_utc(p.date).isoformat()}"
            for p in payouts
        )
    )


def compute_metrics_key(
    account: Account,
    trades: Sequence[TradeEvent],
    payouts: Sequence[PayoutEvent],
    now: datetime,
    timezone: str,
) -> str:
    """SHA256 cache key for one metrics computation.

    Covers the full account config, the newest ``updated_at`` on each record
    set, record counts (so deletions invalidate), the id, status, amount and
    date of every payout (so edits invalidate even without a fresh
    ``updated_at``), the local day of ``now`` and the timezone.
    """
    today = local_day(now, resolve_timezone(timezone))
    data = "|".join(
        [
            account.model_dump_json(),
            _latest(t.updated_at for t in trades),
            str(len(trades)),
            _latest(p.updated_at for p in payouts),
            str(len(payouts)),
            _payout_fingerprint(payouts),
            today.isoformat(),
            timezone,
        ]
    )
    return hashlib.sha256(data.encode()).hexdigest()


class MetricsCache:
    """Bounded LRU of AccountMetrics keyed by compute_metrics_key()."""

    def __init__(self, max_size: int = 256):
        self.max_size = max_size
        self._entries: OrderedDict[str, AccountMetrics] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[AccountMetrics]:
        metrics = self._entries.get(key)
        if metrics is None:
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return metrics

    def put(self, key: str, metrics: AccountMetrics) -> None:
        if self.max_size <= 0:
            return
        self._entries[key] = metrics
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("metrics_cache_evict", key=evicted[:16])

    def get_or_compute(
        self, key: str, compute: Callable[[], AccountMetrics]
    ) -> AccountMetrics:
        cached = self.get(key)
        if cached is not None:
            return cached
        metrics = compute()
        self.put(key, metrics)
        return metrics

    def clear(self) -> None:
        self._entries.clear()
