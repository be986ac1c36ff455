"""Pydantic schemas for accounts, records and computed metrics."""

from propdesk.schemas.accounts import (
    Account,
    AccountMetrics,
    ConsistencyReason,
    ConsistencyResult,
    DailyMetric,
    PayoutCreate,
    PayoutEvent,
    PayoutStatus,
    PayoutSummary,
    TradeEvent,
    TradingDayStats,
)

__all__ = [
    "Account",
    "AccountMetrics",
    "ConsistencyReason",
    "ConsistencyResult",
    "DailyMetric",
    "PayoutCreate",
    "PayoutEvent",
    "PayoutStatus",
    "PayoutSummary",
    "TradeEvent",
    "TradingDayStats",
]
