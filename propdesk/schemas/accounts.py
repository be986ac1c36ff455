"""Account schemas: configuration, trade/payout records, computed metrics."""

import datetime as dt
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ===========================================
# Source Records
# ===========================================


class PayoutStatus(str, Enum):
    """Approval state of a payout request.

    Any status may be edited into any other; there is no enforced machine.
    """

    PENDING = "PENDING"
    VALIDATED = "VALIDATED"
    REFUSED = "REFUSED"
    PAID = "PAID"


class Account(BaseModel):
    """
    Prop-firm account configuration for one evaluation cycle.

    Built once by the outer layer and passed whole into the engine. All
    money fields are magnitudes in account currency.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[UUID] = Field(None, description="Storage ID")
    number: str = Field(..., min_length=1, description="Account number")
    starting_balance: float = Field(0.0, ge=0, description="Balance at cycle start")
    profit_target: float = Field(
        0.0, ge=0, description="Profit to reach (0 = not configured)"
    )
    drawdown_threshold: float = Field(
        0.0, ge=0, description="Max tolerated loss magnitude (0 = not configured)"
    )
    trailing_drawdown: bool = Field(
        False, description="Floor trails the high-water mark"
    )
    trailing_stop_profit: float = Field(
        0.0, ge=0, description="Profit at which a trailing floor locks (0 = never)"
    )
    consistency_percentage: float = Field(
        0.0, ge=0, le=100, description="Max share of baseline per day (0 = disabled)"
    )
    reset_date: Optional[dt.date] = Field(
        None, description="Trades and payouts before this day are excluded"
    )

    # Funded-account extras
    buffer: float = Field(
        0.0, ge=0, description="Profit to bank before trades count toward target"
    )
    consider_buffer: bool = Field(True, description="Apply the profit buffer")
    min_pnl_to_count_as_day: float = Field(
        0.0, description="Min daily net PnL for a day to count as valid"
    )
    payout_count: int = Field(0, ge=0, description="Recorded payouts")

    @model_validator(mode="before")
    @classmethod
    def clear_stop_profit_for_static(cls, data):
        """trailing_stop_profit only has meaning for a trailing floor."""
        if isinstance(data, dict) and not data.get("trailing_drawdown"):
            data = {**data, "trailing_stop_profit": 0.0}
        return data


class TradeEvent(BaseModel):
    """A closed trade fill. Net balance contribution is pnl - commission."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(None, description="Trade ID")
    account_number: str = Field(..., description="Owning account number")
    entry_date: dt.datetime = Field(..., description="Entry time (naive = UTC)")
    pnl: float = Field(..., description="Gross PnL")
    commission: float = Field(0.0, description="Commission charged")
    updated_at: Optional[dt.datetime] = Field(None, description="Last write time")

    @property
    def net_pnl(self) -> float:
        return self.pnl - self.commission


class PayoutEvent(BaseModel):
    """A payout (withdrawal) request against accumulated profit."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()), description="Payout ID")
    account_number: str = Field(..., description="Owning account number")
    date: dt.datetime = Field(..., description="Payout time (naive = UTC)")
    amount: float = Field(..., gt=0, description="Withdrawn amount")
    status: PayoutStatus = Field(PayoutStatus.PENDING, description="Approval state")
    updated_at: Optional[dt.datetime] = Field(None, description="Last write time")


# ===========================================
# Computed Metrics
# ===========================================


class ConsistencyReason(str, Enum):
    """Why the consistency rule does not apply."""

    UNCONFIGURED = "unconfigured"
    UNPROFITABLE = "unprofitable"


class ConsistencyResult(BaseModel):
    """Outcome of the single-day profit concentration check."""

    is_consistent: bool = Field(..., description="Best day within the daily cap")
    reason: Optional[ConsistencyReason] = Field(
        None, description="Set when the rule is not applicable"
    )
    max_allowed_daily_profit: Optional[float] = Field(
        None, description="Daily cap (None when not applicable)"
    )
    highest_profit_day: float = Field(0.0, description="Best single-day net PnL")


class TradingDayStats(BaseModel):
    """Distinct calendar days with trades in the evaluation window."""

    total_trading_days: int = 0
    valid_trading_days: int = 0
    profitable_days: int = 0


class PayoutSummary(BaseModel):
    """Payout as attached to a daily chart row."""

    id: str
    amount: float
    date: dt.datetime
    status: PayoutStatus


class DailyMetric(BaseModel):
    """One calendar day of the account's balance history (derived view)."""

    date: dt.date = Field(..., description="Calendar day in the reporting timezone")
    daily_pnl: float = Field(..., description="Net trade PnL for the day")
    running_balance: float = Field(..., description="Balance at end of day")
    high_water_mark: float = Field(..., description="Peak balance through end of day")
    drawdown_floor: Optional[float] = Field(
        None, description="Floor at end of day (None when not configured)"
    )
    is_consistent: bool = Field(True, description="Day within the consistency cap")
    payout: Optional[PayoutSummary] = Field(
        None, description="First payout recorded that day"
    )
    payouts: list[PayoutSummary] = Field(
        default_factory=list, description="All payouts recorded that day"
    )


class AccountMetrics(BaseModel):
    """
    Full computed state of one account.

    Every optional field is None when the underlying rule is not configured
    or the data is degenerate; no field is ever NaN or infinite.
    """

    account_number: str

    # Balance
    current_balance: float
    high_water_mark: float

    # Drawdown
    drawdown_floor: Optional[float] = None
    drawdown_locked: bool = False
    remaining_loss: Optional[float] = None
    drawdown_progress_pct: Optional[float] = None
    is_breached: bool = False
    breached_at: Optional[dt.datetime] = None

    # Target
    net_profit: float = 0.0
    withdrawn_payouts: float = 0.0
    current_balance_without_payouts: float = 0.0
    target_progress_pct: Optional[float] = None
    remaining_to_target: Optional[float] = None

    # Consistency & days
    consistency: ConsistencyResult
    trading_days: TradingDayStats = Field(default_factory=TradingDayStats)

    # Projection
    avg_daily_pnl: Optional[float] = None
    next_payout_projection: Optional[dt.date] = None

    above_buffer: float = 0.0
    daily_metrics: list[DailyMetric] = Field(default_factory=list)


# ===========================================
# Request Bodies
# ===========================================


class PayoutCreate(BaseModel):
    """Request for POST /accounts/{number}/payouts.

    Send an existing id to edit a payout in place.
    """

    id: Optional[str] = Field(None, description="Existing payout ID (edit)")
    date: dt.datetime = Field(..., description="Payout time")
    amount: float = Field(..., gt=0, description="Withdrawn amount")
    status: PayoutStatus = Field(PayoutStatus.PENDING, description="Approval state")
