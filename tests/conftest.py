"""
Shared test fixtures for the accounting engine.

Provides:
- make_trade / make_payout: record factories with sensible defaults
- trailing_account: 50k trailing account with a 2k stop-profit lock
- static_account: 50k static-drawdown account
"""

from datetime import datetime

import pytest

from propdesk.schemas.accounts import Account, PayoutEvent, PayoutStatus, TradeEvent

ACCOUNT_NUMBER = "APEX-001"


@pytest.fixture
def make_trade():
    """Factory for TradeEvent with account number and commission defaults."""
    counter = {"n": 0}

    def _make(
        pnl: float,
        when: datetime,
        commission: float = 0.0,
        account_number: str = ACCOUNT_NUMBER,
        updated_at: datetime = None,
    ) -> TradeEvent:
        counter["n"] += 1
        return TradeEvent(
            id=f"t{counter['n']}",
            account_number=account_number,
            entry_date=when,
            pnl=pnl,
            commission=commission,
            updated_at=updated_at,
        )

    return _make


@pytest.fixture
def make_payout():
    """Factory for PayoutEvent (status defaults to PAID)."""
    counter = {"n": 0}

    def _make(
        amount: float,
        when: datetime,
        status: PayoutStatus = PayoutStatus.PAID,
        account_number: str = ACCOUNT_NUMBER,
        updated_at: datetime = None,
    ) -> PayoutEvent:
        counter["n"] += 1
        return PayoutEvent(
            id=f"p{counter['n']}",
            account_number=account_number,
            date=when,
            amount=amount,
            status=status,
            updated_at=updated_at,
        )

    return _make


@pytest.fixture
def trailing_account():
    """50k / 3k target / 2k trailing DD locking at 2k profit."""
    return Account(
        number=ACCOUNT_NUMBER,
        starting_balance=50_000,
        profit_target=3_000,
        drawdown_threshold=2_000,
        trailing_drawdown=True,
        trailing_stop_profit=2_000,
        consistency_percentage=30,
    )


@pytest.fixture
def static_account():
    """50k / 3k target / 2.5k static DD."""
    return Account(
        number=ACCOUNT_NUMBER,
        starting_balance=50_000,
        profit_target=3_000,
        drawdown_threshold=2_500,
        trailing_drawdown=False,
        consistency_percentage=40,
    )
