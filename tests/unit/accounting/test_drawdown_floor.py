"""Unit tests for the drawdown floor calculator."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from propdesk.schemas.accounts import Account
from propdesk.services.accounting.balance import reconstruct_balance
from propdesk.services.accounting.drawdown import (
    DrawdownTracker,
    drawdown_progress,
    evaluate_drawdown,
    remaining_loss,
)
from propdesk.services.accounting.events import normalize_events


def ts(day: int, hour: int = 14) -> datetime:
    return datetime(2025, 3, day, hour, 0, tzinfo=timezone.utc)


def snapshots_for(account, trades, payouts=()):
    return reconstruct_balance(
        normalize_events(trades, list(payouts)), account.starting_balance
    )


class TestTrailingLock:
    def test_example_scenario(self, trailing_account, make_trade):
        """51.5k -> floor 49.5k; 54.5k locks at 50k; drop to 50.2k keeps 50k."""
        trades = [
            make_trade(1_500, ts(3)),
            make_trade(3_000, ts(4)),
            make_trade(-4_300, ts(5)),
        ]

        state = evaluate_drawdown(
            trailing_account, snapshots_for(trailing_account, trades)
        )

        assert state.floors == (49_500, 50_000, 50_000)
        assert state.floor == 50_000
        assert state.locked is True
        assert state.remaining_loss == 200
        assert state.progress_pct == pytest.approx(90.0)
        assert state.breached is False
        assert state.breached_at is None

    def test_paid_payout_after_lock_leaves_floor(
        self, trailing_account, make_trade, make_payout
    ):
        trades = [make_trade(1_500, ts(3)), make_trade(3_000, ts(4))]
        snapshots = snapshots_for(
            trailing_account, trades, [make_payout(1_000, ts(5))]
        )

        state = evaluate_drawdown(trailing_account, snapshots)

        assert snapshots[-1].balance == 53_500
        assert snapshots[-1].high_water_mark == 54_500
        assert state.floor == 50_000
        assert state.remaining_loss == 3_500

    def test_lock_is_one_way(self):
        account = Account(
            number="A",
            starting_balance=50_000,
            drawdown_threshold=1_500,
            trailing_drawdown=True,
            trailing_stop_profit=2_000,
        )
        tracker = DrawdownTracker(account)

        assert tracker.floor_for(51_000) == 49_500
        assert tracker.floor_for(52_500) == 50_500
        assert tracker.locked is True
        # A lower peak would trail to 49.5k; the lock holds
        assert tracker.floor_for(51_000) == 50_500
        assert tracker.floor_for(60_000) == 50_500

    def test_locked_floor_constant_after_lock(self, trailing_account, make_trade):
        rng = random.Random(11)
        start = datetime(2025, 1, 2, tzinfo=timezone.utc)
        trades = [make_trade(2_100, start)] + [
            make_trade(rng.uniform(-400, 450), start + timedelta(days=i))
            for i in range(1, 60)
        ]

        state = evaluate_drawdown(
            trailing_account, snapshots_for(trailing_account, trades)
        )

        assert state.locked is True
        assert set(state.floors) == {50_000}

    def test_trailing_without_stop_profit_never_locks(self, make_trade):
        account = Account(
            number="APEX-001",
            starting_balance=50_000,
            drawdown_threshold=2_000,
            trailing_drawdown=True,
        )
        trades = [make_trade(3_000, ts(3)), make_trade(-1_000, ts(4))]

        state = evaluate_drawdown(account, snapshots_for(account, trades))

        assert state.locked is False
        assert state.floors == (51_000, 51_000)
        assert state.remaining_loss == 1_000


class TestStaticFloor:
    def test_floor_independent_of_history(self, static_account, make_trade, make_payout):
        rng = random.Random(3)
        start = datetime(2025, 1, 2, tzinfo=timezone.utc)
        trades = [
            make_trade(rng.uniform(-500, 800), start + timedelta(hours=i * 5))
            for i in range(100)
        ]
        payouts = [make_payout(300, start + timedelta(days=3))]

        state = evaluate_drawdown(
            static_account, snapshots_for(static_account, trades, payouts)
        )

        assert set(state.floors) == {47_500}
        assert state.floor == 47_500
        assert state.locked is False

    def test_stop_profit_ignored_for_static(self):
        account = Account(
            number="A",
            starting_balance=50_000,
            drawdown_threshold=2_000,
            trailing_drawdown=False,
            trailing_stop_profit=1_000,
        )
        assert account.trailing_stop_profit == 0
        assert DrawdownTracker(account).floor_for(80_000) == 48_000


class TestBreach:
    def test_touching_floor_is_breach(self, static_account, make_trade):
        trades = [make_trade(-2_500, ts(3))]

        state = evaluate_drawdown(
            static_account, snapshots_for(static_account, trades)
        )

        assert state.breached is True
        assert state.breached_at == ts(3)
        assert state.remaining_loss == 0

    def test_recovery_keeps_first_breach_time(self, static_account, make_trade):
        trades = [make_trade(-2_600, ts(3)), make_trade(1_000, ts(4))]

        state = evaluate_drawdown(
            static_account, snapshots_for(static_account, trades)
        )

        assert state.breached is False
        assert state.breached_at == ts(3)
        assert state.remaining_loss == 900


class TestNotConfigured:
    def test_zero_threshold_reports_none(self, make_trade):
        account = Account(number="APEX-001", starting_balance=50_000)
        trades = [make_trade(-60_000, ts(3))]

        state = evaluate_drawdown(account, snapshots_for(account, trades))

        assert state.floor is None
        assert state.remaining_loss is None
        assert state.progress_pct is None
        assert state.breached is False
        assert state.floors == (None,)

    def test_empty_stream_has_starting_floor(self, trailing_account):
        state = evaluate_drawdown(trailing_account, [])

        assert state.floor == 48_000
        assert state.remaining_loss == 2_000
        assert state.progress_pct == 0.0
        assert state.floors == ()


class TestHelpers:
    def test_remaining_loss_clamps_at_zero(self):
        assert remaining_loss(47_000, 48_000) == 0.0
        assert remaining_loss(49_000, 48_000) == 1_000

    def test_progress_unclamped(self):
        assert drawdown_progress(2_000, 0) == 100.0
        assert drawdown_progress(2_000, 3_000) == -50.0
        assert drawdown_progress(0, 100) is None
