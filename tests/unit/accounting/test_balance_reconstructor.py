"""Unit tests for the balance reconstructor."""

import random
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from propdesk.schemas.accounts import PayoutStatus
from propdesk.services.accounting.balance import (
    aggregate_daily,
    final_state,
    reconstruct_balance,
)
from propdesk.services.accounting.events import EventKind, normalize_events

UTC = ZoneInfo("UTC")


def ts(day: int, hour: int = 14) -> datetime:
    return datetime(2025, 3, day, hour, 0, tzinfo=timezone.utc)


class TestReconstructBalance:
    def test_empty_stream_stays_at_start(self):
        snapshots = reconstruct_balance([], 50_000)
        assert snapshots == []
        assert final_state(snapshots, 50_000) == (50_000, 50_000)

    def test_payout_reduces_balance_not_peak(self, make_trade, make_payout):
        events = normalize_events(
            [
                make_trade(1000, ts(3)),
                make_trade(200, ts(5)),
                make_trade(800, ts(6)),
            ],
            [make_payout(500, ts(4))],
        )

        snapshots = reconstruct_balance(events, 50_000)

        assert [s.balance for s in snapshots] == [51_000, 50_500, 50_700, 51_500]
        assert [s.high_water_mark for s in snapshots] == [
            51_000,
            51_000,
            51_000,
            51_500,
        ]
        assert snapshots[1].kind is EventKind.PAYOUT
        assert final_state(snapshots, 50_000) == (51_500, 51_500)

    def test_losing_trades_keep_peak(self, make_trade):
        events = normalize_events([make_trade(-300, ts(3)), make_trade(100, ts(4))], [])

        snapshots = reconstruct_balance(events, 50_000)

        assert [s.balance for s in snapshots] == [49_700, 49_800]
        assert all(s.high_water_mark == 50_000 for s in snapshots)

    def test_excluded_payout_has_no_effect(self, make_trade, make_payout):
        events = normalize_events(
            [make_trade(400, ts(3))],
            [make_payout(300, ts(4), status=PayoutStatus.PENDING)],
        )

        snapshots = reconstruct_balance(events, 50_000)

        assert len(snapshots) == 2
        assert snapshots[-1].balance == 50_400

    def test_high_water_mark_is_monotonic(self, make_trade, make_payout):
        rng = random.Random(7)
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        trades = [
            make_trade(rng.uniform(-900, 1000), start + timedelta(hours=i * 7))
            for i in range(200)
        ]
        payouts = [
            make_payout(rng.uniform(100, 1500), start + timedelta(hours=i * 53 + 3))
            for i in range(20)
        ]

        snapshots = reconstruct_balance(normalize_events(trades, payouts), 50_000)

        previous = 50_000
        for snap in snapshots:
            assert snap.high_water_mark >= previous
            if snap.kind is EventKind.PAYOUT:
                assert snap.high_water_mark == previous
            previous = snap.high_water_mark


class TestAggregateDaily:
    def test_same_day_trades_then_payouts(self, make_trade, make_payout):
        events = normalize_events(
            [make_trade(300, ts(3, hour=14)), make_trade(200, ts(3, hour=15))],
            [
                make_payout(100, ts(3, hour=9)),
                make_payout(250, ts(4), status=PayoutStatus.PENDING),
            ],
        )
        snapshots = reconstruct_balance(events, 50_000)

        days = aggregate_daily(snapshots, UTC)

        assert [d.day for d in days] == [date(2025, 3, 3), date(2025, 3, 4)]
        first, second = days
        assert first.trade_pnl == 500
        assert first.payout_total == 100
        assert first.balance == 50_400
        assert first.high_water_mark == 50_400
        assert len(first.payouts) == 1

        # Pending payout day: listed, balance unchanged
        assert second.trade_pnl == 0
        assert second.payout_total == 0
        assert second.balance == 50_400
        assert second.payouts[0].status is PayoutStatus.PENDING

    def test_intraday_peak_is_kept(self, make_trade):
        events = normalize_events(
            [make_trade(500, ts(3, hour=14)), make_trade(-400, ts(3, hour=16))], []
        )

        days = aggregate_daily(reconstruct_balance(events, 50_000), UTC)

        assert days[0].balance == 50_100
        assert days[0].high_water_mark == 50_500

    def test_days_bucketed_in_reporting_timezone(self, make_trade):
        # 02:00 UTC Mar 4 is 21:00 Mar 3 in New York
        events = normalize_events(
            [make_trade(100, ts(3, hour=18)), make_trade(100, ts(4, hour=2))], []
        )
        snapshots = reconstruct_balance(events, 50_000)

        ny_days = aggregate_daily(snapshots, ZoneInfo("America/New_York"))
        utc_days = aggregate_daily(snapshots, UTC)

        assert len(ny_days) == 1
        assert ny_days[0].day == date(2025, 3, 3)
        assert ny_days[0].trade_pnl == 200
        assert len(utc_days) == 2
