"""Tests for down-sampling of long trade windows."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from tradesim.models import HistoricalTrade, TradeSide
from tradesim.simulation.sampler import bucket_count, sample_trades

_T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _make_trade(minutes: float, amount: str = "100", price: str = "10") -> HistoricalTrade:
    return HistoricalTrade(
        timestamp=_T0 + timedelta(minutes=minutes),
        price=Decimal(price),
        amount_usd=amount,
        side=TradeSide.BUY,
    )


class TestBucketCount:
    def test_seventy_minutes_five_minute_buckets(self) -> None:
        assert bucket_count(_T0, _T0 + timedelta(minutes=70), 5) == 14

    def test_partial_bucket_rounds_up(self) -> None:
        assert bucket_count(_T0, _T0 + timedelta(minutes=71), 5) == 15


class TestSampleTrades:
    def test_short_window_unchanged(self) -> None:
        """Windows of at most 60 minutes are returned as-is."""
        trades = [_make_trade(m) for m in range(60)]
        result = sample_trades(trades, _T0, _T0 + timedelta(minutes=60))
        assert result == trades

    def test_one_trade_per_bucket(self) -> None:
        """70-minute window with a trade per minute -> 14 buckets of 5."""
        trades = [_make_trade(m) for m in range(70)]
        result = sample_trades(trades, _T0, _T0 + timedelta(minutes=70), sampling_interval=5)
        assert len(result) == 14

    def test_keeps_largest_amount(self) -> None:
        trades = [
            _make_trade(0, amount="5"),
            _make_trade(1, amount="50"),
            _make_trade(2, amount="7.5"),
            _make_trade(6, amount="1"),
        ]
        result = sample_trades(trades, _T0, _T0 + timedelta(minutes=90))
        assert [t.amount_usd for t in result] == ["50", "1"]

    def test_first_occurrence_wins_ties(self) -> None:
        first = _make_trade(0, amount="10", price="1")
        second = _make_trade(1, amount="10", price="2")
        result = sample_trades([first, second], _T0, _T0 + timedelta(minutes=90))
        assert result == [first]

    def test_empty_buckets_omitted_and_order_kept(self) -> None:
        trades = [_make_trade(2), _make_trade(33), _make_trade(61)]
        result = sample_trades(trades, _T0, _T0 + timedelta(minutes=90))
        assert result == trades

    def test_trades_outside_window_dropped(self) -> None:
        trades = [_make_trade(-1), _make_trade(10), _make_trade(90)]
        result = sample_trades(trades, _T0, _T0 + timedelta(minutes=90))
        assert result == [trades[1]]

    def test_unparsable_amount_counts_as_zero(self) -> None:
        bad = _make_trade(0, amount="n/a")
        good = _make_trade(1, amount="0.01")
        result = sample_trades([bad, good], _T0, _T0 + timedelta(minutes=90))
        assert result == [good]
