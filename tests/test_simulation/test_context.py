"""Tests for market context construction."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from tradesim.config import IndicatorSettings
from tradesim.models import HistoricalTrade, TradeSide
from tradesim.simulation.context import (
    build_market_context,
    compute_average_spread,
    compute_volatility,
    extract_prices,
)

_T0 = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _make_trade(
    index: int, price: str, amount: str = "100", side: TradeSide = TradeSide.BUY
) -> HistoricalTrade:
    return HistoricalTrade(
        timestamp=_T0 + timedelta(seconds=index),
        price=Decimal(price),
        amount_usd=amount,
        side=side,
    )


class TestExtractPrices:
    def test_skips_invalid_prices(self) -> None:
        trades = [_make_trade(0, "10"), _make_trade(1, "0"), _make_trade(2, "-3"), _make_trade(3, "11")]
        assert extract_prices(trades) == [Decimal("10"), Decimal("11")]


class TestVolatility:
    def test_constant_growth_zero(self) -> None:
        """Identical returns have zero spread."""
        prices = [Decimal("100"), Decimal("110"), Decimal("121")]
        assert compute_volatility(prices) == Decimal("0")

    def test_known_sample_std(self) -> None:
        """Returns [0.1, -0.1]: mean 0, sample variance 0.02."""
        prices = [Decimal("100"), Decimal("110"), Decimal("99")]
        assert compute_volatility(prices) == Decimal("0.02").sqrt()

    def test_fewer_than_three_prices(self) -> None:
        assert compute_volatility([Decimal("1"), Decimal("2")]) == Decimal("0")


class TestAverageSpread:
    def test_opposite_side_pairs_only(self) -> None:
        trades = [
            _make_trade(0, "100", side=TradeSide.BUY),
            _make_trade(1, "101", side=TradeSide.BUY),
            _make_trade(2, "99.99", side=TradeSide.SELL),
        ]
        # only (101 buy -> 99.99 sell): 1.01 / 101
        assert compute_average_spread(trades) == Decimal("0.01")

    def test_no_opposite_pairs(self) -> None:
        trades = [_make_trade(0, "100"), _make_trade(1, "101")]
        assert compute_average_spread(trades) == Decimal("0")


class TestBuildMarketContext:
    def test_volume_sums_all_trades(self) -> None:
        trades = [_make_trade(0, "10", amount="1.5"), _make_trade(1, "0", amount="2.25")]
        context = build_market_context(trades)
        assert context.volume == Decimal("3.75")

    def test_insufficient_prices_empty_indicators(self) -> None:
        context = build_market_context([_make_trade(0, "10", amount="5")])
        assert context.technical_indicators.sma == []
        assert context.technical_indicators.latest_rsi is None
        assert context.volatility == Decimal("0")
        assert context.average_spread == Decimal("0")
        assert context.volume == Decimal("5")

    def test_indicator_periods_from_settings(self) -> None:
        trades = [_make_trade(i, str(100 + i % 5)) for i in range(10)]
        settings = IndicatorSettings(sma_period=4, rsi_period=3)
        context = build_market_context(trades, settings)
        assert len(context.technical_indicators.sma) == 10 - 4 + 1
        assert len(context.technical_indicators.rsi) == 10 - 3
        # defaults need 26+ prices for MACD
        assert context.technical_indicators.macd.macd_line == []

    def test_to_dict(self) -> None:
        trades = [_make_trade(i, str(100 + i)) for i in range(5)]
        data = build_market_context(trades).to_dict()
        assert data["volume"] == "500"
        assert "technical_indicators" in data
