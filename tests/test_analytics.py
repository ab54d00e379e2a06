"""Tests for simulation performance analytics.

Tests cover normal operation, edge cases, and degenerate-input fallbacks
for profitability, risk, cost and benchmark metrics.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from tradesim.analytics.metrics import (
    INFINITY,
    average_return,
    average_slippage,
    benchmark_profit_factor,
    benchmark_return,
    compute_simulation_metrics,
    max_drawdown,
    periodic_returns,
    profit_factor,
    sharpe_ratio,
    successful_trades,
    total_profit,
    transaction_costs,
    win_rate,
)
from tradesim.config import CostSettings
from tradesim.models import TradeType
from tradesim.simulation.models import SimulationTrade

_T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers to build test trades
# ---------------------------------------------------------------------------


def _make_trade(
    profit: str | None,
    price: str = "100",
    amount: str = "0.1",
    index: int = 0,
) -> SimulationTrade:
    """Build a SimulationTrade with the given profit (None for a first trade)."""
    return SimulationTrade(
        timestamp=_T0 + timedelta(minutes=index),
        type=TradeType.BUY if index % 2 == 0 else TradeType.SELL,
        price=Decimal(price),
        amount=Decimal(amount),
        confidence=Decimal("0.5"),
        reasoning="test",
        profit=Decimal(profit) if profit is not None else None,
    )


def _trades_with_profits(*profits: str | None) -> list[SimulationTrade]:
    return [_make_trade(p, index=i) for i, p in enumerate(profits)]


# ===========================================================================
# profitability
# ===========================================================================


class TestProfitability:
    def test_total_profit_skips_missing(self) -> None:
        trades = _trades_with_profits(None, "10", "-5", "5")
        assert total_profit(trades) == Decimal("10")

    def test_successful_trades(self) -> None:
        trades = _trades_with_profits(None, "10", "-5", "5", "0")
        assert successful_trades(trades) == 2

    def test_win_rate_over_all_trades(self) -> None:
        """First trade (no profit) counts in the denominator."""
        trades = _trades_with_profits(None, "10", "-5", "5")
        assert win_rate(trades) == Decimal("50")

    def test_win_rate_no_trades(self) -> None:
        assert win_rate([]) == Decimal("0")

    def test_average_return(self) -> None:
        trades = _trades_with_profits(None, "10", "-5", "5")
        assert average_return(trades) == Decimal("2.5")

    def test_average_return_no_trades(self) -> None:
        assert average_return([]) == Decimal("0")


class TestProfitFactor:
    def test_gains_over_losses(self) -> None:
        assert profit_factor(_trades_with_profits(None, "10", "-5", "5")) == Decimal("3")

    def test_gains_without_losses_is_infinite(self) -> None:
        assert profit_factor(_trades_with_profits(None, "10")) == INFINITY

    def test_no_gains_no_losses_is_one(self) -> None:
        assert profit_factor(_trades_with_profits(None)) == Decimal("1")
        assert profit_factor([]) == Decimal("1")

    def test_only_losses_is_zero(self) -> None:
        assert profit_factor(_trades_with_profits(None, "-4")) == Decimal("0")


# ===========================================================================
# risk
# ===========================================================================


class TestMaxDrawdown:
    def test_peak_to_trough(self) -> None:
        """Cumulative [10, -5, 0]: peak 10, trough -5 -> drawdown 15."""
        assert max_drawdown(_trades_with_profits(None, "10", "-15", "5")) == Decimal("15")

    def test_peak_starts_at_zero(self) -> None:
        assert max_drawdown(_trades_with_profits(None, "-5", "-3")) == Decimal("8")

    def test_monotonic_gains_zero(self) -> None:
        assert max_drawdown(_trades_with_profits(None, "1", "2", "3")) == Decimal("0")

    def test_empty(self) -> None:
        assert max_drawdown([]) == Decimal("0")


class TestSharpeRatio:
    def test_known_values(self) -> None:
        """Returns [0.1, 0.2, 0.3]: mean 0.2, sample std 0.1 -> 2."""
        returns = [Decimal("0.1"), Decimal("0.2"), Decimal("0.3")]
        assert sharpe_ratio(returns) == Decimal("2")

    def test_fewer_than_two_returns(self) -> None:
        assert sharpe_ratio([]) == Decimal("0")
        assert sharpe_ratio([Decimal("0.5")]) == Decimal("0")

    def test_zero_std_dev(self) -> None:
        assert sharpe_ratio([Decimal("0.1")] * 4) == Decimal("0")

    def test_negative_mean(self) -> None:
        assert sharpe_ratio([Decimal("-0.1"), Decimal("-0.3")]) < 0


class TestPeriodicReturns:
    def test_consecutive_price_changes(self) -> None:
        trades = [
            _make_trade(None, price="100", index=0),
            _make_trade("1", price="110", index=1),
            _make_trade("1", price="99", index=2),
        ]
        assert periodic_returns(trades) == [Decimal("0.1"), Decimal("-0.1")]

    def test_zero_price_skipped(self) -> None:
        trades = [
            _make_trade(None, price="0", index=0),
            _make_trade("1", price="10", index=1),
            _make_trade("1", price="20", index=2),
        ]
        assert periodic_returns(trades) == [Decimal("1")]


# ===========================================================================
# costs
# ===========================================================================


class TestCosts:
    def test_transaction_costs(self) -> None:
        trades = _trades_with_profits(None, "1")
        assert transaction_costs(trades, Decimal("0.003")) == Decimal("0.0006")

    def test_slippage_small_amounts_base_only(self) -> None:
        trades = _trades_with_profits(None, "1")
        assert average_slippage(trades) == Decimal("0.001")

    def test_slippage_log_adjustment_above_one(self) -> None:
        """amount 10: 0.001 + log10(10) * 0.0001 = 0.0011; mean with 0.001 = 0.00105."""
        trades = [
            _make_trade(None, amount="0.1", index=0),
            _make_trade("1", amount="10", index=1),
        ]
        assert average_slippage(trades) == Decimal("0.00105")

    def test_slippage_no_trades(self) -> None:
        assert average_slippage([]) == Decimal("0")


# ===========================================================================
# benchmark
# ===========================================================================


class TestBenchmark:
    def test_benchmark_return(self) -> None:
        assert benchmark_return(Decimal("100"), Decimal("110")) == Decimal("10")

    def test_benchmark_return_zero_first_price(self) -> None:
        assert benchmark_return(Decimal("0"), Decimal("110")) == Decimal("0")

    def test_benchmark_profit_factor(self) -> None:
        assert benchmark_profit_factor(Decimal("100"), Decimal("110")) == INFINITY
        assert benchmark_profit_factor(Decimal("100"), Decimal("90")) == Decimal("0")
        assert benchmark_profit_factor(Decimal("100"), Decimal("100")) == Decimal("1")


# ===========================================================================
# aggregate
# ===========================================================================


class TestComputeSimulationMetrics:
    def test_empty_run(self) -> None:
        metrics = compute_simulation_metrics([], Decimal("100"), Decimal("100"))
        assert metrics.total_trades == 0
        assert metrics.successful_trades == 0
        assert metrics.total_profit == Decimal("0")
        assert metrics.win_rate == Decimal("0")
        assert metrics.sharpe_ratio == Decimal("0")
        assert metrics.profit_factor == Decimal("1")
        assert metrics.max_drawdown == Decimal("0")
        assert metrics.benchmark_return == Decimal("0")
        assert metrics.benchmark_profit_factor == Decimal("1")

    def test_populated_run(self) -> None:
        trades = _trades_with_profits(None, "10", "-5", "5")
        metrics = compute_simulation_metrics(
            trades, Decimal("100"), Decimal("110"), CostSettings(fee_pct=Decimal("0.01"))
        )
        assert metrics.total_trades == 4
        assert metrics.successful_trades == 2
        assert metrics.total_profit == Decimal("10")
        assert metrics.win_rate == Decimal("50")
        assert metrics.profit_factor == Decimal("3")
        assert metrics.max_drawdown == Decimal("5")
        assert metrics.total_transaction_cost == Decimal("0.004")
        assert metrics.benchmark_return == Decimal("10")

    def test_to_dict_renders_infinity(self) -> None:
        metrics = compute_simulation_metrics(
            _trades_with_profits(None, "10"), Decimal("100"), Decimal("120")
        )
        data = metrics.to_dict()
        assert data["profit_factor"] == "Infinity"
        assert data["benchmark_profit_factor"] == "Infinity"
