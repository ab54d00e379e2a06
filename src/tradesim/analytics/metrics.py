"""Performance analytics over emitted simulation trades.

Pure Decimal analytics: profitability (win rate, total/average profit,
profit factor), risk (max drawdown, Sharpe ratio), cost (transaction fees,
slippage) and a buy-and-hold benchmark. No external dependencies.

Every function is total: degenerate input (no trades, zero variance, zero
losses, zero first price) returns a defined fallback instead of raising.
"""

from collections.abc import Sequence
from decimal import Decimal

from tradesim.config import CostSettings
from tradesim.simulation.models import SimulationMetrics, SimulationTrade

INFINITY = Decimal("Infinity")
_ZERO = Decimal("0")
_ONE = Decimal("1")
_HUNDRED = Decimal("100")


def _profits(trades: Sequence[SimulationTrade]) -> list[Decimal]:
    """Profits of trades that have one, in trade order."""
    return [t.profit for t in trades if t.profit is not None]


def total_profit(trades: Sequence[SimulationTrade]) -> Decimal:
    """Sum of profit over trades with a defined profit."""
    return sum(_profits(trades), _ZERO)


def successful_trades(trades: Sequence[SimulationTrade]) -> int:
    """Number of trades with profit > 0."""
    return sum(1 for p in _profits(trades) if p > 0)


def win_rate(trades: Sequence[SimulationTrade]) -> Decimal:
    """Percentage of ALL emitted trades that were profitable.

    The first trade of a run has no profit and counts as unsuccessful.

    Returns:
        Win rate in [0, 100]; 0 when there are no trades.
    """
    if not trades:
        return _ZERO
    return _HUNDRED * Decimal(successful_trades(trades)) / Decimal(len(trades))


def average_return(trades: Sequence[SimulationTrade]) -> Decimal:
    """Total profit divided by the number of emitted trades (0 if none)."""
    if not trades:
        return _ZERO
    return total_profit(trades) / Decimal(len(trades))


def max_drawdown(trades: Sequence[SimulationTrade]) -> Decimal:
    """Compute max peak-to-trough drawdown in cumulative profit.

    Walks trades in order, accumulating profit. The peak starts at 0 and
    only advances on a new high.

    Returns:
        Max drawdown as a non-negative Decimal (absolute, not percent).
    """
    cumulative = _ZERO
    peak = _ZERO
    max_dd = _ZERO

    for profit in _profits(trades):
        cumulative += profit
        if cumulative > peak:
            peak = cumulative
        dd = peak - cumulative
        if dd > max_dd:
            max_dd = dd

    return max_dd


def periodic_returns(trades: Sequence[SimulationTrade]) -> list[Decimal]:
    """Relative price change between consecutive simulation trades.

    Pairs whose earlier price is 0 are skipped.
    """
    returns: list[Decimal] = []
    for prev, curr in zip(trades, trades[1:]):
        if prev.price == 0:
            continue
        returns.append((curr.price - prev.price) / prev.price)
    return returns


def sharpe_ratio(returns: Sequence[Decimal]) -> Decimal:
    """Compute the (non-annualized) Sharpe ratio with a zero risk-free rate.

    Sharpe = mean_return / sample_std_dev

    Args:
        returns: Per-period returns.

    Returns:
        Sharpe ratio, or 0 if fewer than 2 returns or zero std dev.
    """
    if len(returns) < 2:
        return _ZERO

    n = Decimal(len(returns))
    mean = sum(returns, _ZERO) / n

    # Sample standard deviation (N-1 denominator)
    variance = sum(((r - mean) ** 2 for r in returns), _ZERO) / (n - _ONE)
    std_dev = variance.sqrt()

    if std_dev == 0:
        return _ZERO

    return mean / std_dev


def profit_factor(trades: Sequence[SimulationTrade]) -> Decimal:
    """Summed gains over summed absolute losses.

    Returns:
        gains / losses; Infinity when there are gains but no losses;
        1 when there are neither.
    """
    profits = _profits(trades)
    gains = sum((p for p in profits if p > 0), _ZERO)
    losses = abs(sum((p for p in profits if p < 0), _ZERO))

    if losses == 0:
        return INFINITY if gains > 0 else _ONE
    return gains / losses


def transaction_costs(
    trades: Sequence[SimulationTrade], fee_pct: Decimal = Decimal("0.003")
) -> Decimal:
    """Total fees: sum of amount * fee_pct over all trades."""
    return sum((t.amount * fee_pct for t in trades), _ZERO)


def average_slippage(
    trades: Sequence[SimulationTrade],
    base_slippage: Decimal = Decimal("0.001"),
    log_factor: Decimal = Decimal("0.0001"),
) -> Decimal:
    """Average modelled slippage per trade.

    Each trade pays ``base_slippage`` plus ``log10(amount) * log_factor``
    when its amount exceeds 1.

    Returns:
        Mean slippage, or 0 when there are no trades.
    """
    if not trades:
        return _ZERO

    total = _ZERO
    for trade in trades:
        adjustment = trade.amount.log10() * log_factor if trade.amount > 1 else _ZERO
        total += base_slippage + adjustment

    return total / Decimal(len(trades))


def benchmark_return(first_price: Decimal, last_price: Decimal) -> Decimal:
    """Buy-and-hold return in percent; 0 when first_price is 0."""
    if first_price == 0:
        return _ZERO
    return _HUNDRED * (last_price - first_price) / first_price


def benchmark_profit_factor(first_price: Decimal, last_price: Decimal) -> Decimal:
    """Profit factor of buy-and-hold: Infinity if up, 0 if down, 1 if flat."""
    if last_price > first_price:
        return INFINITY
    if last_price < first_price:
        return _ZERO
    return _ONE


def compute_simulation_metrics(
    trades: Sequence[SimulationTrade],
    first_price: Decimal,
    last_price: Decimal,
    cost_settings: CostSettings | None = None,
) -> SimulationMetrics:
    """Aggregate all metrics for one run.

    Args:
        trades: Emitted simulation trades in chronological order.
        first_price: First observed price of the replayed series.
        last_price: Last observed price of the replayed series.
        cost_settings: Fee and slippage model. Defaults to CostSettings().

    Returns:
        SimulationMetrics with every field populated.
    """
    if cost_settings is None:
        cost_settings = CostSettings()

    return SimulationMetrics(
        total_trades=len(trades),
        successful_trades=successful_trades(trades),
        total_profit=total_profit(trades),
        win_rate=win_rate(trades),
        average_return=average_return(trades),
        max_drawdown=max_drawdown(trades),
        sharpe_ratio=sharpe_ratio(periodic_returns(trades)),
        profit_factor=profit_factor(trades),
        total_transaction_cost=transaction_costs(trades, cost_settings.fee_pct),
        average_slippage=average_slippage(
            trades, cost_settings.base_slippage, cost_settings.slippage_log_factor
        ),
        benchmark_return=benchmark_return(first_price, last_price),
        benchmark_profit_factor=benchmark_profit_factor(first_price, last_price),
    )
