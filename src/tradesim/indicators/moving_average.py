"""Simple and exponential moving averages over Decimal price series.

Both functions return an empty list instead of raising when the input is
shorter than the period.
"""

from decimal import Decimal


def compute_sma(prices: list[Decimal], period: int) -> list[Decimal]:
    """Compute the Simple Moving Average with a single-pass sliding sum.

    Args:
        prices: Ordered prices (oldest first).
        period: Window length.

    Returns:
        ``len(prices) - period + 1`` averages, or an empty list when
        ``len(prices) < period``. Element ``i`` averages
        ``prices[i : i + period]``.
    """
    if period <= 0 or len(prices) < period:
        return []

    divisor = Decimal(period)
    window_sum = sum(prices[:period], Decimal("0"))
    sma = [window_sum / divisor]

    for i in range(period, len(prices)):
        window_sum += prices[i] - prices[i - period]
        sma.append(window_sum / divisor)

    return sma


def compute_ema(prices: list[Decimal], period: int) -> list[Decimal]:
    """Compute the Exponential Moving Average seeded with an SMA.

    Uses the standard recursive formula:
        m = 2 / (period + 1)
        EMA_0 = SMA(prices[:period])
        EMA_t = price_t * m + EMA_{t-1} * (1 - m)

    Precision is bounded by the Decimal context in significant digits,
    not by a fixed number of decimal places.

    Args:
        prices: Ordered prices (oldest first).
        period: Number of periods for smoothing.

    Returns:
        ``len(prices) - period + 1`` values aligned like compute_sma, or an
        empty list when ``len(prices) < period``.
    """
    if period <= 0 or len(prices) < period:
        return []

    multiplier = Decimal("2") / (Decimal(period) + Decimal("1"))
    inverse = Decimal("1") - multiplier

    seed = sum(prices[:period], Decimal("0")) / Decimal(period)
    ema = [seed]
    for price in prices[period:]:
        ema.append(price * multiplier + ema[-1] * inverse)

    return ema
