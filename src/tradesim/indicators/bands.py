"""Bollinger Bands over a moving window.

Band width uses the POPULATION standard deviation of each window (divide by
``period``). The Sharpe ratio in tradesim.analytics uses the sample standard
deviation instead.
"""

from decimal import Decimal

from tradesim.indicators.models import BollingerBandsResult
from tradesim.indicators.moving_average import compute_sma


def compute_bollinger_bands(
    prices: list[Decimal],
    period: int = 20,
    std_dev_multiplier: Decimal = Decimal("2"),
) -> BollingerBandsResult:
    """Compute Bollinger Bands.

    Args:
        prices: Ordered prices (oldest first).
        period: Window length for the middle band SMA.
        std_dev_multiplier: Number of standard deviations for the outer bands.
            Negative values are treated as 0 so that upper >= middle >= lower.

    Returns:
        BollingerBandsResult with ``len(prices) - period + 1`` points per band,
        or empty lists when there is not enough data.
    """
    middle = compute_sma(prices, period)
    if not middle:
        return BollingerBandsResult()

    multiplier = max(Decimal(std_dev_multiplier), Decimal("0"))
    divisor = Decimal(period)
    upper: list[Decimal] = []
    lower: list[Decimal] = []

    for i, avg in enumerate(middle):
        window = prices[i : i + period]
        variance = sum(((p - avg) ** 2 for p in window), Decimal("0")) / divisor
        band = multiplier * variance.sqrt()
        upper.append(avg + band)
        lower.append(avg - band)

    return BollingerBandsResult(upper=upper, middle=middle, lower=lower)
