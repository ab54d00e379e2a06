"""Momentum oscillators: Relative Strength Index and MACD.

Alignment convention: a series computed with an initial window of ``k``
values has ``len(input) - k + 1`` elements and its last element lines up
with the last input value. Two such series of different lengths are
aligned by skipping the first ``len(longer) - len(shorter)`` elements of the
longer one.
"""

from decimal import Decimal

from tradesim.indicators.models import MACDResult
from tradesim.indicators.moving_average import compute_ema

_HUNDRED = Decimal("100")
_RSI_QUANTIZE = Decimal("0.000000000001")


def _rsi_value(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    if avg_loss == 0:
        return _HUNDRED
    rs = avg_gain / avg_loss
    return (_HUNDRED - _HUNDRED / (Decimal("1") + rs)).quantize(_RSI_QUANTIZE)


def compute_rsi(prices: list[Decimal], period: int = 14) -> list[Decimal]:
    """Compute Wilder-smoothed RSI.

    The first ``period`` price deltas seed average gain and loss; each later
    delta updates them with ``avg = (avg * (period - 1) + value) / period``
    where the opposite side contributes 0. When the average loss is 0 the
    RSI is 100.

    Args:
        prices: Ordered prices (oldest first).
        period: Smoothing period (default 14).

    Returns:
        ``len(prices) - period`` values in [0, 100], or an empty list when
        fewer than ``period + 1`` prices are given.
    """
    if period <= 0 or len(prices) < period + 1:
        return []

    deltas = [prices[i] - prices[i - 1] for i in range(1, len(prices))]
    divisor = Decimal(period)
    zero = Decimal("0")

    avg_gain = sum((d for d in deltas[:period] if d > 0), zero) / divisor
    avg_loss = sum((-d for d in deltas[:period] if d < 0), zero) / divisor
    rsi = [_rsi_value(avg_gain, avg_loss)]

    for delta in deltas[period:]:
        gain = delta if delta > 0 else zero
        loss = -delta if delta < 0 else zero
        avg_gain = (avg_gain * (divisor - 1) + gain) / divisor
        avg_loss = (avg_loss * (divisor - 1) + loss) / divisor
        rsi.append(_rsi_value(avg_gain, avg_loss))

    return rsi


def compute_macd(
    prices: list[Decimal],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDResult:
    """Compute MACD line, signal line and histogram.

    ``macd_line[i] = fast_ema[i + offset] - slow_ema[i]`` with
    ``offset = len(fast_ema) - len(slow_ema)`` (= slow - fast), so both EMAs
    refer to the same price. ``signal_line = EMA(macd_line, signal)`` and
    ``histogram[i] = macd_line[i + offset2] - signal_line[i]`` with
    ``offset2 = len(macd_line) - len(signal_line)``.

    Returns:
        MACDResult; every list is empty when there is not enough data for it.
        ``fast >= slow`` yields an empty result.
    """
    if fast <= 0 or fast >= slow:
        return MACDResult()

    fast_ema = compute_ema(prices, fast)
    slow_ema = compute_ema(prices, slow)
    if not slow_ema:
        return MACDResult()

    offset = len(fast_ema) - len(slow_ema)
    macd_line = [fast_ema[i + offset] - slow_ema[i] for i in range(len(slow_ema))]

    signal_line = compute_ema(macd_line, signal)
    offset2 = len(macd_line) - len(signal_line)
    histogram = [
        macd_line[i + offset2] - signal_line[i] for i in range(len(signal_line))
    ]

    return MACDResult(
        macd_line=macd_line,
        signal_line=signal_line,
        histogram=histogram,
    )
