"""Technical indicator library.

Pure Decimal functions over ordered price series (SMA, EMA, RSI, MACD,
Bollinger Bands). Short input never raises; it yields empty series.
"""

from tradesim.indicators.bands import compute_bollinger_bands
from tradesim.indicators.models import (
    BollingerBandsResult,
    MACDResult,
    TechnicalIndicators,
)
from tradesim.indicators.moving_average import compute_ema, compute_sma
from tradesim.indicators.oscillators import compute_macd, compute_rsi

__all__ = [
    "BollingerBandsResult",
    "MACDResult",
    "TechnicalIndicators",
    "compute_bollinger_bands",
    "compute_ema",
    "compute_macd",
    "compute_rsi",
    "compute_sma",
]
