"""Indicator series data models.

Every series is aligned to the END of the price series it was computed from:
the last element of each list describes the most recent price.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


def _last(series: list[Decimal]) -> Decimal | None:
    return series[-1] if series else None


def _strs(series: list[Decimal]) -> list[str]:
    return [str(v) for v in series]


@dataclass
class MACDResult:
    """MACD line, its signal line, and the histogram between them."""

    macd_line: list[Decimal] = field(default_factory=list)
    signal_line: list[Decimal] = field(default_factory=list)
    histogram: list[Decimal] = field(default_factory=list)


@dataclass
class BollingerBandsResult:
    """Upper, middle and lower bands; all three lists share one length."""

    upper: list[Decimal] = field(default_factory=list)
    middle: list[Decimal] = field(default_factory=list)
    lower: list[Decimal] = field(default_factory=list)

    def widths(self) -> list[Decimal]:
        """Band width (upper - lower) at every index."""
        return [u - lo for u, lo in zip(self.upper, self.lower)]


@dataclass
class TechnicalIndicators:
    """Indicator series aligned to one price series."""

    sma: list[Decimal] = field(default_factory=list)
    ema: list[Decimal] = field(default_factory=list)
    rsi: list[Decimal] = field(default_factory=list)
    macd: MACDResult = field(default_factory=MACDResult)
    bollinger_bands: BollingerBandsResult = field(default_factory=BollingerBandsResult)

    @property
    def latest_rsi(self) -> Decimal | None:
        return _last(self.rsi)

    @property
    def latest_macd(self) -> Decimal | None:
        return _last(self.macd.macd_line)

    @property
    def latest_signal(self) -> Decimal | None:
        return _last(self.macd.signal_line)

    @property
    def latest_upper_band(self) -> Decimal | None:
        return _last(self.bollinger_bands.upper)

    @property
    def latest_lower_band(self) -> Decimal | None:
        return _last(self.bollinger_bands.lower)

    def as_of(self, future_prices: int) -> TechnicalIndicators:
        """View of the indicators as they stood ``future_prices`` prices ago.

        Every series is causal and end-aligned, so dropping its last
        ``future_prices`` elements equals recomputing it on the shorter
        price series.
        """
        if future_prices <= 0:
            return self

        def cut(series: list[Decimal]) -> list[Decimal]:
            return series[: max(0, len(series) - future_prices)]

        return TechnicalIndicators(
            sma=cut(self.sma),
            ema=cut(self.ema),
            rsi=cut(self.rsi),
            macd=MACDResult(
                macd_line=cut(self.macd.macd_line),
                signal_line=cut(self.macd.signal_line),
                histogram=cut(self.macd.histogram),
            ),
            bollinger_bands=BollingerBandsResult(
                upper=cut(self.bollinger_bands.upper),
                middle=cut(self.bollinger_bands.middle),
                lower=cut(self.bollinger_bands.lower),
            ),
        )

    def to_dict(self) -> dict:
        """Serialize to dict for JSON output; Decimal values as strings."""
        return {
            "sma": _strs(self.sma),
            "ema": _strs(self.ema),
            "rsi": _strs(self.rsi),
            "macd": {
                "macd_line": _strs(self.macd.macd_line),
                "signal_line": _strs(self.macd.signal_line),
                "histogram": _strs(self.macd.histogram),
            },
            "bollinger_bands": {
                "upper": _strs(self.bollinger_bands.upper),
                "middle": _strs(self.bollinger_bands.middle),
                "lower": _strs(self.bollinger_bands.lower),
            },
        }
