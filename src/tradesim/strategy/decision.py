"""Per-trade strategy decision function.

decide() is evaluated once per (sampled) historical trade in chronological
order. It reads only the LATEST value of each indicator series and the
previously emitted simulation trade; it has no other state.

Strategies are dispatched through a table keyed by StrategyName. A strategy
missing from the table fails at import time, not on the first run.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import TYPE_CHECKING

from tradesim.indicators.models import TechnicalIndicators
from tradesim.models import HistoricalTrade, TradeType
from tradesim.strategy.models import StrategyName, TradeDecision, TradingStrategyConfig

if TYPE_CHECKING:
    from tradesim.simulation.models import SimulationTrade

RSI_OVERSOLD = Decimal("30")
RSI_OVERBOUGHT = Decimal("70")
BREAKOUT_WIDTH_RATIO = Decimal("1.2")

INSUFFICIENT_DATA = "Insufficient indicator data"
SAME_TYPE_REASON = "Avoiding consecutive trades of same type"

_ZERO = Decimal("0")
_ONE = Decimal("1")


def normalized_confidence(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    """Distance of ``value`` from ``low`` as a fraction of ``high - low``, clamped to [0, 1].

    Returns 0 for an empty range.
    """
    span = high - low
    if span == 0:
        return _ZERO
    normalized = abs((value - low) / span)
    return max(_ZERO, min(_ONE, normalized))


def _momentum(trade: HistoricalTrade, indicators: TechnicalIndicators) -> TradeDecision:
    rsi = indicators.latest_rsi
    macd = indicators.latest_macd
    signal = indicators.latest_signal
    if rsi is None or macd is None or signal is None:
        return TradeDecision.hold(INSUFFICIENT_DATA)

    confidence = normalized_confidence(rsi, RSI_OVERSOLD, RSI_OVERBOUGHT)
    if macd > signal and rsi < RSI_OVERBOUGHT:
        return TradeDecision.trade(
            TradeType.BUY,
            confidence,
            "MACD crossed above signal line with RSI below overbought",
        )
    if macd < signal and rsi > RSI_OVERSOLD:
        return TradeDecision.trade(
            TradeType.SELL,
            confidence,
            "MACD crossed below signal line with RSI above oversold",
        )
    return TradeDecision.hold()


def _mean_reversion(
    trade: HistoricalTrade, indicators: TechnicalIndicators
) -> TradeDecision:
    rsi = indicators.latest_rsi
    upper = indicators.latest_upper_band
    lower = indicators.latest_lower_band
    if rsi is None or upper is None or lower is None:
        return TradeDecision.hold(INSUFFICIENT_DATA)

    confidence = normalized_confidence(trade.price, lower, upper)
    if trade.price <= lower and rsi < RSI_OVERSOLD:
        return TradeDecision.trade(
            TradeType.BUY,
            confidence,
            "Price below lower Bollinger Band with oversold RSI",
        )
    if trade.price >= upper and rsi > RSI_OVERBOUGHT:
        return TradeDecision.trade(
            TradeType.SELL,
            confidence,
            "Price above upper Bollinger Band with overbought RSI",
        )
    return TradeDecision.hold()


def _volatility_breakout(
    trade: HistoricalTrade, indicators: TechnicalIndicators
) -> TradeDecision:
    macd = indicators.latest_macd
    signal = indicators.latest_signal
    widths = indicators.bollinger_bands.widths()
    if macd is None or signal is None or not widths:
        return TradeDecision.hold(INSUFFICIENT_DATA)

    width = widths[-1]
    mean_width = sum(widths, _ZERO) / Decimal(len(widths))
    if mean_width <= 0 or width <= mean_width * BREAKOUT_WIDTH_RATIO:
        return TradeDecision.hold()

    confidence = min(width / mean_width - _ONE, _ONE)
    if macd > signal:
        return TradeDecision.trade(
            TradeType.BUY,
            confidence,
            "Volatility expansion with positive MACD momentum",
        )
    if macd < signal:
        return TradeDecision.trade(
            TradeType.SELL,
            confidence,
            "Volatility expansion with negative MACD momentum",
        )
    return TradeDecision.hold()


_STRATEGIES: dict[
    StrategyName, Callable[[HistoricalTrade, TechnicalIndicators], TradeDecision]
] = {
    StrategyName.MOMENTUM: _momentum,
    StrategyName.MEAN_REVERSION: _mean_reversion,
    StrategyName.VOLATILITY_BREAKOUT: _volatility_breakout,
}

_missing = set(StrategyName) - set(_STRATEGIES)
if _missing:
    raise RuntimeError(f"No decision function for strategies: {sorted(_missing)}")


def decide(
    trade: HistoricalTrade,
    indicators: TechnicalIndicators,
    config: TradingStrategyConfig,
    previous: SimulationTrade | None = None,
) -> TradeDecision:
    """Decide whether to BUY, SELL or hold at ``trade``.

    Args:
        trade: The historical trade being replayed.
        indicators: Indicator series for the run; latest values are used.
        config: Strategy selection and risk parameters.
        previous: The last emitted simulation trade, if any.

    Returns:
        TradeDecision. A decision whose type equals ``previous.type`` is
        replaced by a hold, whatever the strategy.
    """
    decision = _STRATEGIES[config.strategy](trade, indicators)

    if (
        decision.should_trade
        and previous is not None
        and decision.type == previous.type
    ):
        return TradeDecision.hold(SAME_TYPE_REASON)

    return decision
