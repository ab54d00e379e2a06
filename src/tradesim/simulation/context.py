"""Market context construction: price extraction, indicators, volatility.

Builds the MarketContext snapshot for a run from the sampled trades. With
fewer than 2 valid prices every indicator series is empty and volatility and
spread are 0; volume is always summed over the trades given.
"""

from decimal import Decimal

from tradesim.config import IndicatorSettings
from tradesim.indicators import (
    TechnicalIndicators,
    compute_bollinger_bands,
    compute_ema,
    compute_macd,
    compute_rsi,
    compute_sma,
)
from tradesim.logging import get_logger
from tradesim.models import HistoricalTrade
from tradesim.simulation.models import MarketContext

logger = get_logger(__name__)

_ZERO = Decimal("0")


def has_valid_price(trade: HistoricalTrade) -> bool:
    """True when the trade price is finite and positive."""
    return trade.price.is_finite() and trade.price > 0


def extract_prices(trades: list[HistoricalTrade]) -> list[Decimal]:
    """Prices of trades with a valid price, in trade order."""
    return [t.price for t in trades if has_valid_price(t)]


def compute_indicators(
    prices: list[Decimal], settings: IndicatorSettings
) -> TechnicalIndicators:
    """Compute every indicator series over ``prices``."""
    return TechnicalIndicators(
        sma=compute_sma(prices, settings.sma_period),
        ema=compute_ema(prices, settings.ema_period),
        rsi=compute_rsi(prices, settings.rsi_period),
        macd=compute_macd(
            prices, settings.macd_fast, settings.macd_slow, settings.macd_signal
        ),
        bollinger_bands=compute_bollinger_bands(
            prices, settings.bollinger_period, settings.bollinger_std_dev
        ),
    )


def compute_volatility(prices: list[Decimal]) -> Decimal:
    """Sample standard deviation of consecutive price returns.

    Returns 0 when fewer than 2 returns are available.
    """
    returns = [(curr - prev) / prev for prev, curr in zip(prices, prices[1:])]
    if len(returns) < 2:
        return _ZERO
    n = Decimal(len(returns))
    mean = sum(returns, _ZERO) / n
    variance = sum(((r - mean) ** 2 for r in returns), _ZERO) / (n - 1)
    return variance.sqrt()


def compute_average_spread(trades: list[HistoricalTrade]) -> Decimal:
    """Mean relative price gap between consecutive opposite-side trades.

    A buy followed by a sell (or the reverse) approximates one crossing of
    the bid/ask spread. Returns 0 when no such pair exists.
    """
    valid = [t for t in trades if has_valid_price(t)]
    gaps = [
        abs(curr.price - prev.price) / prev.price
        for prev, curr in zip(valid, valid[1:])
        if prev.side != curr.side
    ]
    if not gaps:
        return _ZERO
    return sum(gaps, _ZERO) / Decimal(len(gaps))


def build_market_context(
    trades: list[HistoricalTrade],
    settings: IndicatorSettings | None = None,
) -> MarketContext:
    """Build the market context snapshot for a run.

    Args:
        trades: The (sampled) trades the run replays.
        settings: Indicator periods. Defaults to IndicatorSettings().

    Returns:
        MarketContext with indicators, volatility, spread and volume.
    """
    if settings is None:
        settings = IndicatorSettings()

    volume = sum((t.amount_usd_value for t in trades), _ZERO)
    prices = extract_prices(trades)

    if len(prices) < 2:
        logger.warning(
            "insufficient_price_data",
            trade_count=len(trades),
            price_count=len(prices),
        )
        return MarketContext(volume=volume)

    return MarketContext(
        average_spread=compute_average_spread(trades),
        volatility=compute_volatility(prices),
        volume=volume,
        technical_indicators=compute_indicators(prices, settings),
    )
