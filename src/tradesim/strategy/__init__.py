"""Strategy decision engine: configuration models and the decide() function."""

from tradesim.strategy.decision import decide, normalized_confidence
from tradesim.strategy.models import (
    STRATEGY_DESCRIPTIONS,
    StrategyName,
    TradeDecision,
    TradingStrategyConfig,
)

__all__ = [
    "STRATEGY_DESCRIPTIONS",
    "StrategyName",
    "TradeDecision",
    "TradingStrategyConfig",
    "decide",
    "normalized_confidence",
]
