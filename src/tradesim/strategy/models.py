"""Strategy configuration and decision models.

CRITICAL: confidence and risk parameters use Decimal. Never use float.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum

from tradesim.exceptions import InvalidParamsError
from tradesim.models import TradeType, parse_decimal


class StrategyName(str, Enum):
    """Closed set of strategies understood by the decision engine."""

    MOMENTUM = "momentum"
    MEAN_REVERSION = "meanReversion"
    VOLATILITY_BREAKOUT = "volatilityBreakout"


STRATEGY_DESCRIPTIONS: dict[StrategyName, str] = {
    StrategyName.MOMENTUM: "MACD crossover confirmed by RSI staying inside the 30-70 band.",
    StrategyName.MEAN_REVERSION: "Fade Bollinger Band touches when RSI is oversold or overbought.",
    StrategyName.VOLATILITY_BREAKOUT: "Follow MACD direction when band width expands 20% above its mean.",
}


@dataclass(frozen=True)
class TradingStrategyConfig:
    """User-selected strategy and risk parameters.

    stop_loss and take_profit are percentages (0.2 means 0.2%).
    """

    strategy: StrategyName = StrategyName.MOMENTUM
    stop_loss: Decimal = Decimal("0.2")
    take_profit: Decimal = Decimal("0.5")
    trade_size_scaling: Decimal = Decimal("1.0")

    def __post_init__(self) -> None:
        for name in ("stop_loss", "take_profit", "trade_size_scaling"):
            if getattr(self, name) <= 0:
                raise InvalidParamsError(f"{name} must be positive")

    def with_overrides(self, **kwargs: object) -> TradingStrategyConfig:
        """Return a new config with specified fields overridden."""
        return replace(self, **kwargs)

    @classmethod
    def from_dict(cls, data: dict) -> TradingStrategyConfig:
        """Parse a request dict; accepts snake_case or camelCase keys.

        Raises:
            InvalidParamsError: On unknown strategy or non-positive parameters.
        """
        try:
            strategy = StrategyName(data.get("strategy", StrategyName.MOMENTUM.value))
        except ValueError as e:
            raise InvalidParamsError(f"Unknown strategy: {data.get('strategy')!r}") from e

        def _field(snake: str, camel: str, default: Decimal) -> Decimal:
            raw = data.get(snake, data.get(camel))
            return default if raw is None else parse_decimal(raw)

        return cls(
            strategy=strategy,
            stop_loss=_field("stop_loss", "stopLoss", Decimal("0.2")),
            take_profit=_field("take_profit", "takeProfit", Decimal("0.5")),
            trade_size_scaling=_field(
                "trade_size_scaling", "tradeSizeScaling", Decimal("1.0")
            ),
        )

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy.value,
            "stop_loss": str(self.stop_loss),
            "take_profit": str(self.take_profit),
            "trade_size_scaling": str(self.trade_size_scaling),
        }


@dataclass(frozen=True)
class TradeDecision:
    """Outcome of one decision step.

    A decision with ``should_trade=False`` is the HOLD outcome and never
    produces a SimulationTrade.
    """

    should_trade: bool
    confidence: Decimal
    reasoning: str
    type: TradeType | None = None

    @classmethod
    def hold(cls, reasoning: str = "") -> TradeDecision:
        return cls(should_trade=False, confidence=Decimal("0"), reasoning=reasoning)

    @classmethod
    def trade(cls, type: TradeType, confidence: Decimal, reasoning: str) -> TradeDecision:
        return cls(should_trade=True, confidence=confidence, reasoning=reasoning, type=type)
