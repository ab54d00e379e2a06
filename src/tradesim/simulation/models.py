"""Data models for a simulation run.

Defines the run request (SimulationParams), the synthetic trades the engine
emits, aggregate metrics, the market context snapshot, and the final result.
Every model serializes to a JSON-compatible dict via ``to_dict``.

CRITICAL: All monetary values use Decimal. Never use float for prices,
amounts, or profits.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from tradesim.exceptions import InvalidParamsError
from tradesim.indicators.models import TechnicalIndicators
from tradesim.models import HistoricalTrade, TradeType, parse_decimal, parse_timestamp
from tradesim.strategy.models import TradingStrategyConfig


class RunStage(str, Enum):
    """Stages of a single simulation run, in order.

    FAILED is reachable from FETCH_TRADES only.
    """

    INIT = "init"
    FETCH_TRADES = "fetch_trades"
    SAMPLE = "sample"
    BUILD_CONTEXT = "build_context"
    DECIDE_LOOP = "decide_loop"
    AGGREGATE = "aggregate"
    DONE = "done"
    FAILED = "failed"


def _optional_str(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def _parse_flag(value: object, name: str) -> bool:
    """Accept JSON booleans or the strings "true"/"false"; None means False."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise InvalidParamsError(f"{name} must be a boolean, got {value!r}")


@dataclass
class SimulationParams:
    """Run request for one simulation.

    ``pool_id`` identifies the market passed to the trade source.
    Fields left as None fall back to SimulationSettings / StrategySettings.
    """

    start_date: datetime
    end_date: datetime
    pool_id: str
    initial_capital: Decimal = Decimal("0")
    trade_size: Decimal | None = None
    simulate_live: bool = False
    simulation_duration: int | None = None
    window_extension_factor: Decimal = Decimal("1")
    strategy_config: TradingStrategyConfig | None = None
    sampling_interval: int | None = None

    def __post_init__(self) -> None:
        if self.end_date <= self.start_date:
            raise InvalidParamsError(
                f"end_date ({self.end_date.isoformat()}) must be after "
                f"start_date ({self.start_date.isoformat()})"
            )
        if not self.pool_id:
            raise InvalidParamsError("pool_id is required")
        if self.sampling_interval is not None and self.sampling_interval <= 0:
            raise InvalidParamsError("sampling_interval must be positive")
        if self.trade_size is not None and self.trade_size <= 0:
            raise InvalidParamsError("trade_size must be positive")
        if self.window_extension_factor <= 0:
            raise InvalidParamsError("window_extension_factor must be positive")
        try:
            self.fetch_start
        except (OverflowError, ValueError) as e:
            raise InvalidParamsError(
                f"window_extension_factor {self.window_extension_factor} "
                "extends the window out of the supported date range"
            ) from e

    @property
    def fetch_start(self) -> datetime:
        """Start of the fetch window after applying the extension factor.

        Factors at or below 1 leave the requested window unchanged.
        """
        if self.window_extension_factor <= 1:
            return self.start_date
        span = self.end_date - self.start_date
        return self.end_date - span * float(self.window_extension_factor)

    @property
    def uses_extended_window(self) -> bool:
        return self.window_extension_factor > 1

    def with_overrides(self, **kwargs: object) -> SimulationParams:
        """Return new params with specified fields overridden."""
        return replace(self, **kwargs)

    @classmethod
    def from_dict(cls, body: dict) -> SimulationParams:
        """Build params from a JSON request body.

        Raises:
            InvalidParamsError: On missing fields, unparsable dates or invalid values.
        """
        for name in ("start_date", "end_date", "pool_id"):
            if name not in body or body[name] in (None, ""):
                raise InvalidParamsError(f"Missing required field: {name}")

        try:
            start_date = parse_timestamp(body["start_date"])
            end_date = parse_timestamp(body["end_date"])
        except ValueError as e:
            raise InvalidParamsError(f"Invalid date: {e}") from e

        strategy_config = None
        raw_config = body.get("strategy_config")
        if raw_config:
            if not isinstance(raw_config, dict):
                raise InvalidParamsError("strategy_config must be an object")
            strategy_config = TradingStrategyConfig.from_dict(raw_config)

        trade_size = body.get("trade_size")
        duration = body.get("simulation_duration")
        interval = body.get("sampling_interval")
        try:
            return cls(
                start_date=start_date,
                end_date=end_date,
                pool_id=str(body["pool_id"]),
                initial_capital=parse_decimal(body.get("initial_capital")),
                trade_size=parse_decimal(trade_size) if trade_size is not None else None,
                simulate_live=_parse_flag(body.get("simulate_live"), "simulate_live"),
                simulation_duration=int(duration) if duration is not None else None,
                window_extension_factor=parse_decimal(
                    body.get("window_extension_factor"), default=Decimal("1")
                ),
                strategy_config=strategy_config,
                sampling_interval=int(interval) if interval is not None else None,
            )
        except InvalidParamsError:
            raise
        except (TypeError, ValueError) as e:
            raise InvalidParamsError(str(e)) from e

    def to_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "pool_id": self.pool_id,
            "initial_capital": str(self.initial_capital),
            "trade_size": _optional_str(self.trade_size),
            "simulate_live": self.simulate_live,
            "simulation_duration": self.simulation_duration,
            "window_extension_factor": str(self.window_extension_factor),
            "strategy_config": (
                self.strategy_config.to_dict() if self.strategy_config else None
            ),
            "sampling_interval": self.sampling_interval,
        }


@dataclass(frozen=True)
class SimulationTrade:
    """A synthetic BUY/SELL decision emitted by the engine.

    Attributes:
        timestamp: Timestamp of the historical trade that triggered it.
        type: BUY or SELL.
        price: Price of the triggering historical trade.
        amount: trade_size * trade_size_scaling.
        confidence: Strategy confidence in [0, 1].
        reasoning: Human-readable explanation.
        profit: Profit against the previous simulated trade; None for the first.
        target_price: Take-profit level derived from the strategy config.
        stop_loss_price: Stop-loss level derived from the strategy config.
    """

    timestamp: datetime
    type: TradeType
    price: Decimal
    amount: Decimal
    confidence: Decimal
    reasoning: str
    profit: Decimal | None = None
    target_price: Decimal | None = None
    stop_loss_price: Decimal | None = None

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
            "price": str(self.price),
            "amount": str(self.amount),
            "confidence": str(self.confidence),
            "reasoning": self.reasoning,
            "profit": _optional_str(self.profit),
            "target_price": _optional_str(self.target_price),
            "stop_loss_price": _optional_str(self.stop_loss_price),
        }


@dataclass
class SimulationMetrics:
    """Aggregate performance over a run.

    win_rate is a percentage in [0, 100]. profit_factor and
    benchmark_profit_factor may be Decimal("Infinity").
    """

    total_trades: int
    successful_trades: int
    total_profit: Decimal
    win_rate: Decimal
    average_return: Decimal
    max_drawdown: Decimal
    sharpe_ratio: Decimal
    profit_factor: Decimal
    total_transaction_cost: Decimal
    average_slippage: Decimal
    benchmark_return: Decimal
    benchmark_profit_factor: Decimal

    def to_dict(self) -> dict:
        return {
            "total_trades": self.total_trades,
            "successful_trades": self.successful_trades,
            "total_profit": str(self.total_profit),
            "win_rate": str(self.win_rate),
            "average_return": str(self.average_return),
            "max_drawdown": str(self.max_drawdown),
            "sharpe_ratio": str(self.sharpe_ratio),
            "profit_factor": str(self.profit_factor),
            "total_transaction_cost": str(self.total_transaction_cost),
            "average_slippage": str(self.average_slippage),
            "benchmark_return": str(self.benchmark_return),
            "benchmark_profit_factor": str(self.benchmark_profit_factor),
        }


@dataclass
class MarketContext:
    """Snapshot of market state for a run."""

    average_spread: Decimal = Decimal("0")
    volatility: Decimal = Decimal("0")
    volume: Decimal = Decimal("0")
    technical_indicators: TechnicalIndicators = field(default_factory=TechnicalIndicators)

    def to_dict(self) -> dict:
        return {
            "average_spread": str(self.average_spread),
            "volatility": str(self.volatility),
            "volume": str(self.volume),
            "technical_indicators": self.technical_indicators.to_dict(),
        }


@dataclass
class SimulationResult:
    """Final output of one run.

    ``progress`` is the only mutable field; the engine advances it in place
    and never lowers it.
    """

    simulation_id: str
    trades: list[SimulationTrade]
    linked_historical_trades: list[HistoricalTrade]
    metrics: SimulationMetrics
    market_context: MarketContext
    simulation_duration: int
    is_live_simulation: bool = False
    used_extended_window: bool = False
    progress: int = 0
    is_running: bool = True

    def to_dict(self) -> dict:
        return {
            "simulation_id": self.simulation_id,
            "trades": [t.to_dict() for t in self.trades],
            "linked_historical_trades": [
                t.to_dict() for t in self.linked_historical_trades
            ],
            "metrics": self.metrics.to_dict(),
            "market_context": self.market_context.to_dict(),
            "simulation_duration": self.simulation_duration,
            "is_live_simulation": self.is_live_simulation,
            "used_extended_window": self.used_extended_window,
            "progress": self.progress,
            "is_running": self.is_running,
        }
