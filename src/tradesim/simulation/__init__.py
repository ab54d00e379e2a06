"""Simulation orchestrator package.

Replays sampled historical trades through a strategy, emitting synthetic
BUY/SELL trades and aggregate metrics. SimulationEngine lives in
tradesim.simulation.engine and the high-level entry points in
tradesim.simulation.runner.
"""

from tradesim.simulation.context import build_market_context
from tradesim.simulation.models import (
    MarketContext,
    RunStage,
    SimulationMetrics,
    SimulationParams,
    SimulationResult,
    SimulationTrade,
)
from tradesim.simulation.sampler import sample_trades
from tradesim.simulation.sink import BestEffortSink, ProgressSink
from tradesim.simulation.source import (
    CachedTradeSource,
    DirectoryTradeSource,
    StaticTradeSource,
    TradeSource,
)

__all__ = [
    "BestEffortSink",
    "CachedTradeSource",
    "DirectoryTradeSource",
    "MarketContext",
    "ProgressSink",
    "RunStage",
    "SimulationMetrics",
    "SimulationParams",
    "SimulationResult",
    "SimulationTrade",
    "StaticTradeSource",
    "TradeSource",
    "build_market_context",
    "sample_trades",
]
